from __future__ import annotations

import json

from sre_assist.collection.models import Job, Pod, parse_list


def pod(name, phase, waiting="", terminated=""):
    return {
        "metadata": {"name": name},
        "status": {
            "phase": phase,
            "containerStatuses": [{"state": {"waiting": {"reason": waiting}, "terminated": {"reason": terminated}}}],
        },
    }


def items(*objs):
    return json.dumps({"items": list(objs)})


def test_failing_pods():
    pods = parse_list(Pod, items(pod("a", "Running"), pod("b", "Succeeded"), pod("c", "Failed"), pod("d", "Pending")))
    assert [p.name for p in pods if p.failing] == ["c", "d"]


def test_seccomp_error_matches_waiting_or_terminated_reason():
    pods = parse_list(
        Pod,
        items(
            pod("a", "Pending", waiting="CreateContainerError: Seccomp profile not found"),
            pod("b", "Failed", terminated="seccompFailure"),
            pod("c", "Failed", terminated="OOMKilled"),
            {"metadata": {"name": "d"}},
        ),
    )
    assert [p.name for p in pods if p.seccomp_error] == ["a", "b"]


def test_job_history_line_defaults_missing_counts():
    jobs = parse_list(
        Job,
        items(
            {"metadata": {"name": "builds-pruner-1"}, "status": {"failed": 2}},
            {"metadata": {"name": "builds-pruner-2"}, "status": {"succeeded": 1}},
        ),
    )
    assert [j.history_line() for j in jobs] == [
        "builds-pruner-1: 2 failed, 0 succeeded",
        "builds-pruner-2: 0 failed, 1 succeeded",
    ]


def test_parse_list_tolerates_bad_output():
    assert parse_list(Pod, "") == []
    assert parse_list(Pod, "error: You must be logged in to the server (Unauthorized)") == []
    assert parse_list(Pod, "{}") == []

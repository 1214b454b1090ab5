from __future__ import annotations

import json

from sre_assist.alerts.dynatrace_stack_down import (
    COMPONENT_SELECTORS,
    CREATION_NOTE,
    NAMESPACE,
    DynatraceMonitoringStackDownSRE,
)

from conftest import FakeClusterCLI

PODS = {
    "items": [
        {"metadata": {"name": "dynatrace-operator-6d8f"}, "status": {"phase": "Running"}},
        {"metadata": {"name": "activegate-0"}, "status": {"phase": "Pending"}},
        {"metadata": {"name": "oneagent-xyz"}, "status": {"phase": "Failed"}},
    ]
}


def collect(parse, make_command, out, *extra):
    cli = FakeClusterCLI(
        {
            ("get", "pod", "-n", NAMESPACE, "-o", "json"): json.dumps(PODS),
            ("get", "deploy", "-n", NAMESPACE, "-o", "wide"): "NAME  READY\ndynatrace-operator  1/1\n",
            ("logs", "-n", NAMESPACE, "-l", COMPONENT_SELECTORS["activegate"], "--tail=-1"): "E connection refused",
        }
    )
    command = make_command(
        DynatraceMonitoringStackDownSRE,
        parse("dynatrace-monitoring-stack-down-sre", "--output-dir", str(out), *extra),
        cli=cli,
    )
    command.complete()
    command.run()
    return command, cli


def test_collects_workloads_logs_and_note(parse, make_command, tmp_path):
    out = tmp_path / "out"
    _, cli = collect(parse, make_command, out)

    assert (out / "05-pod-describe-activegate-0.txt").exists()
    assert (out / "05-pod-describe-oneagent-xyz.txt").exists()
    assert not (out / "05-pod-describe-dynatrace-operator-6d8f.txt").exists()

    for component in ("operator", "webhook", "otel", "activegate", "oneagent"):
        assert (out / f"07-logs-{component}.txt").exists()
    assert (out / "07-logs-activegate.txt").read_text() == "E connection refused"
    assert ("logs", "-n", NAMESPACE, "-l", "app.kubernetes.io/name=oneagent", "--tail=-1") in cli.calls
    assert ("get", "sts", "-n", NAMESPACE, "-l", "app.kubernetes.io/component=activegate", "-o", "wide") in cli.calls

    note = (out / "00-cluster-creation-note.txt").read_text()
    assert note == CREATION_NOTE
    assert "ocm get cluster $MC_CLUSTER_ID | jq .creation_timestamp" in note

    summary = (out / "00-SUMMARY.txt").read_text()
    assert "\nDeployments Status:\nNAME  READY\ndynatrace-operator  1/1\n" in summary
    for title in ("Pods Status", "ActiveGate StatefulSet Status", "OneAgent DaemonSet Status"):
        assert f"\n{title}:\n" in summary


def test_events_collected_after_pod_describes(parse, make_command, tmp_path):
    _, cli = collect(parse, make_command, tmp_path / "out")
    describe = cli.calls.index(("describe", "pod", "oneagent-xyz", "-n", NAMESPACE))
    events = cli.calls.index(("get", "events", "-n", NAMESPACE, "--sort-by=.lastTimestamp"))
    operator_logs = cli.calls.index(("logs", "-n", NAMESPACE, "-l", COMPONENT_SELECTORS["operator"], "--tail=-1"))
    assert describe < events < operator_logs


def test_analysis_includes_component_logs(parse, make_command, tmp_path):
    out = tmp_path / "out"
    command, _ = collect(parse, make_command, out, "--analyze", "--no-follow-up")

    content = command.fake_client.completions.requests[0]["messages"][1]["content"]
    assert "Please analyze the following DynatraceMonitoringStackDownSRE diagnostic information" in content
    assert "\n=== 07-logs-activegate.txt ===\nE connection refused\n" in content
    assert "\n=== 05-pod-describe-activegate-0.txt ===\n" in content
    assert "=== 00-cluster-creation-note.txt ===" not in content
    assert (out / "08-llm-analysis.txt").exists()


def test_closing_output_names_log_source(parse, make_command, reporter, tmp_path):
    collect(parse, make_command, tmp_path / "out")
    assert "Note: component logs (07-logs-*.txt) come from 'oc logs' only;" in reporter.text
    assert "the Dynatrace tenant log store is not queried." in reporter.text

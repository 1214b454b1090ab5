from __future__ import annotations

import pytest

from sre_assist import __version__
from sre_assist.alerts import COMMANDS, PruningCronjobErrorSRE
from sre_assist.alerts.provisioning_failure import ClusterProvisioningFailure
from sre_assist.main import build_parser, main


def test_every_command_is_registered():
    parser = build_parser()
    for cls in COMMANDS:
        assert parser.parse_args([cls.name]).command_cls is cls
    assert parser.parse_args(["pruningcronjoberrorsre"]).command_cls is PruningCronjobErrorSRE


def test_common_flags():
    args = build_parser().parse_args(
        [
            "dynatrace-monitoring-stack-down-sre",
            "--output-dir",
            "out",
            "--analyze",
            "--llm-api-key",
            "sk-0123456789",
            "--llm-base-url",
            "https://llm.example.com/v1",
            "--llm-model",
            "granite",
            "--kubeconfig",
            "/tmp/kc",
            "--context",
            "admin",
            "--skip-archive",
            "--no-follow-up",
        ]
    )
    assert args.output_dir == "out"
    assert args.analyze and args.skip_archive and args.no_follow_up
    assert args.llm_model == "granite"
    assert str(args.kubeconfig) == "/tmp/kc"
    assert args.analyze_existing is None


def test_cluster_flag_only_on_provisioning():
    parser = build_parser()
    assert parser.parse_args(["cluster-provisioning-failure", "--cluster", "ext-1"]).cluster == "ext-1"
    with pytest.raises(SystemExit):
        parser.parse_args(["pruning-cronjob-error-sre", "--cluster", "ext-1"])


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "pruning-cronjob-error-sre" in out
    assert "cluster-provisioning-failure" in out


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_assist_error_exits_1(capsys, tmp_path):
    code = main(["pruning-cronjob-error-sre", "--analyze-existing", str(tmp_path / "missing")])
    assert code == 1
    assert "Error: existing directory does not exist or is not accessible" in capsys.readouterr().err


def test_unexpected_error_exits_2(monkeypatch, capsys):
    def boom(self):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(ClusterProvisioningFailure, "complete", boom)
    assert main(["cluster-provisioning-failure", "--cluster", "ext-1"]) == 2
    assert "Error: kaboom" in capsys.readouterr().err


def test_command_runs_complete_then_run(monkeypatch):
    calls = []
    monkeypatch.setattr(PruningCronjobErrorSRE, "complete", lambda self: calls.append("complete"))
    monkeypatch.setattr(PruningCronjobErrorSRE, "run", lambda self: calls.append("run"))
    assert main(["pruning-cronjob-error-sre"]) == 0
    assert calls == ["complete", "run"]

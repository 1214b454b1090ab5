from __future__ import annotations

import tarfile
from datetime import datetime

from sre_assist.collection.bundle import (
    MIDDLE_TRUNCATED_MARKER,
    TRUNCATED_MARKER,
    DiagnosticBundle,
    Excerpt,
    SummarySection,
    collection_timestamp,
    default_output_dir,
    truncate,
    truncate_middle,
)


def test_default_output_dir():
    when = datetime(2024, 5, 1, 9, 8, 7)
    assert default_output_dir("pruning-cronjob", when) == "pruning-cronjob-diagnostics-20240501-090807"


def test_collection_timestamp_is_rfc3339():
    stamp = collection_timestamp(datetime(2024, 5, 1, 9, 8, 7))
    assert stamp.startswith("2024-05-01T09:08:07")
    assert stamp[19] in "+-Z"


def test_truncate():
    assert truncate("abc", 3) == "abc"
    assert truncate("abcd", 3) == "abc" + TRUNCATED_MARKER


def test_truncate_middle():
    assert truncate_middle("abcdef", 3) == "abcdef"
    assert truncate_middle("abcdefg", 3) == "abc" + MIDDLE_TRUNCATED_MARKER + "efg"


def test_has_diagnostics(tmp_path):
    bundle = DiagnosticBundle(tmp_path / "b")
    bundle.create()
    assert not bundle.has_diagnostics()
    (bundle.path / "notes.md").write_text("x")
    (bundle.path / "sub").mkdir()
    (bundle.path / "sub" / "nested.txt").write_text("x")
    assert not bundle.has_diagnostics()
    bundle.write("01-jobs.yaml", "x")
    assert bundle.has_diagnostics()


def test_collected_files_are_recursive_sorted_basenames(tmp_path):
    bundle = DiagnosticBundle(tmp_path / "b")
    bundle.create()
    for name in ("02-pods.txt", "01-jobs.yaml", "notes.md", "06-network-config.json"):
        bundle.write(name, "x")
    (bundle.path / "extra").mkdir()
    (bundle.path / "extra" / "00-a.txt").write_text("x")
    assert bundle.collected_files() == ["00-a.txt", "01-jobs.yaml", "02-pods.txt", "06-network-config.json"]


def test_build_summary(tmp_path):
    bundle = DiagnosticBundle(tmp_path / "b")
    bundle.create()
    bundle.write("01-jobs.txt", "NAME  COMPLETIONS\npruner  0/1\n")
    summary = bundle.build_summary(
        "PruningCronjobErrorSRE",
        ["Collection Date: now", "Cluster ID: abc"],
        [SummarySection("Jobs Status", "01-jobs.txt"), SummarySection("Pods Status", "02-pods.txt")],
    )
    assert summary.startswith(
        "PruningCronjobErrorSRE Diagnostic Collection Summary\n" + "=" * 52 + "\nCollection Date: now\nCluster ID: abc\n"
    )
    assert "Files Collected:\n----------------\n01-jobs.txt\n" in summary
    assert "\nKey Information:\n---------------\n" in summary
    assert "\nJobs Status:\nNAME  COMPLETIONS\npruner  0/1\n\n" in summary
    assert "Pods Status" not in summary


def test_build_summary_with_intro(tmp_path):
    bundle = DiagnosticBundle(tmp_path / "b")
    bundle.create()
    summary = bundle.build_summary("X", ["Cluster ID: c"], intro="Gathered via OCM.")
    assert "Cluster ID: c\n\nGathered via OCM.\n\nFiles Collected:" in summary


def test_read_diagnostics(tmp_path):
    bundle = DiagnosticBundle(tmp_path / "b")
    bundle.create()
    bundle.write("00-SUMMARY.txt", "summary")
    bundle.write("big.yaml", "y" * 30)
    for i in range(7):
        bundle.write(f"03-pod-logs-p{i}.txt", f"log{i}")

    content = bundle.read_diagnostics(
        [
            Excerpt("00-SUMMARY.txt"),
            Excerpt("missing.txt"),
            Excerpt("big.yaml", limit=10),
            Excerpt("03-pod-logs-*.txt", max_files=5),
        ]
    )
    assert content.startswith("\n=== 00-SUMMARY.txt ===\nsummary\n")
    assert "missing.txt" not in content
    assert "\n=== big.yaml ===\n" + "y" * 10 + TRUNCATED_MARKER + "\n" in content
    assert "=== 03-pod-logs-p4.txt ===" in content
    assert "p5" not in content
    assert content.index("p0") < content.index("p1")


def test_excerpt_head_tail_applies_before_limit():
    excerpt = Excerpt("01-install-logs.txt", limit=15, head_tail=5)
    assert excerpt.shape("short") == "short"
    assert excerpt.shape("a" * 5 + "b" * 20 + "c" * 5) == "aaaaa" + MIDDLE_TRUNCATED_MARKER + "ccccc"
    assert excerpt.shape("x" * 8) == "x" * 8


def test_archive(tmp_path):
    bundle = DiagnosticBundle(tmp_path / "run")
    bundle.create()
    bundle.write("00-SUMMARY.txt", "summary")
    target = bundle.archive()
    assert target == tmp_path / "run.tar.gz"
    with tarfile.open(target) as tar:
        assert "run/00-SUMMARY.txt" in tar.getnames()


def test_append_and_read(tmp_path):
    bundle = DiagnosticBundle(tmp_path / "b")
    bundle.create()
    assert bundle.read("18-llm-analysis.txt") is None
    assert not bundle.exists("18-llm-analysis.txt")
    bundle.write("18-llm-analysis.txt", "first")
    bundle.append("18-llm-analysis.txt", "\nsecond")
    assert bundle.exists("18-llm-analysis.txt")
    assert bundle.read("18-llm-analysis.txt") == "first\nsecond"


def test_archive_of_current_directory(tmp_path, monkeypatch):
    (tmp_path / "run").mkdir()
    monkeypatch.chdir(tmp_path / "run")
    bundle = DiagnosticBundle(".")
    bundle.write("00-SUMMARY.txt", "summary")

    assert bundle.archive_path == tmp_path / "run.tar.gz"
    bundle.archive()
    with tarfile.open(tmp_path / "run.tar.gz") as tar:
        assert "run/00-SUMMARY.txt" in tar.getnames()

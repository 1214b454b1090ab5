"""The diagnostic bundle: a directory of numbered files plus summary and archive."""

from __future__ import annotations

import logging
import os
import tarfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

DIAGNOSTIC_EXTENSIONS = (".txt", ".yaml", ".json")
SUMMARY_FILE = "00-SUMMARY.txt"
TRUNCATED_MARKER = "\n... (truncated)"
MIDDLE_TRUNCATED_MARKER = "\n\n... (middle section truncated) ...\n\n"


def default_output_dir(prefix: str, now: datetime | None = None) -> str:
    """``<prefix>-diagnostics-YYYYMMDD-HHMMSS``."""
    return f"{prefix}-diagnostics-{(now or datetime.now()).strftime('%Y%m%d-%H%M%S')}"


def collection_timestamp(now: datetime | None = None) -> str:
    """RFC 3339 local timestamp, e.g. 2024-05-01T10:00:00+02:00."""
    return (now or datetime.now()).astimezone().isoformat(timespec="seconds")


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + TRUNCATED_MARKER
    return text


def truncate_middle(text: str, keep: int) -> str:
    """Keep the first and last ``keep`` characters of text longer than ``2 * keep``."""
    if len(text) > 2 * keep:
        return text[:keep] + MIDDLE_TRUNCATED_MARKER + text[-keep:]
    return text


@dataclass(frozen=True)
class Excerpt:
    """One entry of the content sent for analysis.

    ``name`` is a file name or a glob. Globs are sorted and capped at
    ``max_files``. ``limit`` truncates the tail; ``head_tail`` keeps both ends
    of long files and applies before ``limit``.
    """

    name: str
    limit: int | None = None
    max_files: int | None = None
    head_tail: int | None = None

    @property
    def is_glob(self) -> bool:
        return any(ch in self.name for ch in "*?[")

    def shape(self, text: str) -> str:
        if self.head_tail is not None and len(text) > 2 * self.head_tail:
            return truncate_middle(text, self.head_tail)
        if self.limit is not None:
            return truncate(text, self.limit)
        return text


@dataclass(frozen=True)
class SummarySection:
    """A ``Key Information`` entry copied from a collected file when present."""

    title: str
    filename: str


class DiagnosticBundle:
    """Directory holding the files of one collection run."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def __str__(self) -> str:
        return str(self.path)

    def create(self) -> None:
        self.path.mkdir(parents=True, exist_ok=True)

    def file(self, name: str) -> Path:
        return self.path / name

    def write(self, name: str, content: str) -> Path:
        target = self.file(name)
        target.write_text(content, encoding="utf-8")
        return target

    def append(self, name: str, content: str) -> None:
        with self.file(name).open("a", encoding="utf-8") as fh:
            fh.write(content)

    def exists(self, name: str) -> bool:
        return self.file(name).is_file()

    def read(self, name: str) -> str | None:
        try:
            return self.file(name).read_text(encoding="utf-8", errors="replace")
        except OSError:
            return None

    def has_diagnostics(self) -> bool:
        """Whether the top level holds any .txt, .yaml or .json file."""
        return any(any(self.path.glob(f"*{ext}")) for ext in DIAGNOSTIC_EXTENSIONS)

    def collected_files(self) -> list[str]:
        """Sorted basenames of every diagnostic file under the bundle."""
        files = []
        for root, _dirs, names in os.walk(self.path):
            for name in names:
                if os.path.splitext(name)[1] in DIAGNOSTIC_EXTENSIONS:
                    files.append(name)
        return sorted(files)

    def build_summary(
        self,
        title: str,
        header_lines: Iterable[str],
        sections: Iterable[SummarySection] = (),
        intro: str = "",
    ) -> str:
        lines = [
            f"{title} Diagnostic Collection Summary",
            "=" * 52,
            *header_lines,
            "",
        ]
        if intro:
            lines.extend([intro, ""])
        summary = "\n".join(lines) + "\nFiles Collected:\n----------------\n"
        summary += "".join(f"{name}\n" for name in self.collected_files())
        summary += "\nKey Information:\n---------------\n"
        for section in sections:
            content = self.read(section.filename)
            if content is not None:
                summary += f"\n{section.title}:\n{content}\n"
        return summary

    def read_diagnostics(self, excerpts: Iterable[Excerpt]) -> str:
        """Concatenate ``=== name ===`` blocks for every excerpt that exists."""
        parts = []
        for excerpt in excerpts:
            if excerpt.is_glob:
                paths = sorted(self.path.glob(excerpt.name))
                if excerpt.max_files is not None:
                    paths = paths[: excerpt.max_files]
            else:
                paths = [self.file(excerpt.name)]
            for path in paths:
                try:
                    text = path.read_text(encoding="utf-8", errors="replace")
                except OSError:
                    continue
                parts.append(f"\n=== {path.name} ===\n{excerpt.shape(text)}\n")
        return "".join(parts)

    @property
    def archive_path(self) -> Path:
        # next to the directory, also when the bundle is "."
        return Path(f"{self.path.resolve()}.tar.gz")

    def archive(self) -> Path:
        """Write ``<dir>.tar.gz`` next to the bundle."""
        target = self.archive_path
        with tarfile.open(target, "w:gz") as tar:
            tar.add(self.path, arcname=self.path.resolve().name or ".")
        logger.debug("Archived %s to %s", self.path, target)
        return target

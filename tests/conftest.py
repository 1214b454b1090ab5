"""Shared fakes: cluster CLIs, OpenAI client and a captured reporter."""

from __future__ import annotations

import io
from pathlib import Path
from types import SimpleNamespace
from typing import Sequence

import pytest
from rich.console import Console

from sre_assist.config import API_KEY_ENV_VARS, BASE_URL_ENV_VARS, MODEL_ENV_VARS, Settings
from sre_assist.console import Reporter
from sre_assist.errors import CommandError
from sre_assist.main import build_parser

TEST_API_KEY = "sk-test-0123456789abcdef"


class FakeClusterCLI:
    """Stands in for ClusterCLI; responses are keyed by ``(subcommand, *args)``."""

    binary = "oc"

    def __init__(self, responses: dict | None = None, failing: Sequence[tuple] = (), available: bool = True):
        self.responses = dict(responses or {})
        self.failing = set(failing)
        self.is_available = available
        self.calls: list[tuple[str, ...]] = []

    def available(self) -> bool:
        return self.is_available

    def _lookup(self, subcommand: str, args: Sequence[str]) -> str:
        key = (subcommand, *args)
        self.calls.append(key)
        if key in self.failing:
            raise CommandError(f"oc {subcommand} exited with status 1", returncode=1)
        return self.responses.get(key, "")

    def execute(self, subcommand: str, args: Sequence[str], output_file: Path | None) -> None:
        output = self._lookup(subcommand, args)
        if output_file is not None:
            with open(output_file, "a", encoding="utf-8") as fh:
                fh.write(output)

    def run(self, subcommand: str, args: Sequence[str]) -> str:
        return self._lookup(subcommand, args)


class FakeOcm:
    """Stands in for OcmCLI."""

    binary = "ocm"

    def __init__(
        self,
        internal_id: str | None = "internal-123",
        install_logs: str | None = "level=info msg=starting\nlevel=error msg=boom\n",
        description: str | None = "ID: internal-123\nState: error\n",
        events: str | None = '{"items": []}',
    ):
        self.internal_id = internal_id
        self._install_logs = install_logs
        self.description = description
        self.events = events
        self.calls: list[tuple[str, ...]] = []

    def resolve_internal_id(self, cluster_id: str) -> str:
        self.calls.append(("resolve", cluster_id))
        if self.internal_id is None:
            raise CommandError("ocm describe exited with status 1")
        return self.internal_id

    def install_logs(self, internal_id: str) -> str:
        self.calls.append(("install_logs", internal_id))
        if self._install_logs is None:
            raise CommandError("install_logs_tail not present in cluster resources", output="{}")
        return self._install_logs

    def describe_cluster(self, cluster_id: str, as_json: bool = False) -> str:
        self.calls.append(("describe", cluster_id, "json" if as_json else "text"))
        if self.description is None:
            raise CommandError("ocm describe exited with status 1")
        return '{"id": "%s"}' % self.internal_id if as_json else self.description

    def cluster_events(self, internal_id: str) -> str:
        self.calls.append(("events", internal_id))
        if self.events is None:
            raise CommandError("ocm get exited with status 1")
        return self.events


class FakeCompletions:
    """Returns queued answers (or raises queued exceptions) and records requests."""

    def __init__(self, answers: Sequence = ("analysis",)):
        self.answers = list(answers)
        self.requests: list[dict] = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        answer = self.answers.pop(0) if self.answers else "ok"
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            return SimpleNamespace(choices=[])
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=answer))])


class FakeOpenAI:
    def __init__(self, answers: Sequence = ("analysis",)):
        self.completions = FakeCompletions(answers)
        self.chat = SimpleNamespace(completions=self.completions)


class CapturedReporter(Reporter):
    def __init__(self) -> None:
        self.buffer = io.StringIO()
        super().__init__(Console(file=self.buffer, highlight=False, width=400, color_system=None))

    @property
    def text(self) -> str:
        return self.buffer.getvalue()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Empty HOME and cwd, no provider or SRE_ASSIST_* variables."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for name in {*API_KEY_ENV_VARS, *BASE_URL_ENV_VARS, *MODEL_ENV_VARS}:
        monkeypatch.delenv(name, raising=False)
    for name in ("KUBECONFIG", "SRE_ASSIST_OC_BINARY", "SRE_ASSIST_OCM_BINARY", "SRE_ASSIST_LLM_MODEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("sre_assist.alerts.base.current_context", lambda kubeconfig=None: "test-context")
    return home


@pytest.fixture
def settings():
    return Settings(llm_api_key=TEST_API_KEY)


@pytest.fixture
def reporter():
    return CapturedReporter()


@pytest.fixture
def parse():
    """Parse a full command line, e.g. ``parse("pruning-cronjob-error-sre", "--analyze")``."""
    parser = build_parser()

    def _parse(*argv: str):
        return parser.parse_args(list(argv))

    return _parse


@pytest.fixture
def make_command(settings, reporter):
    """Build a command with fakes wired in."""

    def _make(cls, args, cli=None, ocm=None, client=None, answers=("analysis",), lines=()):
        from sre_assist.analysis import LLMAnalyzer

        queue = list(lines)

        def read_line() -> str:
            if not queue:
                raise EOFError
            return queue.pop(0)

        fake_client = client or FakeOpenAI(answers)
        command = cls(
            args,
            settings,
            cli=cli or FakeClusterCLI(),
            ocm=ocm or FakeOcm(),
            reporter=reporter,
            analyzer=LLMAnalyzer(settings, client=fake_client),
            read_line=read_line,
        )
        command.fake_client = fake_client
        return command

    return _make

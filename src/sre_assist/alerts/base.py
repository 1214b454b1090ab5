"""Shared flow of the alert commands: complete → collect → summarize → archive → analyze."""

from __future__ import annotations

import argparse
import logging
import tarfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Sequence

from sre_assist.analysis import Conversation, LLMAnalyzer, follow_up_loop
from sre_assist.collection.bundle import (
    SUMMARY_FILE,
    DiagnosticBundle,
    Excerpt,
    SummarySection,
    collection_timestamp,
    default_output_dir,
)
from sre_assist.collection.cli import ClusterCLI, OcmCLI, current_context
from sre_assist.config import Settings, get_settings, key_preview, require_llm_settings
from sre_assist.console import Reporter
from sre_assist.errors import AnalysisError, CollectionError, CommandError, ConfigError

logger = logging.getLogger(__name__)

CLUSTER_INFO_FILE = "cluster-info.txt"
BANNER = "=" * 40


@dataclass(frozen=True)
class Dump:
    """An ``oc`` invocation whose output is saved verbatim to ``filename``."""

    what: str
    filename: str
    subcommand: str
    args: tuple[str, ...]
    label: str | None = None


class AlertCommand:
    """One diagnostic-collection subcommand.

    Subclasses set the class attributes below and implement ``collect()``;
    everything else (preflight, cluster info, summary, archive, analysis,
    closing output) is shared.
    """

    name: str = ""
    aliases: tuple[str, ...] = ()
    alert: str = ""
    help: str = ""
    description: str = ""
    dir_prefix: str = ""
    analysis_file: str = ""
    sop: str = ""
    subject: str = ""
    system_prompt: str = ""
    check_hint: str = "Check pod logs and describe output for error details"
    summary_sections: tuple[SummarySection, ...] = ()
    excerpts: tuple[Excerpt, ...] = ()

    def __init__(
        self,
        args: argparse.Namespace,
        settings: Settings | None = None,
        *,
        cli: ClusterCLI | None = None,
        ocm: OcmCLI | None = None,
        reporter: Reporter | None = None,
        analyzer: LLMAnalyzer | None = None,
        read_line: Callable[[], str] | None = None,
    ) -> None:
        self.args = args
        self.settings = settings or get_settings(
            llm_api_key=args.llm_api_key,
            llm_base_url=args.llm_base_url,
            llm_model=args.llm_model,
            kubeconfig=args.kubeconfig,
            context=args.context,
        )
        self.cli = cli or ClusterCLI(
            self.settings.oc_binary,
            kubeconfig=self.settings.kubeconfig,
            context=self.settings.context,
        )
        self.ocm = ocm or OcmCLI(self.settings.ocm_binary)
        self.reporter = reporter or Reporter()
        self._analyzer = analyzer
        self.read_line = read_line or input
        self.bundle: DiagnosticBundle | None = None
        self.skip_collection = False
        self.enable_analysis = bool(args.analyze)

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--output-dir",
            default=None,
            help=f"Output directory for diagnostic files (default: {cls.dir_prefix}-diagnostics-TIMESTAMP)",
        )
        parser.add_argument(
            "--analyze-existing",
            metavar="DIR",
            default=None,
            help="Path to existing directory of diagnostic artifacts to analyze with LLM (skips collection)",
        )
        parser.add_argument(
            "--analyze",
            action="store_true",
            help="Enable LLM analysis of collected diagnostic files",
        )
        parser.add_argument(
            "--llm-api-key",
            default=None,
            help="LLM API key (default: ~/.config/osdctl OPENAI_API_KEY, then LLM_API_KEY, OPENAI_API_KEY, ...)",
        )
        parser.add_argument(
            "--llm-base-url",
            default=None,
            help="LLM API base URL (default: ~/.config/osdctl OPENAI_BASE_URL, then env vars, or https://api.openai.com/v1)",
        )
        parser.add_argument(
            "--llm-model",
            default=None,
            help="LLM model (default: ~/.config/osdctl AI_MODEL_NAME, then env vars, or gpt-4o-mini)",
        )
        parser.add_argument(
            "--kubeconfig",
            type=Path,
            default=None,
            help="Path to kubeconfig passed to oc (default: KUBECONFIG env or ~/.kube/config)",
        )
        parser.add_argument("--context", default=None, help="Kubeconfig context passed to oc")
        parser.add_argument(
            "--skip-archive",
            action="store_true",
            help="Do not create a .tar.gz archive of the output directory",
        )
        parser.add_argument(
            "--no-follow-up",
            action="store_true",
            help="Skip the interactive follow-up questions after analysis",
        )

    @property
    def analyzer(self) -> LLMAnalyzer:
        if self._analyzer is None:
            self._analyzer = LLMAnalyzer(self.settings)
        return self._analyzer

    # Lifecycle

    def complete(self) -> None:
        """Resolve the output directory and, when analysis is on, the LLM settings."""
        existing = self.args.analyze_existing
        if existing:
            path = Path(existing)
            if not path.exists():
                raise ConfigError(f"existing directory does not exist or is not accessible: {path}")
            if not path.is_dir():
                raise ConfigError(f"path is not a directory: {path}")
            self.bundle = DiagnosticBundle(path)
            self.skip_collection = True
            self.enable_analysis = True
        else:
            self.bundle = DiagnosticBundle(self.args.output_dir or default_output_dir(self.dir_prefix))

        if self.enable_analysis:
            require_llm_settings(self.settings)

    def run(self) -> None:
        if self.bundle is None:
            raise CollectionError("complete() must be called before run()")

        if self.skip_collection:
            self.reporter.success("Analyzing existing diagnostic artifacts...")
            self.reporter.plain(f"Directory: {self.bundle}\n")
            if not self.bundle.has_diagnostics():
                raise CollectionError(
                    f"directory appears to be empty or contains no diagnostic files: {self.bundle}"
                )
        else:
            self.reporter.success(f"Collecting diagnostic information for {self.alert} alert...")
            self.reporter.plain(f"Output directory: {self.bundle}\n")
            try:
                self.bundle.create()
            except OSError as e:
                raise CollectionError(f"failed to create output directory: {e}") from e
            self.collect_bundle()
            if not self.args.skip_archive:
                self.create_archive()

        if self.enable_analysis:
            self.analyze()

        self.print_closing()

    # Collection

    def collect_bundle(self) -> None:
        """Preflight the cluster connection, then run every collector and the summary."""
        if not self.cli.available():
            raise CollectionError(
                f"'{self.cli.binary}' command not found. Please ensure OpenShift CLI is installed and configured."
            )
        try:
            self.cli.execute("cluster-info", [], None)
        except CommandError as e:
            raise CollectionError("Not logged into a cluster. Please run 'ocm backplane login' first.") from e

        self.reporter.success("Cluster Information:")
        cluster_id = self.cluster_id()
        self.reporter.plain(f"Cluster ID: {cluster_id}\n")
        self.write_cluster_info(cluster_id)

        self.collect()
        self.write_summary(cluster_id)

    def collect(self) -> None:
        raise NotImplementedError

    def cluster_id(self) -> str:
        return self.output("get", ["clusterversion", "version", "-o", "jsonpath={.spec.clusterID}"]).strip() or "N/A"

    def context_name(self) -> str | None:
        return self.settings.context or current_context(self.settings.kubeconfig)

    def write_cluster_info(self, cluster_id: str) -> None:
        header = f"Cluster ID: {cluster_id}\nCollection Date: {collection_timestamp()}\n"
        context = self.context_name()
        if context:
            header += f"Context: {context}\n"
        try:
            self.bundle.write(CLUSTER_INFO_FILE, header)
        except OSError as e:
            raise CollectionError(f"failed to write {CLUSTER_INFO_FILE}: {e}") from e
        try:
            self.cli.execute("cluster-info", [], self.bundle.file(CLUSTER_INFO_FILE))
        except CommandError as e:
            logger.debug("oc cluster-info output not captured: %s", e)

    def save(self, dump: Dump) -> bool:
        """Run one ``oc`` command into its file; failures are reported, never raised."""
        self.reporter.collecting(dump.what)
        try:
            self.cli.execute(dump.subcommand, dump.args, self.bundle.file(dump.filename))
        except CommandError as e:
            logger.debug("%s: %s", dump.filename, e)
            self.reporter.failed(dump.label or dump.what)
            return False
        self.reporter.saved(dump.filename)
        return True

    def save_all(self, dumps: Iterable[Dump]) -> None:
        for dump in dumps:
            self.save(dump)

    def save_text(self, what: str, filename: str, content: str, label: str | None = None) -> bool:
        """Write content computed from command output into ``filename``."""
        self.reporter.collecting(what)
        try:
            self.bundle.write(filename, content)
        except OSError as e:
            logger.debug("%s: %s", filename, e)
            self.reporter.failed(label or what)
            return False
        self.reporter.saved(filename)
        return True

    def output(self, subcommand: str, args: Sequence[str]) -> str:
        """Combined output of an ``oc`` command, or "" when it fails."""
        try:
            return self.cli.run(subcommand, args)
        except CommandError as e:
            logger.debug("oc %s failed: %s", subcommand, e)
            return ""

    def summary_header(self, cluster_id: str) -> list[str]:
        return [f"Collection Date: {collection_timestamp()}", f"Cluster ID: {cluster_id}"]

    def summary_extra(self) -> str:
        return ""

    def write_summary(self, cluster_id: str) -> None:
        self.reporter.success("Generating summary report...")
        summary = self.bundle.build_summary(self.alert, self.summary_header(cluster_id), self.summary_sections)
        summary += self.summary_extra()
        try:
            self.bundle.write(SUMMARY_FILE, summary)
        except OSError as e:
            raise CollectionError(f"failed to write {SUMMARY_FILE}: {e}") from e

    def create_archive(self) -> None:
        self.reporter.success("Creating archive...")
        try:
            self.bundle.archive()
        except (OSError, tarfile.TarError) as e:
            self.reporter.warning(f"Failed to create archive: {e}")

    # Analysis

    def analyze(self) -> None:
        """Run the analysis pass; every failure here is a warning."""
        settings = self.settings
        self.reporter.notice("\nAnalyzing diagnostics with LLM...")
        self.reporter.plain(f"Using LLM endpoint: {settings.llm_base_url}")
        self.reporter.plain(f"Using model: {settings.llm_model}")
        if settings.llm_api_key:
            self.reporter.plain(
                f"API key preview: {key_preview(settings.llm_api_key)} (length: {len(settings.llm_api_key)})"
            )
        self.reporter.plain()

        content = self.bundle.read_diagnostics(self.excerpts)
        try:
            answer, conversation = self.analyzer.analyze(self.system_prompt, self.subject, content)
        except AnalysisError as e:
            self.reporter.warning(f"LLM analysis failed: {e}")
            return

        self.reporter.success("\n=== LLM Analysis Results ===")
        self.reporter.plain(answer)
        self.reporter.plain()
        try:
            self.bundle.write(self.analysis_file, answer)
        except OSError as e:
            self.reporter.warning(f"Failed to save LLM analysis: {e}")
        else:
            self.reporter.success(f"✓ LLM analysis saved to {self.analysis_file}")

        if not self.args.no_follow_up:
            self.follow_up(conversation)

    def follow_up(self, conversation: Conversation) -> None:
        follow_up_loop(
            self.analyzer,
            conversation,
            self.bundle,
            self.analysis_file,
            self.reporter,
            read_line=self.read_line,
        )

    # Closing output

    def next_steps(self) -> list[str]:
        steps = [f"Review the files in {self.bundle}/", f"Start with {SUMMARY_FILE} for an overview"]
        sop_step = f"Refer to {self.sop} for troubleshooting steps"
        if self.enable_analysis:
            steps += [f"Review {self.analysis_file} for AI-powered insights", self.check_hint, sop_step]
        else:
            steps += [self.check_hint, sop_step, "Use --analyze flag to enable LLM analysis"]
        return steps

    def closing_notes(self) -> list[str]:
        return []

    def print_closing(self) -> None:
        self.reporter.success(f"\n{BANNER}")
        self.reporter.success("Collection Complete!")
        self.reporter.success(BANNER)
        self.reporter.plain(f"Diagnostic information saved to: {self.bundle}/")
        if self.bundle.archive_path.exists():
            self.reporter.plain(f"Archive created: {self.bundle.archive_path}")
        self.reporter.plain("\nNext steps:")
        for number, step in enumerate(self.next_steps(), start=1):
            self.reporter.plain(f"{number}. {step}")
        for line in self.closing_notes():
            self.reporter.plain(line)
        self.reporter.plain()

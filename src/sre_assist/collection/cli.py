"""Thin wrappers around the ``oc`` and ``ocm`` command-line tools."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Sequence

import yaml
from kubernetes import config as kube_config

from sre_assist.errors import CommandError

logger = logging.getLogger(__name__)


def current_context(kubeconfig: str | Path | None = None) -> str | None:
    """Return the active kubeconfig context name, or None when no kubeconfig is usable."""
    kwargs = {"config_file": str(kubeconfig)} if kubeconfig else {}
    try:
        _, active = kube_config.list_kube_config_contexts(**kwargs)
    except (kube_config.ConfigException, OSError, yaml.YAMLError) as e:
        logger.debug("No usable kubeconfig: %s", e)
        return None
    return (active or {}).get("name")


class ClusterCLI:
    """Runs read-only ``oc`` commands for collectors."""

    def __init__(
        self,
        binary: str = "oc",
        kubeconfig: str | Path | None = None,
        context: str | None = None,
    ) -> None:
        self.binary = binary
        self.kubeconfig = str(kubeconfig) if kubeconfig else None
        self.context = context

    def available(self) -> bool:
        return shutil.which(self.binary) is not None

    def _argv(self, subcommand: str, args: Sequence[str]) -> list[str]:
        argv = [self.binary, subcommand, *args]
        if self.kubeconfig:
            argv.append(f"--kubeconfig={self.kubeconfig}")
        if self.context:
            argv.append(f"--context={self.context}")
        return argv

    def execute(self, subcommand: str, args: Sequence[str], output_file: Path | None) -> None:
        """Run a command, appending stdout and stderr to ``output_file`` (discarded if None)."""
        argv = self._argv(subcommand, args)
        logger.debug("Running %s", " ".join(argv))
        try:
            if output_file is None:
                proc = subprocess.run(argv, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=False)
            else:
                with open(output_file, "a", encoding="utf-8") as fh:
                    proc = subprocess.run(argv, stdout=fh, stderr=subprocess.STDOUT, check=False)
        except OSError as e:
            raise CommandError(f"failed to run {self.binary} {subcommand}: {e}") from e
        if proc.returncode != 0:
            raise CommandError(
                f"{self.binary} {subcommand} exited with status {proc.returncode}",
                returncode=proc.returncode,
            )

    def run(self, subcommand: str, args: Sequence[str]) -> str:
        """Run a command and return its combined output."""
        argv = self._argv(subcommand, args)
        logger.debug("Running %s", " ".join(argv))
        try:
            proc = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as e:
            raise CommandError(f"failed to run {self.binary} {subcommand}: {e}") from e
        if proc.returncode != 0:
            raise CommandError(
                f"{self.binary} {subcommand} exited with status {proc.returncode}",
                output=proc.stdout,
                returncode=proc.returncode,
            )
        return proc.stdout


class OcmCLI:
    """Runs ``ocm`` commands against the clusters-management API."""

    def __init__(self, binary: str = "ocm") -> None:
        self.binary = binary

    def run(self, args: Sequence[str]) -> str:
        argv = [self.binary, *args]
        logger.debug("Running %s", " ".join(argv))
        try:
            proc = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as e:
            raise CommandError(f"failed to run {self.binary}: {e}") from e
        if proc.returncode != 0:
            raise CommandError(
                f"{self.binary} {' '.join(args[:2])} exited with status {proc.returncode} (output: {proc.stdout.strip()})",
                output=proc.stdout,
                returncode=proc.returncode,
            )
        return proc.stdout

    def get(self, path: str) -> str:
        return self.run(["get", path])

    def describe_cluster(self, cluster_id: str, as_json: bool = False) -> str:
        args = ["describe", "cluster", cluster_id]
        if as_json:
            args.append("--json")
        return self.run(args)

    def resolve_internal_id(self, cluster_id: str) -> str:
        """Map an external cluster ID to the internal clusters-management ID."""
        output = self.describe_cluster(cluster_id, as_json=True)
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise CommandError(f"failed to parse ocm output: {e}", output=output) from e
        internal_id = data.get("id") if isinstance(data, dict) else None
        if not internal_id:
            raise CommandError("internal ID not found in ocm output", output=output)
        return internal_id

    def cluster_events(self, internal_id: str) -> str:
        return self.get(f"/api/clusters_mgmt/v1/clusters/{internal_id}/events")

    def install_logs(self, internal_id: str) -> str:
        """Tail of the installer log kept by clusters-management."""
        output = self.get(f"/api/clusters_mgmt/v1/clusters/{internal_id}/resources")
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise CommandError(f"failed to parse ocm output: {e}", output=output) from e
        logs = (data.get("resources") or {}).get("install_logs_tail") if isinstance(data, dict) else None
        if not logs:
            raise CommandError("install_logs_tail not present in cluster resources", output=output)
        return logs

"""Collection layer: run cluster CLIs and lay the output out as a diagnostic bundle."""

from sre_assist.collection.bundle import DiagnosticBundle, Excerpt, SummarySection
from sre_assist.collection.cli import ClusterCLI, OcmCLI, current_context
from sre_assist.collection.models import Job, Pod, parse_list

__all__ = [
    "ClusterCLI",
    "DiagnosticBundle",
    "Excerpt",
    "Job",
    "OcmCLI",
    "Pod",
    "SummarySection",
    "current_context",
    "parse_list",
]

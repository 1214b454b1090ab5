"""Alert commands: one subcommand per alert, sharing the collect/analyze flow."""

from sre_assist.alerts.base import AlertCommand, Dump
from sre_assist.alerts.dynatrace_stack_down import DynatraceMonitoringStackDownSRE
from sre_assist.alerts.monitoring_error_budget import ClusterMonitoringErrorBudgetBurnSRE
from sre_assist.alerts.provisioning_failure import ClusterProvisioningFailure
from sre_assist.alerts.pruning_cronjob import PruningCronjobErrorSRE

# subcommands in the order they appear in --help
COMMANDS: tuple[type[AlertCommand], ...] = (
    PruningCronjobErrorSRE,
    ClusterMonitoringErrorBudgetBurnSRE,
    DynatraceMonitoringStackDownSRE,
    ClusterProvisioningFailure,
)

__all__ = [
    "COMMANDS",
    "AlertCommand",
    "ClusterMonitoringErrorBudgetBurnSRE",
    "ClusterProvisioningFailure",
    "Dump",
    "DynatraceMonitoringStackDownSRE",
    "PruningCronjobErrorSRE",
]

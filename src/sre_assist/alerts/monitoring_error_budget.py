"""ClusterMonitoringErrorBudgetBurnSRE: the monitoring cluster operator burning its error budget."""

from __future__ import annotations

from sre_assist.alerts.base import AlertCommand, Dump
from sre_assist.analysis.prompts import CLUSTER_MONITORING_PROMPT
from sre_assist.collection.bundle import SUMMARY_FILE, Excerpt, SummarySection

NAMESPACE = "openshift-monitoring"
CMO_SELECTOR = "app=cluster-monitoring-operator"

DUMPS = (
    Dump(
        "Monitoring cluster operator status",
        "01-monitoring-clusteroperator.yaml",
        "get",
        ("clusteroperator", "monitoring", "-o", "yaml"),
        "monitoring cluster operator",
    ),
    Dump(
        "Monitoring cluster operator status (wide)",
        "01-monitoring-clusteroperator.txt",
        "get",
        ("clusteroperator", "monitoring", "-o", "wide"),
        "monitoring cluster operator (wide)",
    ),
    Dump(
        "Pods in openshift-monitoring namespace",
        "02-monitoring-pods.txt",
        "get",
        ("pod", "-n", NAMESPACE, "-o", "wide"),
        "monitoring pods",
    ),
    Dump(
        "Pods in openshift-monitoring namespace (yaml)",
        "02-monitoring-pods.yaml",
        "get",
        ("pod", "-n", NAMESPACE, "-o", "yaml"),
        "monitoring pods yaml",
    ),
    Dump(
        "Events in openshift-monitoring namespace",
        "03-monitoring-events.txt",
        "get",
        ("events", "-n", NAMESPACE, "--sort-by=.lastTimestamp"),
        "monitoring events",
    ),
    Dump(
        "Prometheus CRDs across all namespaces (checking for second monitoring stack)",
        "04-prometheus-crds.txt",
        "get",
        ("prometheus", "-A", "-o", "wide"),
        "Prometheus CRDs",
    ),
    Dump(
        "Prometheus CRDs across all namespaces (yaml)",
        "04-prometheus-crds.yaml",
        "get",
        ("prometheus", "-A", "-o", "yaml"),
        "Prometheus CRDs yaml",
    ),
    Dump(
        "Cluster monitoring operator logs",
        "05-cmo-logs.txt",
        "logs",
        ("-n", NAMESPACE, "-l", CMO_SELECTOR, "--tail=100"),
        "CMO logs",
    ),
    Dump(
        "Cluster monitoring operator logs (all containers)",
        "05-cmo-logs-all-containers.txt",
        "logs",
        ("-n", NAMESPACE, "-l", CMO_SELECTOR, "--all-containers=true", "--tail=100"),
        "CMO logs (all containers)",
    ),
    Dump(
        "Resource quotas in openshift-monitoring",
        "06-resource-quotas.txt",
        "get",
        ("resourcequota", "-n", NAMESPACE),
        "resource quotas",
    ),
    Dump(
        "Cluster version information",
        "07-cluster-version.yaml",
        "get",
        ("clusterversion", "version", "-o", "yaml"),
        "cluster version",
    ),
)


class ClusterMonitoringErrorBudgetBurnSRE(AlertCommand):
    name = "cluster-monitoring-error-budget-burn-sre"
    alert = "ClusterMonitoringErrorBudgetBurnSRE"
    help = "Collect diagnostic information for ClusterMonitoringErrorBudgetBurnSRE alert"
    description = """Collects all diagnostic information needed to troubleshoot the ClusterMonitoringErrorBudgetBurnSRE alert.

Gathers the monitoring cluster operator status and conditions, cluster
monitoring operator logs, Prometheus CRDs across all namespaces (a second
monitoring stack is a common cause), pods, events and resource quotas in
openshift-monitoring, and cluster version.

Requires oc on PATH and an active cluster login ('ocm backplane login').
Troubleshooting steps: ~/ops-sop/v4/alerts/ClusterMonitoringErrorBudgetBurnSRE.md"""
    dir_prefix = "cluster-monitoring-error-budget-burn"
    analysis_file = "08-llm-analysis.txt"
    sop = "~/ops-sop/v4/alerts/ClusterMonitoringErrorBudgetBurnSRE.md"
    subject = "ClusterMonitoringErrorBudgetBurnSRE"
    system_prompt = CLUSTER_MONITORING_PROMPT
    check_hint = "Check cluster operator status and logs for error details"
    summary_sections = (
        SummarySection("Monitoring Cluster Operator Status", "01-monitoring-clusteroperator.txt"),
        SummarySection("Prometheus CRDs (check for second monitoring stack)", "04-prometheus-crds.txt"),
    )
    excerpts = (
        Excerpt(SUMMARY_FILE),
        Excerpt("01-monitoring-clusteroperator.txt"),
        Excerpt("02-monitoring-pods.txt"),
        Excerpt("03-monitoring-events.txt"),
        Excerpt("04-prometheus-crds.txt"),
        Excerpt("05-cmo-logs.txt"),
        Excerpt("06-resource-quotas.txt"),
        Excerpt("01-monitoring-clusteroperator.yaml", limit=15000),
        Excerpt("02-monitoring-pods.yaml", limit=15000),
        Excerpt("04-prometheus-crds.yaml", limit=15000),
        Excerpt("07-cluster-version.yaml", limit=15000),
    )

    def collect(self) -> None:
        self.save_all(DUMPS)

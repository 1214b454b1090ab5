"""DynatraceMonitoringStackDownSRE: Dynatrace operator, webhook, OneAgent, ActiveGate or OTEL down."""

from __future__ import annotations

from sre_assist.alerts.base import AlertCommand, Dump
from sre_assist.analysis.prompts import DYNATRACE_PROMPT
from sre_assist.collection.bundle import SUMMARY_FILE, Excerpt, SummarySection
from sre_assist.collection.models import Pod, parse_list

NAMESPACE = "dynatrace"
ACTIVEGATE_SELECTOR = "app.kubernetes.io/component=activegate"
ONEAGENT_SELECTOR = "app.kubernetes.io/name=oneagent"

# component name -> label selector for `oc logs`
COMPONENT_SELECTORS = {
    "operator": "app.kubernetes.io/component=operator",
    "webhook": "app.kubernetes.io/component=webhook",
    "otel": "app.kubernetes.io/component=otel",
    "activegate": ACTIVEGATE_SELECTOR,
    "oneagent": ONEAGENT_SELECTOR,
}

CREATION_NOTE_FILE = "00-cluster-creation-note.txt"
CREATION_NOTE = """Note: To check cluster creation timestamp, run:
ocm get cluster $MC_CLUSTER_ID | jq .creation_timestamp

If the creation timestamp is about 15-20 mins and this alert is fired,
it may be because the installation is still going on.
"""

WORKLOAD_DUMPS = (
    Dump("Deployments in dynatrace namespace", "01-deployments.txt", "get", ("deploy", "-n", NAMESPACE, "-o", "wide"), "deployments"),
    Dump(
        "Deployments in dynatrace namespace (yaml)",
        "01-deployments.yaml",
        "get",
        ("deploy", "-n", NAMESPACE, "-o", "yaml"),
        "deployments yaml",
    ),
    Dump(
        "StatefulSets for ActiveGate in dynatrace namespace",
        "02-statefulsets-activegate.txt",
        "get",
        ("sts", "-n", NAMESPACE, "-l", ACTIVEGATE_SELECTOR, "-o", "wide"),
        "ActiveGate StatefulSets",
    ),
    Dump(
        "StatefulSets for ActiveGate (yaml)",
        "02-statefulsets-activegate.yaml",
        "get",
        ("sts", "-n", NAMESPACE, "-l", ACTIVEGATE_SELECTOR, "-o", "yaml"),
        "ActiveGate StatefulSets yaml",
    ),
    Dump(
        "DaemonSets for OneAgent in dynatrace namespace",
        "03-daemonsets-oneagent.txt",
        "get",
        ("ds", "-n", NAMESPACE, "-l", ONEAGENT_SELECTOR, "-o", "wide"),
        "OneAgent DaemonSets",
    ),
    Dump(
        "DaemonSets for OneAgent (yaml)",
        "03-daemonsets-oneagent.yaml",
        "get",
        ("ds", "-n", NAMESPACE, "-l", ONEAGENT_SELECTOR, "-o", "yaml"),
        "OneAgent DaemonSets yaml",
    ),
    Dump("Pods in dynatrace namespace", "04-pods.txt", "get", ("pod", "-n", NAMESPACE, "-o", "wide"), "pods"),
    Dump("Pods in dynatrace namespace (yaml)", "04-pods.yaml", "get", ("pod", "-n", NAMESPACE, "-o", "yaml"), "pods yaml"),
)

EVENTS_DUMP = Dump(
    "Events in dynatrace namespace",
    "06-events.txt",
    "get",
    ("events", "-n", NAMESPACE, "--sort-by=.lastTimestamp"),
    "events",
)


class DynatraceMonitoringStackDownSRE(AlertCommand):
    name = "dynatrace-monitoring-stack-down-sre"
    alert = "DynatraceMonitoringStackDownSRE"
    help = "Collect diagnostic information for DynatraceMonitoringStackDownSRE alert"
    description = """Collects all diagnostic information needed to troubleshoot the DynatraceMonitoringStackDownSRE alert.

Gathers deployments, ActiveGate StatefulSets, OneAgent DaemonSets, pods and
events in the dynatrace namespace, describe output for failing pods, and logs
for the operator, webhook, OTEL, ActiveGate and OneAgent components.

Requires oc on PATH and an active cluster login ('ocm backplane login').
Troubleshooting steps: ~/ops-sop/dynatrace/alerts/DynatraceMonitoringStackDownSRE.md"""
    dir_prefix = "dynatrace-monitoring-stack-down"
    analysis_file = "08-llm-analysis.txt"
    sop = "~/ops-sop/dynatrace/alerts/DynatraceMonitoringStackDownSRE.md"
    subject = "DynatraceMonitoringStackDownSRE"
    system_prompt = DYNATRACE_PROMPT
    summary_sections = (
        SummarySection("Deployments Status", "01-deployments.txt"),
        SummarySection("Pods Status", "04-pods.txt"),
        SummarySection("ActiveGate StatefulSet Status", "02-statefulsets-activegate.txt"),
        SummarySection("OneAgent DaemonSet Status", "03-daemonsets-oneagent.txt"),
    )
    excerpts = (
        Excerpt(SUMMARY_FILE),
        Excerpt("01-deployments.txt"),
        Excerpt("02-statefulsets-activegate.txt"),
        Excerpt("03-daemonsets-oneagent.txt"),
        Excerpt("04-pods.txt"),
        Excerpt("06-events.txt"),
        Excerpt("01-deployments.yaml", limit=15000),
        Excerpt("02-statefulsets-activegate.yaml", limit=15000),
        Excerpt("03-daemonsets-oneagent.yaml", limit=15000),
        Excerpt("04-pods.yaml", limit=15000),
        Excerpt("05-pod-describe-*.txt", max_files=5),
        *(Excerpt(f"07-logs-{component}.txt", limit=10000) for component in COMPONENT_SELECTORS),
    )

    def collect(self) -> None:
        self.save_all(WORKLOAD_DUMPS)
        self.collect_failing_pods()
        self.save(EVENTS_DUMP)
        self.collect_component_logs()
        self.save_text(
            "Cluster creation timestamp (to check if installation is still in progress)",
            CREATION_NOTE_FILE,
            CREATION_NOTE,
            "cluster creation note",
        )

    def collect_failing_pods(self) -> None:
        pods = parse_list(Pod, self.output("get", ["pod", "-n", NAMESPACE, "-o", "json"]))
        for pod in pods:
            if not pod.failing:
                continue
            self.save(
                Dump(
                    f"Describe output for pod {pod.name}",
                    f"05-pod-describe-{pod.name}.txt",
                    "describe",
                    ("pod", pod.name, "-n", NAMESPACE),
                    f"describe for pod {pod.name}",
                )
            )

    def collect_component_logs(self) -> None:
        for component, selector in COMPONENT_SELECTORS.items():
            self.save(
                Dump(
                    f"Logs for {component} component (using oc logs)",
                    f"07-logs-{component}.txt",
                    "logs",
                    ("-n", NAMESPACE, "-l", selector, "--tail=-1"),
                    f"logs for {component}",
                )
            )

    def closing_notes(self) -> list[str]:
        return [
            "\nNote: component logs (07-logs-*.txt) come from 'oc logs' only;",
            "the Dynatrace tenant log store is not queried.",
        ]

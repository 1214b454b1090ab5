"""PruningCronjobErrorSRE: pruning jobs failing in openshift-sre-pruning."""

from __future__ import annotations

from sre_assist.alerts.base import AlertCommand, Dump
from sre_assist.analysis.prompts import PRUNING_CRONJOB_PROMPT
from sre_assist.collection.bundle import SUMMARY_FILE, Excerpt, SummarySection
from sre_assist.collection.models import Job, Pod, parse_list

NAMESPACE = "openshift-sre-pruning"
MONITORING_NAMESPACE = "openshift-monitoring"
REGISTRY_NAMESPACE = "openshift-image-registry"
REGISTRY_OPERATOR_SELECTOR = "name=cluster-image-registry-operator"
POD_NODES_JSONPATH = r'jsonpath={range .items[*]}{.metadata.name}{"\t"}{.spec.nodeName}{"\n"}{end}'

JOB_DUMPS = (
    Dump("Jobs in openshift-sre-pruning namespace", "01-jobs.txt", "get", ("job", "-n", NAMESPACE, "-o", "wide"), "jobs"),
    Dump(
        "Jobs in openshift-sre-pruning namespace (yaml)",
        "01-jobs.yaml",
        "get",
        ("job", "-n", NAMESPACE, "-o", "yaml"),
        "jobs yaml",
    ),
)

POD_DUMPS = (
    Dump("Pods in openshift-sre-pruning namespace", "02-pods.txt", "get", ("pod", "-n", NAMESPACE, "-o", "wide"), "pods"),
    Dump(
        "Pods in openshift-sre-pruning namespace (yaml)",
        "02-pods.yaml",
        "get",
        ("pod", "-n", NAMESPACE, "-o", "yaml"),
        "pods yaml",
    ),
)

EVENT_AND_NETWORK_DUMPS = (
    Dump(
        "Events in openshift-sre-pruning namespace",
        "05-events.txt",
        "get",
        ("events", "-n", NAMESPACE, "--sort-by=.lastTimestamp"),
        "events",
    ),
    Dump(
        "Network type configuration",
        "06-network-config.json",
        "get",
        ("Network.config.openshift.io", "cluster", "-o", "json"),
        "network config",
    ),
)

QUOTA_OVN_CRONJOB_DUMPS = (
    Dump(
        "Resource quotas in openshift-monitoring",
        "10-resource-quotas-monitoring.txt",
        "get",
        ("resourcequota", "-n", MONITORING_NAMESPACE),
        "resource quotas",
    ),
    Dump(
        "Resource quotas in openshift-sre-pruning",
        "10-resource-quotas-pruning.txt",
        "get",
        ("resourcequota", "-n", NAMESPACE),
        "resource quotas",
    ),
    Dump(
        "OVN master pods status",
        "11-ovn-master-pods.txt",
        "get",
        ("pod", "-n", "openshift-ovn-kubernetes", "-l", "app=ovnkube-master", "-o", "wide"),
        "OVN master pods",
    ),
    Dump(
        "CronJobs in openshift-sre-pruning namespace",
        "13-cronjobs.txt",
        "get",
        ("cronjob", "-n", NAMESPACE, "-o", "wide"),
        "cronjobs",
    ),
    Dump(
        "CronJobs in openshift-sre-pruning namespace (yaml)",
        "13-cronjobs.yaml",
        "get",
        ("cronjob", "-n", NAMESPACE, "-o", "yaml"),
        "cronjobs yaml",
    ),
)

POD_NODES_DUMP = Dump(
    "Node information for pruning pods",
    "15-pod-nodes.txt",
    "get",
    ("pod", "-n", NAMESPACE, "-o", POD_NODES_JSONPATH),
    "node information",
)

CLUSTER_VERSION_DUMP = Dump(
    "Cluster version information",
    "17-cluster-version.yaml",
    "get",
    ("clusterversion", "version", "-o", "yaml"),
    "cluster version",
)


def matching_lines(output: str, needle: str, ignore_case: bool = False) -> str:
    """Lines of ``output`` containing ``needle``, joined with newlines."""
    if ignore_case:
        needle = needle.lower()
        return "\n".join(line for line in output.split("\n") if needle in line.lower())
    return "\n".join(line for line in output.split("\n") if needle in line)


class PruningCronjobErrorSRE(AlertCommand):
    name = "pruning-cronjob-error-sre"
    aliases = ("pruningcronjoberrorsre",)
    alert = "PruningCronjobErrorSRE"
    help = "Collect diagnostic information for PruningCronjobErrorSRE alert"
    description = """Collects all diagnostic information needed to troubleshoot the PruningCronjobErrorSRE alert.

Gathers job, pod and cronjob state in openshift-sre-pruning, logs and describe
output for failing pods, events, resource quotas, network type (SDN vs OVN),
node-exporter CPU usage, image registry status and operator logs, OVN master
pods, seccomp errors and cluster version.

Requires oc on PATH and an active cluster login ('ocm backplane login').
Troubleshooting steps: ~/ops-sop/v4/alerts/PruningCronjobErrorSRE.md"""
    dir_prefix = "pruning-cronjob"
    analysis_file = "18-llm-analysis.txt"
    sop = "~/ops-sop/v4/alerts/PruningCronjobErrorSRE.md"
    subject = "pruning cronjob"
    system_prompt = PRUNING_CRONJOB_PROMPT
    summary_sections = (
        SummarySection("Jobs Status", "01-jobs.txt"),
        SummarySection("Pods Status", "02-pods.txt"),
    )
    excerpts = (
        Excerpt(SUMMARY_FILE),
        Excerpt("01-jobs.txt"),
        Excerpt("02-pods.txt"),
        Excerpt("14-seccomp-errors.txt"),
        Excerpt("16-job-history.txt"),
        Excerpt("05-events.txt"),
        Excerpt("03-pod-logs-*.txt", limit=10000, max_files=5),
        Excerpt("04-pod-describe-*.txt", max_files=5),
    )

    def collect(self) -> None:
        self.save_all(JOB_DUMPS)
        self.collect_pods()
        self.save_all(EVENT_AND_NETWORK_DUMPS)
        self.collect_node_exporter()
        self.collect_image_registry()
        self.save_all(QUOTA_OVN_CRONJOB_DUMPS)
        self.collect_seccomp_errors()
        self.save(POD_NODES_DUMP)
        self.collect_job_history()
        self.save(CLUSTER_VERSION_DUMP)

    def pods(self) -> list[Pod]:
        return parse_list(Pod, self.output("get", ["pod", "-n", NAMESPACE, "-o", "json"]))

    def jobs(self) -> list[Job]:
        return parse_list(Job, self.output("get", ["job", "-n", NAMESPACE, "-o", "json"]))

    def collect_pods(self) -> None:
        """Pod listings, then logs and describe output for failing pods (every pod when none fail)."""
        self.save_all(POD_DUMPS)

        pods = self.pods()
        targets = [pod.name for pod in pods if pod.failing]
        if targets:
            self.reporter.notice("Found failing pods, collecting detailed information...")
        else:
            self.reporter.notice("No failing pods found, collecting logs for all pods...")
            targets = [pod.name for pod in pods]
        self.reporter.plain()

        for pod in targets:
            self.save(
                Dump(
                    f"Logs for pod {pod}",
                    f"03-pod-logs-{pod}.txt",
                    "logs",
                    (pod, "-n", NAMESPACE, "--all-containers=true"),
                    f"logs for pod {pod}",
                )
            )
            self.save(
                Dump(
                    f"Describe output for pod {pod}",
                    f"04-pod-describe-{pod}.txt",
                    "describe",
                    ("pod", pod, "-n", NAMESPACE),
                    f"describe for pod {pod}",
                )
            )

        for job in self.jobs():
            self.save(
                Dump(
                    f"Describe output for job {job.name}",
                    f"12-job-describe-{job.name}.txt",
                    "describe",
                    ("job", job.name, "-n", NAMESPACE),
                    f"describe for job {job.name}",
                )
            )

    def collect_node_exporter(self) -> None:
        usage = matching_lines(self.output("adm", ["top", "pod", "-n", MONITORING_NAMESPACE]), "node-exporter")
        self.save_text(
            "node-exporter pod CPU usage",
            "07-node-exporter-cpu.txt",
            usage or "No node-exporter pods found",
            "node-exporter CPU",
        )

        pods = matching_lines(self.output("get", ["pod", "-n", MONITORING_NAMESPACE, "-o", "wide"]), "node-exporter")
        self.save_text(
            "node-exporter pods with node information",
            "07-node-exporter-pods.txt",
            pods or "No node-exporter pods found",
            "node-exporter pods",
        )

    def collect_image_registry(self) -> None:
        self.save(
            Dump(
                "Image registry pods status",
                "08-image-registry-pods.txt",
                "get",
                ("pod", "-n", REGISTRY_NAMESPACE, "-o", "wide"),
                "image registry pods",
            )
        )

        logs = self.output("logs", ["-n", REGISTRY_NAMESPACE, "-l", REGISTRY_OPERATOR_SELECTOR, "--tail=1000"])
        forbidden = matching_lines(logs, "forbidden", ignore_case=True)
        self.save_text(
            "cluster-image-registry-operator logs (forbidden errors)",
            "09-registry-operator-forbidden.txt",
            forbidden or "No forbidden errors found",
            "forbidden errors",
        )

        self.save(
            Dump(
                "cluster-image-registry-operator full logs",
                "09-registry-operator-logs.txt",
                "logs",
                ("-n", REGISTRY_NAMESPACE, "-l", REGISTRY_OPERATOR_SELECTOR, "--tail=500"),
                "registry operator logs",
            )
        )

    def collect_seccomp_errors(self) -> None:
        names = "\n".join(pod.name for pod in self.pods() if pod.seccomp_error)
        self.save_text(
            "Checking for seccomp errors in pod descriptions",
            "14-seccomp-errors.txt",
            names or "No seccomp errors detected",
            "seccomp errors",
        )

    def collect_job_history(self) -> None:
        history = "\n".join(job.history_line() for job in self.jobs())
        self.save_text("Recent job history", "16-job-history.txt", history, "job history")

    def summary_extra(self) -> str:
        network_type = self.output(
            "get", ["Network.config.openshift.io", "cluster", "-o", "jsonpath={.spec.networkType}"]
        ).strip()
        return f"\nNetwork Type:\n{network_type or 'Unable to determine'}\n\n"

"""ClusterProvisioningFailure: installs that never produced a reachable cluster.

The cluster is usually not reachable with ``oc``, so everything here comes
from the clusters-management API through ``ocm``.
"""

from __future__ import annotations

import argparse
import logging

from sre_assist.alerts.base import AlertCommand
from sre_assist.analysis.prompts import CLUSTER_PROVISIONING_PROMPT
from sre_assist.collection.bundle import SUMMARY_FILE, Excerpt, collection_timestamp, truncate
from sre_assist.errors import CollectionError, CommandError

logger = logging.getLogger(__name__)

INSTRUCTIONS_FILE = "00-INSTALL-LOGS-COLLECTION.txt"
INSTALL_LOGS_FILE = "01-install-logs.txt"
CLUSTER_INFO_FILE = "02-cluster-info-ocm.txt"
CLUSTER_JSON_FILE = "02-cluster-info-ocm.json"
EVENTS_FILE = "03-cluster-events-ocm.txt"

PREVIEW_LINES = 100
PREVIEW_LIMIT = 5000

RECOLLECT_COMMAND = (
    "echo -e `ocm get /api/clusters_mgmt/v1/clusters/{internal_id}/resources "
    "| jq -r '.resources.install_logs_tail'` > install-logs.txt"
)

_LOOK_FOR = """   Look for:
   - ERROR level messages
   - Failed operations
   - Timeout errors
   - Permission/authorization errors
   - Resource provisioning failures
   - Network connectivity issues

COMMON INSTALL FAILURE PATTERNS:
---------------------------------

1. AWS: IAM permission issues, instance limits, EBS volume limits
2. Azure: Subscription limits, resource provider not registered
3. GCP: API not enabled, service account permissions
4. Network: VPC/subnet configuration, DNS resolution failures
5. Resources: Insufficient quota, unavailable instance types
"""

KNOWN_ID_INSTRUCTIONS = (
    """========================================
INSTALL LOGS COLLECTION INSTRUCTIONS
========================================

Cluster ID: {cluster_id}
Internal ID: {internal_id}

For cluster provisioning failures, the cluster may not be accessible via 'oc' commands.
Collect install logs directly from OCM using the command below.

COMMAND TO COLLECT INSTALL LOGS:
---------------------------------

{recollect}

QUICK START:
------------

1. Run the command above to save install logs to install-logs.txt

2. Review the logs for error messages:
   less install-logs.txt

"""
    + _LOOK_FOR
    + """
ADDITIONAL OCM COMMANDS:
------------------------

# Get cluster status (using cluster ID)
ocm describe cluster {cluster_id}

# Get cluster details (JSON)
ocm describe cluster {cluster_id} --json

# Get cluster events (using internal ID)
ocm get /api/clusters_mgmt/v1/clusters/{internal_id}/events

# Get cluster installation status (using internal ID)
ocm get /api/clusters_mgmt/v1/clusters/{internal_id} | jq '.status'

========================================
"""
)

GENERIC_INSTRUCTIONS = (
    """========================================
INSTALL LOGS COLLECTION INSTRUCTIONS
========================================

For cluster provisioning failures, the cluster may not be accessible via 'oc' commands.
In such cases, you can collect install logs directly from OCM.

COMMAND TO COLLECT INSTALL LOGS:
---------------------------------

echo -e `ocm get /api/clusters_mgmt/v1/clusters/${INTERNAL_ID}/resources | jq -r '.resources.install_logs_tail'` > install-logs.txt

STEPS:
------

1. Find your cluster's INTERNAL_ID:
   ocm list clusters

   Example output:
   ID                   NAME            STATE
   abc123def456...      my-cluster      installing

2. Export the INTERNAL_ID:
   export INTERNAL_ID=abc123def456...

3. Collect the install logs:
   echo -e `ocm get /api/clusters_mgmt/v1/clusters/${INTERNAL_ID}/resources | jq -r '.resources.install_logs_tail'` > install-logs.txt

4. Review the logs for error messages:
   less install-logs.txt

"""
    + _LOOK_FOR
    + """
ADDITIONAL OCM COMMANDS:
------------------------

# Get cluster status
ocm get cluster ${INTERNAL_ID}

# Get cluster details (JSON)
ocm get cluster ${INTERNAL_ID} --json

# Get cluster events
ocm get /api/clusters_mgmt/v1/clusters/${INTERNAL_ID}/events

# Get cluster installation status
ocm get /api/clusters_mgmt/v1/clusters/${INTERNAL_ID} | jq '.status'

TIP: You can re-run this command with the --cluster flag:
     sre-assist cluster-provisioning-failure --cluster <CLUSTER_ID>

========================================
"""
)

SUMMARY_INTRO = (
    "This collection focuses on install logs for a failed cluster installation.\n"
    "The cluster is not accessible via 'oc' commands, so all information is gathered via OCM."
)

SUMMARY_NEXT_STEPS = """
Next Steps:
-----------
1. Review install logs in 01-install-logs.txt for ERROR messages
2. Look for common failure patterns:
   - IAM/permission errors
   - Resource quota/limit errors
   - Network/connectivity errors
   - Timeout errors
3. Check cluster info in 02-cluster-info-ocm.txt for cluster state
4. Refer to {sop}
"""


def install_logs_preview(logs: str) -> str:
    """Last ``PREVIEW_LINES`` lines of the install log, capped at ``PREVIEW_LIMIT`` characters."""
    return truncate("\n".join(logs.split("\n")[-PREVIEW_LINES:]), PREVIEW_LIMIT)


class ClusterProvisioningFailure(AlertCommand):
    name = "cluster-provisioning-failure"
    alert = "ClusterProvisioningFailure"
    help = "Collect diagnostic information for ClusterProvisioningFailure alert"
    description = """Collects all diagnostic information needed to troubleshoot the ClusterProvisioningFailure alert.

For failed installations the cluster is usually not accessible, so pass the
external cluster ID with --cluster. The internal ID is resolved through OCM
and used to fetch the install log tail, cluster description and cluster
events. Instructions for collecting install logs by hand are always written.

Requires the ocm CLI, logged in.
Troubleshooting steps: https://github.com/openshift/ops-sop/blob/master/v4/alerts/ClusterProvisioningFailure.md"""
    dir_prefix = "cluster-provisioning-failure"
    analysis_file = "10-llm-analysis.txt"
    sop = "https://github.com/openshift/ops-sop/blob/master/v4/alerts/ClusterProvisioningFailure.md"
    subject = "cluster provisioning failure"
    system_prompt = CLUSTER_PROVISIONING_PROMPT
    excerpts = (
        Excerpt(SUMMARY_FILE, limit=15000),
        Excerpt(INSTALL_LOGS_FILE, limit=15000, head_tail=10000),
        Excerpt(CLUSTER_INFO_FILE, limit=15000),
        Excerpt(EVENTS_FILE, limit=15000),
        Excerpt(CLUSTER_JSON_FILE, limit=10000),
    )

    def __init__(self, args: argparse.Namespace, *pargs, **kwargs) -> None:
        super().__init__(args, *pargs, **kwargs)
        self.external_id: str = (args.cluster or "").strip()
        self.internal_id: str = ""

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser) -> None:
        super().add_arguments(parser)
        parser.add_argument(
            "--cluster",
            default=None,
            help="Cluster ID (external); used to find the internal ID for install logs collection via OCM",
        )

    def complete(self) -> None:
        if self.external_id:
            try:
                self.internal_id = self.ocm.resolve_internal_id(self.external_id)
                logger.debug("Resolved internal ID %s for cluster %s", self.internal_id, self.external_id)
            except CommandError as e:
                self.reporter.warning(f"Failed to resolve internal ID from cluster {self.external_id}: {e}")
                self.reporter.plain(f"You can manually find the internal ID with: ocm describe cluster {self.external_id}")
        super().complete()

    def collect_bundle(self) -> None:
        """OCM-only collection; neither ``oc`` nor a cluster login is needed."""
        self.reporter.notice("NOTE: For cluster provisioning failures, the cluster is typically not accessible.")
        self.reporter.notice("This command will collect install logs via OCM.")
        self.reporter.plain()

        if not self.external_id:
            self.reporter.error("Error: --cluster flag is required for cluster provisioning failures.")
            self.reporter.plain("\nUsage:")
            self.reporter.plain(f"  sre-assist {self.name} --cluster $CLUSTER_ID")
            self.reporter.plain("\nTo find your cluster ID:")
            self.reporter.plain("  ocm list clusters")
            raise CollectionError("cluster ID required")

        self.reporter.success("Cluster Information:")
        self.reporter.plain(f"Cluster ID: {self.external_id}")
        if self.internal_id:
            self.reporter.plain(f"Internal ID: {self.internal_id}")
        self.reporter.plain()

        self.write_instructions()

        try:
            self.collect_install_logs()
        except CommandError as e:
            self.reporter.warning(f"Failed to collect install logs: {e}")
            self.reporter.notice(f"See {INSTRUCTIONS_FILE} for manual collection instructions.")

        try:
            self.collect_cluster_info()
        except CommandError as e:
            self.reporter.warning(f"Failed to collect cluster info via OCM: {e}")

        self.write_summary(self.external_id)

    def write_instructions(self) -> None:
        self.reporter.notice("Creating install logs collection note...")
        if self.internal_id:
            note = KNOWN_ID_INSTRUCTIONS.format(
                cluster_id=self.external_id,
                internal_id=self.internal_id,
                recollect=RECOLLECT_COMMAND.format(internal_id=self.internal_id),
            )
        else:
            note = GENERIC_INSTRUCTIONS
        try:
            self.bundle.write(INSTRUCTIONS_FILE, note)
        except OSError as e:
            self.reporter.warning(f"Failed to create install logs note: {e}")
            return
        self.reporter.saved(INSTRUCTIONS_FILE)

    def collect_install_logs(self) -> None:
        if not self.internal_id:
            self.reporter.notice("Skipping install logs collection: Internal ID not available")
            raise CommandError("internal ID not available")

        self.reporter.collecting(f"Install logs via OCM for cluster {self.external_id}")
        try:
            logs = self.ocm.install_logs(self.internal_id)
        except CommandError as e:
            self.reporter.error(f"  ✗ Failed to collect install logs via OCM: {e}")
            self.reporter.error(f"    Output: {e.output}\n")
            raise
        try:
            self.bundle.write(INSTALL_LOGS_FILE, logs)
        except OSError as e:
            self.reporter.error("  ✗ Failed to save install logs\n")
            raise CommandError(f"failed to save install logs: {e}") from e
        self.reporter.saved(INSTALL_LOGS_FILE)

    def collect_cluster_info(self) -> None:
        """Cluster description, its JSON form and, with an internal ID, cluster events."""
        self.reporter.collecting(f"Cluster information via OCM for cluster {self.external_id}")
        try:
            description = self.ocm.describe_cluster(self.external_id)
        except CommandError as e:
            self.reporter.error(f"  ✗ Failed to get cluster description via OCM: {e}\n")
            raise
        try:
            self.bundle.write(CLUSTER_INFO_FILE, description)
        except OSError as e:
            self.reporter.error("  ✗ Failed to save cluster info\n")
            raise CommandError(f"failed to save cluster info: {e}") from e
        self.reporter.saved(CLUSTER_INFO_FILE)

        self.reporter.collecting("Cluster details (JSON)")
        try:
            self.bundle.write(CLUSTER_JSON_FILE, self.ocm.describe_cluster(self.external_id, as_json=True))
        except (CommandError, OSError) as e:
            self.reporter.error(f"  ✗ Failed to get cluster JSON via OCM: {e}\n")
        else:
            self.reporter.saved(CLUSTER_JSON_FILE)

        if self.internal_id:
            self.reporter.collecting("Cluster events via OCM")
            try:
                self.bundle.write(EVENTS_FILE, self.ocm.cluster_events(self.internal_id))
            except (CommandError, OSError) as e:
                self.reporter.error(f"  ✗ Failed to get cluster events via OCM: {e}\n")
            else:
                self.reporter.saved(EVENTS_FILE)

    def summary_header(self, cluster_id: str) -> list[str]:
        return [
            f"Collection Date: {collection_timestamp()}",
            f"Cluster ID: {cluster_id}",
            f"Internal ID: {self.internal_id}",
        ]

    def write_summary(self, cluster_id: str) -> None:
        self.reporter.success("Generating summary report...")
        summary = self.bundle.build_summary(self.alert, self.summary_header(cluster_id), intro=SUMMARY_INTRO)

        logs = self.bundle.read(INSTALL_LOGS_FILE)
        if logs is not None:
            summary += f"\nInstall Logs Preview (last {PREVIEW_LINES} lines):\n{install_logs_preview(logs)}\n"
        else:
            summary += f"\nInstall Logs: Not available - see {INSTRUCTIONS_FILE} for manual collection instructions\n"

        info = self.bundle.read(CLUSTER_INFO_FILE)
        if info is not None:
            summary += f"\nCluster Information:\n{info}\n"

        summary += SUMMARY_NEXT_STEPS.format(sop=self.sop)
        try:
            self.bundle.write(SUMMARY_FILE, summary)
        except OSError as e:
            raise CollectionError(f"failed to write {SUMMARY_FILE}: {e}") from e

    def next_steps(self) -> list[str]:
        steps = [
            f"Review the files in {self.bundle}/",
            f"Start with {SUMMARY_FILE} for an overview",
            f"Review install logs in {INSTALL_LOGS_FILE}\n"
            "   Look for ERROR messages, permission issues, quota limits, network errors",
            f"Check cluster info in {CLUSTER_INFO_FILE} for cluster state and status",
        ]
        sop_step = f"Refer to {self.sop} for troubleshooting steps"
        if self.enable_analysis:
            steps += [f"Review {self.analysis_file} for AI-powered insights", sop_step]
        else:
            steps += [sop_step, "Use --analyze flag to enable LLM analysis"]
        return steps

    def closing_notes(self) -> list[str]:
        if not self.internal_id:
            return []
        return [
            "\nTo re-collect install logs manually:",
            "  " + RECOLLECT_COMMAND.format(internal_id=self.internal_id),
        ]

"""Failover clustering cmdlet wrappers.

Each method issues exactly one call against the FailoverClusters PowerShell
module and converts the JSON result into reporter models. Nothing is retried;
failures surface as ``ReporterError`` subclasses for the pipeline to classify.
"""

import re
from pathlib import Path

from pydantic import ValidationError

from cluster_reporter.exceptions import ClusterOperationError
from cluster_reporter.logging_config import get_logger
from cluster_reporter.models.cluster import (
    ClusterGroupStatus,
    ClusterHandle,
    ClusterSpec,
    ValidationEntry,
    ValidationStatus,
)
from cluster_reporter.models.config import DEFAULT_EVENT_CHANNEL
from cluster_reporter.models.events import LogEvent
from cluster_reporter.powershell import PowerShellRunner, quote, quote_list

logger = get_logger(__name__)

# Test-Cluster reports problems through the warning stream rather than as objects
VALIDATE_SCRIPT = """
$warns = @()
$report = Test-Cluster -Node {nodes} -Force -WarningVariable warns -WarningAction SilentlyContinue
foreach ($w in $warns) {{
    $text = "$($w.Message)"
    [pscustomobject]@{{ Name = ($text -split ':')[0].Trim(); Status = 'Warning'; Message = $text }}
}}
[pscustomobject]@{{ Name = 'Validation report'; Status = 'Passed'; Message = "$($report.FullName)" }}
"""

CREATE_SCRIPT = (
    "New-Cluster -Name {name} -Node {nodes} -StaticAddress {ip}{storage} -Force"
    " | Select-Object Name, @{{n='Id';e={{\"$($_.Id)\"}}}}"
)

QUORUM_SCRIPT = (
    "Set-ClusterQuorum -Cluster {cluster} -FileShareWitness {witness}"
    " | Select-Object @{{n='QuorumResource';e={{\"$($_.QuorumResource)\"}}}}"
)

GROUPS_SCRIPT = (
    "Get-ClusterGroup -Cluster {cluster}"
    " | Select-Object Name, @{{n='State';e={{\"$($_.State)\"}}}},"
    " @{{n='OwnerNode';e={{\"$($_.OwnerNode)\"}}}}"
)

EXPORT_SCRIPT = (
    "Get-ClusterLog -Cluster {cluster} -Destination {destination} -TimeSpan {minutes}"
    " | Select-Object FullName"
)

EVENTS_SCRIPT = """
try {{
    Get-WinEvent -LogName {channel} -MaxEvents {count} |
        Select-Object @{{n='TimeCreated';e={{$_.TimeCreated.ToUniversalTime().ToString("yyyy-MM-dd'T'HH:mm:ss'Z'")}}}},
            Id, Level, Message
}} catch {{
    if ($_.FullyQualifiedErrorId -notlike 'NoMatchingEventsFound*') {{ throw }}
}}
"""


# Test-Cluster states a failing test with a verdict sentence. Test names such as
# "Validate Disk Failover" only name the area and are not verdicts.
FAILED_VERDICT = re.compile(
    r"\b(?:the test failed|tests? (?:have |has )?failed|validation failed)\b", re.IGNORECASE
)


def warning_status(text: str) -> ValidationStatus:
    """Status of a Test-Cluster warning line: Failed for failure verdicts, else Warning."""
    if FAILED_VERDICT.search(text or ""):
        return ValidationStatus.FAILED
    return ValidationStatus.WARNING


def _first(row: dict, *keys: str, default=None):
    """Return the first present, non-null value among alias keys."""
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return default


class FailoverClusterClient:
    """Administrative interface to Windows Server Failover Clustering."""

    def __init__(self, runner: PowerShellRunner | None = None):
        self.runner = runner or PowerShellRunner()

    def validate(self, spec: ClusterSpec) -> list[ValidationEntry]:
        """
        Run cluster validation across the candidate nodes.

        Raises:
            PowerShellError: If validation could not run at all.
            ClusterOperationError: If the validator returned unusable rows.
        """
        logger.info(f"Validating nodes: {', '.join(spec.nodes)}")
        rows = self.runner.run_json(VALIDATE_SCRIPT.format(nodes=quote_list(spec.nodes)))

        entries = []
        for row in rows:
            status = _first(row, "Status", "Result", default="Unknown")
            message = str(_first(row, "Message", "Description", default=""))
            if ValidationStatus.parse(status) is ValidationStatus.WARNING:
                status = warning_status(message)
            try:
                entries.append(
                    ValidationEntry(
                        name=str(_first(row, "Name", "Test", "Node", default="unknown")),
                        status=status,
                        message=message,
                    )
                )
            except ValidationError as e:
                raise ClusterOperationError("Unexpected validation result", str(e))

        logger.info(f"Validation returned {len(entries)} entries")
        return entries

    def create_cluster(self, spec: ClusterSpec, skip_storage: bool = True) -> ClusterHandle:
        """
        Create the cluster.

        Raises:
            PowerShellError: If New-Cluster fails.
            ClusterOperationError: If New-Cluster returned no cluster object.
        """
        logger.info(f"Creating cluster {spec.name} at {spec.static_ip}")
        rows = self.runner.run_json(
            CREATE_SCRIPT.format(
                name=quote(spec.name),
                nodes=quote_list(spec.nodes),
                ip=quote(spec.static_ip),
                storage=" -NoStorage" if skip_storage else "",
            )
        )
        if not rows:
            raise ClusterOperationError(
                f"New-Cluster returned no cluster object for '{spec.name}'",
                "Check the cluster creation report under C:\\Windows\\Cluster\\Reports",
            )

        row = rows[0]
        handle = ClusterHandle(
            name=str(_first(row, "Name", default=spec.name)),
            cluster_id=_first(row, "Id") or None,
        )
        logger.info(f"Cluster created: {handle}")
        return handle

    def configure_quorum(self, handle: ClusterHandle, witness_path: str) -> str:
        """Point the cluster quorum at a file share witness.

        Returns:
            Name of the resulting quorum resource
        """
        logger.info(f"Configuring file share witness {witness_path} for {handle.name}")
        rows = self.runner.run_json(
            QUORUM_SCRIPT.format(cluster=quote(handle.name), witness=quote(witness_path))
        )
        resource = _first(rows[0], "QuorumResource", default="") if rows else ""
        return resource or "File Share Witness"

    def query_group_status(self, handle: ClusterHandle) -> list[ClusterGroupStatus]:
        """List resource groups with their state and owner node."""
        rows = self.runner.run_json(GROUPS_SCRIPT.format(cluster=quote(handle.name)))
        try:
            return [
                ClusterGroupStatus(
                    name=str(_first(row, "Name", default="")),
                    state=str(_first(row, "State", default="Unknown")),
                    owner_node=str(_first(row, "OwnerNode", default="")),
                )
                for row in rows
            ]
        except ValidationError as e:
            raise ClusterOperationError("Unexpected cluster group data", str(e))

    def export_logs(
        self, handle: ClusterHandle, destination: Path, window_minutes: int
    ) -> list[str]:
        """Export the cluster log of every node into ``destination``.

        Returns:
            Paths of the files written
        """
        destination = Path(destination)
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ClusterOperationError(f"Cannot create log destination {destination}: {e}")

        rows = self.runner.run_json(
            EXPORT_SCRIPT.format(
                cluster=quote(handle.name),
                destination=quote(destination.absolute()),
                minutes=int(window_minutes),
            )
        )
        files = [str(row["FullName"]) for row in rows if row.get("FullName")]
        logger.info(f"Exported {len(files)} cluster log files to {destination}")
        return files

    def query_recent_events(
        self, max_count: int, channel: str = DEFAULT_EVENT_CHANNEL
    ) -> list[LogEvent]:
        """Read the most recent events from the clustering event channel."""
        rows = self.runner.run_json(
            EVENTS_SCRIPT.format(channel=quote(channel), count=int(max_count))
        )
        try:
            events = [
                LogEvent(
                    timestamp=row["TimeCreated"],
                    event_id=row["Id"],
                    severity=_first(row, "Level", "LevelDisplayName", default=4),
                    message=row.get("Message"),
                )
                for row in rows
            ]
        except (KeyError, ValidationError) as e:
            raise ClusterOperationError("Unexpected event log data", str(e))

        logger.info(f"Read {len(events)} events from {channel}")
        return events

"""Reporter configuration model."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cluster_reporter.exceptions import ConfigurationError
from cluster_reporter.models.cluster import ClusterSpec

DEFAULT_EVENT_CHANNEL = "Microsoft-Windows-FailoverClustering/Operational"


class ReporterConfig(BaseModel):
    """Everything a pipeline run needs, fixed at invocation."""

    model_config = ConfigDict(frozen=True)

    cluster: ClusterSpec
    log_destination: Path = Path("ClusterLogs")
    report_path: Path = Path("cluster_report.txt")
    quorum_witness_path: str | None = None
    event_count: int = Field(default=50, ge=1)
    log_window_minutes: int = Field(default=60, ge=1)
    event_channel: str = DEFAULT_EVENT_CHANNEL
    skip_storage: bool = True
    powershell: str = "powershell"

    @field_validator("quorum_witness_path")
    @classmethod
    def validate_witness_path(cls, v: str | None) -> str | None:
        """Validate the witness is a UNC share path when given."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.startswith("\\\\"):
            raise ValueError(f"quorum witness '{v}' must be a UNC path (\\\\server\\share)")
        return v

    def require_provisioning(self) -> None:
        """Check the cluster block carries everything cluster creation needs.

        Raises:
            ConfigurationError: If the static IP or the node list is missing
        """
        missing = self.cluster.missing_for_provisioning()
        if missing:
            raise ConfigurationError(
                f"Cluster '{self.cluster.name}' needs {' and '.join(missing)} to be provisioned",
                "Set cluster.static_ip and cluster.nodes in the configuration file, "
                "or pass --static-ip and --node",
            )

    def save(self, path: str | Path) -> None:
        """Save configuration to YAML file."""
        import yaml

        data = self.model_dump(mode="json")
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load(cls, path: str | Path) -> "ReporterConfig":
        """Load configuration from YAML file."""
        return cls.build(path)

    @classmethod
    def build(cls, path: str | Path | None = None, **overrides) -> "ReporterConfig":
        """Build configuration from an optional YAML file plus overrides.

        Overrides whose value is None are ignored. ``cluster_name``,
        ``static_ip`` and ``nodes`` are folded into the nested cluster block.

        Raises:
            ConfigurationError: If the file cannot be read or the result is invalid
        """
        import yaml

        data: dict = {}
        if path is not None:
            path = Path(path)
            try:
                with open(path, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            except FileNotFoundError:
                raise ConfigurationError(
                    f"Configuration file not found: {path}",
                    "Create one with: cluster-report init-config",
                )
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to read configuration file {path}: {e}")
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Configuration file {path} must contain a mapping at the top level"
                )

        cluster = data.get("cluster") or {}
        if not isinstance(cluster, dict):
            raise ConfigurationError(
                "Invalid configuration",
                "cluster: must be a mapping with name, static_ip and nodes",
            )
        cluster = dict(cluster)
        for key, field in (("cluster_name", "name"), ("static_ip", "static_ip"), ("nodes", "nodes")):
            value = overrides.pop(key, None)
            if value:
                cluster[field] = value
        data["cluster"] = cluster
        data.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**data)
        except ValidationError as e:
            problems = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                problems.append(f"{field}: {error['msg']}")
            raise ConfigurationError("Invalid configuration", "\n".join(problems))

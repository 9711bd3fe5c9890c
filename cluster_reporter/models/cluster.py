"""Data models for cluster definition, validation results and group state."""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress, field_validator

# RFC 1123 host name, optionally fully qualified
HOSTNAME_PATTERN = re.compile(
    r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$", re.IGNORECASE
)


class ClusterSpec(BaseModel):
    """Name, address and member nodes of a cluster.

    Reporting on an existing cluster needs only the name; the static IP and
    nodes are required before the cluster can be created (see
    ``missing_for_provisioning``).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    static_ip: IPvAnyAddress | None = None
    nodes: tuple[str, ...] = ()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate cluster name is a usable network name."""
        v = v.strip()
        if not v:
            raise ValueError("cluster name cannot be empty")
        # Cluster name objects are computer accounts, limited to NetBIOS length
        if len(v) > 15:
            raise ValueError(f"cluster name '{v}' cannot exceed 15 characters")
        if not HOSTNAME_PATTERN.match(v):
            raise ValueError(
                f"cluster name '{v}' must contain only alphanumeric characters and hyphens"
            )
        return v

    @field_validator("nodes")
    @classmethod
    def validate_nodes(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Validate node names are unique host names."""
        seen = set()
        for node in v:
            if not node or not HOSTNAME_PATTERN.match(node):
                raise ValueError(f"node name '{node}' is not a valid host name")
            key = node.lower()
            if key in seen:
                raise ValueError(f"node '{node}' is listed more than once")
            seen.add(key)
        return v

    def missing_for_provisioning(self) -> list[str]:
        """Settings that must be filled in before the cluster can be created."""
        missing = []
        if self.static_ip is None:
            missing.append("static IP")
        if not self.nodes:
            missing.append("at least one node")
        return missing


class ClusterHandle(BaseModel):
    """Reference to a created or existing cluster."""

    model_config = ConfigDict(frozen=True)

    name: str
    cluster_id: str | None = None

    def __str__(self) -> str:
        if self.cluster_id:
            return f"{self.name} ({self.cluster_id})"
        return self.name


class ValidationStatus(str, Enum):
    """Outcome of a single cluster validation test."""

    PASSED = "Passed"
    WARNING = "Warning"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, raw) -> "ValidationStatus":
        """Map a raw validator status onto a known status.

        Test-Cluster reports vary between releases ("Success", "Failed",
        "Fail", "Warning", numeric enum values), so matching is lenient.
        """
        if isinstance(raw, cls):
            return raw
        aliases = {
            "passed": cls.PASSED,
            "pass": cls.PASSED,
            "success": cls.PASSED,
            "succeeded": cls.PASSED,
            "0": cls.PASSED,
            "warning": cls.WARNING,
            "warn": cls.WARNING,
            "1": cls.WARNING,
            "failed": cls.FAILED,
            "fail": cls.FAILED,
            "failure": cls.FAILED,
            "error": cls.FAILED,
            "2": cls.FAILED,
        }
        return aliases.get(str(raw).strip().lower(), cls.UNKNOWN)


class ValidationEntry(BaseModel):
    """One result row produced by the cluster validator."""

    model_config = ConfigDict(frozen=True)

    name: str
    status: ValidationStatus
    message: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v) -> ValidationStatus:
        """Normalize raw validator status strings."""
        return ValidationStatus.parse(v)

    def __str__(self) -> str:
        if self.message:
            return f"[{self.status.value}] {self.name}: {self.message}"
        return f"[{self.status.value}] {self.name}"


class ClusterGroupStatus(BaseModel):
    """State of a cluster resource group."""

    model_config = ConfigDict(frozen=True)

    name: str
    state: str
    owner_node: str = Field(default="")

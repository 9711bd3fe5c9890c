"""Data models for cluster configuration, validation and events."""

from cluster_reporter.models.cluster import (
    ClusterGroupStatus,
    ClusterHandle,
    ClusterSpec,
    ValidationEntry,
    ValidationStatus,
)
from cluster_reporter.models.config import ReporterConfig
from cluster_reporter.models.events import EventSeverity, LogEvent

__all__ = [
    "ClusterSpec",
    "ClusterHandle",
    "ClusterGroupStatus",
    "ValidationEntry",
    "ValidationStatus",
    "EventSeverity",
    "LogEvent",
    "ReporterConfig",
]

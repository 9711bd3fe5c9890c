"""Pytest configuration and shared fixtures."""

import pytest
from hypothesis import HealthCheck, Verbosity, settings

from cluster_reporter.models.cluster import ClusterHandle, ClusterSpec
from cluster_reporter.models.config import ReporterConfig

# Configure Hypothesis for property-based testing
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")


class FakeClusterClient:
    """In-memory stand-in for FailoverClusterClient.

    ``failures`` maps a method name to the exception that method raises.
    Every call is appended to ``calls`` in order.
    """

    def __init__(self, entries=None, groups=None, events=None, files=None, failures=None):
        self.entries = list(entries or [])
        self.groups = list(groups or [])
        self.events = list(events or [])
        self.files = list(files or [])
        self.failures = dict(failures or {})
        self.calls = []

    def _call(self, name):
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]

    def validate(self, spec):
        self._call("validate")
        return list(self.entries)

    def create_cluster(self, spec, skip_storage=True):
        self._call("create_cluster")
        return ClusterHandle(name=spec.name, cluster_id="6f1c2a44-0000-4000-8000-000000000001")

    def configure_quorum(self, handle, witness_path):
        self._call("configure_quorum")
        return "File Share Witness"

    def query_group_status(self, handle):
        self._call("query_group_status")
        return list(self.groups)

    def export_logs(self, handle, destination, window_minutes):
        self._call("export_logs")
        return list(self.files)

    def query_recent_events(self, max_count, channel=None):
        self._call("query_recent_events")
        return list(self.events)


@pytest.fixture(scope="session")
def fake_client_factory():
    """Factory for fake clustering clients (session scoped so hypothesis tests can use it)."""
    return FakeClusterClient


@pytest.fixture(scope="session")
def cluster_spec():
    """Two-node cluster definition."""
    return ClusterSpec(name="Cluster1", static_ip="192.168.1.100", nodes=["Node1", "Node2"])


@pytest.fixture
def sample_config(tmp_path, cluster_spec):
    """Configuration writing into a temporary directory."""
    return ReporterConfig(
        cluster=cluster_spec,
        report_path=tmp_path / "report.txt",
        log_destination=tmp_path / "logs",
        quorum_witness_path="\\\\fileserver\\witness",
        event_count=25,
    )


@pytest.fixture
def sample_config_data():
    """Configuration file contents as loaded from YAML."""
    return {
        "cluster": {
            "name": "Cluster1",
            "static_ip": "192.168.1.100",
            "nodes": ["Node1", "Node2"],
        },
        "log_destination": "C:/ClusterLogs",
        "report_path": "C:/Reports/cluster_report.txt",
        "quorum_witness_path": "\\\\fileserver\\witness",
        "event_count": 50,
    }

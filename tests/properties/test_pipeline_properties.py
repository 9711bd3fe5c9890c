"""Property-based tests for pipeline halting and report layout.

Feature: cluster-ops-reporter, fatal and recoverable step handling
"""

from hypothesis import given
from hypothesis import strategies as st

from cluster_reporter.exceptions import PowerShellError
from cluster_reporter.models import (
    ClusterSpec,
    ReporterConfig,
    ValidationEntry,
    ValidationStatus,
)
from cluster_reporter.pipeline import Phase, run_pipeline
from cluster_reporter.report import SECTION_TITLES, render_report

CONFIG = ReporterConfig(
    cluster=ClusterSpec(name="Cluster1", static_ip="192.168.1.100", nodes=["Node1", "Node2"]),
    quorum_witness_path="\\\\fileserver\\witness",
)

RECOVERABLE_METHODS = ["configure_quorum", "query_group_status", "export_logs", "query_recent_events"]


@st.composite
def validation_entries(draw, statuses=tuple(ValidationStatus)):
    """Generate a list of validation entries restricted to ``statuses``."""
    count = draw(st.integers(min_value=0, max_value=15))
    return [
        ValidationEntry(
            name=f"Test {i}",
            status=draw(st.sampled_from(list(statuses))),
            message=f"message {i}",
        )
        for i in range(count)
    ]


@given(entries=validation_entries())
def test_failed_entry_halts_before_creation(fake_client_factory, entries):
    """Any Failed entry means exit code 1 and no creation attempt; otherwise creation runs."""
    client = fake_client_factory(entries=entries)

    result = run_pipeline(CONFIG, client)

    has_failure = any(e.status is ValidationStatus.FAILED for e in entries)
    if has_failure:
        assert result.exit_code == 1
        assert "create_cluster" not in client.calls
    else:
        assert result.exit_code == 0
        assert "create_cluster" in client.calls


@given(
    entries=validation_entries(statuses=(ValidationStatus.PASSED, ValidationStatus.WARNING)),
    failing=st.sets(st.sampled_from(RECOVERABLE_METHODS)),
)
def test_recoverable_failures_never_change_exit_code(fake_client_factory, entries, failing):
    """Non-fatal failures are reported but every later step still runs."""
    client = fake_client_factory(
        entries=entries, failures={m: PowerShellError(f"{m} broke") for m in failing}
    )

    result = run_pipeline(CONFIG, client)
    text = render_report(result).text

    assert result.exit_code == 0
    assert client.calls[-1] == "query_recent_events"
    for method in failing:
        assert f"{method} broke" in text


@given(
    entries=validation_entries(),
    phase=st.sampled_from(list(Phase)),
    fail_create=st.booleans(),
)
def test_report_section_order_is_fixed(fake_client_factory, entries, phase, fail_create):
    """Sections appear in the same order whatever data was collected."""
    failures = {"create_cluster": PowerShellError("boom")} if fail_create else {}
    client = fake_client_factory(entries=entries, failures=failures)

    report = render_report(run_pipeline(CONFIG, client, phase=phase))

    assert report.titles == SECTION_TITLES
    positions = [report.text.index(f"{title}\n{'-' * len(title)}") for title in SECTION_TITLES]
    assert positions == sorted(positions)
    for section in report.sections:
        assert section.lines

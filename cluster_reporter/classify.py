"""Partitioning of validation results and events by severity."""

from collections.abc import Iterable

from cluster_reporter.models.cluster import ValidationEntry, ValidationStatus
from cluster_reporter.models.events import EventSeverity, LogEvent


def classify(
    entries: Iterable[ValidationEntry],
) -> tuple[list[ValidationEntry], list[ValidationEntry]]:
    """Split validation entries into (errors, warnings).

    Failed entries are errors and Warning entries are warnings; every other
    status is dropped. Input order is preserved and the input is not modified.
    """
    errors = []
    warnings = []
    for entry in entries:
        if entry.status is ValidationStatus.FAILED:
            errors.append(entry)
        elif entry.status is ValidationStatus.WARNING:
            warnings.append(entry)
    return errors, warnings


def classify_events(events: Iterable[LogEvent]) -> tuple[list[LogEvent], list[LogEvent]]:
    """Split log events into (errors, warnings); informational events are dropped."""
    errors = []
    warnings = []
    for event in events:
        if event.severity is EventSeverity.ERROR:
            errors.append(event)
        elif event.severity is EventSeverity.WARNING:
            warnings.append(event)
    return errors, warnings

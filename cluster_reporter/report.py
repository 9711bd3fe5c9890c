"""Plain-text report rendering.

Sections always appear in the same order and always render their header,
whatever was collected. The only output artifact is the text file written by
``write_report``.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from cluster_reporter.classify import classify, classify_events
from cluster_reporter.exceptions import ReportWriteError
from cluster_reporter.logging_config import get_logger
from cluster_reporter.pipeline import OutcomeKind, PipelineResult, Step, StepOutcome

logger = get_logger(__name__)

SECTION_TITLES = (
    "Validation Summary",
    "Cluster Creation",
    "Quorum Configuration",
    "Cluster Group Status",
    "Cluster Log Export",
    "Recent Errors",
    "Recent Warnings",
)


@dataclass(frozen=True)
class ReportSection:
    """A titled block of report lines."""

    title: str
    lines: tuple[str, ...]

    def render(self) -> str:
        return "\n".join([self.title, "-" * len(self.title), *self.lines])


@dataclass(frozen=True)
class Report:
    """Rendered report: header lines followed by sections in fixed order."""

    header: tuple[str, ...]
    sections: tuple[ReportSection, ...]

    @property
    def titles(self) -> tuple[str, ...]:
        return tuple(s.title for s in self.sections)

    @property
    def text(self) -> str:
        blocks = ["\n".join(self.header)] + [s.render() for s in self.sections]
        return "\n\n".join(blocks) + "\n"

    def __str__(self) -> str:
        return self.text


def _validation_lines(outcome: StepOutcome) -> list[str]:
    if outcome.data is None:
        return [outcome.message]

    errors, warnings = classify(outcome.data)
    lines = [f"{len(outcome.data)} validation result(s) received."]
    if errors:
        lines.append("Errors found in cluster validation:")
        lines.extend(f"  - {e.name}: {e.message}" for e in errors)
    else:
        lines.append("No validation errors found.")
    if warnings:
        lines.append("Warnings found in cluster validation:")
        lines.extend(f"  - {w.name}: {w.message}" for w in warnings)
    else:
        lines.append("No validation warnings found.")
    return lines


def _group_lines(outcome: StepOutcome) -> list[str]:
    if not outcome.ok:
        return [outcome.message]
    if not outcome.data:
        return ["No cluster groups found."]
    return [f"  {g.name}: {g.state} (owner: {g.owner_node or 'none'})" for g in outcome.data]


def _log_export_lines(outcome: StepOutcome) -> list[str]:
    if not outcome.ok:
        return [outcome.message]
    lines = [outcome.message]
    if outcome.data:
        lines.extend(f"  {path}" for path in outcome.data)
    else:
        lines.append("No log files were reported by the export.")
    return lines


def _event_lines(outcome: StepOutcome, errors: bool) -> list[str]:
    kind = "errors" if errors else "warnings"
    if outcome.kind is OutcomeKind.RECOVERABLE:
        return [outcome.message] if errors else [f"Recent {kind} unavailable: event query failed."]
    if not outcome.ok:
        return [outcome.message]

    recent_errors, recent_warnings = classify_events(outcome.data)
    selected = recent_errors if errors else recent_warnings
    if not selected:
        return [f"No recent {kind} found."]
    return [f"  {event}" for event in selected]


def render_report(result: PipelineResult, generated_at: datetime | None = None) -> Report:
    """Assemble the report for a pipeline run.

    Args:
        result: Collected pipeline outcomes
        generated_at: Timestamp for the header; defaults to the run start time

    Returns:
        Immutable Report
    """
    spec = result.config.cluster
    generated_at = generated_at or result.started_at
    fatal = result.fatal_outcome
    status = "SUCCESS" if fatal is None else f"FAILED at {fatal.step.label.lower()}"

    header = (
        "Cluster Operations Report",
        "=========================",
        f"Cluster:   {spec.name}",
        f"Static IP: {spec.static_ip or 'n/a'}",
        f"Nodes:     {', '.join(spec.nodes) or 'n/a'}",
        f"Phase:     {result.phase.value}",
        f"Generated: {generated_at.isoformat(sep=' ', timespec='seconds')}",
        f"Result:    {status} (exit code {result.exit_code})",
    )

    events = result.outcome(Step.EVENTS)
    bodies = (
        _validation_lines(result.outcome(Step.VALIDATION)),
        [result.outcome(Step.CREATION).message],
        [result.outcome(Step.QUORUM).message],
        _group_lines(result.outcome(Step.GROUP_STATUS)),
        _log_export_lines(result.outcome(Step.LOG_EXPORT)),
        _event_lines(events, errors=True),
        _event_lines(events, errors=False),
    )
    sections = tuple(
        ReportSection(title=title, lines=tuple(lines)) for title, lines in zip(SECTION_TITLES, bodies)
    )
    return Report(header=header, sections=sections)


def write_report(report: Report, path: str | Path) -> Path:
    """Write the report as UTF-8 text.

    Raises:
        ReportWriteError: If the file or its directory cannot be written
    """
    path = Path(path)
    logger.debug(f"Writing report to {path}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report.text, encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to write report {path}: {e}")
        raise ReportWriteError(
            f"Failed to write report to {path}: {e}",
            "Check that the directory exists and is writable, or choose another path with --report",
        )
    logger.info(f"Report written to {path}")
    return path

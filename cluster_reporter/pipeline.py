"""Sequential provisioning and collection pipeline.

Each step performs one external call and yields a tagged ``StepOutcome``.
The driver halts on the first fatal outcome; recoverable failures are kept
for the report and the run continues.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from cluster_reporter.classify import classify
from cluster_reporter.clustering import FailoverClusterClient
from cluster_reporter.exceptions import ReporterError
from cluster_reporter.logging_config import get_logger
from cluster_reporter.models.cluster import ClusterHandle
from cluster_reporter.models.config import ReporterConfig

logger = get_logger(__name__)


class Step(str, Enum):
    """Pipeline steps in execution order."""

    VALIDATION = "validation"
    CREATION = "creation"
    QUORUM = "quorum"
    GROUP_STATUS = "group_status"
    LOG_EXPORT = "log_export"
    EVENTS = "events"

    @property
    def label(self) -> str:
        return STEP_LABELS[self]


STEP_LABELS = {
    Step.VALIDATION: "Cluster validation",
    Step.CREATION: "Cluster creation",
    Step.QUORUM: "Quorum configuration",
    Step.GROUP_STATUS: "Cluster group status",
    Step.LOG_EXPORT: "Cluster log export",
    Step.EVENTS: "Recent events",
}


class Phase(str, Enum):
    """Which part of the pipeline to run."""

    PROVISION = "provision"
    COLLECT = "collect"
    ALL = "all"

    @property
    def steps(self) -> tuple[Step, ...]:
        provision = (Step.VALIDATION, Step.CREATION, Step.QUORUM)
        collect = (Step.GROUP_STATUS, Step.LOG_EXPORT, Step.EVENTS)
        if self is Phase.PROVISION:
            return provision
        if self is Phase.COLLECT:
            return collect
        return provision + collect


class OutcomeKind(str, Enum):
    """Tag of a step outcome."""

    OK = "ok"
    FATAL = "fatal"
    RECOVERABLE = "recoverable"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StepOutcome:
    """Result of a single pipeline step."""

    step: Step
    kind: OutcomeKind
    message: str
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.OK

    @property
    def fatal(self) -> bool:
        return self.kind is OutcomeKind.FATAL


@dataclass
class PipelineResult:
    """Everything collected during a run, in step order."""

    config: ReporterConfig
    phase: Phase = Phase.ALL
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    outcomes: dict[Step, StepOutcome] = field(default_factory=dict)

    def record(self, outcome: StepOutcome) -> None:
        self.outcomes[outcome.step] = outcome

    def outcome(self, step: Step) -> StepOutcome:
        """Outcome for a step; steps outside the phase read as skipped."""
        if step in self.outcomes:
            return self.outcomes[step]
        return StepOutcome(
            step, OutcomeKind.SKIPPED, f"Not run: not part of the {self.phase.value} phase."
        )

    @property
    def fatal_outcome(self) -> StepOutcome | None:
        return next((o for o in self.outcomes.values() if o.fatal), None)

    @property
    def exit_code(self) -> int:
        return 1 if self.fatal_outcome else 0


@dataclass
class _RunContext:
    config: ReporterConfig
    client: FailoverClusterClient
    handle: ClusterHandle | None = None


def _validate(ctx: _RunContext) -> StepOutcome:
    try:
        ctx.config.require_provisioning()
        entries = ctx.client.validate(ctx.config.cluster)
    except ReporterError as e:
        logger.error(f"Cluster validation could not run: {e.format_message()}")
        return StepOutcome(
            Step.VALIDATION, OutcomeKind.FATAL, f"Validation could not run: {e.message}"
        )

    errors, warnings = classify(entries)
    if errors:
        return StepOutcome(
            Step.VALIDATION,
            OutcomeKind.FATAL,
            f"Validation failed with {len(errors)} error(s) and {len(warnings)} warning(s).",
            entries,
        )
    return StepOutcome(
        Step.VALIDATION,
        OutcomeKind.OK,
        f"Validation passed with {len(warnings)} warning(s).",
        entries,
    )


def _create(ctx: _RunContext) -> StepOutcome:
    spec = ctx.config.cluster
    try:
        handle = ctx.client.create_cluster(spec, skip_storage=ctx.config.skip_storage)
    except ReporterError as e:
        logger.error(f"Cluster creation failed: {e.format_message()}")
        return StepOutcome(Step.CREATION, OutcomeKind.FATAL, f"Error creating cluster: {e.message}")

    ctx.handle = handle
    return StepOutcome(
        Step.CREATION,
        OutcomeKind.OK,
        f"Cluster '{handle.name}' created successfully at {spec.static_ip} "
        f"with nodes: {', '.join(spec.nodes)}.",
        handle,
    )


def _quorum(ctx: _RunContext) -> StepOutcome:
    witness = ctx.config.quorum_witness_path
    if not witness:
        return StepOutcome(
            Step.QUORUM,
            OutcomeKind.SKIPPED,
            "Skipped: no quorum witness configured; the cluster keeps its default quorum.",
        )
    try:
        resource = ctx.client.configure_quorum(ctx.handle, witness)
    except ReporterError as e:
        logger.warning(f"Quorum configuration failed: {e.format_message()}")
        return StepOutcome(
            Step.QUORUM, OutcomeKind.RECOVERABLE, f"Error configuring quorum: {e.message}"
        )
    return StepOutcome(
        Step.QUORUM,
        OutcomeKind.OK,
        f"Quorum configured with file share witness {witness} ({resource}).",
        resource,
    )


def _group_status(ctx: _RunContext) -> StepOutcome:
    try:
        groups = ctx.client.query_group_status(ctx.handle)
    except ReporterError as e:
        logger.warning(f"Cluster group query failed: {e.format_message()}")
        return StepOutcome(
            Step.GROUP_STATUS, OutcomeKind.RECOVERABLE, f"Error querying cluster groups: {e.message}"
        )
    return StepOutcome(
        Step.GROUP_STATUS, OutcomeKind.OK, f"Found {len(groups)} cluster group(s).", groups
    )


def _log_export(ctx: _RunContext) -> StepOutcome:
    destination = ctx.config.log_destination
    minutes = ctx.config.log_window_minutes
    try:
        files = ctx.client.export_logs(ctx.handle, destination, minutes)
    except ReporterError as e:
        logger.warning(f"Cluster log export failed: {e.format_message()}")
        return StepOutcome(
            Step.LOG_EXPORT, OutcomeKind.RECOVERABLE, f"Error exporting cluster logs: {e.message}"
        )
    return StepOutcome(
        Step.LOG_EXPORT,
        OutcomeKind.OK,
        f"Cluster logs for the last {minutes} minute(s) exported to {destination}.",
        files,
    )


def _events(ctx: _RunContext) -> StepOutcome:
    try:
        events = ctx.client.query_recent_events(ctx.config.event_count, ctx.config.event_channel)
    except ReporterError as e:
        logger.warning(f"Event query failed: {e.format_message()}")
        return StepOutcome(
            Step.EVENTS, OutcomeKind.RECOVERABLE, f"Error querying recent events: {e.message}"
        )
    return StepOutcome(Step.EVENTS, OutcomeKind.OK, f"Read {len(events)} recent event(s).", events)


STEP_FUNCTIONS: dict[Step, Callable[[_RunContext], StepOutcome]] = {
    Step.VALIDATION: _validate,
    Step.CREATION: _create,
    Step.QUORUM: _quorum,
    Step.GROUP_STATUS: _group_status,
    Step.LOG_EXPORT: _log_export,
    Step.EVENTS: _events,
}


def run_pipeline(
    config: ReporterConfig,
    client: FailoverClusterClient,
    phase: Phase = Phase.ALL,
    on_step: Callable[[StepOutcome], None] | None = None,
) -> PipelineResult:
    """Run the steps of ``phase`` in order, halting on the first fatal outcome.

    Args:
        config: Reporter configuration
        client: Clustering interface used for every external call
        phase: Steps to run
        on_step: Called with each outcome as soon as it is known

    Returns:
        PipelineResult holding one outcome per step of the phase
    """
    result = PipelineResult(config=config, phase=phase)
    ctx = _RunContext(config=config, client=client)
    if Step.CREATION not in phase.steps:
        # Collect-only runs target an existing cluster by name
        ctx.handle = ClusterHandle(name=config.cluster.name)

    halted_by: StepOutcome | None = None
    for step in phase.steps:
        if halted_by is not None:
            outcome = StepOutcome(
                step,
                OutcomeKind.SKIPPED,
                f"Skipped: pipeline halted after {halted_by.step.label.lower()} failed.",
            )
        else:
            logger.info(f"Starting step: {step.label}")
            outcome = STEP_FUNCTIONS[step](ctx)
            logger.info(f"{step.label}: {outcome.kind.value} - {outcome.message}")
            if outcome.fatal:
                halted_by = outcome

        result.record(outcome)
        if on_step is not None:
            on_step(outcome)

    return result

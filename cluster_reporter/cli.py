"""Main CLI entry point for cluster provisioning and reporting."""

from pathlib import Path

import typer
from rich.console import Console

from cluster_reporter.exceptions import ConfigurationError, ReporterError
from cluster_reporter.logging_config import get_logger, setup_logging

app = typer.Typer(
    name="cluster-report",
    help="Provision a Windows failover cluster and report on its health",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

# Options shared by the pipeline commands
CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to YAML configuration file")
CLUSTER_NAME_OPTION = typer.Option(None, "--cluster-name", help="Cluster network name")
STATIC_IP_OPTION = typer.Option(None, "--static-ip", help="Static IP address of the cluster")
NODE_OPTION = typer.Option(
    None, "--node", "-n", help="Candidate node name (repeat for each node)"
)
REPORT_OPTION = typer.Option(None, "--report", "-r", help="Path of the report file to write")
LOG_DIR_OPTION = typer.Option(None, "--log-dir", help="Directory receiving exported cluster logs")
WITNESS_OPTION = typer.Option(
    None, "--witness", "-w", help="File share witness for quorum (\\\\server\\share)"
)
EVENTS_OPTION = typer.Option(None, "--events", "-e", help="Number of recent events to fetch")
WINDOW_OPTION = typer.Option(None, "--window", help="Cluster log time window in minutes")
POWERSHELL_OPTION = typer.Option(
    None, "--powershell", help="PowerShell executable (powershell or pwsh)"
)

OUTCOME_MARKERS = {
    "ok": "[green]✓[/green]",
    "recoverable": "[yellow]⚠[/yellow]",
    "fatal": "[red]✗[/red]",
    "skipped": "[dim]-[/dim]",
}


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Path to log file"),
    trace_powershell: bool = typer.Option(
        False, "--trace-powershell", help="Log every PowerShell script that is run"
    ),
):
    """Global options for all commands."""
    log_path = Path(log_file) if log_file else None
    setup_logging(verbose=verbose, log_file=log_path, trace_powershell=trace_powershell)
    logger.debug("Logging initialized")


@app.command()
def version() -> None:
    """Show version information."""
    from cluster_reporter import __version__

    typer.echo(f"Cluster Ops Reporter version {__version__}")


@app.command()
def init_config(
    path: str = typer.Argument("cluster.yml", help="Where to write the configuration template"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """
    Write a configuration template.

    The template lists every setting with its default value; edit the
    cluster block before running provision.
    """
    from cluster_reporter.models.cluster import ClusterSpec
    from cluster_reporter.models.config import ReporterConfig

    target = Path(path)
    if target.exists() and not force:
        console.print(f"[red]Error:[/red] {target} already exists (use --force to overwrite)")
        raise typer.Exit(code=1)

    template = ReporterConfig(
        cluster=ClusterSpec(name="Cluster1", static_ip="192.168.1.100", nodes=["Node1", "Node2"]),
        quorum_witness_path="\\\\fileserver\\witness",
    )
    try:
        template.save(target)
    except OSError as e:
        console.print(f"[red]Error:[/red] Failed to write {target}: {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Wrote configuration template to {target}")


def _execute(phase_name: str, config_file: str | None, **overrides) -> None:
    """Load configuration, run one pipeline phase, write the report and exit."""
    from cluster_reporter.classify import classify
    from cluster_reporter.clustering import FailoverClusterClient
    from cluster_reporter.models.config import ReporterConfig
    from cluster_reporter.pipeline import Phase, Step, StepOutcome, run_pipeline
    from cluster_reporter.powershell import PowerShellRunner
    from cluster_reporter.report import render_report, write_report

    phase = Phase(phase_name)

    def echo(outcome: StepOutcome) -> None:
        marker = OUTCOME_MARKERS[outcome.kind.value]
        console.print(f"{marker} [bold]{outcome.step.label}:[/bold] {outcome.message}")
        if outcome.fatal and outcome.step is Step.VALIDATION and outcome.data:
            errors, _ = classify(outcome.data)
            for entry in errors:
                console.print(f"    [red]{entry.name}:[/red] {entry.message}")

    try:
        try:
            config = ReporterConfig.build(config_file, **overrides)
            if Step.CREATION in phase.steps:
                config.require_provisioning()
        except ConfigurationError as e:
            console.print(f"[red]Configuration Error:[/red] {e.message}")
            if e.details:
                console.print(f"\n{e.details}")
            raise typer.Exit(code=1)

        spec = config.cluster
        address = f" ({spec.static_ip})" if spec.static_ip else ""
        console.print(
            f"\n[bold cyan]Cluster {spec.name}[/bold cyan]{address} - {phase.value} phase"
        )
        if spec.nodes:
            console.print(f"Nodes: {', '.join(spec.nodes)}")
        console.print()

        client = FailoverClusterClient(PowerShellRunner(executable=config.powershell))
        result = run_pipeline(config, client, phase=phase, on_step=echo)

        report = render_report(result)
        try:
            written = write_report(report, config.report_path)
        except ReporterError as e:
            console.print(f"[red]Report Error:[/red] {e.message}")
            if e.details:
                console.print(f"\n{e.details}")
            raise typer.Exit(code=1)

        console.print(f"\nReport written to [cyan]{written}[/cyan]")
        if result.exit_code == 0:
            console.print("[green]✓ Completed successfully[/green]")
        else:
            console.print("[red]✗ Halted after a fatal error[/red]")
        raise typer.Exit(code=result.exit_code)

    except typer.Exit:
        raise
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(code=130)
    except Exception as e:
        logger.error(f"Unexpected error during {phase.value}: {e}", exc_info=True)
        console.print(f"[red]Unexpected error:[/red] {e}")
        console.print("\nRun with --verbose --log-file debug.log for more details")
        raise typer.Exit(code=1)


@app.command()
def run(
    config_file: str | None = CONFIG_OPTION,
    cluster_name: str | None = CLUSTER_NAME_OPTION,
    static_ip: str | None = STATIC_IP_OPTION,
    node: list[str] | None = NODE_OPTION,
    report: str | None = REPORT_OPTION,
    log_dir: str | None = LOG_DIR_OPTION,
    witness: str | None = WITNESS_OPTION,
    events: int | None = EVENTS_OPTION,
    window: int | None = WINDOW_OPTION,
    powershell: str | None = POWERSHELL_OPTION,
) -> None:
    """
    Validate, create and configure the cluster, then report on it.

    Validation failures and cluster creation failures stop the run with exit
    code 1. Quorum, status, log export and event failures are noted in the
    report and the run continues.

    Examples:
        cluster-report run --config cluster.yml

        cluster-report run --cluster-name Cluster1 --static-ip 192.168.1.100 -n Node1 -n Node2
    """
    _execute(
        "all",
        config_file,
        cluster_name=cluster_name,
        static_ip=static_ip,
        nodes=node,
        report_path=report,
        log_destination=log_dir,
        quorum_witness_path=witness,
        event_count=events,
        log_window_minutes=window,
        powershell=powershell,
    )


@app.command()
def provision(
    config_file: str | None = CONFIG_OPTION,
    cluster_name: str | None = CLUSTER_NAME_OPTION,
    static_ip: str | None = STATIC_IP_OPTION,
    node: list[str] | None = NODE_OPTION,
    report: str | None = REPORT_OPTION,
    witness: str | None = WITNESS_OPTION,
    powershell: str | None = POWERSHELL_OPTION,
) -> None:
    """
    Validate the nodes, create the cluster and configure quorum.
    """
    _execute(
        "provision",
        config_file,
        cluster_name=cluster_name,
        static_ip=static_ip,
        nodes=node,
        report_path=report,
        quorum_witness_path=witness,
        powershell=powershell,
    )


@app.command()
def collect(
    config_file: str | None = CONFIG_OPTION,
    cluster_name: str | None = CLUSTER_NAME_OPTION,
    static_ip: str | None = STATIC_IP_OPTION,
    node: list[str] | None = NODE_OPTION,
    report: str | None = REPORT_OPTION,
    log_dir: str | None = LOG_DIR_OPTION,
    events: int | None = EVENTS_OPTION,
    window: int | None = WINDOW_OPTION,
    powershell: str | None = POWERSHELL_OPTION,
) -> None:
    """
    Report group status, export cluster logs and list recent errors and warnings
    for an existing cluster.
    """
    _execute(
        "collect",
        config_file,
        cluster_name=cluster_name,
        static_ip=static_ip,
        nodes=node,
        report_path=report,
        log_destination=log_dir,
        event_count=events,
        log_window_minutes=window,
        powershell=powershell,
    )


if __name__ == "__main__":
    app()

"""Main CLI entry point for the cluster orchestrator."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from cluster_orchestrator.exceptions import ClusterOrchestratorError
from cluster_orchestrator.logging_config import (
    get_logger,
    setup_logging,
    setup_logging_from_settings,
)

app = typer.Typer(
    name="cluster-orch",
    help="Reconcile a multi-component cluster toward its declared manifest",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

STATUS_STYLES = {
    "Ready": "green",
    "Pending": "yellow",
    "Blocked": "red",
    "Updating": "cyan",
    "NeedLocalUpdate": "magenta",
    "NeedFullUpdate": "magenta",
    "NeedRestart": "magenta",
}


# Global callback to set up logging
@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Path to log file"),
):
    """Global options for all commands."""
    log_path = Path(log_file) if log_file else None
    setup_logging(verbose=verbose, log_file=log_path)
    ctx.obj = {"verbose": verbose, "log_file": log_path}
    logger.debug("Logging initialized")


def _fail(title: str, error: ClusterOrchestratorError) -> None:
    console.print(f"[red]{title}:[/red] {error.message}")
    if error.details:
        console.print(f"  {error.details}")
    raise typer.Exit(code=1)


def _load_settings(options: dict | None, settings_path: str | None, interval: float | None = None):
    """Load operator settings; a settings file also reconfigures logging."""
    from cluster_orchestrator.settings import OperatorSettings

    options = options or {}

    settings = OperatorSettings.load(settings_path) if settings_path else OperatorSettings()
    if settings_path:
        setup_logging_from_settings(
            settings, verbose=options.get("verbose", False), log_file=options.get("log_file")
        )
    if interval is not None:
        settings = settings.model_copy(update={"resync_interval": interval})
    return settings


def _make_operator(manifest: str, kube: bool, settings):
    """Build an operator for a manifest file.

    Without --kube the manifest file is the store and managed objects live
    in memory for the lifetime of the process.
    """
    from cluster_orchestrator.accessor import InMemoryAccessor, KubernetesAccessor
    from cluster_orchestrator.models.cluster import ClusterResource
    from cluster_orchestrator.operator import Operator
    from cluster_orchestrator.store import FileClusterStore, KubernetesClusterStore

    if not kube:
        return Operator(FileClusterStore(manifest), InMemoryAccessor(), settings)

    from kubernetes import config

    resource = ClusterResource.load(manifest)
    try:
        config.load_kube_config(config_file=settings.kubeconfig)
    except Exception as e:
        console.print(f"[red]Error:[/red] Failed to load kubeconfig: {e}")
        console.print("\nMake sure:")
        console.print("  1. The cluster is reachable")
        console.print("  2. Kubeconfig is available at ~/.kube/config or set in settings")
        raise typer.Exit(code=1)

    store = KubernetesClusterStore(resource.name, resource.namespace)
    return Operator(store, KubernetesAccessor(resource.namespace), settings)


def _print_result(result) -> None:
    record = result.record
    state = record.state.value
    if record.update_state.value != "None":
        state = f"{state}/{record.update_state.value}"
    console.print(f"[bold cyan]Cluster state:[/bold cyan] {state}")

    table = Table(title="Components")
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_column("Reason")

    for name, status in result.statuses.items():
        style = STATUS_STYLES.get(status.sync_status.value, "white")
        table.add_row(name, f"[{style}]{status.sync_status.value}[/{style}]", status.message)

    if result.statuses:
        console.print(table)

    if result.error is not None:
        console.print(f"[red]Tick failed:[/red] {result.error.message}")
    elif result.status.is_ready():
        console.print("[green]✓ All components are ready[/green]")
    else:
        console.print(f"[yellow]⚠ {result.status.message}[/yellow]")


@app.command()
def version() -> None:
    """Show version information."""
    from cluster_orchestrator import __version__

    typer.echo(f"cluster-orchestrator version {__version__}")


@app.command()
def validate(
    manifest: str = typer.Argument(..., help="Path to the cluster manifest"),
) -> None:
    """
    Validate a cluster manifest.

    Parses the manifest and generates the config of every declared component,
    reporting components whose config cannot be generated.
    """
    from cluster_orchestrator.accessor import InMemoryAccessor
    from cluster_orchestrator.components import ClusterView, build_components
    from cluster_orchestrator.exceptions import ConfigError
    from cluster_orchestrator.models.cluster import ClusterResource

    try:
        resource = ClusterResource.load(manifest)
        components = build_components(ClusterView(resource), InMemoryAccessor())
    except ClusterOrchestratorError as e:
        _fail("Validation Error", e)

    problems = []
    for component in components:
        try:
            component.server.config_helper.generator()
        except ConfigError as e:
            problems.append((component.get_name(), e.message))

    if problems:
        console.print("[red]Config Error:[/red]")
        for name, message in problems:
            console.print(f"  - {name}: {message}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Manifest '{resource.name}' is valid")
    console.print(f"  Namespace: {resource.namespace}")
    console.print(f"  Components: {', '.join(c.get_name() for c in components)}")


@app.command()
def render(
    manifest: str = typer.Argument(..., help="Path to the cluster manifest"),
    component: str = typer.Argument(..., help="Component name, e.g. PrimaryMaster"),
) -> None:
    """Print the workload set a component would be deployed with, as YAML."""
    import yaml

    from cluster_orchestrator.accessor import InMemoryAccessor
    from cluster_orchestrator.components import ClusterView, build_components
    from cluster_orchestrator.models.cluster import ClusterResource

    try:
        resource = ClusterResource.load(manifest)
        components = build_components(ClusterView(resource), InMemoryAccessor())
    except ClusterOrchestratorError as e:
        _fail("Validation Error", e)

    by_name = {c.get_name(): c for c in components}
    if component not in by_name:
        console.print(f"[red]Error:[/red] Unknown component '{component}'")
        console.print(f"Available: {', '.join(by_name)}")
        raise typer.Exit(code=1)

    statefulset = by_name[component].server.rebuild_stateful_set()
    typer.echo(yaml.safe_dump(statefulset, default_flow_style=False, sort_keys=False))


@app.command()
def status(
    ctx: typer.Context,
    manifest: str = typer.Argument(..., help="Path to the cluster manifest"),
    kube: bool = typer.Option(False, "--kube", help="Observe objects in the Kubernetes API"),
    settings_path: str | None = typer.Option(None, "--settings", "-s", help="Operator settings file"),
) -> None:
    """
    Show component statuses without changing anything.

    Runs a dry-run tick: objects are read and every component is evaluated,
    but nothing is written.

    Examples:
        # Evaluate against an empty in-memory cluster
        cluster-orch status samples/cluster.yaml

        # Evaluate against the live cluster
        cluster-orch status samples/cluster.yaml --kube
    """
    try:
        settings = _load_settings(ctx.obj, settings_path)
        operator = _make_operator(manifest, kube, settings)
        result = operator.run_once(dry_run=True)
    except ClusterOrchestratorError as e:
        _fail("Error", e)

    _print_result(result)
    if result.error is not None:
        raise typer.Exit(code=1)


@app.command()
def reconcile(
    ctx: typer.Context,
    manifest: str = typer.Argument(..., help="Path to the cluster manifest"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Evaluate without writing anything"),
    kube: bool = typer.Option(False, "--kube", help="Manage objects in the Kubernetes API"),
    watch: bool = typer.Option(False, "--watch", "-w", help="Keep reconciling until interrupted"),
    interval: float | None = typer.Option(
        None, "--interval", help="Seconds between ticks (overrides settings)"
    ),
    settings_path: str | None = typer.Option(None, "--settings", "-s", help="Operator settings file"),
) -> None:
    """
    Reconcile the cluster toward its manifest.

    Runs one tick, or keeps ticking with --watch. Without --kube the managed
    objects are simulated in memory and their pods come up after every tick.
    """
    from cluster_orchestrator.exceptions import InvariantViolation

    try:
        settings = _load_settings(ctx.obj, settings_path, interval)
        operator = _make_operator(manifest, kube, settings)
    except ClusterOrchestratorError as e:
        _fail("Error", e)

    def after_tick(result) -> None:
        _print_result(result)
        if not kube:
            operator.accessor.settle()

    if not watch:
        try:
            result = operator.run_once(dry_run=dry_run)
        except ClusterOrchestratorError as e:
            _fail("Reconcile Error", e)
        _print_result(result)
        if result.error is not None:
            raise typer.Exit(code=1)
        return

    console.print(f"Reconciling every {settings.resync_interval}s, press Ctrl+C to stop")
    try:
        operator.run_forever(dry_run=dry_run, on_tick=after_tick)
    except InvariantViolation as e:
        _fail("Invariant violated", e)
    except KeyboardInterrupt:
        operator.stop()
        console.print("\n[yellow]Reconciliation interrupted by user[/yellow]")
        raise typer.Exit(code=130)


@app.command()
def dashboard(
    ctx: typer.Context,
    manifest: str = typer.Argument(..., help="Path to the cluster manifest"),
    kube: bool = typer.Option(False, "--kube", help="Observe objects in the Kubernetes API"),
    live: bool = typer.Option(False, "--live", help="Reconcile on every refresh instead of a dry run"),
    refresh_interval: int = typer.Option(5, "--refresh", help="Refresh interval in seconds"),
    settings_path: str | None = typer.Option(None, "--settings", "-s", help="Operator settings file"),
) -> None:
    """Launch the interactive dashboard of component statuses."""
    from cluster_orchestrator.tui import ClusterDashboard

    try:
        settings = _load_settings(ctx.obj, settings_path)
        operator = _make_operator(manifest, kube, settings)
        cluster_name = operator.store.load().name
    except ClusterOrchestratorError as e:
        _fail("Error", e)

    def status_source():
        result = operator.run_once(dry_run=not live)
        if live and not kube:
            operator.accessor.settle()
        return result

    ClusterDashboard(
        status_source, cluster_name=cluster_name, refresh_interval=refresh_interval
    ).run()


if __name__ == "__main__":
    app()

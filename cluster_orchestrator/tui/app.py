"""Dashboard application showing cluster state and component statuses."""

from collections.abc import Callable
from datetime import datetime

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.timer import Timer
from textual.widgets import DataTable, Footer, Header, Static

from cluster_orchestrator.exceptions import ClusterOrchestratorError
from cluster_orchestrator.logging_config import get_logger
from cluster_orchestrator.models.cluster import UpdateState
from cluster_orchestrator.reconciler import ReconcileResult

logger = get_logger(__name__)

STATUS_STYLES = {
    "Ready": "green",
    "Pending": "yellow",
    "Blocked": "red",
    "Updating": "cyan",
}

IDLE_HINT = "Q quit | R refresh | D details | H help"


def describe_state(result: ReconcileResult) -> list[str]:
    """Lines of the state panel for one tick outcome."""
    record = result.record
    state = record.state.value
    if record.update_state != UpdateState.NONE:
        state = f"{state} / {record.update_state.value}"

    lines = [f"State: {state}", f"Status: {result.status}"]
    if record.updating_components:
        lines.append(f"Update wave: {', '.join(record.updating_components)}")
    if record.conditions:
        lines.append(f"Conditions: {', '.join(record.conditions)}")
    if result.error is not None:
        lines.append(f"Last tick failed: {result.error.message}")
    return lines


class ClusterDashboard(App):
    """Terminal UI for one reconciled cluster.

    Every refresh asks ``status_source`` for a tick outcome; whether that tick
    writes anything is up to the caller.
    """

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-container {
        height: 100%;
    }

    #state-container {
        height: 7;
        border: round $accent;
        margin: 0 1;
    }

    #components-container {
        height: 1fr;
        border: round $accent;
        margin: 0 1;
    }

    DataTable {
        height: 100%;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", priority=True),
        Binding("escape", "quit", "Quit", show=False),
        Binding("r", "refresh", "Refresh", priority=True),
        Binding("d", "details", "Details"),
        Binding("h", "help", "Help", priority=True),
    ]

    def __init__(
        self,
        status_source: Callable[[], ReconcileResult],
        cluster_name: str = "cluster",
        refresh_interval: int = 5,
    ):
        """Initialize the dashboard.

        Args:
            status_source: Called on every refresh; returns the outcome of a tick
            cluster_name: Cluster shown in the title
            refresh_interval: Seconds between automatic refreshes
        """
        super().__init__()
        self.status_source = status_source
        self.cluster_name = cluster_name
        self.refresh_interval = refresh_interval
        self.ticks = 0
        self._refresh_timer: Timer | None = None
        self._is_refreshing = False
        self._last_result: ReconcileResult | None = None
        self._source_error = False

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="main-container"):
            with Container(id="state-container"):
                yield Static("Waiting for the first tick", id="state-content")
            with Container(id="components-container"):
                yield DataTable(id="components-table", cursor_type="row")
        yield Footer()

    def on_mount(self) -> None:
        self.title = f"Cluster {self.cluster_name}"
        self.sub_title = IDLE_HINT

        self.query_one("#state-container").border_title = "Cluster"
        self.query_one("#components-container").border_title = "Components"

        table = self.query_one("#components-table", DataTable)
        table.add_columns("Component", "Status", "Reason")

        self._refresh_timer = self.set_interval(self.refresh_interval, self.refresh_data, name="tick")
        self.refresh_data()

    def action_quit(self) -> None:
        if self._refresh_timer is not None:
            self._refresh_timer.stop()
        self.exit()

    def action_refresh(self) -> None:
        self.refresh_data()

    def action_details(self) -> None:
        """Show the full status of the highlighted component."""
        if self._last_result is None or not self._last_result.statuses:
            self.notify("No component statuses yet", severity="warning")
            return

        table = self.query_one("#components-table", DataTable)
        names = list(self._last_result.statuses)
        name = names[min(table.cursor_row, len(names) - 1)]
        self.notify(self.component_details(name), title=name, timeout=10)

    def component_details(self, name: str) -> str:
        """Describe one component of the last tick outcome."""
        result = self._last_result
        status = result.statuses[name]
        lines = [f"Status: {status.sync_status.value}"]
        if status.message:
            lines.append(f"Reason: {status.message}")
        if name in result.record.updating_components:
            lines.append(f"In update wave ({result.record.update_state.value})")
        return "\n".join(lines)

    def action_help(self) -> None:
        help_text = (
            "Q / ESC  quit\n"
            "R        refresh now\n"
            "D        details of the highlighted component\n"
            "↑ / ↓    move between components\n\n"
            f"Refreshing every {self.refresh_interval}s"
        )
        self.notify(help_text, title="Keys", timeout=10)

    def refresh_data(self) -> None:
        """Pull a fresh tick outcome from the status source and redraw."""
        if self._is_refreshing:
            logger.debug("Previous refresh still running, skipping")
            return

        self._is_refreshing = True
        self._set_busy(True)
        try:
            result = self.status_source()
        except ClusterOrchestratorError as e:
            logger.error(f"Status source failed: {e.message}")
            self._report_source_error(e)
        else:
            self.ticks += 1
            self._last_result = result
            self._render_result(result)
            if self._source_error:
                self._source_error = False
                self.notify("Status source is back", severity="information")
        finally:
            self._set_busy(False)
            self._is_refreshing = False

    def _render_result(self, result: ReconcileResult) -> None:
        lines = describe_state(result)
        lines.append(f"Tick {self.ticks} at {datetime.now():%H:%M:%S}")
        self.query_one("#state-content", Static).update("\n".join(lines))

        table = self.query_one("#components-table", DataTable)
        table.clear()
        for name, status in result.statuses.items():
            style = STATUS_STYLES.get(status.sync_status.value, "magenta")
            table.add_row(name, Text(status.sync_status.value, style=style), status.message)

    def _report_source_error(self, error: ClusterOrchestratorError) -> None:
        # Notify once per outage; the table keeps the last good tick
        if self._source_error:
            return
        self._source_error = True
        self.notify(
            f"{error.message}. Showing the last good tick until the source recovers.",
            title="Refresh failed",
            severity="warning",
            timeout=10,
        )

    def _set_busy(self, busy: bool) -> None:
        self.sub_title = f"Refreshing... | {IDLE_HINT}" if busy else IDLE_HINT

"""Tick driver: load the manifest, reconcile, write the record back."""

import threading
from collections.abc import Callable

from cluster_orchestrator.accessor import ResourceAccessor
from cluster_orchestrator.components import ClusterView, build_components
from cluster_orchestrator.context import CallContext
from cluster_orchestrator.exceptions import ClusterOrchestratorError, ConflictError
from cluster_orchestrator.logging_config import get_logger
from cluster_orchestrator.models.cluster import ClusterResource
from cluster_orchestrator.reconciler import ClusterReconciler, ReconcileResult
from cluster_orchestrator.settings import OperatorSettings
from cluster_orchestrator.store import ClusterStore

logger = get_logger(__name__)


class Operator:
    """Runs reconciliation ticks for one cluster.

    Components are built fresh for every tick; the only state carried
    between ticks is what the store and the accessor persist.
    """

    def __init__(
        self,
        store: ClusterStore,
        accessor: ResourceAccessor,
        settings: OperatorSettings | None = None,
    ):
        self.store = store
        self.accessor = accessor
        self.settings = settings or OperatorSettings()
        self._wake = threading.Event()
        self._stop = threading.Event()

    def reconciler_for(self, resource: ClusterResource) -> ClusterReconciler:
        view = ClusterView(resource, drain_grace_period=self.settings.drain_grace_period)
        components = build_components(view, self.accessor)
        return ClusterReconciler(view, components, fetch_workers=self.settings.fetch_workers)

    def run_once(self, dry_run: bool = False, ctx: CallContext | None = None) -> ReconcileResult:
        """Run a single reconciliation tick.

        Raises:
            AccessorError: If the manifest could not be loaded
            ValidationError: If the manifest is invalid
            InvariantViolation: On a logic fault inside the tick
        """
        ctx = ctx or CallContext.with_timeout(self.settings.tick_timeout)
        resource = self.store.load()
        result = self.reconciler_for(resource).reconcile(ctx, resource.status, dry_run=dry_run)

        if dry_run or result.error is not None:
            return result

        if result.record != resource.status:
            try:
                self.store.save_status(resource, result.record)
            except ConflictError as e:
                logger.warning(f"Status of {resource.name} not written, retrying next tick: {e.message}")
        return result

    def wake(self) -> None:
        """Request an immediate tick, e.g. after observing a change."""
        self._wake.set()

    def stop(self) -> None:
        self._stop.set()
        self._wake.set()

    def run_forever(
        self,
        dry_run: bool = False,
        on_tick: Callable[[ReconcileResult], None] | None = None,
    ) -> None:
        """Re-run ticks on a timer until stopped.

        A failing tick is logged and retried; an error that is not
        retryable stops the loop.
        """
        logger.info(f"Starting reconciliation loop every {self.settings.resync_interval}s")

        while not self._stop.is_set():
            self._wake.clear()
            try:
                result = self.run_once(dry_run=dry_run)
                logger.info(f"Tick finished: {result.record.state.value}, {result.status}")
                if on_tick is not None:
                    on_tick(result)
            except ClusterOrchestratorError as e:
                if not e.retryable:
                    raise
                logger.error(f"Tick failed: {e.message}")

            self._wake.wait(self.settings.resync_interval)
        logger.info("Reconciliation loop stopped")

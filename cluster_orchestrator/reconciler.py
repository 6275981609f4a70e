"""Cluster reconciler: one Fetch -> Status -> Sync pass per tick.

The reconciler owns the cluster lifecycle state machine:

    Creating --all ready--> Running --component needs update--> Updating
    Updating/WaitingForPodsRemoval --flagged pods removed--> WaitingForPodsCreation
    Updating/WaitingForPodsCreation --flagged ready--> Updated --all running--> Running
    Creating --config error--> CreationFailed --config fixed--> Creating

The lifecycle record is passed in and a new one is returned; nothing is
kept between ticks.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from cluster_orchestrator.components import (
    ClusterView,
    Component,
    ComponentStatus,
    SyncStatus,
    is_running_status,
)
from cluster_orchestrator.context import CallContext
from cluster_orchestrator.exceptions import (
    AccessorError,
    ClusterOrchestratorError,
    InvariantViolation,
    SyncError,
)
from cluster_orchestrator.logging_config import get_logger
from cluster_orchestrator.models.cluster import (
    ClusterRecord,
    ClusterState,
    UpdateState,
    is_ready_to_update,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one tick.

    Attributes:
        record: Lifecycle record to persist
        statuses: Component name -> status, in dependency order
        status: Aggregate cluster status
        error: Fetch or sync failure that cut the tick short, if any
    """

    record: ClusterRecord
    statuses: dict[str, ComponentStatus] = field(default_factory=dict)
    status: ComponentStatus = ComponentStatus(SyncStatus.PENDING)
    error: ClusterOrchestratorError | None = None


def aggregate_status(statuses: dict[str, ComponentStatus]) -> ComponentStatus:
    """Cluster is Ready iff every component is; otherwise report the most
    upstream component that is not.
    """
    for name, status in statuses.items():
        if not status.is_ready():
            return ComponentStatus(status.sync_status, f"{name}: {status}")
    return ComponentStatus.simple(SyncStatus.READY)


def is_config_blocked(status: ComponentStatus) -> bool:
    return status.sync_status == SyncStatus.BLOCKED and status.message.startswith("config:")


class ClusterReconciler:
    """Drives a fixed, dependency-ordered component set toward its spec."""

    def __init__(self, view: ClusterView, components: list[Component], fetch_workers: int = 4):
        self.view = view
        self.components = components
        self.fetch_workers = fetch_workers
        self._by_name = {component.get_name(): component for component in components}

    def fetch(self, ctx: CallContext) -> None:
        """Fetch observed state of every component concurrently."""
        with ThreadPoolExecutor(max_workers=self.fetch_workers) as executor:
            futures = [executor.submit(component.fetch, ctx) for component in self.components]
            # Surface the first failure after all fetches have settled.
            errors = [f.exception() for f in futures if f.exception() is not None]
        self.view.invalidate()
        if errors:
            raise errors[0]

    def statuses(self, ctx: CallContext) -> dict[str, ComponentStatus]:
        return {component.get_name(): component.status(ctx) for component in self.components}

    def _flagged(self, statuses: dict[str, ComponentStatus]) -> list[str]:
        flagged = []
        allow_full = self.view.resource.spec.enable_full_update
        for name, status in statuses.items():
            if status.sync_status == SyncStatus.NEED_LOCAL_UPDATE:
                flagged.append(name)
            elif status.sync_status == SyncStatus.NEED_FULL_UPDATE and allow_full:
                flagged.append(name)
        return flagged

    def advance(self, record: ClusterRecord, statuses: dict[str, ComponentStatus]) -> ClusterRecord:
        """Compute the next lifecycle record from this tick's statuses."""
        all_ready = all(status.is_ready() for status in statuses.values())

        if record.state == ClusterState.CREATING:
            if any(is_config_blocked(s) for s in statuses.values()):
                return record.model_copy(update={"state": ClusterState.CREATION_FAILED})
            if all_ready:
                return record.model_copy(update={"state": ClusterState.RUNNING})
            return record

        if record.state == ClusterState.CREATION_FAILED:
            if not any(is_config_blocked(s) for s in statuses.values()):
                return record.model_copy(update={"state": ClusterState.CREATING})
            return record

        if is_ready_to_update(record.state):
            flagged = self._flagged(statuses)
            if flagged:
                return record.model_copy(
                    update={
                        "state": ClusterState.UPDATING,
                        "update_state": UpdateState.WAITING_FOR_PODS_REMOVAL,
                        "updating_components": flagged,
                        "conditions": [],
                    }
                )
            all_running = all(is_running_status(s.sync_status) for s in statuses.values())
            if record.state == ClusterState.UPDATED and all_running:
                return record.model_copy(update={"state": ClusterState.RUNNING})
            return record

        if record.state == ClusterState.UPDATING:
            flagged = [self._by_name[n] for n in record.updating_components if n in self._by_name]

            if record.update_state == UpdateState.WAITING_FOR_PODS_REMOVAL:
                removed = [c for c in flagged if c.server.are_pods_removed()]
                for component in removed:
                    condition = component.server.labeller.get_pods_removed_condition()
                    record = record.with_condition(condition)
                if len(removed) == len(flagged):
                    return record.model_copy(
                        update={"update_state": UpdateState.WAITING_FOR_PODS_CREATION}
                    )
                return record

            if record.update_state == UpdateState.WAITING_FOR_PODS_CREATION:
                if all(statuses[c.get_name()].is_ready() for c in flagged):
                    return record.model_copy(
                        update={
                            "state": ClusterState.UPDATED,
                            "update_state": UpdateState.NONE,
                            "updating_components": [],
                            "conditions": [],
                        }
                    )
                return record

        return record

    def _set_record(self, old: ClusterRecord, new: ClusterRecord) -> None:
        if (old.state, old.update_state) != (new.state, new.update_state):
            logger.info(
                f"Cluster {self.view.resource.name}: {old.state.value}/{old.update_state.value} "
                f"-> {new.state.value}/{new.update_state.value}"
            )
            if new.updating_components and not old.updating_components:
                logger.info(f"Components flagged for update: {', '.join(new.updating_components)}")
        self.view.set_record(new)

    def _finish(self, ctx: CallContext, record: ClusterRecord) -> ReconcileResult:
        statuses = self.statuses(ctx)
        aggregate = aggregate_status(statuses)
        record = record.model_copy(
            update={
                "message": aggregate.message or aggregate.sync_status.value,
                "components": {name: str(status) for name, status in statuses.items()},
            }
        )
        return ReconcileResult(record=record, statuses=statuses, status=aggregate)

    def reconcile(self, ctx: CallContext, record: ClusterRecord, dry_run: bool = False) -> ReconcileResult:
        """Run one tick.

        Fetch and sync failures are logged and returned in the result with
        the input record unchanged; the next tick retries. An
        InvariantViolation aborts the tick. The tick that starts an update
        wave writes no objects.
        """
        try:
            self.fetch(ctx)
        except AccessorError as e:
            logger.error(f"Fetch failed, leaving cluster state unchanged: {e.message}")
            return ReconcileResult(record=record, error=e)

        try:
            self.view.set_record(record)
            statuses = self.statuses(ctx)
            for name, status in statuses.items():
                logger.debug(f"{name}: {status}")

            advanced = self.advance(record, statuses)
            self._set_record(record, advanced)

            if dry_run or advanced.state == ClusterState.CREATION_FAILED:
                return self._finish(ctx, advanced)

            # Pods of a new wave are removed only once the Updating record is persisted
            if advanced.state == ClusterState.UPDATING and record.state != ClusterState.UPDATING:
                return self._finish(ctx, advanced)

            for component in self.components:
                if component.status(ctx).is_ready():
                    continue
                try:
                    component.sync(ctx)
                except SyncError as e:
                    logger.error(f"Sync failed, retrying next tick: {e.message}")
                    return ReconcileResult(record=record, error=e)

            return self._finish(ctx, advanced)
        except InvariantViolation as e:
            logger.critical(f"Invariant violated, aborting tick: {e.format_message()}")
            raise

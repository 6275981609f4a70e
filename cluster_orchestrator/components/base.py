"""Component: the unit of reconciliation.

Each component evaluates one ordered decision tree (``decide``) that is free
of side effects and returns the status plus the action it wants taken.
``status`` evaluates it as a dry run; ``sync`` evaluates it and performs the
action. The rule order is significant:

1. update eligibility (``NeedLocalUpdate`` / ``NeedFullUpdate``)
2. update wave handling while the cluster is Updating
3. blocking on dependencies that are not running
4. blocking on a config generation failure
5. syncing objects that are missing or stale
6. waiting for pods
"""

from cluster_orchestrator.components.server import Server
from cluster_orchestrator.components.status import (
    Action,
    ComponentStatus,
    Decision,
    SyncStatus,
    is_running_status,
)
from cluster_orchestrator.components.update import handle_updating_cluster_state
from cluster_orchestrator.context import CallContext
from cluster_orchestrator.exceptions import AccessorError, ConfigError, SyncError
from cluster_orchestrator.labeller import Labeller
from cluster_orchestrator.logging_config import component_logger
from cluster_orchestrator.models.cluster import (
    ClusterRecord,
    ClusterResource,
    ClusterState,
    is_ready_to_update,
)


class ClusterView:
    """What every component of one tick shares: the manifest, the current
    lifecycle record and the statuses already computed against them.
    """

    def __init__(
        self,
        resource: ClusterResource,
        record: ClusterRecord | None = None,
        drain_grace_period: int | None = None,
    ):
        self.resource = resource
        self.record = record if record is not None else resource.status
        self.drain_grace_period = drain_grace_period
        self._statuses: dict[str, ComponentStatus] = {}

    def labeller(self, label: str, name: str, instance_group: str = "default") -> Labeller:
        return Labeller(self.resource.name, self.resource.namespace, label, name, instance_group)

    def set_record(self, record: ClusterRecord) -> None:
        self.record = record
        self.invalidate()

    def invalidate(self) -> None:
        self._statuses.clear()

    def cached_status(self, name: str) -> ComponentStatus | None:
        return self._statuses.get(name)

    def remember(self, name: str, status: ComponentStatus) -> None:
        self._statuses[name] = status


class Component:
    """Base of all component variants.

    Variants set ``updatable`` and ``drainable`` and build their server and
    dependency list; the decision tree is shared.
    """

    updatable = True
    drainable = False

    def __init__(self, view: ClusterView, server: Server, dependencies: list["Component"] | None = None):
        self.view = view
        self.server = server
        self.dependencies = list(dependencies or [])
        self.logger = component_logger(__name__, view.resource.name, self.get_name())

    def get_name(self) -> str:
        return self.server.labeller.get_full_component_name()

    def is_updatable(self) -> bool:
        return self.updatable

    def fetch(self, ctx: CallContext) -> None:
        self.server.fetch(ctx)
        self.view.invalidate()

    def decide(self, ctx: CallContext) -> Decision:
        record = self.view.record

        # Checked before dependency readiness: a blocked component can still
        # be flagged for update.
        if is_ready_to_update(record.state) and self.server.need_update():
            if self.is_updatable():
                return Decision(ComponentStatus.simple(SyncStatus.NEED_LOCAL_UPDATE))
            return Decision(ComponentStatus.simple(SyncStatus.NEED_FULL_UPDATE))

        if record.state == ClusterState.UPDATING:
            decision = handle_updating_cluster_state(self)
            if decision is not None:
                return decision

        for dependency in self.dependencies:
            if not is_running_status(dependency.status(ctx).sync_status):
                return Decision(ComponentStatus.waiting(SyncStatus.BLOCKED, dependency.get_name()))

        if self.server.config_error is not None:
            return Decision(
                ComponentStatus(SyncStatus.BLOCKED, f"config: {self.server.config_error.message}")
            )

        if self.server.need_sync():
            return Decision(ComponentStatus.waiting(SyncStatus.PENDING, "components"), Action.SYNC)

        if not self.server.are_pods_ready(ctx):
            return Decision(ComponentStatus.waiting(SyncStatus.BLOCKED, "pods"))

        return Decision(ComponentStatus.simple(SyncStatus.READY))

    def status(self, ctx: CallContext) -> ComponentStatus:
        """Evaluate the component without side effects."""
        name = self.get_name()
        cached = self.view.cached_status(name)
        if cached is not None:
            return cached
        status = self.decide(ctx.as_read_only()).status
        self.view.remember(name, status)
        return status

    def sync(self, ctx: CallContext) -> ComponentStatus:
        """Evaluate the component and perform the chosen action.

        Raises:
            SyncError: If writing objects failed; the next tick retries
        """
        decision = self.decide(ctx)
        if decision.action != Action.NONE:
            self._execute(ctx, decision.action)
        return decision.status

    def _execute(self, ctx: CallContext, action: Action) -> None:
        self.logger.debug(f"executing {action.value}")
        try:
            if action == Action.SYNC:
                self.server.sync(ctx)
            elif action == Action.REMOVE_PODS:
                grace_period = self.view.drain_grace_period if self.drainable else None
                self.server.remove_pods(ctx, grace_period)
        except (AccessorError, ConfigError) as e:
            self.logger.error(f"sync failed: {e.message}")
            raise SyncError(f"Failed to sync {self.get_name()}: {e.message}", e.details) from e
        finally:
            self.view.invalidate()

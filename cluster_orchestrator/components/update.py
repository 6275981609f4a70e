"""Per-component part of the cluster update wave."""

from typing import TYPE_CHECKING

from cluster_orchestrator.components.status import Action, ComponentStatus, Decision, SyncStatus
from cluster_orchestrator.models.cluster import UpdateState

if TYPE_CHECKING:
    from cluster_orchestrator.components.base import Component


def handle_updating_cluster_state(component: "Component") -> Decision | None:
    """Decide for a component while the cluster is Updating.

    Returns None when normal reconciliation should continue: for components
    outside the wave, and for flagged components once their pods may be
    recreated from the current spec.
    """
    record = component.view.record
    if not record.is_updating(component.get_name()):
        return None

    if record.update_state == UpdateState.WAITING_FOR_PODS_REMOVAL:
        config_error = component.server.config_error
        if config_error is not None:
            return Decision(ComponentStatus(SyncStatus.BLOCKED, f"config: {config_error.message}"))
        if component.server.are_pods_removed():
            return Decision(ComponentStatus.waiting(SyncStatus.UPDATING, "pods creation"))
        return Decision(
            ComponentStatus.waiting(SyncStatus.UPDATING, "pods removal"), Action.REMOVE_PODS
        )

    if record.update_state == UpdateState.WAITING_FOR_PODS_CREATION:
        return None

    return Decision(ComponentStatus(SyncStatus.READY, "Nothing to do now"))

"""Component status values."""

from dataclasses import dataclass
from enum import Enum


class SyncStatus(str, Enum):
    READY = "Ready"
    PENDING = "Pending"
    BLOCKED = "Blocked"
    UPDATING = "Updating"
    NEED_LOCAL_UPDATE = "NeedLocalUpdate"
    NEED_FULL_UPDATE = "NeedFullUpdate"
    # Reserved: no component requests a restart yet
    NEED_RESTART = "NeedRestart"


# The workload is up and serving, even if it diverges from the manifest.
RUNNING_STATUSES = frozenset(
    {
        SyncStatus.READY,
        SyncStatus.NEED_LOCAL_UPDATE,
        SyncStatus.NEED_FULL_UPDATE,
        SyncStatus.NEED_RESTART,
    }
)


def is_running_status(status: SyncStatus) -> bool:
    return status in RUNNING_STATUSES


@dataclass(frozen=True)
class ComponentStatus:
    """Outcome of one component's evaluation for the current tick."""

    sync_status: SyncStatus
    message: str = ""

    @classmethod
    def simple(cls, sync_status: SyncStatus) -> "ComponentStatus":
        return cls(sync_status)

    @classmethod
    def waiting(cls, sync_status: SyncStatus, event: str) -> "ComponentStatus":
        return cls(sync_status, f"Wait for {event}")

    def is_ready(self) -> bool:
        return self.sync_status == SyncStatus.READY

    def __str__(self) -> str:
        if self.message:
            return f"{self.sync_status.value} ({self.message})"
        return self.sync_status.value


class Action(Enum):
    NONE = "none"
    SYNC = "sync"
    REMOVE_PODS = "remove-pods"


@dataclass(frozen=True)
class Decision:
    """Status a component reports plus the action a live run should take."""

    status: ComponentStatus
    action: Action = Action.NONE

"""Cancellable call scope passed into every Fetch/Status/Sync call."""

import threading
import time
from dataclasses import dataclass, field, replace

from cluster_orchestrator.exceptions import CancelledError


@dataclass(frozen=True)
class CallContext:
    """Deadline, cancellation and read-only flag for one reconciliation tick.

    Attributes:
        deadline: Monotonic timestamp after which calls fail, or None
        cancel_event: Event shared by every scope derived from the same tick
        read_only: True inside dry-run evaluation; writes are a logic fault
    """

    deadline: float | None = None
    cancel_event: threading.Event = field(default_factory=threading.Event)
    read_only: bool = False

    @classmethod
    def with_timeout(cls, seconds: float | None) -> "CallContext":
        """Create a context that expires after the given number of seconds."""
        if seconds is None:
            return cls()
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        if self.cancel_event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self) -> None:
        """Raise CancelledError if the tick was cancelled or timed out."""
        if self.cancel_event.is_set():
            raise CancelledError("Reconciliation tick was cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise CancelledError("Reconciliation tick deadline exceeded")

    def as_read_only(self) -> "CallContext":
        return replace(self, read_only=True)

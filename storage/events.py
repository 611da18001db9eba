"""
Storage notifications.

The storage engine publishes a StorageEvent after every bucket creation,
object write and object delete. Collaborators (audit logging, metrics)
register listeners on the engine instead of reading a global event bus.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)

BUCKET_CREATED = "bucket_created"
OBJECT_WRITTEN = "object_written"
OBJECT_DELETED = "object_deleted"

EVENT_KINDS = (BUCKET_CREATED, OBJECT_WRITTEN, OBJECT_DELETED)


@dataclass(frozen=True)
class StorageEvent:
    """Structured record of a completed storage mutation."""

    kind: str
    bucket: str
    object_id: Optional[str] = None
    owner_id: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "kind": self.kind,
            "bucket": self.bucket,
            "object_id": self.object_id,
            "owner_id": self.owner_id,
            "timestamp": self.timestamp.isoformat()
        }


StorageListener = Callable[[StorageEvent], None]


class StorageEventHub:
    """Explicit listener registry for storage events."""

    def __init__(self):
        self._listeners: List[StorageListener] = []

    def subscribe(self, listener: StorageListener) -> None:
        """Register a listener; registering the same callable twice is a no-op."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: StorageListener) -> None:
        """Remove a listener if it is registered."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listeners(self) -> List[StorageListener]:
        return list(self._listeners)

    def emit(self, event: StorageEvent) -> None:
        """
        Deliver an event to every listener in registration order.

        The mutation has already happened on disk, so a failing listener is
        logged and does not fail the operation or starve the other listeners.
        """
        if event.kind not in EVENT_KINDS:
            raise ValueError(f"Unknown storage event kind: {event.kind}")

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Storage event listener {listener!r} failed for {event.kind}")

"""
Ingestion event bus.

Listeners subscribe to typed IngestionEvents and get a Subscription handle
back; unsubscribing is explicit. The bus also keeps the last N events in a
ring buffer for the status API.

Design principles:
- Events carry a snapshot of the item, never the live object
- A listener raising is logged and skipped; processing is never affected
- Delivery is synchronous on the publishing thread
- No persistent storage
"""

import logging
import threading
from collections import deque
from datetime import datetime
from enum import Enum
from typing import Callable, Deque, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import QueueItem

logger = logging.getLogger(__name__)

# Maximum events to keep in memory
MAX_EVENT_HISTORY = 200


class EventKind(str, Enum):
    """Kinds of ingestion events."""

    PROGRESS = "progress"  # A stage finished for an item
    ERROR = "error"  # An item failed, or the watcher hit an error
    COMPLETE = "complete"  # An item finished successfully


class IngestionEvent(BaseModel):
    """
    A single ingestion event.

    `item` is absent only for watcher-level errors that have no item.
    """

    model_config = ConfigDict(extra="forbid")

    kind: EventKind
    timestamp: datetime = Field(default_factory=datetime.now)
    item: Optional[QueueItem] = None
    stage: Optional[str] = None
    error: Optional[str] = None


EventListener = Callable[[IngestionEvent], None]


class Subscription:
    """Handle returned by EventBus.subscribe()."""

    def __init__(self, bus: "EventBus", listener: EventListener):
        self._bus = bus
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if self.active:
            self._bus._remove(self._listener)
            self.active = False


class EventBus:
    """
    Synchronous publish/subscribe for ingestion events.

    Usage:
        bus = EventBus()
        subscription = bus.subscribe(lambda event: print(event.kind))
        bus.progress(item, "validation")
        subscription.unsubscribe()
    """

    def __init__(self, max_history: int = MAX_EVENT_HISTORY):
        self._listeners: List[EventListener] = []
        self._history: Deque[IngestionEvent] = deque(maxlen=max_history)
        self._lock = threading.Lock()

    def subscribe(self, listener: EventListener) -> Subscription:
        with self._lock:
            self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: EventListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def publish(self, event: IngestionEvent) -> None:
        """
        Record an event and deliver it to every current listener.

        Listener exceptions are logged, never propagated.
        """
        with self._lock:
            self._history.append(event)
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"[Events] Listener failed on {event.kind.value} event: {e}")

    def progress(self, item: QueueItem, stage: str) -> None:
        self.publish(IngestionEvent(kind=EventKind.PROGRESS, item=item.snapshot(), stage=stage))

    def error(
        self,
        item: Optional[QueueItem],
        error: str,
        stage: Optional[str] = None,
    ) -> None:
        snapshot = item.snapshot() if item is not None else None
        self.publish(IngestionEvent(kind=EventKind.ERROR, item=snapshot, stage=stage, error=error))

    def complete(self, item: QueueItem) -> None:
        self.publish(IngestionEvent(kind=EventKind.COMPLETE, item=item.snapshot()))

    def recent(self, limit: Optional[int] = None) -> List[IngestionEvent]:
        """
        Recent events, oldest first.

        Args:
            limit: Maximum events to return (most recent kept)
        """
        with self._lock:
            events = list(self._history)
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()

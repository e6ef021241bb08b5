"""
Ingestion queue, per-item pipeline and event bus.

Usage:
    from stockreel.jobs import IngestionPipeline, IngestionQueue, QueueWorker

    pipeline = IngestionPipeline.from_config(config, encoder)
    queue = IngestionQueue(pipeline)
    worker = QueueWorker(queue)
    worker.start()
"""

from .models import ItemStatus, QueueItem, QueueStatus
from .errors import (
    PipelineError,
    ValidationError,
    ProcessingError,
    ClassificationError,
    UploadError,
    QueueError,
    QueueItemNotFoundError,
    InvalidStateTransitionError,
)
from .state import (
    TERMINAL_ITEM_STATES,
    is_item_terminal,
    can_transition_item,
    validate_item_transition,
)
from .events import (
    EventBus,
    EventKind,
    IngestionEvent,
    Subscription,
    MAX_EVENT_HISTORY,
)
from .pipeline import IngestionPipeline, move_to_folder
from .queue import IngestionQueue, QueueWorker

__all__ = [
    # Models
    "ItemStatus",
    "QueueItem",
    "QueueStatus",
    # Errors
    "PipelineError",
    "ValidationError",
    "ProcessingError",
    "ClassificationError",
    "UploadError",
    "QueueError",
    "QueueItemNotFoundError",
    "InvalidStateTransitionError",
    # State
    "TERMINAL_ITEM_STATES",
    "is_item_terminal",
    "can_transition_item",
    "validate_item_transition",
    # Events
    "EventBus",
    "EventKind",
    "IngestionEvent",
    "Subscription",
    "MAX_EVENT_HISTORY",
    # Processing
    "IngestionPipeline",
    "move_to_folder",
    "IngestionQueue",
    "QueueWorker",
]

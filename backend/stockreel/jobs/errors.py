"""
Queue error types.

Stage errors are defined once in stockreel.errors and re-exported here so
callers can catch everything queue-related from one module.
"""

from ..errors import (
    PipelineError,
    ValidationError,
    ProcessingError,
    ClassificationError,
    UploadError,
)


class QueueError(Exception):
    """Base exception for queue bookkeeping failures."""
    pass


class QueueItemNotFoundError(QueueError):
    """Raised when a path is not present in the queue."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"Queue item not found: {file_path}")


class InvalidStateTransitionError(QueueError):
    """Raised when attempting an illegal state transition."""

    def __init__(self, entity_type: str, current_state: str, target_state: str):
        self.entity_type = entity_type
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Invalid {entity_type} state transition: "
            f"{current_state} -> {target_state}"
        )


__all__ = [
    "PipelineError",
    "ValidationError",
    "ProcessingError",
    "ClassificationError",
    "UploadError",
    "QueueError",
    "QueueItemNotFoundError",
    "InvalidStateTransitionError",
]

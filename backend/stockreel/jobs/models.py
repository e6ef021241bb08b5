"""
Queue item data model.

One QueueItem per discovered file, keyed by its path. Items move through
pending → processing → completed | failed. State transitions are
validated externally (see state.py).
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..classification.models import CategoryClassification, VideoCategory
from ..media.models import VideoMetadata


class ItemStatus(str, Enum):
    """
    Queue item status.
    """

    PENDING = "pending"  # Waiting for the worker
    PROCESSING = "processing"  # Stages running
    COMPLETED = "completed"  # Published (or processed) and source moved
    FAILED = "failed"  # A stage failed; source moved to the failed folder


class QueueItem(BaseModel):
    """
    A single file moving through the ingestion pipeline.

    `metadata` and `classification` are filled in by the pipeline as the
    corresponding stages finish. `category_override` and `extra_tags` come
    from the watcher (folder mapping, hashtags, manifest).
    """

    model_config = ConfigDict(extra="forbid")

    # Identity
    file_path: str
    file_name: str

    # State
    status: ItemStatus = ItemStatus.PENDING
    error: Optional[str] = None

    # Stage outputs
    metadata: Optional[VideoMetadata] = None
    classification: Optional[CategoryClassification] = None

    # Hints from the watcher
    category_override: Optional[VideoCategory] = None
    extra_tags: List[str] = Field(default_factory=list)

    timestamp: datetime = Field(default_factory=datetime.now)

    @classmethod
    def for_path(
        cls,
        file_path: str,
        category_override: Optional[VideoCategory] = None,
        extra_tags: Optional[List[str]] = None,
    ) -> "QueueItem":
        """Create a pending item for a file."""
        return cls(
            file_path=str(file_path),
            file_name=Path(file_path).name,
            category_override=category_override,
            extra_tags=list(extra_tags or []),
        )

    def snapshot(self) -> "QueueItem":
        """Deep copy safe to hand to listeners and API callers."""
        return self.model_copy(deep=True)


class QueueStatus(BaseModel):
    """
    Point-in-time view of the queue.

    Only items still in the table are counted; finished items are evicted
    as soon as they reach a terminal state.
    """

    model_config = ConfigDict(extra="forbid")

    total: int = 0
    pending: int = 0
    processing: int = 0
    is_processing: bool = False
    items: List[QueueItem] = Field(default_factory=list)

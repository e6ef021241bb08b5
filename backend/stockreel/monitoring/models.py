"""
Response models for the status API.

Responses are read-only views of queue state and recent events.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..classification.models import VideoCategory
from ..jobs.events import IngestionEvent


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    model_config = ConfigDict(extra="forbid")

    status: str = "ok"
    watching: bool = False
    worker_running: bool = False


class EventListResponse(BaseModel):
    """Recent ingestion events, oldest first."""

    model_config = ConfigDict(extra="forbid")

    events: List[IngestionEvent] = Field(default_factory=list)


class ClearQueueResponse(BaseModel):
    """Result of clearing pending items."""

    model_config = ConfigDict(extra="forbid")

    removed: int


class ProcessRequest(BaseModel):
    """Manual processing of one file."""

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., min_length=1, description="File to process")
    category_override: Optional[VideoCategory] = None
    extra_tags: List[str] = Field(default_factory=list)

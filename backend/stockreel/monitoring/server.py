"""
Status API endpoints.

HTTP view of the ingestion queue for the embedding application.
Intended for trusted LAN access.

Scope: observation, clearing pending items, and manual processing of a
single file. No configuration changes over HTTP.
"""

from pathlib import Path

from fastapi import APIRouter, HTTPException, Query, Request

from ..jobs.models import QueueItem, QueueStatus
from .models import (
    ClearQueueResponse,
    EventListResponse,
    HealthResponse,
    ProcessRequest,
)


router = APIRouter(prefix="/monitor", tags=["monitoring"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns:
        Status plus whether the watcher and worker are running
    """
    watcher = getattr(request.app.state, "watcher", None)
    worker = getattr(request.app.state, "worker", None)
    return HealthResponse(
        status="ok",
        watching=bool(watcher is not None and watcher.is_running),
        worker_running=bool(worker is not None and worker.running),
    )


@router.get("/queue", response_model=QueueStatus)
async def queue_status(request: Request):
    """
    Every item still in the queue, in insertion order.

    Finished items are evicted; use /events for outcomes.
    """
    return request.app.state.queue.get_queue_status()


@router.get("/queue/item", response_model=QueueItem)
async def queue_item(request: Request, path: str = Query(..., min_length=1)):
    """
    Status of one queued file.

    Raises:
        404: If the path is not in the queue
    """
    item = request.app.state.queue.get_file_status(path)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Queue item not found: {path}")
    return item


@router.delete("/queue", response_model=ClearQueueResponse)
async def clear_queue(request: Request):
    """Drop pending items. The item being processed is left to finish."""
    removed = request.app.state.queue.clear_queue()
    return ClearQueueResponse(removed=removed)


@router.get("/events", response_model=EventListResponse)
async def recent_events(request: Request, limit: int = Query(50, ge=1, le=500)):
    """Most recent ingestion events, oldest first."""
    events = request.app.state.queue.events.recent(limit)
    return EventListResponse(events=events)


@router.post("/process", response_model=QueueItem)
def process_file(body: ProcessRequest, request: Request):
    """
    Process one file now, outside the queue.

    Runs synchronously and returns the terminal item.

    Raises:
        404: If the file does not exist
    """
    if not Path(body.path).is_file():
        raise HTTPException(status_code=404, detail=f"File not found: {body.path}")

    return request.app.state.queue.process_file(
        body.path,
        category_override=body.category_override,
        extra_tags=body.extra_tags,
    )

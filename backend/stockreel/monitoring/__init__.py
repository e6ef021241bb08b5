"""
Status API for the ingestion queue.
"""

from .models import HealthResponse, EventListResponse, ClearQueueResponse, ProcessRequest
from .server import router

__all__ = [
    "HealthResponse",
    "EventListResponse",
    "ClearQueueResponse",
    "ProcessRequest",
    "router",
]

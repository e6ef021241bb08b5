"""
Publishing to object storage and the video catalog.

Usage:
    from stockreel.publishing import Publisher, InMemoryVideoStore

    publisher = Publisher(InMemoryVideoStore())
    result = publisher.publish(item, video_path, thumbnail_path)
"""

from .models import UploadPayload, StoredObject, VideoAssetRecord, PublishResult
from .storage import (
    VideoStore,
    InMemoryVideoStore,
    safe_category,
    object_key,
    VIDEO_PREFIX,
    THUMBNAIL_PREFIX,
)
from .publisher import (
    Publisher,
    build_title,
    build_tags,
    build_description,
    resolution_tag,
    ratio_tag,
)

__all__ = [
    # Models
    "UploadPayload",
    "StoredObject",
    "VideoAssetRecord",
    "PublishResult",
    # Storage
    "VideoStore",
    "InMemoryVideoStore",
    "safe_category",
    "object_key",
    "VIDEO_PREFIX",
    "THUMBNAIL_PREFIX",
    # Publisher
    "Publisher",
    "build_title",
    "build_tags",
    "build_description",
    "resolution_tag",
    "ratio_tag",
]

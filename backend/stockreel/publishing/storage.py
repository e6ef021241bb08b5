"""
Object storage and catalog boundary.

VideoStore is the narrow interface the publisher depends on. Every
failure surfaces as UploadError.

Object keys:
    videos/{safe_category}/{random}.{ext}
    thumbnails/{safe_category}/{random}.{ext}
"""

import logging
import re
import threading
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ..errors import UploadError
from .models import StoredObject, UploadPayload, VideoAssetRecord

logger = logging.getLogger(__name__)


VIDEO_PREFIX = "videos"
THUMBNAIL_PREFIX = "thumbnails"

_UNSAFE_KEY_CHARS = re.compile(r"[^a-z0-9\-_]")


def safe_category(category: Optional[str]) -> str:
    """Lowercase category with anything outside [a-z0-9-_] replaced by '-'."""
    value = str(category or "uncategorized").lower()
    return _UNSAFE_KEY_CHARS.sub("-", value)


def object_key(prefix: str, category: Optional[str], payload: UploadPayload) -> str:
    """Random, category-prefixed storage key for a payload."""
    return f"{prefix}/{safe_category(category)}/{uuid.uuid4().hex}.{payload.extension}"


class VideoStore(ABC):
    """
    Abstract storage + catalog backend.
    """

    @abstractmethod
    def upload_video(self, payload: UploadPayload, category: str) -> StoredObject:
        """
        Store video bytes under a category-prefixed key.

        Raises:
            UploadError: If the upload fails
        """
        pass

    @abstractmethod
    def upload_thumbnail(self, payload: UploadPayload, category: str) -> StoredObject:
        """
        Store thumbnail bytes under a category-prefixed key.

        Raises:
            UploadError: If the upload fails
        """
        pass

    @abstractmethod
    def create_video_asset(self, record: VideoAssetRecord) -> Dict[str, Any]:
        """
        Insert a catalog row.

        Returns:
            The inserted row as stored

        Raises:
            UploadError: If the insert fails
        """
        pass

    @abstractmethod
    def delete_object(self, path: str) -> None:
        """
        Remove a stored object.

        Raises:
            UploadError: If the delete fails
        """
        pass


class InMemoryVideoStore(VideoStore):
    """
    Dict-backed store for tests and dry runs.

    `fail_on` names operations ("upload_video", "upload_thumbnail",
    "create_video_asset", "delete_object") that raise UploadError.
    """

    def __init__(
        self,
        base_url: str = "memory://video-assets",
        fail_on: Optional[Sequence[str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.fail_on = set(fail_on or [])
        self.objects: Dict[str, UploadPayload] = {}
        self.records: List[Dict[str, Any]] = []
        self.deleted: List[str] = []
        self._lock = threading.Lock()

    def upload_video(self, payload: UploadPayload, category: str) -> StoredObject:
        return self._put("upload_video", VIDEO_PREFIX, payload, category)

    def upload_thumbnail(self, payload: UploadPayload, category: str) -> StoredObject:
        return self._put("upload_thumbnail", THUMBNAIL_PREFIX, payload, category)

    def create_video_asset(self, record: VideoAssetRecord) -> Dict[str, Any]:
        self._maybe_fail("create_video_asset")
        row = {"id": uuid.uuid4().hex, **record.to_row(), "download_count": 0}
        with self._lock:
            self.records.append(row)
        return row

    def delete_object(self, path: str) -> None:
        self._maybe_fail("delete_object")
        with self._lock:
            self.objects.pop(path, None)
            self.deleted.append(path)

    def _put(self, operation: str, prefix: str, payload: UploadPayload, category: str) -> StoredObject:
        self._maybe_fail(operation)
        path = object_key(prefix, category, payload)
        with self._lock:
            self.objects[path] = payload
        return StoredObject(path=path, url=f"{self.base_url}/{path}")

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise UploadError(operation, "simulated storage failure")

"""
Publishing data models.

UploadPayload is the only thing that crosses the storage boundary:
bytes plus an explicit content type and file name.
"""

import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..classification.models import BeautySubCategory, VideoCategory


class UploadPayload(BaseModel):
    """
    Bytes destined for object storage.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    data: bytes = Field(..., repr=False)
    content_type: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)

    @property
    def extension(self) -> str:
        """Extension without the dot, lowercased; "bin" when there is none."""
        suffix = Path(self.filename).suffix.lower().lstrip(".")
        return suffix or "bin"

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_file(
        cls,
        path: str,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> "UploadPayload":
        """
        Read a file into a payload.

        Args:
            path: File to read
            filename: Name to upload under (defaults to the file's name)
            content_type: MIME type (guessed from the name when omitted)

        Raises:
            OSError: If the file cannot be read
        """
        name = filename or Path(path).name
        if content_type is None:
            content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        return cls(data=Path(path).read_bytes(), content_type=content_type, filename=name)


class StoredObject(BaseModel):
    """An uploaded object: its storage path and a URL that serves it."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str
    url: str


class VideoAssetRecord(BaseModel):
    """
    Catalog row for one published video.
    """

    model_config = ConfigDict(extra="forbid")

    title: str
    description: str
    category: VideoCategory
    tags: List[str] = Field(default_factory=list)
    duration: int
    resolution: str
    file_url: str
    thumbnail_url: str
    is_featured: bool = False
    beauty_sub_category: Optional[BeautySubCategory] = None

    def to_row(self) -> Dict[str, Any]:
        """Column mapping for the catalog table."""
        return self.model_dump(mode="json")


class PublishResult(BaseModel):
    """What publishing produced."""

    model_config = ConfigDict(extra="forbid")

    video: StoredObject
    thumbnail: StoredObject
    record: VideoAssetRecord
    row: Dict[str, Any] = Field(default_factory=dict, description="Row as returned by the catalog")

    @property
    def video_url(self) -> str:
        return self.video.url

    @property
    def thumbnail_url(self) -> str:
        return self.thumbnail.url

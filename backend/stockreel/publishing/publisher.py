"""
Publisher: uploads a processed video and its thumbnail, then writes the
catalog row.

The three writes are not transactional on the backend. The publisher
compensates instead: when the thumbnail upload or the catalog insert
fails, objects already uploaded for this item are deleted before the
UploadError propagates. A failing compensating delete is logged and does
not mask the original error.
"""

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..classification.models import (
    BEAUTY_SUBCATEGORY_LABELS,
    CategoryClassification,
    VideoCategory,
)
from ..errors import UploadError
from ..media.models import VideoMetadata
from .models import PublishResult, StoredObject, UploadPayload, VideoAssetRecord
from .storage import VideoStore

if TYPE_CHECKING:
    from ..jobs.models import QueueItem

logger = logging.getLogger(__name__)


RELEVANT_KEYWORD_MIN_LENGTH = 4
RELEVANT_KEYWORD_LIMIT = 5

# Tolerance when matching an aspect ratio to a named shape
RATIO_TOLERANCE = 0.1

_WORD_START = re.compile(r"\b\w")


def build_title(file_name: str) -> str:
    """
    Human-readable title from a file name.

    "morning_yoga-routine.mp4" -> "Morning Yoga Routine"
    """
    stem = Path(file_name).stem
    spaced = re.sub(r"[-_]", " ", stem)
    return _WORD_START.sub(lambda m: m.group(0).upper(), spaced)


def build_description(category: str, confidence: float) -> str:
    return f"Category: {category}, Confidence: {confidence * 100:.1f}%"


def resolution_tag(width: int) -> Optional[str]:
    """4K / Full HD / HD by width, None below 1280."""
    if width >= 3840:
        return "4K"
    if width >= 1920:
        return "Full HD"
    if width >= 1280:
        return "HD"
    return None


def ratio_tag(width: int, height: int) -> Optional[str]:
    """9:16, 16:9 or 1:1 when the frame is close to one of them."""
    if not width or not height:
        return None
    ratio = width / height
    if abs(ratio - 9 / 16) < RATIO_TOLERANCE:
        return "9:16"
    if abs(ratio - 16 / 9) < RATIO_TOLERANCE:
        return "16:9"
    if abs(ratio - 1) < RATIO_TOLERANCE:
        return "1:1"
    return None


def build_tags(
    metadata: VideoMetadata,
    classification: CategoryClassification,
    extra_tags: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Build the catalog tag list.

    Order: category, beauty sub-category tag and label, resolution tier,
    aspect ratio, duration, extra tags, up to five keywords longer than
    three characters. Duplicates are removed, first occurrence wins.
    """
    tags: List[Optional[str]] = [classification.category.value]

    sub_category = classification.beauty_sub_category
    if classification.category == VideoCategory.BEAUTY and sub_category is not None:
        tags.append(f"beauty:{sub_category.value}")
        tags.append(BEAUTY_SUBCATEGORY_LABELS[sub_category])

    width, height = metadata.dimensions
    tags.append(resolution_tag(width))
    tags.append(ratio_tag(width, height))
    tags.append(f"{metadata.duration}s")
    tags.extend(extra_tags or [])

    relevant = [kw for kw in classification.keywords if len(kw) >= RELEVANT_KEYWORD_MIN_LENGTH]
    tags.extend(relevant[:RELEVANT_KEYWORD_LIMIT])

    return list(dict.fromkeys(tag for tag in tags if tag))


class Publisher:
    """
    Publishes one queue item to a VideoStore.
    """

    def __init__(self, store: VideoStore):
        self.store = store

    def publish(
        self,
        item: "QueueItem",
        video_path: str,
        thumbnail_path: str,
        tags: Optional[List[str]] = None,
    ) -> PublishResult:
        """
        Upload video, upload thumbnail, insert catalog row.

        Args:
            item: Queue item with metadata and classification populated
            video_path: Processed (watermarked) video to upload
            thumbnail_path: Final thumbnail to upload
            tags: Precomputed tags (built from the item when omitted)

        Returns:
            PublishResult

        Raises:
            UploadError: If any step fails (uploaded objects are removed first)
        """
        if item.metadata is None or item.classification is None:
            raise UploadError("publish", "Missing metadata or classification")

        metadata = item.metadata
        classification = item.classification
        category = (item.category_override or classification.category).value

        try:
            video_payload = UploadPayload.from_file(video_path, filename=item.file_name)
            thumbnail_payload = UploadPayload.from_file(
                thumbnail_path,
                filename=f"{Path(item.file_name).stem}.jpg",
                content_type="image/jpeg",
            )
        except OSError as e:
            raise UploadError("read", str(e)) from e

        if tags is None:
            tags = build_tags(metadata, classification, item.extra_tags)

        uploaded: List[StoredObject] = []
        try:
            video = self.store.upload_video(video_payload, category)
            uploaded.append(video)
            logger.info(f"[Publisher] Video uploaded: {video.path}")

            thumbnail = self.store.upload_thumbnail(thumbnail_payload, category)
            uploaded.append(thumbnail)
            logger.info(f"[Publisher] Thumbnail uploaded: {thumbnail.path}")

            record = VideoAssetRecord(
                title=build_title(item.file_name),
                description=build_description(category, classification.confidence),
                category=VideoCategory(category),
                tags=tags,
                duration=metadata.duration,
                resolution=metadata.resolution,
                file_url=video.url,
                thumbnail_url=thumbnail.url,
                is_featured=False,
                beauty_sub_category=(
                    classification.beauty_sub_category
                    if category == VideoCategory.BEAUTY.value
                    else None
                ),
            )
            row = self.store.create_video_asset(record)
        except UploadError:
            self._compensate(uploaded)
            raise
        except Exception as e:
            self._compensate(uploaded)
            raise UploadError("publish", f"{type(e).__name__}: {e}") from e

        logger.info(f"[Publisher] Catalog row created for {item.file_name}")
        return PublishResult(video=video, thumbnail=thumbnail, record=record, row=row)

    def _compensate(self, uploaded: List[StoredObject]) -> None:
        for stored in reversed(uploaded):
            try:
                self.store.delete_object(stored.path)
                logger.info(f"[Publisher] Removed orphaned object {stored.path}")
            except Exception as e:
                logger.error(f"[Publisher] Could not remove orphaned object {stored.path}: {e}")

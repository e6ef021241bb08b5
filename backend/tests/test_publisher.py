"""
Tests for publishing.

These tests verify:
1. Title, description and tag derivation
2. Upload order and the catalog row
3. Compensating deletes when a later write fails
4. The Supabase store against a mocked client
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from stockreel.classification.models import (
    BeautySubCategory,
    CategoryClassification,
    VideoCategory,
)
from stockreel.errors import UploadError
from stockreel.jobs.models import QueueItem
from stockreel.media.models import VideoMetadata
from stockreel.publishing.models import UploadPayload, VideoAssetRecord
from stockreel.publishing.publisher import (
    Publisher,
    build_description,
    build_tags,
    build_title,
    ratio_tag,
    resolution_tag,
)
from stockreel.publishing.storage import InMemoryVideoStore, object_key, safe_category
from stockreel.publishing.supabase_store import SupabaseVideoStore

from conftest import BrokenStore, make_video


def beauty_classification() -> CategoryClassification:
    return CategoryClassification(
        category=VideoCategory.BEAUTY,
        confidence=0.95,
        keywords=["beauty", "skincare", "serum", "spa", "スキンケア", "cream", "lotion", "toner"],
        beauty_sub_category=BeautySubCategory.SKINCARE,
    )


def portrait_metadata() -> VideoMetadata:
    return VideoMetadata(duration=10, resolution="1080x1920", size=1024, format="mp4")


def ready_item(tmp_path: Path, name: str = "beauty_skincare_serum.mp4") -> QueueItem:
    item = QueueItem.for_path(str(tmp_path / name), extra_tags=["#summer"])
    item.metadata = portrait_metadata()
    item.classification = beauty_classification()
    return item


class TestDerivedFields:
    """Tests for title, description and tags."""

    def test_title(self):
        """Separators become spaces and words are capitalized."""
        assert build_title("morning_yoga-routine.mp4") == "Morning Yoga Routine"

    def test_description(self):
        """Confidence is a one-decimal percentage."""
        assert build_description("beauty", 0.95) == "Category: beauty, Confidence: 95.0%"

    @pytest.mark.parametrize("width,expected", [
        (3840, "4K"), (1920, "Full HD"), (1280, "HD"), (1080, None),
    ])
    def test_resolution_tag(self, width, expected):
        """Tiers by width."""
        assert resolution_tag(width) == expected

    def test_ratio_tag(self):
        """Portrait, landscape and square are recognized."""
        assert ratio_tag(1080, 1920) == "9:16"
        assert ratio_tag(1920, 1080) == "16:9"
        assert ratio_tag(1080, 1080) == "1:1"
        assert ratio_tag(1000, 1400) is None
        assert ratio_tag(0, 0) is None

    def test_tags_order(self):
        """Category, beauty tags, ratio, duration, extras, then keywords."""
        tags = build_tags(portrait_metadata(), beauty_classification(), ["#summer"])

        assert tags == [
            "beauty",
            "beauty:skincare",
            "スキンケア",
            "9:16",
            "10s",
            "#summer",
            "skincare",
            "serum",
            "cream",
        ]

    def test_tags_without_sub_category(self):
        """Non-beauty items carry no beauty tags."""
        classification = CategoryClassification(
            category=VideoCategory.FITNESS, confidence=0.9, keywords=["yoga"],
        )
        metadata = VideoMetadata(duration=10, resolution="3840x2160")

        tags = build_tags(metadata, classification)

        assert tags == ["fitness", "4K", "16:9", "10s", "yoga"]


class TestStorageKeys:
    """Tests for object key derivation."""

    def test_safe_category(self):
        """Unsafe characters become dashes."""
        assert safe_category("Beauty Care!") == "beauty-care-"
        assert safe_category(None) == "uncategorized"

    def test_object_key(self):
        """Keys are prefix/category/random.ext."""
        payload = UploadPayload(data=b"x", content_type="video/mp4", filename="a.MP4")

        key = object_key("videos", "beauty", payload)

        prefix, category, name = key.split("/")
        assert (prefix, category) == ("videos", "beauty")
        assert name.endswith(".mp4")


class TestPublisher:
    """Tests for Publisher.publish()."""

    def test_publishes_video_thumbnail_and_row(self, tmp_path: Path):
        """Both objects are stored and the row references their URLs."""
        item = ready_item(tmp_path)
        video = make_video(tmp_path, "watermarked.mp4")
        thumb = make_video(tmp_path, "thumb.jpg", b"jpeg")
        store = InMemoryVideoStore()

        result = Publisher(store).publish(item, str(video), str(thumb))

        assert len(store.objects) == 2
        assert result.video.path.startswith("videos/beauty/")
        assert result.thumbnail.path.startswith("thumbnails/beauty/")
        assert store.objects[result.thumbnail.path].content_type == "image/jpeg"

        (row,) = store.records
        assert row["title"] == "Beauty Skincare Serum"
        assert row["file_url"] == result.video_url
        assert row["thumbnail_url"] == result.thumbnail_url
        assert row["beauty_sub_category"] == "skincare"
        assert row["is_featured"] is False
        assert "#summer" in row["tags"]

    def test_override_category_used(self, tmp_path: Path):
        """A category override decides the storage prefix and row category."""
        item = ready_item(tmp_path)
        item.category_override = VideoCategory.LIFESTYLE
        video = make_video(tmp_path, "v.mp4")
        thumb = make_video(tmp_path, "t.jpg", b"jpeg")
        store = InMemoryVideoStore()

        result = Publisher(store).publish(item, str(video), str(thumb))

        assert result.video.path.startswith("videos/lifestyle/")
        assert result.record.category == VideoCategory.LIFESTYLE
        assert result.record.beauty_sub_category is None

    def test_missing_classification(self, tmp_path: Path):
        """Items without stage outputs cannot be published."""
        item = QueueItem.for_path(str(tmp_path / "clip.mp4"))

        with pytest.raises(UploadError, match="Missing metadata"):
            Publisher(InMemoryVideoStore()).publish(item, "v.mp4", "t.jpg")

    def test_unreadable_file(self, tmp_path: Path):
        """A missing processed file is an UploadError."""
        item = ready_item(tmp_path)
        store = InMemoryVideoStore()

        with pytest.raises(UploadError, match="read failed"):
            Publisher(store).publish(item, str(tmp_path / "gone.mp4"), str(tmp_path / "gone.jpg"))
        assert store.objects == {}

    @pytest.mark.parametrize("failing,expected_deleted", [
        ("upload_thumbnail", 1),
        ("create_video_asset", 2),
    ])
    def test_compensating_delete(self, tmp_path: Path, failing, expected_deleted):
        """Objects uploaded before the failure are removed."""
        item = ready_item(tmp_path)
        video = make_video(tmp_path, "v.mp4")
        thumb = make_video(tmp_path, "t.jpg", b"jpeg")
        store = InMemoryVideoStore(fail_on=[failing])

        with pytest.raises(UploadError):
            Publisher(store).publish(item, str(video), str(thumb))

        assert len(store.deleted) == expected_deleted
        assert store.objects == {}
        assert store.records == []

    def test_failed_delete_keeps_original_error(self, tmp_path: Path):
        """A failing compensating delete does not mask the insert error."""
        item = ready_item(tmp_path)
        video = make_video(tmp_path, "v.mp4")
        thumb = make_video(tmp_path, "t.jpg", b"jpeg")
        store = InMemoryVideoStore(fail_on=["create_video_asset", "delete_object"])

        with pytest.raises(UploadError) as exc_info:
            Publisher(store).publish(item, str(video), str(thumb))

        assert exc_info.value.operation == "create_video_asset"

    @pytest.mark.parametrize("broken,expected_deleted", [
        ("upload_thumbnail", 1),
        ("create_video_asset", 2),
    ])
    def test_foreign_errors_are_compensated(self, tmp_path: Path, broken, expected_deleted):
        """Arbitrary store exceptions roll back uploads and surface as UploadError."""
        item = ready_item(tmp_path)
        video = make_video(tmp_path, "v.mp4")
        thumb = make_video(tmp_path, "t.jpg", b"jpeg")
        store = BrokenStore(broken=[broken])

        with pytest.raises(UploadError, match="RuntimeError") as exc_info:
            Publisher(store).publish(item, str(video), str(thumb))

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert len(store.deleted) == expected_deleted
        assert store.objects == {}

    def test_foreign_delete_error_keeps_original(self, tmp_path: Path):
        """A delete raising RuntimeError does not mask the insert error."""
        item = ready_item(tmp_path)
        video = make_video(tmp_path, "v.mp4")
        thumb = make_video(tmp_path, "t.jpg", b"jpeg")
        store = BrokenStore(broken=["delete_object"], fail_on=["create_video_asset"])

        with pytest.raises(UploadError) as exc_info:
            Publisher(store).publish(item, str(video), str(thumb))

        assert exc_info.value.operation == "create_video_asset"


class TestSupabaseVideoStore:
    """Tests for SupabaseVideoStore with a mocked client."""

    def test_upload_prefers_signed_url(self):
        """The signed URL is returned when available."""
        client = MagicMock()
        bucket = client.storage.from_.return_value
        bucket.create_signed_url.return_value = {"signedURL": "https://signed/url"}
        store = SupabaseVideoStore(client)
        payload = UploadPayload(data=b"abc", content_type="video/mp4", filename="a.mp4")

        stored = store.upload_video(payload, "beauty")

        assert stored.url == "https://signed/url"
        assert stored.path.startswith("videos/beauty/")
        kwargs = bucket.upload.call_args.kwargs
        assert kwargs["file"] == b"abc"
        assert kwargs["file_options"] == {"content-type": "video/mp4"}

    def test_public_url_fallback(self):
        """Without a signed URL the public URL is used."""
        client = MagicMock()
        bucket = client.storage.from_.return_value
        bucket.create_signed_url.side_effect = RuntimeError("private bucket disabled")
        bucket.get_public_url.return_value = "https://public/url"
        store = SupabaseVideoStore(client)
        payload = UploadPayload(data=b"abc", content_type="image/jpeg", filename="a.jpg")

        stored = store.upload_thumbnail(payload, "fitness")

        assert stored.url == "https://public/url"

    def test_upload_failure(self):
        """Client exceptions become UploadError."""
        client = MagicMock()
        client.storage.from_.return_value.upload.side_effect = RuntimeError("quota")
        store = SupabaseVideoStore(client)
        payload = UploadPayload(data=b"abc", content_type="video/mp4", filename="a.mp4")

        with pytest.raises(UploadError, match="upload_video failed: quota"):
            store.upload_video(payload, "beauty")

    def test_insert_returns_stored_row(self):
        """The inserted row comes back from the response."""
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.return_value.data = [{"id": "1"}]
        store = SupabaseVideoStore(client)
        record = VideoAssetRecord(
            title="T", description="D", category=VideoCategory.FITNESS,
            duration=10, resolution="1080x1920", file_url="u", thumbnail_url="t",
        )

        row = store.create_video_asset(record)

        assert row == {"id": "1"}
        inserted = client.table.return_value.insert.call_args.args[0]
        assert inserted["download_count"] == 0
        assert inserted["category"] == "fitness"

    def test_missing_credentials(self):
        """from_credentials requires URL and key."""
        with pytest.raises(UploadError):
            SupabaseVideoStore.from_credentials(None, "key")

"""
Per-item ingestion pipeline.

Stages, in order:
    validation → watermark → metadata → classification
    (→ model fallback | category override) → thumbnail → publish
    → source finalization → temp cleanup

A progress event is published after each stage. Any stage failure marks
the item failed, moves the source into the failed folder and publishes an
error event. Unexpected exceptions are logged with their traceback and
handled the same way; the pipeline never raises for item-level failures.

Design rules:
- One item at a time; the worker owns the call
- Source files are only ever moved (processed/failed) or deleted, never
  rewritten in place
- Temp artifacts are removed whether the item succeeds or fails
"""

import logging
import shutil
import time
from pathlib import Path
from typing import List, Optional, Tuple

from ..classification.classifier import (
    FAST_PATH_CONFIDENCE,
    CategoryClassifier,
    apply_category_override,
)
from ..classification.image_model import ImageModel, TransformersImageModel
from ..config import ConfigError, PipelineConfig
from ..encoding.base import Encoder
from ..encoding.errors import EncoderError
from ..encoding.frames import FrameSampler
from ..encoding.thumbnails import ThumbnailGenerator
from ..errors import PipelineError, ProcessingError, ValidationError
from ..media.errors import MediaError
from ..media.models import VideoMetadata
from ..media.probe import probe_video
from ..media.validators import DEFAULT_RULES, ValidationRules, validate_file
from ..publishing.publisher import Publisher, build_tags
from ..publishing.storage import VideoStore
from ..watermark.engine import WatermarkEngine
from ..watermark.models import ImageWatermarkConfig
from .events import EventBus
from .models import ItemStatus, QueueItem
from .state import validate_item_transition

logger = logging.getLogger(__name__)


WATERMARKED_PREFIX = "watermarked_"


def move_to_folder(source: str, folder: str) -> Path:
    """
    Move a file into a folder, keeping its name.

    An existing file of the same name is never overwritten; the moved
    file gets a millisecond timestamp suffix instead.

    Raises:
        OSError: If the move fails
    """
    src = Path(source)
    target_dir = Path(folder)
    target_dir.mkdir(parents=True, exist_ok=True)

    target = target_dir / src.name
    if target.exists():
        target = target_dir / f"{src.stem}_{int(time.time() * 1000)}{src.suffix}"

    shutil.move(str(src), str(target))
    return target


class IngestionPipeline:
    """
    Runs every stage for one queue item.

    Usage:
        pipeline = IngestionPipeline.from_config(config, FFmpegEncoder())
        pipeline.process_item(QueueItem.for_path("/uploads/watch/clip.mp4"))
    """

    def __init__(
        self,
        config: PipelineConfig,
        encoder: Encoder,
        classifier: Optional[CategoryClassifier] = None,
        publisher: Optional[Publisher] = None,
        events: Optional[EventBus] = None,
        rules: ValidationRules = DEFAULT_RULES,
    ):
        self.config = config
        self.encoder = encoder
        self.classifier = classifier or CategoryClassifier()
        self.publisher = publisher
        self.events = events or EventBus()
        self.rules = rules

        timeouts = config.encoder
        self.watermark_engine = WatermarkEngine(
            encoder,
            timeout=timeouts.watermark_timeout,
            probe_timeout=timeouts.probe_timeout,
        )
        self.thumbnails = ThumbnailGenerator(
            encoder,
            config.watcher.thumbnails_dir,
            timeout=timeouts.thumbnail_timeout,
        )

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        encoder: Encoder,
        store: Optional[VideoStore] = None,
        image_model: Optional[ImageModel] = None,
        events: Optional[EventBus] = None,
    ) -> "IngestionPipeline":
        """
        Wire a pipeline from configuration.

        A Supabase store is created when none is given and credentials are
        configured. The image model is loaded only when enabled.

        Raises:
            ConfigError: If uploads are enabled but no store is available, or the
                image model is enabled without its libraries installed
        """
        if store is None and config.auto_upload:
            if not config.storage.configured:
                raise ConfigError(
                    "auto_upload requires SUPABASE_URL and SUPABASE_KEY "
                    "(or disable uploads)"
                )
            from ..publishing.supabase_store import SupabaseVideoStore

            store = SupabaseVideoStore.from_credentials(
                config.storage.supabase_url,
                config.storage.supabase_key,
                bucket=config.storage.bucket,
                table=config.storage.table,
            )

        if image_model is None and config.classifier.use_image_model:
            try:
                image_model = TransformersImageModel.load(config.classifier.model_name)
            except ImportError as e:
                raise ConfigError(
                    f"use_image_model requires the 'model' extra (transformers, torch): {e}"
                ) from e

        frame_sampler = None
        if image_model is not None:
            frame_sampler = FrameSampler(
                encoder,
                config.watcher.frames_dir,
                timeout=config.encoder.frame_timeout,
            )

        classifier = CategoryClassifier(
            image_model=image_model,
            frame_sampler=frame_sampler,
            frame_count=config.classifier.frame_count,
        )
        publisher = Publisher(store) if store is not None else None
        return cls(config, encoder, classifier=classifier, publisher=publisher, events=events)

    def process_item(self, item: QueueItem) -> QueueItem:
        """
        Run all stages for a pending item.

        Args:
            item: Item in PENDING state (mutated in place)

        Returns:
            The same item, now COMPLETED or FAILED
        """
        self._transition(item, ItemStatus.PROCESSING)
        logger.info(f"[Pipeline] Processing {item.file_name}")
        self.events.progress(item, "processing")

        stage = "validation"
        processed_path = item.file_path
        thumbnail_path: Optional[str] = None

        try:
            frame_size = self._validate(item)
            self.events.progress(item, stage)

            stage = "watermark"
            processed_path = self._watermark(item, frame_size)
            self.events.progress(item, stage)

            stage = "metadata"
            item.metadata = self._probe(processed_path)
            self.events.progress(item, stage)

            stage = "classification"
            self._classify(item, processed_path)

            stage = "thumbnail"
            thumbnail_path = self._thumbnail(processed_path)
            self.events.progress(item, stage)

            stage = "tags"
            tags = build_tags(item.metadata, item.classification, item.extra_tags)

            if self.config.auto_upload:
                stage = "publish"
                self._publish(item, processed_path, thumbnail_path, tags)
                self.events.progress(item, stage)

            stage = "finalize"
            self._finalize_source(item)
        except PipelineError as e:
            self._fail(item, str(e), stage)
        except (EncoderError, MediaError, OSError) as e:
            self._fail(item, f"{stage} failed: {e}", stage)
        except Exception as e:
            logger.exception(f"[Pipeline] Unexpected error at {stage} for {item.file_name}")
            self._fail(item, f"{stage} failed: {type(e).__name__}: {e}", stage)
        else:
            self._transition(item, ItemStatus.COMPLETED)
            logger.info(f"[Pipeline] Completed {item.file_name}")
            self.events.complete(item)
        finally:
            self._cleanup(item, processed_path, thumbnail_path)

        return item

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _validate(self, item: QueueItem) -> Optional[Tuple[int, int]]:
        report = validate_file(
            item.file_path,
            self.encoder,
            self.rules,
            timeout=self.config.encoder.probe_timeout,
        )
        if not report.valid:
            raise ValidationError(item.file_path, report.errors)
        if report.metadata is None:
            return None
        return report.metadata.dimensions

    def _watermark(self, item: QueueItem, frame_size: Optional[Tuple[int, int]]) -> str:
        watermark = self.config.watermark.build()
        if watermark is None:
            return item.file_path

        output_path = self.config.watcher.watermarked_dir / f"{WATERMARKED_PREFIX}{item.file_name}"
        result = self.watermark_engine.apply(item.file_path, str(output_path), watermark, frame_size)

        if result.success and result.output_path:
            return result.output_path

        if self.config.watermark.strict:
            raise ProcessingError("watermark", result.error or "unknown error")

        logger.warning(
            f"[Pipeline] Watermark failed for {item.file_name}, "
            f"continuing without watermark: {result.error}"
        )
        return item.file_path

    def _probe(self, processed_path: str) -> VideoMetadata:
        try:
            return probe_video(processed_path, self.encoder, timeout=self.config.encoder.probe_timeout)
        except MediaError as e:
            raise ProcessingError("metadata", str(e)) from e

    def _classify(self, item: QueueItem, processed_path: str) -> None:
        item.classification = self.classifier.classify_filename(item.file_name, item.file_path)
        self.events.progress(item, "classification")

        if item.category_override is not None:
            item.classification = apply_category_override(
                item.classification,
                item.category_override,
                file_name=item.file_name,
                file_path=item.file_path,
            )
            self.events.progress(item, "category_override")
            return

        if item.classification.confidence < FAST_PATH_CONFIDENCE and self.classifier.has_model:
            item.classification = self.classifier.classify(
                item.file_name,
                item.file_path,
                video_path=processed_path,
                duration=item.metadata.duration if item.metadata else None,
            )
            self.events.progress(item, "model_classification")

    def _thumbnail(self, processed_path: str) -> str:
        try:
            thumbnail_path = self.thumbnails.generate(processed_path)
        except EncoderError as e:
            raise ProcessingError("thumbnail", str(e)) from e

        watermark = self.config.watermark.build()
        if isinstance(watermark, ImageWatermarkConfig):
            thumbnail_path = self.thumbnails.apply_image_watermark(
                thumbnail_path, watermark.image_path, watermark.opacity
            )
        return thumbnail_path

    def _publish(self, item: QueueItem, processed_path: str, thumbnail_path: str, tags: List[str]) -> None:
        if self.publisher is None:
            logger.warning(f"[Pipeline] No publisher configured, skipping upload of {item.file_name}")
            return
        result = self.publisher.publish(item, processed_path, thumbnail_path, tags)
        logger.info(f"[Pipeline] Published {item.file_name}: {result.video_url}")

    def _finalize_source(self, item: QueueItem) -> None:
        if self.config.delete_after_upload:
            Path(item.file_path).unlink(missing_ok=True)
            logger.info(f"[Pipeline] Deleted source {item.file_path}")
            return
        target = move_to_folder(item.file_path, self.config.watcher.processed_folder)
        logger.info(f"[Pipeline] Moved {item.file_name} to {target}")

    # -------------------------------------------------------------------------
    # Outcome handling
    # -------------------------------------------------------------------------

    def _fail(self, item: QueueItem, message: str, stage: str) -> None:
        item.error = message
        self._transition(item, ItemStatus.FAILED)
        logger.error(f"[Pipeline] {item.file_name} failed at {stage}: {message}")

        if Path(item.file_path).exists():
            try:
                target = move_to_folder(item.file_path, self.config.watcher.failed_folder)
                logger.info(f"[Pipeline] Moved {item.file_name} to {target}")
            except OSError as e:
                logger.error(f"[Pipeline] Could not move {item.file_name} to failed folder: {e}")

        self.events.error(item, message, stage)

    def _cleanup(self, item: QueueItem, processed_path: str, thumbnail_path: Optional[str]) -> None:
        leftovers = [thumbnail_path]
        if processed_path != item.file_path:
            leftovers.append(processed_path)

        for path in leftovers:
            if not path:
                continue
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"[Pipeline] Could not remove temp file {path}: {e}")

    @staticmethod
    def _transition(item: QueueItem, status: ItemStatus) -> None:
        validate_item_transition(item.status, status)
        item.status = status

"""
Pipeline configuration.

One PipelineConfig drives the watcher, the worker and every stage. It is
built from defaults, optionally a JSON file, then environment overrides.

Design rules:
- Unknown keys are rejected
- Invalid values raise ConfigError, never a silent fallback
- Defaults match the folder layout operators already use
  (./uploads/watch, ./uploads/processed, ./uploads/failed, ./temp)
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .classification.models import VideoCategory
from .watermark.models import (
    DEFAULT_PRESET,
    WATERMARK_PRESETS,
    ImagePosition,
    ImageWatermarkConfig,
    WatermarkConfig,
    get_preset,
)

logger = logging.getLogger(__name__)


ENV_PREFIX = "STOCKREEL_"

# Folder name → category. Keys are matched exactly first, then lowercased.
DEFAULT_CATEGORY_FOLDER_MAP: Dict[str, str] = {
    "beauty": "beauty",
    "fitness": "fitness",
    "haircare": "haircare",
    "business": "business",
    "lifestyle": "lifestyle",
    "美容": "beauty",
    "フィットネス": "fitness",
    "ヘアケア": "haircare",
    "ビジネス": "business",
    "暮らし": "lifestyle",
    "ライフスタイル": "lifestyle",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""
    pass


class WatcherConfig(BaseModel):
    """
    Folder layout and discovery behavior.
    """

    model_config = ConfigDict(extra="forbid")

    watch_folder: str = Field(default="./uploads/watch", description="Root directory to monitor")
    processed_folder: str = Field(
        default="./uploads/processed", description="Where sources go after success"
    )
    failed_folder: str = Field(default="./uploads/failed", description="Where sources go after failure")
    temp_folder: str = Field(
        default="./temp", description="Scratch root (frames/, thumbnails/, watermarked/)"
    )
    category_from_subfolder: bool = Field(
        default=False, description="Derive a category override from the first subfolder"
    )
    category_folder_map: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_FOLDER_MAP),
        description="Subfolder name to category",
    )
    hashtag_from_subfolders: bool = Field(
        default=True, description="Turn deeper subfolder names into hashtags"
    )
    tags_manifest: Optional[str] = Field(
        default=None, description="pattern,tags CSV (default <watch_folder>/tags.csv)"
    )
    stability_threshold: float = Field(
        default=2.0, gt=0, description="Seconds a file size must stay unchanged"
    )
    poll_interval: float = Field(default=0.1, gt=0, description="Seconds between size checks")

    @field_validator("category_folder_map")
    @classmethod
    def validate_folder_map(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Every mapped value must be a known category."""
        for folder, category in v.items():
            try:
                VideoCategory(category)
            except ValueError:
                raise ValueError(f"Unknown category '{category}' for folder '{folder}'")
        return v

    @property
    def frames_dir(self) -> Path:
        return Path(self.temp_folder) / "frames"

    @property
    def thumbnails_dir(self) -> Path:
        return Path(self.temp_folder) / "thumbnails"

    @property
    def watermarked_dir(self) -> Path:
        return Path(self.temp_folder) / "watermarked"

    @property
    def manifest_path(self) -> Path:
        if self.tags_manifest:
            return Path(self.tags_manifest)
        return Path(self.watch_folder) / "tags.csv"


class WatermarkSettings(BaseModel):
    """
    Watermark stage options.

    When `image_path` is set the image watermark is used and the preset is
    ignored.
    """

    model_config = ConfigDict(extra="forbid")

    enabled: bool = Field(default=True, description="Apply a watermark to every video")
    preset: str = Field(default=DEFAULT_PRESET, description="Text watermark preset name")
    image_path: Optional[str] = Field(default=None, description="PNG watermark image")
    image_opacity: float = Field(default=0.85, ge=0, le=1, description="Image watermark opacity")
    image_position: ImagePosition = Field(
        default=ImagePosition.FULL, description="Full-frame or corner placement"
    )
    image_scale: float = Field(default=0.2, gt=0, le=1, description="Logo width relative to frame")
    compatibility: bool = Field(
        default=True, description="Re-encode to H.264/AAC yuv420p faststart"
    )
    strict: bool = Field(
        default=True, description="Fail the item when watermarking fails"
    )

    @field_validator("preset")
    @classmethod
    def validate_preset(cls, v: str) -> str:
        """Preset must exist."""
        if v not in WATERMARK_PRESETS:
            raise ValueError(
                f"Unknown watermark preset '{v}'. Available: {', '.join(WATERMARK_PRESETS)}"
            )
        return v

    def build(self) -> Optional[WatermarkConfig]:
        """Stage configuration, or None when watermarking is disabled."""
        if not self.enabled:
            return None
        if self.image_path:
            return ImageWatermarkConfig(
                image_path=self.image_path,
                opacity=self.image_opacity,
                compatibility=self.compatibility,
                position=self.image_position,
                scale=self.image_scale,
            )
        return get_preset(self.preset)


class EncoderSettings(BaseModel):
    """
    Binary locations and per-stage timeouts (seconds).
    """

    model_config = ConfigDict(extra="forbid")

    ffmpeg_path: Optional[str] = Field(default=None, description="Explicit ffmpeg binary")
    ffprobe_path: Optional[str] = Field(default=None, description="Explicit ffprobe binary")
    probe_timeout: float = Field(default=30.0, gt=0, description="Metadata probe timeout")
    watermark_timeout: float = Field(default=600.0, gt=0, description="Watermark encode timeout")
    frame_timeout: float = Field(default=60.0, gt=0, description="Per-frame extraction timeout")
    thumbnail_timeout: float = Field(default=60.0, gt=0, description="Thumbnail extraction timeout")


class ClassifierSettings(BaseModel):
    """
    Image-model fallback options.
    """

    model_config = ConfigDict(extra="forbid")

    use_image_model: bool = Field(
        default=False, description="Load the image classifier for low-confidence guesses"
    )
    model_name: str = Field(
        default="google/mobilenet_v2_1.0_224", description="Image-classification model id"
    )
    frame_count: int = Field(default=3, ge=1, le=10, description="Frames sampled per video")


class StorageSettings(BaseModel):
    """
    Supabase storage and catalog.
    """

    model_config = ConfigDict(extra="forbid")

    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_key: Optional[str] = Field(default=None, description="Supabase service key")
    bucket: str = Field(default="video-assets", description="Storage bucket for videos and thumbnails")
    table: str = Field(default="video_assets", description="Catalog table")

    @property
    def configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


class PipelineConfig(BaseModel):
    """
    Root configuration.
    """

    model_config = ConfigDict(extra="forbid")

    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
    watermark: WatermarkSettings = Field(default_factory=WatermarkSettings)
    encoder: EncoderSettings = Field(default_factory=EncoderSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    auto_upload: bool = Field(default=True, description="Publish after processing")
    delete_after_upload: bool = Field(
        default=False, description="Delete the source instead of moving it to processed"
    )


def load_config(path: Optional[str] = None) -> PipelineConfig:
    """
    Load configuration from a JSON file.

    Args:
        path: JSON file; defaults are used when None

    Returns:
        PipelineConfig

    Raises:
        ConfigError: If the file is unreadable, not JSON, or invalid
    """
    if path is None:
        return PipelineConfig()

    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    return _validate(data)


# env var → (section, field); section None means a root field
_ENV_FIELDS: Dict[str, tuple] = {
    f"{ENV_PREFIX}WATCH_FOLDER": ("watcher", "watch_folder"),
    f"{ENV_PREFIX}PROCESSED_FOLDER": ("watcher", "processed_folder"),
    f"{ENV_PREFIX}FAILED_FOLDER": ("watcher", "failed_folder"),
    f"{ENV_PREFIX}TEMP_FOLDER": ("watcher", "temp_folder"),
    f"{ENV_PREFIX}CATEGORY_FROM_SUBFOLDER": ("watcher", "category_from_subfolder"),
    f"{ENV_PREFIX}TAGS_MANIFEST": ("watcher", "tags_manifest"),
    f"{ENV_PREFIX}ADD_WATERMARK": ("watermark", "enabled"),
    f"{ENV_PREFIX}WATERMARK_PRESET": ("watermark", "preset"),
    f"{ENV_PREFIX}STRICT_WATERMARK": ("watermark", "strict"),
    "WATERMARK_IMAGE_PATH": ("watermark", "image_path"),
    "WATERMARK_IMAGE_OPACITY": ("watermark", "image_opacity"),
    f"{ENV_PREFIX}FFMPEG_PATH": ("encoder", "ffmpeg_path"),
    f"{ENV_PREFIX}FFPROBE_PATH": ("encoder", "ffprobe_path"),
    f"{ENV_PREFIX}USE_IMAGE_MODEL": ("classifier", "use_image_model"),
    "SUPABASE_URL": ("storage", "supabase_url"),
    "SUPABASE_KEY": ("storage", "supabase_key"),
    f"{ENV_PREFIX}AUTO_UPLOAD": (None, "auto_upload"),
    f"{ENV_PREFIX}DELETE_AFTER_UPLOAD": (None, "delete_after_upload"),
}


def from_env(
    base: Optional[PipelineConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> PipelineConfig:
    """
    Overlay environment variables onto a configuration.

    Args:
        base: Starting configuration (defaults when None)
        environ: Variables to read (os.environ when None)

    Returns:
        New PipelineConfig

    Raises:
        ConfigError: If a variable holds an invalid value
    """
    environ = os.environ if environ is None else environ
    data = (base or PipelineConfig()).model_dump()

    for name, (section, field) in _ENV_FIELDS.items():
        raw = environ.get(name)
        if raw is None or raw == "":
            continue
        target = data if section is None else data[section]
        target[field] = _parse_bool(name, raw) if _is_bool_field(section, field) else raw
        logger.debug(f"[Config] {name} overrides {section or 'root'}.{field}")

    return _validate(data)


def _is_bool_field(section: Optional[str], field: str) -> bool:
    model: Any = PipelineConfig if section is None else PipelineConfig.model_fields[section].annotation
    return model.model_fields[field].annotation is bool


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean (got '{raw}')")


def _validate(data: Dict[str, Any]) -> PipelineConfig:
    try:
        return PipelineConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

"""
Tests for configuration loading and environment overrides.
"""

import json
from pathlib import Path

import pytest

from stockreel.config import (
    ConfigError,
    PipelineConfig,
    WatcherConfig,
    WatermarkSettings,
    from_env,
    load_config,
)
from stockreel.watermark.models import ImageWatermarkConfig, TextWatermarkConfig


class TestDefaults:
    """Tests for default configuration."""

    def test_default_layout(self):
        """Defaults match the conventional folder layout."""
        config = PipelineConfig()

        assert config.watcher.watch_folder == "./uploads/watch"
        assert config.watcher.processed_folder == "./uploads/processed"
        assert config.watcher.failed_folder == "./uploads/failed"
        assert config.watcher.thumbnails_dir == Path("./temp") / "thumbnails"
        assert config.auto_upload is True
        assert config.watermark.preset == "diagonalPattern"

    def test_manifest_path(self):
        """The manifest defaults to tags.csv in the watch root."""
        assert WatcherConfig(watch_folder="/w").manifest_path == Path("/w/tags.csv")
        assert WatcherConfig(tags_manifest="/m.csv").manifest_path == Path("/m.csv")

    def test_unknown_folder_category(self):
        """Folder maps may only name known categories."""
        with pytest.raises(ValueError, match="Unknown category"):
            WatcherConfig(category_folder_map={"gym": "sports"})


class TestWatermarkSettings:
    """Tests for WatermarkSettings.build()."""

    def test_disabled(self):
        """Disabled watermarking builds nothing."""
        assert WatermarkSettings(enabled=False).build() is None

    def test_preset(self):
        """Without an image the preset is used."""
        built = WatermarkSettings(preset="single").build()

        assert isinstance(built, TextWatermarkConfig)
        assert built.opacity == 0.7

    def test_image_wins(self):
        """An image path switches to image mode."""
        built = WatermarkSettings(image_path="/wm.png", image_opacity=0.5).build()

        assert isinstance(built, ImageWatermarkConfig)
        assert built.opacity == 0.5

    def test_unknown_preset(self):
        """Unknown presets are rejected at load time."""
        with pytest.raises(ValueError, match="Available"):
            WatermarkSettings(preset="nope")


class TestLoadConfig:
    """Tests for load_config()."""

    def test_none_gives_defaults(self):
        """No path means defaults."""
        assert load_config(None) == PipelineConfig()

    def test_json_file(self, tmp_path: Path):
        """Sections are read from JSON."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "watcher": {"watch_folder": "/data/in"},
            "auto_upload": False,
        }))

        config = load_config(str(path))

        assert config.watcher.watch_folder == "/data/in"
        assert config.auto_upload is False

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"bogus": 1}'])
    def test_invalid_files(self, tmp_path: Path, content):
        """Bad JSON, non-objects and unknown keys raise ConfigError."""
        path = tmp_path / "config.json"
        path.write_text(content)

        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_missing_file(self, tmp_path: Path):
        """A missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(str(tmp_path / "missing.json"))


class TestFromEnv:
    """Tests for from_env()."""

    def test_overrides(self):
        """Environment variables override their fields."""
        config = from_env(environ={
            "STOCKREEL_WATCH_FOLDER": "/env/watch",
            "STOCKREEL_ADD_WATERMARK": "false",
            "STOCKREEL_AUTO_UPLOAD": "0",
            "STOCKREEL_CATEGORY_FROM_SUBFOLDER": "yes",
            "WATERMARK_IMAGE_PATH": "/wm.png",
            "WATERMARK_IMAGE_OPACITY": "0.4",
            "SUPABASE_URL": "https://x.supabase.co",
            "SUPABASE_KEY": "secret",
        })

        assert config.watcher.watch_folder == "/env/watch"
        assert config.watcher.category_from_subfolder is True
        assert config.watermark.enabled is False
        assert config.watermark.image_path == "/wm.png"
        assert config.watermark.image_opacity == 0.4
        assert config.auto_upload is False
        assert config.storage.configured is True

    def test_base_is_kept(self):
        """Unset variables leave the base untouched."""
        base = PipelineConfig(delete_after_upload=True)

        config = from_env(base, environ={"STOCKREEL_WATCH_FOLDER": ""})

        assert config.delete_after_upload is True
        assert config.watcher.watch_folder == "./uploads/watch"

    def test_invalid_boolean(self):
        """Booleans must be recognizable."""
        with pytest.raises(ConfigError, match="STOCKREEL_AUTO_UPLOAD"):
            from_env(environ={"STOCKREEL_AUTO_UPLOAD": "maybe"})

    def test_invalid_value(self):
        """Values failing validation raise ConfigError."""
        with pytest.raises(ConfigError):
            from_env(environ={"STOCKREEL_WATERMARK_PRESET": "nope"})
        with pytest.raises(ConfigError):
            from_env(environ={"WATERMARK_IMAGE_OPACITY": "2"})

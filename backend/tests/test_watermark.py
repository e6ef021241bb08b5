"""
Tests for watermark filter builders and the watermark engine.

These tests verify:
1. The tiled text grid covers the whole frame for any spacing/resolution
2. Presets and single-position text marks
3. Image overlays (full-frame and positioned) and compatibility args
4. Engine failures are returned, never raised
"""

from pathlib import Path

import pytest
from PIL import Image

from stockreel.encoding.fake import FakeEncoder, build_probe_payload
from stockreel.watermark.engine import (
    COMPAT_CODEC_ARGS,
    WatermarkEngine,
    build_image_args,
    build_text_args,
    filter_script_path,
)
from stockreel.watermark.filters import (
    ENABLE_ALWAYS,
    TILE_COLS,
    TILE_ROWS,
    build_full_frame_filter,
    build_overlay_filter,
    build_text_filter,
    escape_drawtext,
    tile_bounding_box,
    tile_grid,
)
from stockreel.watermark.models import (
    WATERMARK_PRESETS,
    ImagePosition,
    ImageWatermarkConfig,
    TextPosition,
    TextWatermarkConfig,
    get_preset,
)

from conftest import make_video


def write_png(path: Path, size=(200, 100)) -> Path:
    Image.new("RGBA", size, (255, 255, 255, 200)).save(path)
    return path


class TestTileGrid:
    """Tests for the diagonal tile grid."""

    def test_fixed_grid_without_frame_size(self):
        """Without a frame size the fixed 21x26 grid is used."""
        rows, cols = tile_grid(200)

        assert rows == TILE_ROWS
        assert cols == TILE_COLS

    @pytest.mark.parametrize("spacing", [100, 120, 180, 220])
    @pytest.mark.parametrize("frame_size", [(1080, 1920), (1920, 1080), (3840, 2160), (2160, 3840)])
    def test_grid_covers_frame(self, spacing, frame_size):
        """The tile rectangle always contains the frame."""
        width, height = frame_size

        min_x, min_y, max_x, max_y = tile_bounding_box(spacing, frame_size)

        assert min_x <= 0
        assert min_y <= 0
        assert max_x >= width
        assert max_y >= height

    def test_grid_never_shrinks(self):
        """Small frames keep the fixed minimum grid."""
        rows, cols = tile_grid(200, (720, 720))

        assert rows.start == TILE_ROWS.start
        assert rows[-1] >= TILE_ROWS[-1]
        assert cols.start <= TILE_COLS.start
        assert cols[-1] >= TILE_COLS[-1]

    def test_invalid_spacing(self):
        """Spacing must be positive."""
        with pytest.raises(ValueError):
            tile_grid(0)


class TestTextFilter:
    """Tests for drawtext filter construction."""

    def test_tiled_filter_cell_count(self):
        """One drawtext per grid cell, comma-chained."""
        config = get_preset("diagonalPattern")

        vf = build_text_filter(config)

        assert vf.count("drawtext=") == len(TILE_ROWS) * len(TILE_COLS)
        assert vf.count(ENABLE_ALWAYS) == len(TILE_ROWS) * len(TILE_COLS)

    def test_row_offset(self):
        """Each row is shifted by half a pitch."""
        config = TextWatermarkConfig(spacing=100)

        vf = build_text_filter(config)

        # row 1, col 0 → x = 50, y = 100
        assert ":x=50:y=100:" in vf

    def test_single_position(self):
        """The single preset draws one mark at the bottom right."""
        vf = build_text_filter(get_preset("single"))

        assert vf.count("drawtext=") == 1
        assert "x=w-tw-10" in vf
        assert "y=h-th-10" in vf
        assert "fontcolor=white@0.7" in vf

    def test_escaping(self):
        """Quotes in the text cannot break out of the filter value."""
        assert escape_drawtext("it's") == "it'\\''s"

    def test_font_file(self):
        """An explicit font file is passed through."""
        config = TextWatermarkConfig(position=TextPosition.CENTER, font_file="/fonts/a.ttf")

        vf = build_text_filter(config)

        assert "fontfile='/fonts/a.ttf'" in vf

    def test_presets(self):
        """All named presets exist; unknown names raise KeyError."""
        assert set(WATERMARK_PRESETS) == {
            "diagonalPattern", "lightPattern", "densePattern", "ultraDensePattern", "single",
        }
        assert get_preset("densePattern").spacing == 120
        with pytest.raises(KeyError, match="Available"):
            get_preset("nope")

    def test_text_args_copy_audio(self):
        """Text mode reads the filter script and copies audio."""
        args = build_text_args("in.mp4", "out.mp4", Path("out.mp4.filter"))

        assert args[args.index("-filter_script:v") + 1] == "out.mp4.filter"
        assert args[args.index("-codec:a") + 1] == "copy"
        assert args[-1] == "out.mp4"

    @pytest.mark.parametrize("frame_size", [(2160, 3840), (3840, 2160)])
    @pytest.mark.parametrize("preset", sorted(WATERMARK_PRESETS))
    def test_4k_arguments_fit_exec_limit(self, tmp_path: Path, preset, frame_size):
        """No argument reaches the 128 KiB execve limit; the script holds the full chain."""
        video = make_video(tmp_path, "clip.mp4")
        output = tmp_path / "out" / "clip_wm.mp4"
        encoder = FakeEncoder()
        config = get_preset(preset)

        result = WatermarkEngine(encoder).apply(str(video), str(output), config, frame_size)

        assert result.success is True
        (args,) = encoder.ffmpeg_calls()
        assert max(len(arg.encode("utf-8")) for arg in args) < 131072
        (script,) = encoder.filter_scripts
        assert script == build_text_filter(config, frame_size)
        assert not filter_script_path(str(output)).exists()


class TestImageFilter:
    """Tests for image overlay construction."""

    def test_full_frame(self):
        """Full-frame mode scales the image to the video size with scale2ref."""
        assert build_full_frame_filter(0.85) == (
            "[1:v][0:v]scale2ref=w=iw:h=ih[wm][base];"
            "[wm]format=rgba,colorchannelmixer=aa=0.85[wma];"
            "[base][wma]overlay=0:0[out]"
        )

    def test_positioned_logo(self):
        """Positioned logos scale against the frame width."""
        fc = build_overlay_filter(ImagePosition.TOP_LEFT, 0.5, 0.25)

        assert "scale2ref=w=iw*0.25:h=ow/mdar" in fc
        assert "overlay=10:10[out]" in fc

    def test_compat_args(self):
        """Compatibility mode re-encodes to the H.264/AAC baseline."""
        config = ImageWatermarkConfig(image_path="wm.png")

        args = build_image_args("in.mp4", "out.mp4", config)

        for value in COMPAT_CODEC_ARGS:
            assert value in args
        assert "0:a?" in args

    def test_light_args(self):
        """Without compatibility audio is copied."""
        config = ImageWatermarkConfig(image_path="wm.png", compatibility=False)

        args = build_image_args("in.mp4", "out.mp4", config)

        assert "libx264" not in args
        assert args[args.index("-c:a") + 1] == "copy"


class TestWatermarkEngine:
    """Tests for WatermarkEngine."""

    def test_text_success(self, tmp_path: Path):
        """A successful run reports the output path."""
        video = make_video(tmp_path, "clip.mp4")
        engine = WatermarkEngine(FakeEncoder())
        output = tmp_path / "out" / "clip_wm.mp4"

        result = engine.apply(str(video), str(output), get_preset("diagonalPattern"), (1080, 1920))

        assert result.success is True
        assert result.output_path == str(output)
        assert output.is_file()

    def test_encoder_failure_is_returned(self, tmp_path: Path):
        """Encoder errors become a failed result."""
        video = make_video(tmp_path, "clip.mp4")
        engine = WatermarkEngine(FakeEncoder(fail_on=["drawtext"]))

        result = engine.apply(str(video), str(tmp_path / "out.mp4"), get_preset("single"))

        assert result.success is False
        assert result.output_path is None
        assert result.error

    def test_same_input_and_output_rejected(self, tmp_path: Path):
        """The source is never overwritten."""
        video = make_video(tmp_path, "clip.mp4")
        engine = WatermarkEngine(FakeEncoder())

        result = engine.apply(str(video), str(video), get_preset("single"))

        assert result.success is False
        assert "differ" in result.error

    def test_missing_image(self, tmp_path: Path):
        """A missing watermark image fails before encoding."""
        video = make_video(tmp_path, "clip.mp4")
        encoder = FakeEncoder()
        engine = WatermarkEngine(encoder)
        config = ImageWatermarkConfig(image_path=str(tmp_path / "missing.png"))

        result = engine.apply(str(video), str(tmp_path / "out.mp4"), config)

        assert result.success is False
        assert "not found" in result.error
        assert encoder.ffmpeg_calls() == []

    def test_image_unknown_resolution(self, tmp_path: Path):
        """Image mode needs a probed resolution."""
        video = make_video(tmp_path, "clip.mp4")
        encoder = FakeEncoder(probes={"clip.mp4": build_probe_payload(width=0, height=0)})
        engine = WatermarkEngine(encoder)
        config = ImageWatermarkConfig(image_path=str(write_png(tmp_path / "wm.png")))

        result = engine.apply(str(video), str(tmp_path / "out.mp4"), config)

        assert result.success is False
        assert "resolution" in result.error

    def test_image_success(self, tmp_path: Path):
        """Image mode runs one filter_complex invocation."""
        video = make_video(tmp_path, "clip.mp4")
        encoder = FakeEncoder()
        engine = WatermarkEngine(encoder)
        config = ImageWatermarkConfig(image_path=str(write_png(tmp_path / "wm.png")))

        result = engine.apply(str(video), str(tmp_path / "out.mp4"), config)

        assert result.success is True
        (args,) = encoder.ffmpeg_calls()
        assert "-filter_complex" in args

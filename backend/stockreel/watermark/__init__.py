"""
Anti-piracy watermarking.

Usage:
    from stockreel.watermark import WatermarkEngine, get_preset

    engine = WatermarkEngine(encoder)
    result = engine.apply("in.mp4", "out.mp4", get_preset("diagonalPattern"))
"""

from .models import (
    TextPosition,
    ImagePosition,
    TextWatermarkConfig,
    ImageWatermarkConfig,
    WatermarkConfig,
    WatermarkResult,
    WATERMARK_PRESETS,
    DEFAULT_PRESET,
    DEFAULT_WATERMARK_TEXT,
    get_preset,
)
from .filters import (
    TILE_ROWS,
    TILE_COLS,
    tile_grid,
    tile_origins,
    tile_bounding_box,
    build_tiled_text_filter,
    build_single_text_filter,
    build_text_filter,
    build_full_frame_filter,
    build_overlay_filter,
)
from .engine import WatermarkEngine, build_text_args, build_image_args, filter_script_path

__all__ = [
    # Models
    "TextPosition",
    "ImagePosition",
    "TextWatermarkConfig",
    "ImageWatermarkConfig",
    "WatermarkConfig",
    "WatermarkResult",
    "WATERMARK_PRESETS",
    "DEFAULT_PRESET",
    "DEFAULT_WATERMARK_TEXT",
    "get_preset",
    # Filters
    "TILE_ROWS",
    "TILE_COLS",
    "tile_grid",
    "tile_origins",
    "tile_bounding_box",
    "build_tiled_text_filter",
    "build_single_text_filter",
    "build_text_filter",
    "build_full_frame_filter",
    "build_overlay_filter",
    # Engine
    "WatermarkEngine",
    "build_text_args",
    "filter_script_path",
    "build_image_args",
]

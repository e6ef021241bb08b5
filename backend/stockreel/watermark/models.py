"""
Watermark configuration and result models.

Configuration is read-only and supplied per pipeline instance, never per
item. Text mode tiles a drawtext grid; image mode composites one image.
"""

from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class TextPosition(str, Enum):
    """Where a text watermark is drawn."""

    DIAGONAL_PATTERN = "diagonal-pattern"
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"
    CENTER = "center"


class ImagePosition(str, Enum):
    """Where an image watermark is overlaid. FULL covers the whole frame."""

    FULL = "full"
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"
    CENTER = "center"


DEFAULT_WATERMARK_TEXT = "AI Creative Stock"


class TextWatermarkConfig(BaseModel):
    """
    Tiled (or single) text watermark.

    spacing and angle only apply to the diagonal pattern.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    text: str = Field(default=DEFAULT_WATERMARK_TEXT, min_length=1)
    position: TextPosition = TextPosition.DIAGONAL_PATTERN
    opacity: float = Field(default=0.3, ge=0.0, le=1.0)
    font_size: int = Field(default=32, gt=0)
    color: str = Field(default="white")
    spacing: int = Field(default=200, gt=0, description="Grid pitch in pixels")
    angle: int = Field(default=-30, description="Nominal pattern angle in degrees")
    font_file: Optional[str] = Field(default=None, description="Optional font path for drawtext")


class ImageWatermarkConfig(BaseModel):
    """
    Image watermark.

    With position FULL the image is scaled to exactly the frame size.
    Otherwise it is scaled to `scale` times the frame width and placed at
    the position with a 10px margin.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    image_path: str = Field(..., min_length=1)
    opacity: float = Field(default=0.85, ge=0.0, le=1.0)
    compatibility: bool = Field(
        default=True,
        description="Transcode to a browser-safe H.264/AAC baseline instead of copying audio",
    )
    position: ImagePosition = ImagePosition.FULL
    scale: float = Field(default=0.2, gt=0.0, le=1.0, description="Logo width / frame width")


WatermarkConfig = Union[TextWatermarkConfig, ImageWatermarkConfig]


WATERMARK_PRESETS: Dict[str, TextWatermarkConfig] = {
    # Default
    "diagonalPattern": TextWatermarkConfig(
        opacity=0.25, font_size=36, spacing=180, angle=-30,
    ),
    # Least visible
    "lightPattern": TextWatermarkConfig(
        opacity=0.15, font_size=28, spacing=220, angle=-25,
    ),
    "densePattern": TextWatermarkConfig(
        opacity=0.35, font_size=32, spacing=120, angle=-35,
    ),
    # Strongest protection
    "ultraDensePattern": TextWatermarkConfig(
        opacity=0.4, font_size=40, spacing=100, angle=-30,
    ),
    # Legacy single corner mark
    "single": TextWatermarkConfig(
        position=TextPosition.BOTTOM_RIGHT, opacity=0.7, font_size=24,
    ),
}

DEFAULT_PRESET = "diagonalPattern"


def get_preset(name: str) -> TextWatermarkConfig:
    """
    Look up a named preset.

    Raises:
        KeyError: If the preset does not exist
    """
    try:
        return WATERMARK_PRESETS[name]
    except KeyError:
        raise KeyError(
            f"Unknown watermark preset '{name}'. "
            f"Available: {', '.join(WATERMARK_PRESETS)}"
        ) from None


class WatermarkResult(BaseModel):
    """
    Outcome of one watermark invocation.

    On failure output_path is None and error explains why.
    """

    model_config = ConfigDict(extra="forbid")

    success: bool
    output_path: Optional[str] = None
    error: Optional[str] = None
    duration_seconds: Optional[float] = None

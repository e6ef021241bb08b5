"""
Filter-graph builders for watermarking.

All builders are pure functions returning filter strings; nothing here
touches the filesystem or spawns a process.

Tiled text grid:
    rows TILE_ROWS, columns TILE_COLS, pitch `spacing`
    x = col * spacing + row * spacing * 0.5
    y = row * spacing
Each row is shifted by half a pitch, producing a diagonal brick pattern.
The fixed grid is a minimum. When the frame size is known the grid is
extended until every row spans the full width and the rows span the full
height, so coverage holds for any spacing and resolution.
"""

import math
from typing import Iterator, Optional, Tuple

from .models import ImagePosition, TextPosition, TextWatermarkConfig


TILE_ROWS = range(-5, 16)
TILE_COLS = range(-5, 21)

# Enabled for the whole clip
ENABLE_ALWAYS = "enable='between(t,0,99999)'"

_TEXT_POSITIONS = {
    TextPosition.TOP_LEFT: ("10", "10"),
    TextPosition.TOP_RIGHT: ("w-tw-10", "10"),
    TextPosition.BOTTOM_LEFT: ("10", "h-th-10"),
    TextPosition.BOTTOM_RIGHT: ("w-tw-10", "h-th-10"),
    TextPosition.CENTER: ("(w-tw)/2", "(h-th)/2"),
    TextPosition.DIAGONAL_PATTERN: ("0", "0"),
}

_OVERLAY_POSITIONS = {
    ImagePosition.TOP_LEFT: "10:10",
    ImagePosition.TOP_RIGHT: "main_w-overlay_w-10:10",
    ImagePosition.BOTTOM_LEFT: "10:main_h-overlay_h-10",
    ImagePosition.BOTTOM_RIGHT: "main_w-overlay_w-10:main_h-overlay_h-10",
    ImagePosition.CENTER: "(main_w-overlay_w)/2:(main_h-overlay_h)/2",
    ImagePosition.FULL: "0:0",
}


def escape_drawtext(text: str) -> str:
    """Make text safe inside a single-quoted drawtext value."""
    return text.replace("\\", "\\\\").replace("'", "'\\''")


def _format_number(value: float) -> str:
    # 90.0 -> "90", 12.5 -> "12.5"
    return str(int(value)) if float(value).is_integer() else str(value)


def _drawtext(config: TextWatermarkConfig, x: str, y: str) -> str:
    parts = [
        f"drawtext=text='{escape_drawtext(config.text)}'",
        f"fontsize={config.font_size}",
        f"fontcolor={config.color}@{config.opacity}",
        f"x={x}",
        f"y={y}",
    ]
    if config.font_file:
        parts.append(f"fontfile='{config.font_file}'")
    parts.append(ENABLE_ALWAYS)
    return ":".join(parts)


def tile_grid(
    spacing: int,
    frame_size: Optional[Tuple[int, int]] = None,
) -> Tuple[range, range]:
    """
    Row and column ranges of the tile grid.

    Args:
        spacing: Grid pitch in pixels (> 0)
        frame_size: Optional (width, height); extends the fixed grid so the
            whole frame is covered

    Returns:
        (rows, cols)
    """
    if spacing <= 0:
        raise ValueError(f"spacing must be positive, got {spacing}")

    rows, cols = TILE_ROWS, TILE_COLS
    if frame_size is None:
        return rows, cols

    width, height = frame_size
    row_max = max(rows[-1], math.ceil(height / spacing))
    rows = range(rows.start, row_max + 1)

    # The last row is shifted furthest right; it must still start at or before x=0.
    col_min = min(cols.start, math.floor(-row_max * 0.5) - 1)
    # The first row is shifted furthest left; it must still reach x=width.
    col_max = max(cols[-1], math.ceil(width / spacing - rows.start * 0.5))
    return rows, range(col_min, col_max + 1)


def tile_origins(
    spacing: int,
    frame_size: Optional[Tuple[int, int]] = None,
) -> Iterator[Tuple[float, float]]:
    """Yield (x, y) for every cell of the tile grid, row-major."""
    rows, cols = tile_grid(spacing, frame_size)
    for row in rows:
        for col in cols:
            yield col * spacing + row * spacing * 0.5, row * spacing


def build_tiled_text_filter(
    config: TextWatermarkConfig,
    frame_size: Optional[Tuple[int, int]] = None,
) -> str:
    """
    Build one comma-chained drawtext filter covering the whole frame.

    Args:
        config: Text watermark settings (spacing defines the grid pitch)
        frame_size: Optional probed (width, height) used to extend the grid

    Returns:
        Video filter graph (written to a filter script by the engine)
    """
    cells = [
        _drawtext(config, _format_number(x), _format_number(y))
        for x, y in tile_origins(config.spacing, frame_size)
    ]
    return ",".join(cells)


def tile_bounding_box(
    spacing: int,
    frame_size: Optional[Tuple[int, int]] = None,
) -> Tuple[float, float, float, float]:
    """
    Rectangle spanned by every row of tile origins.

    Returns (min_x, min_y, max_x, max_y): min_x is where the most shifted
    row starts, max_x where the least shifted row ends. With a frame size
    the rectangle always contains (0, 0, width, height).
    """
    rows, cols = tile_grid(spacing, frame_size)
    min_x = cols.start * spacing + rows[-1] * spacing * 0.5
    max_x = cols[-1] * spacing + rows.start * spacing * 0.5
    return min_x, rows.start * spacing, max_x, rows[-1] * spacing


def build_single_text_filter(config: TextWatermarkConfig) -> str:
    """Single positioned drawtext (corner or center)."""
    x, y = _TEXT_POSITIONS.get(config.position, _TEXT_POSITIONS[TextPosition.BOTTOM_RIGHT])
    return _drawtext(config, x, y)


def build_text_filter(
    config: TextWatermarkConfig,
    frame_size: Optional[Tuple[int, int]] = None,
) -> str:
    """Dispatch on position: diagonal pattern tiles, anything else is single."""
    if config.position == TextPosition.DIAGONAL_PATTERN:
        return build_tiled_text_filter(config, frame_size)
    return build_single_text_filter(config)


def build_full_frame_filter(opacity: float) -> str:
    """
    Scale input 1 to exactly input 0's size, fade its alpha, overlay at 0:0.

    scale2ref tracks the primary video's real dimensions, so the watermark
    image needs no pre-sizing. Output label is [out].
    """
    return (
        "[1:v][0:v]scale2ref=w=iw:h=ih[wm][base];"
        f"[wm]format=rgba,colorchannelmixer=aa={opacity}[wma];"
        "[base][wma]overlay=0:0[out]"
    )


def build_overlay_filter(
    position: ImagePosition = ImagePosition.BOTTOM_RIGHT,
    opacity: float = 0.8,
    scale: float = 0.2,
) -> str:
    """
    Logo overlay scaled relative to the frame width.

    FULL delegates to build_full_frame_filter. Output label is [out].
    """
    position = ImagePosition(position)
    if position == ImagePosition.FULL:
        return build_full_frame_filter(opacity)

    return (
        f"[1:v][0:v]scale2ref=w=iw*{scale}:h=ow/mdar[wm][base];"
        f"[wm]format=rgba,colorchannelmixer=aa={opacity}[wma];"
        f"[base][wma]overlay={_OVERLAY_POSITIONS[position]}[out]"
    )

"""
Thumbnail generation using FFmpeg.

Strategy:
- Seek ~2 seconds in (fast input seek) and grab one frame
- Size the frame to the platform's fixed 9:16 portrait shape (720x1280)
- When image watermarking is active, composite the watermark onto the
  thumbnail with Pillow and discard the unwatermarked frame
"""

import logging
import time
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageOps

from .base import Encoder
from .errors import OutputVerificationError

logger = logging.getLogger(__name__)


# 9:16 portrait
THUMBNAIL_SIZE: Tuple[int, int] = (720, 1280)

# Seconds into the video
DEFAULT_THUMBNAIL_OFFSET = 2.0

WATERMARKED_SUFFIX = "_wm"
JPEG_QUALITY = 90


class ThumbnailGenerator:
    """
    Extracts a representative frame through the Encoder interface.

    With size=None the frame keeps the source dimensions.
    """

    def __init__(
        self,
        encoder: Encoder,
        thumbnail_dir: Path,
        timeout: Optional[float] = 60.0,
        size: Optional[Tuple[int, int]] = THUMBNAIL_SIZE,
    ):
        self.encoder = encoder
        self.thumbnail_dir = Path(thumbnail_dir)
        self.timeout = timeout
        self.size = size

    def generate(
        self,
        video_path: str,
        output_path: Optional[str] = None,
        offset: float = DEFAULT_THUMBNAIL_OFFSET,
    ) -> str:
        """
        Extract one frame into a JPEG.

        Args:
            video_path: Source (usually the watermarked) video
            output_path: Target path (default: <thumbnail_dir>/<epoch_ms>.jpg)
            offset: Seek position in seconds

        Returns:
            Path of the written thumbnail

        Raises:
            EncoderError: If the frame cannot be extracted
        """
        if output_path is None:
            output_path = str(self.thumbnail_dir / f"{int(time.time() * 1000)}.jpg")
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        args = ["-ss", f"{offset:g}", "-i", str(video_path), "-frames:v", "1"]
        if self.size is not None:
            width, height = self.size
            args += ["-s", f"{width}x{height}"]
        args += ["-y", str(output_path)]
        self.encoder.run_ffmpeg(args, timeout=self.timeout)

        output = Path(output_path)
        if not output.is_file() or output.stat().st_size == 0:
            raise OutputVerificationError(str(output_path), "thumbnail was not written")

        logger.debug(f"[Thumbnail] Generated: {output_path}")
        return str(output_path)

    def apply_image_watermark(
        self,
        thumbnail_path: str,
        watermark_image_path: str,
        opacity: float,
    ) -> str:
        """
        Composite a full-frame watermark onto a thumbnail.

        The watermark is resized to cover the thumbnail exactly and its alpha
        channel is multiplied by `opacity`. The result is written next to the
        input as `<name>_wm.jpg` and the input is deleted.

        On any failure the original thumbnail is kept and its path returned.
        """
        source = Path(thumbnail_path)
        target = source.with_name(f"{source.stem}{WATERMARKED_SUFFIX}.jpg")

        try:
            composite_watermark(source, Path(watermark_image_path), target, opacity)
        except (OSError, ValueError) as e:
            logger.warning(f"[Thumbnail] Failed to apply watermark to thumbnail: {e}")
            return str(source)

        source.unlink(missing_ok=True)
        return str(target)


def composite_watermark(
    base_path: Path,
    watermark_path: Path,
    output_path: Path,
    opacity: float,
) -> None:
    """
    Alpha-composite `watermark_path` over `base_path` into a JPEG.

    Raises:
        OSError: If either image cannot be read or the output cannot be written
    """
    with Image.open(base_path) as base_image:
        base = base_image.convert("RGBA")

    with Image.open(watermark_path) as watermark_image:
        overlay = ImageOps.fit(watermark_image.convert("RGBA"), base.size)

    level = max(0.0, min(1.0, opacity))
    alpha = overlay.getchannel("A").point(lambda value: int(value * level))
    overlay.putalpha(alpha)

    composed = Image.alpha_composite(base, overlay).convert("RGB")
    composed.save(output_path, "JPEG", quality=JPEG_QUALITY)


# Pixels between a placed logo and the frame edge
LOGO_MARGIN = 10

# Smallest logo edge in pixels
MIN_LOGO_SIZE = 16


def logo_origin(
    base_size: Tuple[int, int],
    logo_size: Tuple[int, int],
    position: str,
    margin: int = LOGO_MARGIN,
) -> Tuple[int, int]:
    """
    Top-left corner for a logo at a named position.

    Positions: top-left, top-right, bottom-left, bottom-right, center.
    Unknown names fall back to bottom-right.
    """
    base_w, base_h = base_size
    logo_w, logo_h = logo_size
    right = base_w - logo_w - margin
    bottom = base_h - logo_h - margin

    origins = {
        "top-left": (margin, margin),
        "top-right": (right, margin),
        "bottom-left": (margin, bottom),
        "bottom-right": (right, bottom),
        "center": ((base_w - logo_w) // 2, (base_h - logo_h) // 2),
    }
    return origins.get(position, origins["bottom-right"])


def composite_logo(
    base_path: Path,
    watermark_path: Path,
    output_path: Path,
    position: str,
    opacity: float,
    scale: float,
) -> None:
    """
    Place a logo sized to `scale` times the image width at a position.

    The logo keeps its aspect ratio and is never enlarged past its own size.

    Raises:
        OSError: If either image cannot be read or the output cannot be written
    """
    with Image.open(base_path) as base_image:
        base = base_image.convert("RGBA")

    with Image.open(watermark_path) as watermark_image:
        logo = watermark_image.convert("RGBA")

    target_w = max(MIN_LOGO_SIZE, round(base.width * scale))
    if logo.width > target_w:
        target_h = max(MIN_LOGO_SIZE, round(logo.height * target_w / logo.width))
        logo = logo.resize((target_w, target_h), Image.LANCZOS)

    level = max(0.0, min(1.0, opacity))
    logo.putalpha(logo.getchannel("A").point(lambda value: int(value * level)))

    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    layer.paste(logo, logo_origin(base.size, logo.size, position))

    composed = Image.alpha_composite(base, layer).convert("RGB")
    composed.save(output_path, "JPEG", quality=JPEG_QUALITY)

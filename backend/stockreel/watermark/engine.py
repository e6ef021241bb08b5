"""
Watermark engine.

Drives the encoder to produce a watermarked copy of a video.

Modes:
- Text: one drawtext chain (tiled diagonal pattern or a single mark) read
  from a filter script next to the output, audio stream-copied
- Image: the image is scaled against the video with scale2ref and
  composited with reduced alpha via -filter_complex

Design rules:
- The input file is never modified; output always goes to a new path
- Failures are returned as WatermarkResult, never raised
- Every invocation is bounded by the watermark timeout
- Filter scripts never outlive the invocation
"""

import logging
import time
from pathlib import Path
from typing import List, Optional, Tuple

from ..encoding.base import Encoder
from ..encoding.errors import EncoderError
from ..media.errors import MediaError
from ..media.probe import probe_video
from .filters import build_overlay_filter, build_text_filter
from .models import (
    ImageWatermarkConfig,
    TextWatermarkConfig,
    WatermarkConfig,
    WatermarkResult,
)

logger = logging.getLogger(__name__)


# Browser-safe H.264/AAC baseline
COMPAT_CODEC_ARGS: List[str] = [
    "-c:v", "libx264",
    "-crf", "22",
    "-preset", "veryfast",
    "-pix_fmt", "yuv420p",
    "-movflags", "+faststart",
    "-c:a", "aac",
    "-b:a", "128k",
]

# Video is re-encoded by the filter graph anyway; audio is copied as-is
LIGHT_CODEC_ARGS: List[str] = ["-c:a", "copy"]

# Dense grids on 4K frames exceed the per-argument limit of execve (128 KiB)
FILTER_SCRIPT_SUFFIX = ".filter"


def filter_script_path(output_path: str) -> Path:
    """Filter script location for an output: beside it, same name plus suffix."""
    output = Path(output_path)
    return output.with_name(f"{output.name}{FILTER_SCRIPT_SUFFIX}")


def build_text_args(
    input_path: str,
    output_path: str,
    filter_script: Path,
) -> List[str]:
    """Argument vector for a text watermark whose drawtext chain is in filter_script."""
    return [
        "-i", str(input_path),
        "-filter_script:v", str(filter_script),
        "-codec:a", "copy",
        "-y",
        str(output_path),
    ]


def build_image_args(
    input_path: str,
    output_path: str,
    config: ImageWatermarkConfig,
) -> List[str]:
    """Argument vector for an image watermark."""
    codec_args = COMPAT_CODEC_ARGS if config.compatibility else LIGHT_CODEC_ARGS
    return [
        "-i", str(input_path),
        "-i", str(config.image_path),
        "-filter_complex", build_overlay_filter(config.position, config.opacity, config.scale),
        "-map", "[out]",
        "-map", "0:a?",
        *codec_args,
        "-y",
        str(output_path),
    ]


class WatermarkEngine:
    """
    Applies text or image watermarks through the Encoder interface.
    """

    def __init__(
        self,
        encoder: Encoder,
        timeout: Optional[float] = 600.0,
        probe_timeout: Optional[float] = 30.0,
    ):
        self.encoder = encoder
        self.timeout = timeout
        self.probe_timeout = probe_timeout

    def apply(
        self,
        input_path: str,
        output_path: str,
        config: WatermarkConfig,
        frame_size: Optional[Tuple[int, int]] = None,
    ) -> WatermarkResult:
        """
        Watermark input_path into output_path.

        Image mode is used when config is an ImageWatermarkConfig,
        text mode otherwise.

        Args:
            input_path: Source video (not modified)
            output_path: Destination for the watermarked copy
            config: Text or image configuration
            frame_size: Known (width, height) of the source, if any

        Returns:
            WatermarkResult
        """
        if isinstance(config, ImageWatermarkConfig):
            return self.apply_image(input_path, output_path, config)
        return self.apply_text(input_path, output_path, config, frame_size)

    def apply_text(
        self,
        input_path: str,
        output_path: str,
        config: TextWatermarkConfig,
        frame_size: Optional[Tuple[int, int]] = None,
    ) -> WatermarkResult:
        """Tile (or place) a text watermark. Audio is stream-copied."""
        started = time.monotonic()
        error = self._check_paths(input_path, output_path)
        if error:
            return WatermarkResult(success=False, error=error)

        script = filter_script_path(output_path)
        try:
            script.parent.mkdir(parents=True, exist_ok=True)
            script.write_text(build_text_filter(config, frame_size), encoding="utf-8")
        except OSError as e:
            return WatermarkResult(success=False, error=f"Cannot write filter script: {e}")

        args = build_text_args(input_path, output_path, script)
        logger.info(
            f"[Watermark] Text ({config.position.value}) {Path(input_path).name} "
            f"-> {output_path}"
        )
        try:
            return self._run(args, output_path, started)
        finally:
            script.unlink(missing_ok=True)

    def apply_image(
        self,
        input_path: str,
        output_path: str,
        config: ImageWatermarkConfig,
    ) -> WatermarkResult:
        """Composite an image watermark (full-frame or positioned logo)."""
        started = time.monotonic()
        error = self._check_paths(input_path, output_path)
        if error:
            return WatermarkResult(success=False, error=error)

        if not Path(config.image_path).is_file():
            return WatermarkResult(
                success=False,
                error=f"Watermark image not found: {config.image_path}",
            )

        try:
            metadata = probe_video(input_path, self.encoder, timeout=self.probe_timeout)
        except MediaError as e:
            return WatermarkResult(success=False, error=str(e))

        if metadata.width <= 0 or metadata.height <= 0:
            return WatermarkResult(
                success=False,
                error=f"Could not determine video resolution of {input_path}",
            )

        args = build_image_args(input_path, output_path, config)
        logger.info(
            f"[Watermark] Image ({config.position.value}, {metadata.resolution}) "
            f"{Path(input_path).name} -> {output_path}"
        )
        return self._run(args, output_path, started)

    def _run(self, args: List[str], output_path: str, started: float) -> WatermarkResult:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self.encoder.run_ffmpeg(args, timeout=self.timeout)
        except EncoderError as e:
            logger.error(f"[Watermark] Failed: {e}")
            return WatermarkResult(
                success=False,
                error=str(e),
                duration_seconds=time.monotonic() - started,
            )

        if not Path(output_path).is_file():
            return WatermarkResult(
                success=False,
                error="Output file was not created",
                duration_seconds=time.monotonic() - started,
            )

        return WatermarkResult(
            success=True,
            output_path=str(output_path),
            duration_seconds=time.monotonic() - started,
        )

    @staticmethod
    def _check_paths(input_path: str, output_path: str) -> Optional[str]:
        source = Path(input_path)
        if not source.is_file():
            return f"Input file not found: {input_path}"
        if source.resolve() == Path(output_path).resolve():
            return "Output path must differ from the input path"
        return None

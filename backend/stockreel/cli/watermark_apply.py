"""
stockreel-watermark: standalone image watermark tool.

Applies a PNG logo to one video or every video in a directory and,
optionally, writes a watermarked thumbnail next to each output.

Outputs (per input <stem>):
- <output>/<stem>_wm.mp4
- <output>/<stem>_thumb_wm.jpg (with --thumb)

Exit Codes:
===========
- 0: Every file was watermarked
- 1: Invalid arguments or nothing to process
- 2: At least one file failed
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..encoding.base import Encoder
from ..encoding.errors import EncoderError
from ..encoding.ffmpeg import FFmpegEncoder
from ..encoding.thumbnails import ThumbnailGenerator, composite_logo
from ..watermark.engine import WatermarkEngine
from ..watermark.models import ImagePosition, ImageWatermarkConfig
from .common import CLIError, clamp, configure_logging

logger = logging.getLogger(__name__)


VIDEO_EXTENSIONS = {".mp4", ".mov", ".avi", ".mkv", ".webm"}

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_PARTIAL = 2

POSITION_CHOICES = [p.value for p in ImagePosition if p != ImagePosition.FULL]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stockreel-watermark",
        description="Apply a PNG watermark to a video or a directory of videos",
    )
    parser.add_argument("--input", help="Video file or directory")
    parser.add_argument("--output", default="./watermarked", help="Output directory")
    parser.add_argument("--wm", help="PNG watermark image")
    parser.add_argument(
        "--pos",
        default=ImagePosition.BOTTOM_RIGHT.value,
        choices=POSITION_CHOICES,
        help="Logo position",
    )
    parser.add_argument("--opacity", type=float, default=0.8, help="Logo opacity (0-1)")
    parser.add_argument(
        "--wm-scale",
        type=float,
        default=0.2,
        help="Logo width as a fraction of the frame width (0.01-1)",
    )
    parser.add_argument("--thumb", action="store_true", help="Also write a watermarked thumbnail")
    parser.add_argument("--thumb-time", type=float, default=0.0, help="Thumbnail offset in seconds")
    parser.add_argument(
        "--compat",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Transcode to a browser-safe baseline (default: on)",
    )
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    return parser


def collect_inputs(source: Path) -> List[Path]:
    """
    Videos to process: the file itself, or the directory's videos sorted by name.

    Raises:
        CLIError: If the path does not exist or holds no videos
    """
    if source.is_file():
        return [source]
    if not source.is_dir():
        raise CLIError(f"Input not found: {source}")

    videos = sorted(
        p for p in source.iterdir()
        if p.is_file() and p.suffix.lower() in VIDEO_EXTENSIONS
    )
    if not videos:
        raise CLIError(f"No video files found in {source}")
    return videos


def watermark_thumbnail(
    generator: ThumbnailGenerator,
    video: Path,
    output_dir: Path,
    config: ImageWatermarkConfig,
    offset: float,
) -> Path:
    """
    Grab a full-size frame from the source and place the logo on it.

    Raises:
        EncoderError: If the frame cannot be extracted
        OSError: If the images cannot be read or written
    """
    frame = output_dir / f"{video.stem}_frame.jpg"
    target = output_dir / f"{video.stem}_thumb_wm.jpg"
    generator.generate(str(video), str(frame), offset=offset)
    try:
        composite_logo(
            frame,
            Path(config.image_path),
            target,
            config.position.value,
            config.opacity,
            config.scale,
        )
    finally:
        frame.unlink(missing_ok=True)
    return target


def main(argv: Optional[List[str]] = None, encoder: Optional[Encoder] = None) -> int:
    """
    Run the tool.

    Args:
        argv: Arguments (sys.argv[1:] when None)
        encoder: Encoder to use (FFmpegEncoder when None)

    Returns:
        Exit code
    """
    args = build_parser().parse_args(argv)

    try:
        configure_logging(args.log_level)
        if not args.input or not args.wm:
            raise CLIError("--input and --wm are required")
        if not Path(args.wm).is_file():
            raise CLIError(f"Watermark image not found: {args.wm}")
        videos = collect_inputs(Path(args.input))
    except CLIError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE

    config = ImageWatermarkConfig(
        image_path=args.wm,
        position=ImagePosition(args.pos),
        opacity=clamp(args.opacity, 0.0, 1.0),
        scale=clamp(args.wm_scale, 0.01, 1.0),
        compatibility=args.compat,
    )

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    encoder = encoder or FFmpegEncoder()
    engine = WatermarkEngine(encoder)
    thumbnails = ThumbnailGenerator(encoder, output_dir, size=None)

    failed = 0
    for video in videos:
        target = output_dir / f"{video.stem}_wm.mp4"
        result = engine.apply_image(str(video), str(target), config)
        if not result.success:
            failed += 1
            print(f"FAILED {video.name}: {result.error}", file=sys.stderr)
            continue
        print(f"OK {video.name} -> {target}")

        if args.thumb:
            try:
                thumb = watermark_thumbnail(thumbnails, video, output_dir, config, args.thumb_time)
            except (EncoderError, OSError) as e:
                failed += 1
                print(f"FAILED {video.name} thumbnail: {e}", file=sys.stderr)
                continue
            print(f"OK {video.name} thumbnail -> {thumb}")

    logger.info(f"[Watermark] {len(videos) - failed}/{len(videos)} succeeded")
    return EXIT_PARTIAL if failed else EXIT_OK


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

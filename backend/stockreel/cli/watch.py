"""
stockreel-watch: category folder watch runner.

Watches a root whose first-level subfolders name categories
(beauty/, fitness/, 美容/, ...), runs every discovered video through the
ingestion pipeline and publishes it.

Exit Codes:
===========
- 0: Stopped by the operator
- 1: Invalid arguments or configuration
"""

import argparse
import logging
import sys
import threading
from typing import List, Optional, Tuple

from ..config import ConfigError, PipelineConfig, from_env, load_config
from ..encoding.base import Encoder
from ..encoding.ffmpeg import FFmpegEncoder
from ..jobs.events import EventKind, IngestionEvent, Subscription
from ..jobs.pipeline import IngestionPipeline
from ..jobs.queue import IngestionQueue, QueueWorker
from ..publishing.storage import VideoStore
from ..watchfolders.errors import WatchFolderError
from ..watchfolders.watcher import DirectoryWatcher
from .common import CLIError, clamp, configure_logging, parse_folder_map

logger = logging.getLogger(__name__)


DEFAULT_ROOT = "./uploads/categories"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stockreel-watch",
        description="Watch category folders and ingest new short-form videos",
    )
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--root", help=f"Watch root (default: {DEFAULT_ROOT})")
    parser.add_argument("--processed", help="Folder for successfully processed sources")
    parser.add_argument("--failed", help="Folder for failed sources")
    parser.add_argument("--watermark", help="Text watermark preset name")
    parser.add_argument("--wm-image", help="PNG watermark image (enables image mode)")
    parser.add_argument("--wm-opacity", type=float, help="Image watermark opacity (0-1)")
    parser.add_argument(
        "--map",
        help="Extra folder mappings, e.g. 'skin:beauty,gym:fitness'",
    )
    parser.add_argument("--no-watermark", action="store_true", help="Do not watermark")
    parser.add_argument(
        "--delete-original",
        action="store_true",
        help="Delete sources after processing instead of moving them",
    )
    parser.add_argument("--no-upload", action="store_true", help="Process without publishing")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    return parser


def build_config(args: argparse.Namespace) -> PipelineConfig:
    """
    Configuration from file, environment and flags (flags win).

    Category-from-subfolder is always on for this runner.

    Raises:
        ConfigError: If the file or environment is invalid
        CLIError: If a flag is invalid
    """
    config = from_env(load_config(args.config))

    watcher_updates = {"category_from_subfolder": True}
    if args.root:
        watcher_updates["watch_folder"] = args.root
    elif not args.config:
        watcher_updates["watch_folder"] = DEFAULT_ROOT
    if args.processed:
        watcher_updates["processed_folder"] = args.processed
    if args.failed:
        watcher_updates["failed_folder"] = args.failed
    if args.map:
        watcher_updates["category_folder_map"] = {
            **config.watcher.category_folder_map,
            **parse_folder_map(args.map),
        }

    watermark_updates = {}
    if args.no_watermark:
        watermark_updates["enabled"] = False
    if args.watermark:
        watermark_updates["preset"] = args.watermark
    if args.wm_image:
        watermark_updates["image_path"] = args.wm_image
    if args.wm_opacity is not None:
        watermark_updates["image_opacity"] = clamp(args.wm_opacity, 0.0, 1.0)

    root_updates = {}
    if args.delete_original:
        root_updates["delete_after_upload"] = True
    if args.no_upload:
        root_updates["auto_upload"] = False

    data = config.model_dump()
    data["watcher"].update(watcher_updates)
    data["watermark"].update(watermark_updates)
    data.update(root_updates)

    try:
        return PipelineConfig.model_validate(data)
    except ValueError as e:
        raise ConfigError(f"Invalid arguments: {e}") from e


def log_event(event: IngestionEvent) -> None:
    """Event listener that narrates progress to the log."""
    name = event.item.file_name if event.item else "-"
    if event.kind == EventKind.PROGRESS:
        logger.info(f"[Watch] {name}: {event.stage}")
    elif event.kind == EventKind.ERROR:
        logger.error(f"[Watch] {name}: {event.error}")
    elif event.kind == EventKind.COMPLETE:
        category = event.item.classification.category.value if event.item and event.item.classification else "?"
        logger.info(f"[Watch] {name}: done ({category})")


def build_runtime(
    config: PipelineConfig,
    encoder: Optional[Encoder] = None,
    store: Optional[VideoStore] = None,
) -> Tuple[DirectoryWatcher, QueueWorker, Subscription]:
    """
    Wire pipeline, queue, worker and watcher (nothing is started).

    Raises:
        ConfigError: If uploads are enabled without storage credentials
    """
    if encoder is None:
        encoder = FFmpegEncoder(config.encoder.ffmpeg_path, config.encoder.ffprobe_path)
    pipeline = IngestionPipeline.from_config(config, encoder, store=store)
    queue = IngestionQueue(pipeline)
    worker = QueueWorker(queue)
    watcher = DirectoryWatcher(config.watcher, queue, on_enqueue=worker.notify)
    subscription = queue.events.subscribe(log_event)
    return watcher, worker, subscription


def main(argv: Optional[List[str]] = None, stop_event: Optional[threading.Event] = None) -> int:
    """
    Parse arguments and run until interrupted.

    Args:
        argv: Arguments (sys.argv[1:] when None)
        stop_event: Set to stop the runner (for embedding)

    Returns:
        Exit code
    """
    args = build_parser().parse_args(argv)

    try:
        configure_logging(args.log_level)
        config = build_config(args)
        watcher, worker, subscription = build_runtime(config)
    except (CLIError, ConfigError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    stop_event = stop_event or threading.Event()
    worker.start()
    try:
        watcher.start()
    except WatchFolderError as e:
        worker.stop()
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    logger.info(f"[Watch] Watching {config.watcher.watch_folder} (Ctrl+C to stop)")
    try:
        while not stop_event.wait(1.0):
            pass
    except KeyboardInterrupt:
        logger.info("[Watch] Interrupted, finishing current item")
    finally:
        watcher.stop()
        worker.stop()
        subscription.unsubscribe()

    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

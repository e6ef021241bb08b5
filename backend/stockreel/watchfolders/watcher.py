"""
Directory watcher.

Watches the watch root recursively with watchdog, waits for each new file
to stop growing, then enqueues it with its folder-derived category and
hashtags.

Design rules:
- Files already in the root at start are picked up by an initial scan
- Only supported video containers are considered; everything else is
  ignored with a debug log
- A path already in the queue is never enqueued twice
- Watch errors are logged; the watcher keeps running
- stop() closes the OS watch; in-flight processing is not interrupted
"""

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..classification.models import VIDEO_CATEGORIES
from ..config import WatcherConfig
from ..jobs.events import EventBus
from ..jobs.queue import IngestionQueue
from .errors import TagsManifestError, WatchFolderNotFoundError
from .models import DiscoveredFile
from .routing import derive_category_override, relative_to_root
from .scanner import FileScanner, is_supported
from .stability import FileStabilityChecker
from .tags import (
    TagRule,
    filename_tags,
    load_tags_manifest,
    manifest_tags,
    merge_tags,
    subfolder_tags,
)

logger = logging.getLogger(__name__)


class _WatchEventHandler(FileSystemEventHandler):
    """Forwards created/moved files to the watcher."""

    def __init__(self, watcher: "DirectoryWatcher"):
        super().__init__()
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.dest_path)

    def _forward(self, path) -> None:
        try:
            self._watcher.track(Path(path))
        except Exception as e:
            logger.error(f"[Watcher] Error handling {path}: {e}")
            self._watcher.report_error(f"Watch error for {path}: {e}")


class DirectoryWatcher:
    """
    Feeds newly written video files into the ingestion queue.

    Usage:
        watcher = DirectoryWatcher(config.watcher, queue, on_enqueue=worker.notify)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        config: WatcherConfig,
        queue: IngestionQueue,
        on_enqueue: Optional[Callable[[], None]] = None,
        stability: Optional[FileStabilityChecker] = None,
        events: Optional[EventBus] = None,
    ):
        self.config = config
        self.queue = queue
        self.on_enqueue = on_enqueue
        self.events = events or queue.events
        self.root = Path(config.watch_folder).resolve()
        self.stability = stability or FileStabilityChecker(
            threshold=config.stability_threshold,
            poll_interval=config.poll_interval,
        )
        self.scanner = FileScanner(exclude=self._excluded_dirs())
        self.tag_rules: List[TagRule] = []

        self._pending: Set[Path] = set()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._observer: Optional[Observer] = None
        self._stability_thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    @property
    def pending_paths(self) -> List[Path]:
        """Files seen but still waiting to become stable."""
        with self._lock:
            return sorted(self._pending)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def ensure_folders(self) -> None:
        """
        Create the watch root, output folders, temp folders and category
        subfolders. Safe to call repeatedly.
        """
        folders = [
            self.root,
            Path(self.config.processed_folder),
            Path(self.config.failed_folder),
            self.config.frames_dir,
            self.config.thumbnails_dir,
            self.config.watermarked_dir,
        ]

        if self.config.category_from_subfolder:
            names = list(self.config.category_folder_map) or [c.value for c in VIDEO_CATEGORIES]
            folders.extend(self.root / name for name in names)

        for folder in folders:
            folder.mkdir(parents=True, exist_ok=True)

    def load_manifest(self) -> None:
        """(Re)load the tags manifest; an unreadable manifest is logged and ignored."""
        try:
            self.tag_rules = load_tags_manifest(self.config.manifest_path)
        except TagsManifestError as e:
            logger.error(f"[Watcher] {e}")
            self.tag_rules = []

    def start(self) -> None:
        """
        Create folders, start watching and ingest files already present.

        No-op if already running.

        Raises:
            WatchFolderNotFoundError: If the root cannot be watched
        """
        if self.is_running:
            return

        self.ensure_folders()
        self.load_manifest()
        self._stop.clear()

        observer = Observer()
        try:
            observer.schedule(_WatchEventHandler(self), str(self.root), recursive=True)
        except OSError as e:
            raise WatchFolderNotFoundError(f"Cannot watch {self.root}: {e}") from e
        observer.start()
        self._observer = observer

        self._stability_thread = threading.Thread(
            target=self._stability_loop,
            daemon=True,
            name="stockreel-stability",
        )
        self._stability_thread.start()

        existing = self.scanner.scan(self.root)
        for path in existing:
            self.track(path)

        logger.info(f"[Watcher] Watching {self.root} ({len(existing)} existing file(s))")

    def stop(self) -> None:
        """Close the OS watch and stop the stability poller."""
        self._stop.set()

        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

        if self._stability_thread is not None:
            self._stability_thread.join(timeout=5)
            self._stability_thread = None

        self.stability.clear_all_tracking()
        logger.info(f"[Watcher] Stopped watching {self.root}")

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------

    def track(self, path: Path) -> bool:
        """
        Start waiting for a file to become stable.

        Returns:
            True if the file is now tracked, False if it was ignored
        """
        path = Path(path).resolve()

        if not is_supported(path):
            logger.debug(f"[Watcher] Ignoring unsupported file: {path}")
            return False

        if self.scanner.should_skip(path, self.root):
            return False

        if str(path) in self.queue:
            return False

        with self._lock:
            self._pending.add(path)
        return True

    def poll_once(self) -> List[Path]:
        """
        Run one stability pass over tracked files.

        Returns:
            Paths enqueued by this pass
        """
        with self._lock:
            candidates = list(self._pending)

        enqueued: List[Path] = []
        for path in candidates:
            check = self.stability.check_stability(path)

            if check.size_bytes is None:
                # Gone or unreadable
                self._forget(path)
                logger.debug(f"[Watcher] Dropped {path}: {check.reason}")
                continue

            if not check.is_stable:
                continue

            self._forget(path)
            if self._enqueue(path):
                enqueued.append(path)

        if enqueued and self.on_enqueue is not None:
            self.on_enqueue()
        return enqueued

    def describe(self, path: Path) -> DiscoveredFile:
        """Category override and hashtags for a file, from where it sits."""
        relative = relative_to_root(path, self.root)

        category_override = None
        if self.config.category_from_subfolder:
            category_override = derive_category_override(relative, self.config.category_folder_map)

        folder_tags: List[str] = []
        if self.config.hashtag_from_subfolders and relative is not None:
            folder_tags = subfolder_tags(relative)

        return DiscoveredFile(
            path=str(path),
            category_override=category_override,
            extra_tags=merge_tags(
                folder_tags,
                manifest_tags(self.tag_rules, path.name),
                filename_tags(path.name),
            ),
        )

    def report_error(self, message: str) -> None:
        self.events.error(None, message, stage="watch")

    def _enqueue(self, path: Path) -> bool:
        discovered = self.describe(path)
        added = self.queue.enqueue(
            discovered.path,
            category_override=discovered.category_override,
            extra_tags=discovered.extra_tags,
        )
        if added:
            override = discovered.category_override.value if discovered.category_override else "none"
            logger.info(
                f"[Watcher] Discovered {path.name} "
                f"(override: {override}, tags: {len(discovered.extra_tags)})"
            )
        return added

    def _forget(self, path: Path) -> None:
        with self._lock:
            self._pending.discard(path)
        self.stability.reset_tracking(path)

    def _stability_loop(self) -> None:
        while not self._stop.wait(self.stability.poll_interval):
            try:
                self.poll_once()
            except Exception as e:
                logger.error(f"[Watcher] Stability check failed: {e}")
                self.report_error(f"Stability check failed: {e}")

    def _excluded_dirs(self) -> List[Path]:
        candidates = [
            Path(self.config.processed_folder),
            Path(self.config.failed_folder),
            Path(self.config.temp_folder),
        ]
        excluded = []
        for folder in candidates:
            resolved = folder.resolve()
            if resolved == self.root:
                continue
            if self.root in resolved.parents:
                excluded.append(resolved)
        return excluded

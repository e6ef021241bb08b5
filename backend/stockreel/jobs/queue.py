"""
Ingestion queue and its single worker.

The queue is an insertion-ordered table keyed by file path. Exactly one
drain runs at a time; a second process_queue() call while one is active
returns immediately. Items are evicted once they reach a terminal state,
so a file re-dropped later is accepted again.

Design rules:
- enqueue() never starts processing by itself; the worker is notified
- Pipeline runs are serialized, including manual process_file() calls
- stop() lets the in-flight item reach a terminal state before returning
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from ..classification.models import VideoCategory
from .errors import QueueItemNotFoundError
from .models import ItemStatus, QueueItem, QueueStatus
from .pipeline import IngestionPipeline

logger = logging.getLogger(__name__)


# Seconds the worker sleeps between drains when nobody notifies it
WORKER_POLL_INTERVAL = 1.0


class IngestionQueue:
    """
    Path-keyed FIFO of pending files.

    Usage:
        queue = IngestionQueue(pipeline)
        queue.enqueue("/uploads/watch/beauty/serum.mp4", VideoCategory.BEAUTY)
        queue.process_queue()
    """

    def __init__(self, pipeline: IngestionPipeline):
        self.pipeline = pipeline
        self.events = pipeline.events
        self._items: Dict[str, QueueItem] = {}
        self._lock = threading.Lock()
        self._pipeline_lock = threading.Lock()
        self._processing = False

    def enqueue(
        self,
        file_path: str,
        category_override: Optional[VideoCategory] = None,
        extra_tags: Optional[List[str]] = None,
    ) -> bool:
        """
        Add a file as a pending item.

        Args:
            file_path: Path of the discovered file (the queue key)
            category_override: Category forced by folder mapping
            extra_tags: Hashtags from folders, manifest and file name

        Returns:
            False if the path is already queued, True otherwise
        """
        key = str(file_path)
        with self._lock:
            if key in self._items:
                logger.debug(f"[Queue] Already queued: {key}")
                return False
            self._items[key] = QueueItem.for_path(key, category_override, extra_tags)
            pending = self._count(ItemStatus.PENDING)

        logger.info(f"[Queue] Enqueued {key} ({pending} pending)")
        return True

    def process_queue(self, should_stop: Optional[Callable[[], bool]] = None) -> int:
        """
        Drain pending items in insertion order.

        Args:
            should_stop: Checked between items; the drain ends when it
                returns True

        Returns:
            Number of items processed by this call (0 if a drain was
            already running)
        """
        with self._lock:
            if self._processing:
                logger.debug("[Queue] Drain already running")
                return 0
            self._processing = True

        processed = 0
        try:
            while should_stop is None or not should_stop():
                item = self._next_pending()
                if item is None:
                    break
                self._run(item)
                self._evict(item.file_path)
                processed += 1
        finally:
            with self._lock:
                self._processing = False

        if processed:
            logger.info(f"[Queue] Drain finished, {processed} item(s) processed")
        return processed

    def process_file(
        self,
        file_path: str,
        category_override: Optional[VideoCategory] = None,
        extra_tags: Optional[List[str]] = None,
    ) -> QueueItem:
        """
        Process one file immediately, outside the queue table.

        Returns:
            The terminal item (COMPLETED or FAILED)
        """
        item = QueueItem.for_path(file_path, category_override, extra_tags)
        logger.info(f"[Queue] Manual processing of {item.file_path}")
        self._run(item)
        return item

    def get_queue_status(self) -> QueueStatus:
        with self._lock:
            items = [item.snapshot() for item in self._items.values()]
            is_processing = self._processing

        return QueueStatus(
            total=len(items),
            pending=sum(1 for item in items if item.status == ItemStatus.PENDING),
            processing=sum(1 for item in items if item.status == ItemStatus.PROCESSING),
            is_processing=is_processing,
            items=items,
        )

    def get_file_status(self, file_path: str) -> Optional[QueueItem]:
        """Snapshot of the item for a path, or None if it is not queued."""
        with self._lock:
            item = self._items.get(str(file_path))
            return item.snapshot() if item is not None else None

    def require_file_status(self, file_path: str) -> QueueItem:
        """
        Like get_file_status() but raises when absent.

        Raises:
            QueueItemNotFoundError: If the path is not queued
        """
        item = self.get_file_status(file_path)
        if item is None:
            raise QueueItemNotFoundError(str(file_path))
        return item

    def clear_queue(self) -> int:
        """
        Drop every pending item.

        The item being processed, if any, is left to finish.

        Returns:
            Number of items removed
        """
        with self._lock:
            pending = [key for key, item in self._items.items() if item.status == ItemStatus.PENDING]
            for key in pending:
                del self._items[key]

        logger.info(f"[Queue] Cleared {len(pending)} pending item(s)")
        return len(pending)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, file_path: object) -> bool:
        with self._lock:
            return str(file_path) in self._items

    def _run(self, item: QueueItem) -> None:
        with self._pipeline_lock:
            self.pipeline.process_item(item)

    def _next_pending(self) -> Optional[QueueItem]:
        with self._lock:
            for item in self._items.values():
                if item.status == ItemStatus.PENDING:
                    return item
        return None

    def _evict(self, file_path: str) -> None:
        with self._lock:
            self._items.pop(file_path, None)

    def _count(self, status: ItemStatus) -> int:
        return sum(1 for item in self._items.values() if item.status == status)


class QueueWorker:
    """
    Background thread that owns queue draining.

    Usage:
        worker = QueueWorker(queue)
        worker.start()
        queue.enqueue(path)
        worker.notify()
        ...
        worker.stop()
    """

    def __init__(self, queue: IngestionQueue, poll_interval: float = WORKER_POLL_INTERVAL):
        self.queue = queue
        self.poll_interval = poll_interval
        self._wake = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread. No-op if already running."""
        if self.running:
            return

        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            daemon=True,
            name="stockreel-queue-worker",
        )
        self._thread.start()
        logger.info("[Worker] Started")

    def notify(self) -> None:
        """Wake the worker to drain the queue."""
        self._wake.set()

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop after the in-flight item (if any) reaches a terminal state.

        Args:
            timeout: Seconds to wait for the thread (None waits indefinitely)
        """
        self._stop.set()
        self._wake.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("[Worker] Still finishing the current item")
            else:
                self._thread = None
        logger.info("[Worker] Stopped")

    def _loop(self) -> None:
        while not self._stop.is_set():
            self._wake.wait(self.poll_interval)
            self._wake.clear()
            if self._stop.is_set():
                break
            try:
                self.queue.process_queue(should_stop=self._stop.is_set)
            except Exception as e:
                logger.exception(f"[Worker] Drain aborted: {e}")

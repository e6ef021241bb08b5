"""
stockreel service: status API plus the watcher and worker it reports on.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .config import PipelineConfig
from .encoding.ffmpeg import FFmpegEncoder
from .jobs.pipeline import IngestionPipeline
from .jobs.queue import IngestionQueue, QueueWorker
from .monitoring import server as monitoring
from .watchfolders.watcher import DirectoryWatcher

logger = logging.getLogger(__name__)


def create_app(
    queue: IngestionQueue,
    watcher: Optional[DirectoryWatcher] = None,
    worker: Optional[QueueWorker] = None,
) -> FastAPI:
    """
    Build the FastAPI app around an existing queue.

    When a watcher or worker is given it is started with the app and
    stopped on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if worker is not None:
            worker.start()
        if watcher is not None:
            watcher.start()
        try:
            yield
        finally:
            if watcher is not None:
                watcher.stop()
            if worker is not None:
                worker.stop(timeout=30)

    app = FastAPI(title="stockreel", version=__version__, lifespan=lifespan)
    app.state.queue = queue
    app.state.watcher = watcher
    app.state.worker = worker
    app.include_router(monitoring.router)
    return app


def build_app(config: PipelineConfig) -> FastAPI:
    """
    Wire encoder, pipeline, queue, worker and watcher from configuration.

    Raises:
        ConfigError: If the configuration cannot produce a working pipeline
    """
    encoder = FFmpegEncoder(config.encoder.ffmpeg_path, config.encoder.ffprobe_path)
    pipeline = IngestionPipeline.from_config(config, encoder)
    queue = IngestionQueue(pipeline)
    worker = QueueWorker(queue)
    watcher = DirectoryWatcher(config.watcher, queue, on_enqueue=worker.notify)
    logger.info(f"[App] Watching {config.watcher.watch_folder}")
    return create_app(queue, watcher=watcher, worker=worker)

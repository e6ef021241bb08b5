"""
Pytest configuration for the stockreel test suite.
"""

import sys
from pathlib import Path

import pytest

# Add backend to Python path for test imports
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from stockreel.config import PipelineConfig, WatcherConfig
from stockreel.encoding.fake import FakeEncoder, build_probe_payload
from stockreel.publishing.storage import InMemoryVideoStore


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "e2e: marks tests as end-to-end (requires FFmpeg)"
    )


@pytest.fixture
def encoder() -> FakeEncoder:
    """Encoder answering every probe with a valid 1080x1920, 10s clip."""
    return FakeEncoder()


@pytest.fixture
def folders(tmp_path: Path) -> dict:
    """Watch/processed/failed/temp folders under tmp_path."""
    layout = {
        "watch": tmp_path / "watch",
        "processed": tmp_path / "processed",
        "failed": tmp_path / "failed",
        "temp": tmp_path / "temp",
    }
    for folder in layout.values():
        folder.mkdir(parents=True)
    return layout


@pytest.fixture
def config(folders: dict) -> PipelineConfig:
    """Pipeline configuration pointing at the tmp folders, uploads on."""
    return PipelineConfig(
        watcher=WatcherConfig(
            watch_folder=str(folders["watch"]),
            processed_folder=str(folders["processed"]),
            failed_folder=str(folders["failed"]),
            temp_folder=str(folders["temp"]),
        ),
    )


def make_video(folder: Path, name: str, content: bytes = b"fake-video-bytes") -> Path:
    """Write a placeholder video file (the FakeEncoder never decodes it)."""
    path = folder / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


def invalid_probe() -> dict:
    """Probe payload breaking the duration and resolution rules."""
    return build_probe_payload(width=640, height=360, duration=30.0)


class BrokenStore(InMemoryVideoStore):
    """In-memory store whose `broken` operations raise RuntimeError, as a buggy SDK would."""

    def __init__(self, broken=None, **kwargs):
        super().__init__(**kwargs)
        self.broken = set(broken or [])

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.broken:
            raise RuntimeError(f"{operation}: sdk bug")
        super()._maybe_fail(operation)

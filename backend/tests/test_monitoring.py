"""
Tests for the status API.
"""

import pytest
from fastapi.testclient import TestClient

from stockreel.jobs.pipeline import IngestionPipeline
from stockreel.jobs.queue import IngestionQueue
from stockreel.main import create_app
from stockreel.publishing.storage import InMemoryVideoStore

from conftest import make_video


@pytest.fixture
def queue(config, encoder) -> IngestionQueue:
    pipeline = IngestionPipeline.from_config(config, encoder, store=InMemoryVideoStore())
    return IngestionQueue(pipeline)


@pytest.fixture
def client(queue):
    with TestClient(create_app(queue)) as test_client:
        yield test_client


class TestMonitoringAPI:
    """Tests for /monitor endpoints."""

    def test_health(self, client):
        """Health reports no watcher or worker when none were given."""
        response = client.get("/monitor/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "watching": False, "worker_running": False}

    def test_queue_status(self, client, queue, folders):
        """Queued items are listed with counts."""
        queue.enqueue(str(make_video(folders["watch"], "clip.mp4")))

        body = client.get("/monitor/queue").json()

        assert body["total"] == 1
        assert body["pending"] == 1
        assert body["is_processing"] is False
        assert body["items"][0]["file_name"] == "clip.mp4"
        assert body["items"][0]["status"] == "pending"

    def test_queue_item(self, client, queue, folders):
        """Single items are looked up by path; unknown paths are 404."""
        path = str(make_video(folders["watch"], "clip.mp4"))
        queue.enqueue(path)

        assert client.get("/monitor/queue/item", params={"path": path}).json()["file_path"] == path
        assert client.get("/monitor/queue/item", params={"path": "/nope.mp4"}).status_code == 404

    def test_clear_queue(self, client, queue, folders):
        """DELETE drops pending items."""
        queue.enqueue(str(make_video(folders["watch"], "a.mp4")))
        queue.enqueue(str(make_video(folders["watch"], "b.mp4")))

        response = client.delete("/monitor/queue")

        assert response.json() == {"removed": 2}
        assert len(queue) == 0

    def test_process_and_events(self, client, folders):
        """Manual processing returns the terminal item and records events."""
        path = str(make_video(folders["watch"], "fitness_run.mp4"))

        item = client.post("/monitor/process", json={"path": path, "extra_tags": ["#run"]}).json()
        events = client.get("/monitor/events", params={"limit": 3}).json()["events"]

        assert item["status"] == "completed"
        assert item["classification"]["category"] == "fitness"
        assert len(events) == 3
        assert events[-1]["kind"] == "complete"

    def test_process_missing_file(self, client, folders):
        """Processing a missing file is 404."""
        response = client.post("/monitor/process", json={"path": str(folders["watch"] / "x.mp4")})

        assert response.status_code == 404

    def test_process_invalid_override(self, client, folders):
        """Unknown categories are rejected by validation."""
        path = str(make_video(folders["watch"], "clip.mp4"))

        response = client.post("/monitor/process", json={"path": path, "category_override": "sports"})

        assert response.status_code == 422

import pytest
from fastapi.testclient import TestClient

from audiograb import dependencies as deps
from audiograb.download_queue import DownloadQueue
from audiograb.web.api import get_queue
from audiograb.web.app import app
from conftest import DummyDownloader


@pytest.fixture
def queue():
    # dispatch thread is not started, so jobs stay queued
    return DownloadQueue(max_concurrent=2, downloader=DummyDownloader(), poll_interval=0.01)


@pytest.fixture
def client(queue):
    app.dependency_overrides[get_queue] = lambda: queue
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_add_and_list_downloads(client):
    resp = client.post(
        "/api/downloads",
        json={"urls": "https://youtu.be/a\nhttps://youtu.be/b", "format": "flac", "quality": "low"},
    )
    assert resp.status_code == 200
    ids = resp.json()["ids"]
    assert len(ids) == 2

    listed = client.get("/api/downloads").json()
    assert [j["id"] for j in listed] == ids
    assert listed[0]["format"] == "flac"
    assert listed[0]["quality"] == "low"
    assert listed[0]["status"] == "queued"
    assert listed[0]["progress"] == 0.0

    one = client.get(f"/api/downloads/{ids[1]}").json()
    assert one["url"] == "https://youtu.be/b"


def test_add_download_validation_error(client, queue):
    resp = client.post("/api/downloads", json={"urls": "https://vimeo.com/1"})
    assert resp.status_code == 400
    assert "Invalid YouTube URLs" in resp.json()["detail"]
    assert queue.list_all() == []


def test_add_download_rejects_unknown_format(client, queue):
    resp = client.post("/api/downloads", json={"urls": "https://youtu.be/a", "format": "wma"})
    assert resp.status_code == 422
    assert queue.list_all() == []


def test_cancel_download(client):
    job_id = client.post("/api/downloads", json={"urls": "https://youtu.be/a"}).json()["ids"][0]
    assert client.delete(f"/api/downloads/{job_id}").json() == {"cancelled": True}
    assert client.delete(f"/api/downloads/{job_id}").status_code == 404
    assert client.get(f"/api/downloads/{job_id}").status_code == 404
    assert client.get("/api/downloads").json() == []


def test_dependencies_endpoints(client, monkeypatch):
    monkeypatch.setattr(deps, "is_tool_available", lambda binary, flag="--version": True)
    assert client.get("/api/dependencies").json() == {
        "yt_dlp_installed": True,
        "ffmpeg_installed": True,
        "all_installed": True,
    }
    guide = client.get("/api/dependencies/install-guide").json()
    assert set(guide) == {"platform", "yt_dlp_command", "ffmpeg_command", "notes"}


def test_health(client):
    client.post("/api/downloads", json={"urls": "https://youtu.be/a"})
    assert client.get("/api/health").json() == {"status": "ok", "active": 0, "pending": 1}

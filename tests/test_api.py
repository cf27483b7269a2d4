"""
Service Tests
=============

Tests for the FastAPI endpoints, using the synthetic source backend.
"""

import time

import pytest
from fastapi.testclient import TestClient


TERMINAL = {"idle", "completed", "error"}


@pytest.fixture
def client(monkeypatch):
    """Provide a TestClient running the app with the synthetic backend."""
    from ascii_video import main
    from ascii_video.config import settings

    monkeypatch.setattr(settings.source, "backend", "synthetic")
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture
def slow_client(monkeypatch):
    """Provide a TestClient whose sources take ~1.5s to convert."""
    from ascii_video import main
    from ascii_video.source.synthetic import SyntheticVideoSource

    async def slow_factory(data, filename):
        return SyntheticVideoSource(duration=10.0, seek_delay=0.01)

    monkeypatch.setattr(main, "create_source_factory", lambda config: slow_factory)
    with TestClient(main.app) as test_client:
        yield test_client


def _wait_for(client, job_id, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        body = client.get(f"/jobs/{job_id}").json()
        if body["status"] in TERMINAL:
            return body
        time.sleep(0.02)
    raise AssertionError(f"Job {job_id} did not finish within {timeout}s")


def _start(client, **params):
    params.setdefault("filename", "clip.mp4")
    response = client.post("/jobs", params=params, content=b"fake-video-bytes")
    assert response.status_code == 202
    return response.json()["job_id"]


class TestServiceInfo:
    """Tests for informational endpoints."""

    def test_root(self, client):
        """Verify service information is returned."""
        body = client.get("/").json()
        assert body["status"] == "running"
        assert body["source_backend"] == "synthetic"

    def test_health(self, client):
        """Verify the liveness probe."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_presets(self, client):
        """Verify the named ramps are listed."""
        body = client.get("/presets").json()
        assert set(body) == {"simple", "standard", "extended"}


class TestJobEndpoints:
    """Tests for the job lifecycle over HTTP."""

    def test_convert_and_fetch_result(self, client):
        """Verify a job completes and its result follows the player contract."""
        job_id = _start(client, width=8)
        status = _wait_for(client, job_id)

        assert status["status"] == "completed"
        assert status["frames"] == 30

        result = client.get(f"/jobs/{job_id}/result").json()
        assert result["fps"] == 15
        assert len(result["frames"]) == 30
        frame = result["frames"][0]
        assert frame["width"] == 8
        assert frame["height"] == 3
        assert len(frame["characters"]) == len(frame["colors"]) == 24
        assert frame["colors"][0].startswith("rgb(")

    def test_render_frame(self, client):
        """Verify a frame can be rendered as plain text and HTML."""
        job_id = _start(client, width=8)
        _wait_for(client, job_id)

        text = client.get(f"/jobs/{job_id}/frames/0").text
        assert [len(row) for row in text.split("\n")] == [8, 8, 8]

        html = client.get(f"/jobs/{job_id}/frames/0", params={"format": "html"})
        assert html.headers["content-type"].startswith("text/html")
        assert html.text.count("<span") == 24

        assert client.get(f"/jobs/{job_id}/frames/99").status_code == 404

    def test_synthetic_source_has_no_audio(self, client):
        """Verify the audio endpoint reports a missing track."""
        job_id = _start(client, width=8)
        _wait_for(client, job_id)
        assert client.get(f"/jobs/{job_id}/audio").status_code == 404

    def test_rejected_upload(self, client):
        """Verify an unsupported file type is a 400."""
        response = client.post("/jobs", params={"filename": "clip.mov"}, content=b"data")
        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["error"]

    def test_invalid_width(self, client):
        """Verify width outside 1..400 is rejected by validation."""
        response = client.post("/jobs", params={"width": 0}, content=b"data")
        assert response.status_code == 422

    def test_unknown_job(self, client):
        """Verify unknown ids are a 404."""
        assert client.get("/jobs/missing").status_code == 404
        assert client.post("/jobs/missing/cancel").status_code == 404
        assert client.get("/jobs/missing/result").status_code == 404

    def test_delete_job(self, client):
        """Verify a deleted job and its result are gone."""
        job_id = _start(client, width=8)
        _wait_for(client, job_id)

        assert client.delete(f"/jobs/{job_id}").status_code == 204
        assert client.get(f"/jobs/{job_id}").status_code == 404
        assert client.get(f"/jobs/{job_id}/result").status_code == 404
        assert client.delete(f"/jobs/{job_id}").status_code == 404

    def test_cancel(self, slow_client):
        """Verify a cancelled job returns to idle and has no result."""
        job_id = _start(slow_client, width=8)
        time.sleep(0.1)

        response = slow_client.post(f"/jobs/{job_id}/cancel")
        assert response.status_code == 200

        status = _wait_for(slow_client, job_id)
        assert status["status"] == "idle"
        assert slow_client.get(f"/jobs/{job_id}/result").status_code == 409


class TestStatusStream:
    """Tests for the status WebSocket."""

    def test_stream_until_completed(self, client):
        """Verify status messages are pushed until the job completes."""
        job_id = _start(client, width=8)

        messages = []
        with client.websocket_connect(f"/ws/jobs/{job_id}") as websocket:
            while True:
                message = websocket.receive_json()
                messages.append(message)
                if message["status"] in TERMINAL:
                    break

        assert messages[-1]["status"] == "completed"
        assert messages[-1]["job_id"] == job_id

    def test_stream_unknown_job(self, client):
        """Verify an unknown job id yields an error message."""
        with client.websocket_connect("/ws/jobs/missing") as websocket:
            assert "error" in websocket.receive_json()

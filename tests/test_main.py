"""
Service Tests
=============

Tests for the FastAPI endpoints with the mock detector.
"""

import pytest
from fastapi.testclient import TestClient

from jewelry_overlay import main
from jewelry_overlay.main import app
from jewelry_overlay.models.landmarks import LandmarkSet
from jewelry_overlay.models.placement import Size
from jewelry_overlay.pipeline import DetectionResult


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main.settings.capture, "url", "ws://127.0.0.1:9/ws/camera")
    monkeypatch.setattr(main.settings.detection, "backend", "mock")
    with TestClient(app) as test_client:
        yield test_client


class TestEndpoints:
    """Tests for HTTP endpoints."""

    def test_root(self, client):
        body = client.get("/").json()
        assert body["service"] == "JewelryOverlay"
        assert body["detection_backend"] == "mock"

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_metrics(self, client):
        body = client.get("/metrics").json()
        assert "session" in body
        assert body["session"]["encoder"]["frames_encoded"] == 0

    def test_overlay_without_result(self, client):
        body = client.get("/overlay", params={"width": 1080, "height": 1920}).json()

        assert body["frame_id"] == -1
        assert body["placements"] == []

    def test_overlay_with_result(self, client, face_points):
        main.get_session().cell.publish(
            DetectionResult(
                frame_id=9,
                frame_size=Size(640, 480),
                landmark_sets=(LandmarkSet.from_points(face_points),),
            )
        )

        body = client.get("/overlay", params={"width": 1080, "height": 1920, "debug": True}).json()

        assert body["frame_id"] == 9
        assert len(body["placements"]) == 3
        assert body["transform"]["scale"] == pytest.approx(1.6875)
        assert len(body["debug"]["boxes"]) == 1

    def test_ready_with_result(self, client):
        main.get_session().cell.publish(
            DetectionResult(frame_id=1, frame_size=Size(640, 480))
        )
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["result_available"] is True

    @pytest.mark.parametrize("width", ["nan", "inf", "-inf"])
    def test_overlay_rejects_non_finite_size(self, client, face_points, width):
        main.get_session().cell.publish(
            DetectionResult(
                frame_id=9,
                frame_size=Size(640, 480),
                landmark_sets=(LandmarkSet.from_points(face_points),),
            )
        )

        response = client.get("/overlay", params={"width": width, "height": 1920})

        assert response.status_code == 422

    def test_overlay_png(self, client):
        response = client.get("/overlay.png", params={"width": 64, "height": 48})

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content[:8] == b"\x89PNG\r\n\x1a\n"

    def test_overlay_png_rejects_bad_size(self, client):
        assert client.get("/overlay.png", params={"width": 0, "height": 48}).status_code == 422


class TestOverlayStream:
    """Tests for the /ws/overlay WebSocket."""

    def test_pushes_after_viewport(self, client):
        with client.websocket_connect("/ws/overlay") as websocket:
            websocket.send_json({"width": 1080, "height": 1920})
            body = websocket.receive_json()

        assert body["viewport"] == {"width": 1080.0, "height": 1920.0}

    def test_non_finite_viewport_message(self, client):
        with client.websocket_connect("/ws/overlay") as websocket:
            websocket.send_json({"width": float("nan"), "height": 1920})
            body = websocket.receive_json()

        assert "error" in body

    def test_invalid_viewport_message(self, client):
        with client.websocket_connect("/ws/overlay") as websocket:
            websocket.send_json({"w": 1})
            body = websocket.receive_json()

        assert "error" in body

"""HTTP / WebSocket API 테스트."""

import inspect
import io
import logging

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def lut_dir(tmp_path, corners_cube_text):
    (tmp_path / "corners.cube").write_text(corners_cube_text, encoding="utf-8")
    (tmp_path / "broken.cube").write_text("0.1 0.2 0.3\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def client(lut_dir, monkeypatch):
    from backend.core.config import settings
    from backend.main import app

    monkeypatch.setattr(settings, "LUT_DIR", lut_dir)
    monkeypatch.setattr(settings, "DEFAULT_LUT", None)
    monkeypatch.setattr(settings, "DEVICE_NAME", "lutcam")
    with TestClient(app) as c:
        yield c


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

        data = client.get("/v1/health").json()
        assert data["status"] == "ok"
        assert "timestamp" in data

    def test_ready(self, client):
        data = client.get("/v1/health/ready").json()
        assert data["status"] == "ready"
        assert data["luts"] == 2


class TestLuts:
    def test_list(self, client):
        data = client.get("/v1/luts").json()
        assert data["active_lut"] is None
        by_name = {lut["name"]: lut for lut in data["luts"]}
        assert set(by_name) == {"broken", "corners"}
        assert by_name["corners"]["size"] == 2
        assert by_name["corners"]["entries"] == 8
        assert by_name["corners"]["loaded"] is True
        assert by_name["broken"]["loaded"] is False

    def test_get_unknown(self, client):
        response = client.get("/v1/luts/nope")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "LUT_NOT_FOUND"


class TestApplyFilter:
    def test_apply_raw_frame(self, client):
        response = client.post(
            "/v1/filters/apply",
            params={"width": 2, "height": 1, "lut": "corners"},
            content=bytes([255, 255, 255, 255, 0, 0]),
        )
        assert response.status_code == 200
        assert response.headers["x-lut"] == "corners"
        assert list(response.content) == [255, 255, 255, 85, 85, 85]

    def test_apply_color_mode(self, client):
        response = client.post(
            "/v1/filters/apply",
            params={"width": 1, "height": 1, "lut": "corners", "mode": "color"},
            content=bytes([255, 0, 0]),
        )
        assert response.status_code == 200
        assert list(response.content) == [255, 0, 0]

    def test_unknown_lut(self, client):
        response = client.post(
            "/v1/filters/apply",
            params={"width": 1, "height": 1, "lut": "nope"},
            content=bytes(3),
        )
        assert response.status_code == 404
        assert response.json() == {
            "error": {"code": "LUT_NOT_FOUND", "message": "LUT not found: nope"}
        }

    def test_no_lut_selected(self, client):
        response = client.post(
            "/v1/filters/apply", params={"width": 1, "height": 1}, content=bytes(3)
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "NO_LUT_SELECTED"

    def test_unloadable_lut(self, client):
        response = client.post(
            "/v1/filters/apply",
            params={"width": 1, "height": 1, "lut": "broken"},
            content=bytes(3),
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "LUT_LOAD_FAILED"

    def test_apply_image(self, client):
        from PIL import Image

        src = io.BytesIO()
        Image.new("RGB", (3, 2), (255, 0, 0)).save(src, format="PNG")

        response = client.post(
            "/v1/filters/apply-image",
            params={"lut": "corners"},
            content=src.getvalue(),
        )
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        with Image.open(io.BytesIO(response.content)) as out:
            assert out.size == (3, 2)
            assert out.getpixel((0, 0)) == (85, 85, 85)

    def test_apply_image_rejects_garbage(self, client):
        response = client.post(
            "/v1/filters/apply-image", params={"lut": "corners"}, content=b"not an image"
        )
        assert response.status_code == 415
        assert response.json()["error"]["code"] == "UNSUPPORTED_IMAGE"


class TestControlChannel:
    def test_ready_and_commands(self, client):
        with client.websocket_connect("/v1/control") as ws:
            assert ws.receive_text() == "lutcam Ready!"

            ws.send_text("PING")
            assert ws.receive_text() == "PONG"

            ws.send_text("SELECT_LUT corners")
            assert ws.receive_text() == "LUT_SELECTED corners"
            assert ws.receive_text() == "OK SELECT_LUT corners"

            ws.send_text("STATUS")
            assert ws.receive_text() == "STATUS lut=corners clients=1"

            status = client.get("/v1/control/status").json()
            assert status["connected"] is True
            assert status["clients"] == 1
            assert status["active_lut"] == "corners"

    def test_selected_lut_used_by_default(self, client):
        with client.websocket_connect("/v1/control") as ws:
            ws.receive_text()
            ws.send_text("SELECT_LUT corners")
            ws.receive_text()
            ws.receive_text()

        response = client.post(
            "/v1/filters/apply", params={"width": 1, "height": 1}, content=bytes([0, 0, 0])
        )
        assert response.status_code == 200
        assert response.headers["x-lut"] == "corners"
        assert list(response.content) == [0, 0, 0]

    def test_connection_edges_are_reported(self, client, caplog):
        caplog.set_level(logging.INFO, logger="backend.api.v1.control")

        with client.websocket_connect("/v1/control") as ws:
            ws.receive_text()
            ws.send_text("PING")
            assert ws.receive_text() == "PONG"
            assert "Control channel connected (1 clients)" in caplog.text

        status = client.get("/v1/control/status").json()
        assert status["connected"] is False
        assert status["clients"] == 0

    def test_handler_comes_from_app_state(self, client):
        from backend.api.dependencies import get_handler
        from backend.main import app

        class EchoHandler:
            async def on_connect(self, session, subscriber):
                session.attach(subscriber)
                await subscriber.send_text("echo ready")

            async def on_disconnect(self, session, subscriber):
                session.detach(subscriber)

            async def on_write(self, session, command):
                return command.upper()

        app.dependency_overrides[get_handler] = EchoHandler
        try:
            with client.websocket_connect("/v1/control") as ws:
                assert ws.receive_text() == "echo ready"
                ws.send_text("hi")
                assert ws.receive_text() == "HI"
        finally:
            app.dependency_overrides.clear()


class TestBlockingRoutes:
    """LUT 파일을 읽는 라우트는 이벤트 루프 밖(스레드풀)에서 실행된다."""

    def test_lut_reading_routes_are_sync(self):
        from backend.api.v1 import health, luts

        for route in (luts.list_luts, luts.get_lut, health.readiness_check):
            assert not inspect.iscoroutinefunction(route)

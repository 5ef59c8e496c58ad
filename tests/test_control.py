"""제어 채널(알림 디바운스, 세션, 명령 처리) 테스트."""

import asyncio

import pytest


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeSubscriber:
    def __init__(self, fail: bool = False):
        self.received: list[str] = []
        self.fail = fail

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionError("link lost")
        self.received.append(data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(clock):
    from backend.core.session import ControlSession, NotificationDebouncer

    return ControlSession(NotificationDebouncer(1.0, clock=clock), device_name="cam")


@pytest.fixture
def lut_storage(tmp_path, corners_cube_text):
    from backend.core.storage import LutStorage

    (tmp_path / "corners.cube").write_text(corners_cube_text, encoding="utf-8")
    (tmp_path / "broken.cube").write_text("no size\n", encoding="utf-8")
    return LutStorage(tmp_path)


class TestNotificationDebouncer:
    """같은 메시지 반복 억제 검증."""

    def test_window(self, clock):
        from backend.core.session import NotificationDebouncer

        debouncer = NotificationDebouncer(1.0, clock=clock)
        assert debouncer.should_send("A")
        clock.now += 0.5
        assert not debouncer.should_send("A")
        clock.now += 0.6
        assert debouncer.should_send("A")

    def test_messages_tracked_separately(self, clock):
        from backend.core.session import NotificationDebouncer

        debouncer = NotificationDebouncer(1.0, clock=clock)
        assert debouncer.should_send("A")
        assert debouncer.should_send("B")
        assert not debouncer.should_send("A")

    def test_reset(self, clock):
        from backend.core.session import NotificationDebouncer

        debouncer = NotificationDebouncer(1.0, clock=clock)
        debouncer.should_send("A")
        debouncer.reset("A")
        assert debouncer.should_send("A")


class TestControlSession:
    """세션 알림 전송 검증."""

    def test_duplicate_within_window_sent_once(self, session):
        sub = FakeSubscriber()
        session.attach(sub)
        assert asyncio.run(session.notify("LUT_APPLIED mono")) == 1
        assert asyncio.run(session.notify("LUT_APPLIED mono")) == 0
        assert sub.received == ["LUT_APPLIED mono"]

    def test_duplicate_after_window_sent_twice(self, session, clock):
        sub = FakeSubscriber()
        session.attach(sub)
        asyncio.run(session.notify("LUT_APPLIED mono"))
        clock.now += 1.5
        asyncio.run(session.notify("LUT_APPLIED mono"))
        assert sub.received == ["LUT_APPLIED mono"] * 2

    def test_broadcast_to_all_subscribers(self, session):
        a, b = FakeSubscriber(), FakeSubscriber()
        session.attach(a)
        session.attach(b)
        assert asyncio.run(session.notify("hello")) == 2
        assert a.received == b.received == ["hello"]

    def test_no_subscribers_does_not_consume_window(self, session):
        assert asyncio.run(session.notify("hello")) == 0
        sub = FakeSubscriber()
        session.attach(sub)
        assert asyncio.run(session.notify("hello")) == 1

    def test_failed_subscriber_is_dropped(self, session):
        good, bad = FakeSubscriber(), FakeSubscriber(fail=True)
        session.attach(good)
        session.attach(bad)
        assert asyncio.run(session.notify("hello")) == 1
        assert session.subscribers == [good]

    def test_connection_edges(self, session):
        sub = FakeSubscriber()
        assert session.check_status() is None
        session.attach(sub)
        assert session.connected
        assert session.check_status() == "connected"
        assert session.check_status() is None
        session.detach(sub)
        assert not session.connected
        assert session.check_status() == "disconnected"


class TestCommandHandler:
    """제어 명령 처리 검증."""

    def _run(self, handler, session, command):
        return asyncio.run(handler.on_write(session, command))

    def test_connect_sends_ready(self, session, lut_storage):
        from backend.core.commands import CommandHandler

        handler = CommandHandler(lut_storage)
        sub = FakeSubscriber()
        asyncio.run(handler.on_connect(session, sub))
        assert sub.received == ["cam Ready!"]
        assert session.connected
        asyncio.run(handler.on_disconnect(session, sub))
        assert not session.connected

    def test_basic_commands(self, session, lut_storage):
        from backend.core.commands import CommandHandler

        handler = CommandHandler(lut_storage)
        assert self._run(handler, session, "ping") == "PONG"
        assert self._run(handler, session, "   ") is None
        assert self._run(handler, session, "LIST_LUTS") == "LUTS broken,corners"
        assert self._run(handler, session, "STATUS") == "STATUS lut=- clients=0"
        assert self._run(handler, session, "REBOOT now") == "ERROR unknown command: REBOOT"

    def test_select_lut(self, session, lut_storage):
        from backend.core.commands import CommandHandler

        handler = CommandHandler(lut_storage)
        sub = FakeSubscriber()
        session.attach(sub)

        assert self._run(handler, session, "SELECT_LUT corners") == "OK SELECT_LUT corners"
        assert session.active_lut == "corners"
        assert sub.received == ["LUT_SELECTED corners"]

        assert self._run(handler, session, "SELECT_LUT nope") == "ERROR unknown LUT: nope"
        assert self._run(handler, session, "SELECT_LUT") == "ERROR SELECT_LUT requires a LUT name"
        assert self._run(handler, session, "SELECT_LUT ../etc/passwd").startswith("ERROR")
        assert session.active_lut == "corners"


class TestLutStorage:
    def test_resolve_and_load(self, lut_storage):
        assert lut_storage.resolve("corners") == lut_storage.lut_dir / "corners.cube"
        assert lut_storage.resolve("corners.cube") is not None
        assert lut_storage.resolve("missing") is None
        assert lut_storage.resolve("../corners") is None
        assert lut_storage.load("corners").size == 2
        assert lut_storage.load("broken").is_empty
        assert lut_storage.load("missing") is None

    def test_configured_size_cannot_exceed_cap(self, tmp_path):
        from backend.core.storage import LutStorage

        (tmp_path / "big.cube").write_text("LUT_3D_SIZE 64\n0.5 0.5 0.5\n", encoding="utf-8")
        storage = LutStorage(tmp_path, max_size=64)
        assert storage.cache.max_size == 33

        cube = storage.load("big")
        assert cube.size == 33
        assert len(cube) == 33**3

    def test_create_storage_uses_capped_size(self, tmp_path, monkeypatch):
        from backend.core.config import settings
        from backend.core.storage import create_storage

        monkeypatch.setattr(settings, "LUT_DIR", tmp_path)
        monkeypatch.setattr(settings, "MAX_LUT_SIZE", 64)
        assert create_storage().cache.max_size == 33

    def test_missing_directory(self, tmp_path):
        from backend.core.storage import LutStorage

        assert LutStorage(tmp_path / "nowhere").list_luts() == []

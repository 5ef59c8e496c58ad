import logging
import threading
import time
from typing import Callable, Optional

from .transport import Subscriber

logger = logging.getLogger(__name__)

# Stale debounce entries are pruned once the table grows past this
_PRUNE_THRESHOLD = 256


class NotificationDebouncer:
    """Suppress repeats of the same payload within a fixed window.

    Each distinct message is tracked on its own; a message is allowed when it
    has never been sent or its last accepted send is at least
    ``window_seconds`` old.
    """

    def __init__(self, window_seconds: float = 1.0, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_sent: dict[str, float] = {}
        self._lock = threading.Lock()

    def should_send(self, message: str) -> bool:
        now = self._clock()
        with self._lock:
            last = self._last_sent.get(message)
            if last is not None and now - last < self.window_seconds:
                return False
            self._last_sent[message] = now
            if len(self._last_sent) > _PRUNE_THRESHOLD:
                cutoff = now - self.window_seconds
                self._last_sent = {m: t for m, t in self._last_sent.items() if t > cutoff}
            return True

    def reset(self, message: Optional[str] = None):
        with self._lock:
            if message is None:
                self._last_sent.clear()
            else:
                self._last_sent.pop(message, None)


class ControlSession:
    """State of one control channel, owned by whoever runs the transport.

    Holds the connection flags, the subscriber list, the debounce
    bookkeeping and the currently selected LUT.
    """

    def __init__(self, debouncer: NotificationDebouncer, device_name: str = "lutcam"):
        self.device_name = device_name
        self.debouncer = debouncer
        self.subscribers: list[Subscriber] = []
        self.connected = False
        self.was_connected = False
        self.active_lut: Optional[str] = None

    @property
    def ready_message(self) -> str:
        return f"{self.device_name} Ready!"

    def attach(self, subscriber: Subscriber):
        if subscriber not in self.subscribers:
            self.subscribers.append(subscriber)
        self.connected = True
        logger.info(f"Control client connected ({len(self.subscribers)} total)")

    def detach(self, subscriber: Subscriber):
        if subscriber in self.subscribers:
            self.subscribers.remove(subscriber)
            logger.info(f"Control client disconnected ({len(self.subscribers)} left)")
        self.connected = bool(self.subscribers)

    async def notify(self, message: str) -> int:
        """Push a message to every subscriber.

        Returns the number of subscribers reached. Nothing is sent (and the
        debounce window is left untouched) when no client is connected.
        """
        if not self.subscribers:
            logger.info(f"No control clients connected. Skipping notification: {message}")
            return 0

        if not self.debouncer.should_send(message):
            logger.debug(f"Duplicate notification suppressed: {message}")
            return 0

        sent = 0
        for subscriber in list(self.subscribers):
            try:
                await subscriber.send_text(message)
                sent += 1
            except Exception as e:
                logger.warning(f"Dropping control client after failed send: {e}")
                self.detach(subscriber)

        logger.info(f"Notification sent: {message}")
        return sent

    def check_status(self) -> Optional[str]:
        """Report a connection edge since the last call.

        Returns "connected", "disconnected" or None when nothing changed.
        """
        if self.connected and not self.was_connected:
            self.was_connected = True
            return "connected"
        if not self.connected and self.was_connected:
            self.was_connected = False
            logger.info("All control clients gone, waiting for reconnect")
            return "disconnected"
        return None

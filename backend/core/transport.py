"""Control channel transport interfaces.

A transport backend (the WebSocket route, or any other link) owns the
connection and calls into a ControlCallbacks implementation. The LUT core is
never called by the transport directly; it is reached through on_write.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from .session import ControlSession


class Subscriber(Protocol):
    """Anything that can receive a pushed notification."""

    async def send_text(self, data: str) -> None: ...


class ControlCallbacks(ABC):
    """Capability interface every transport backend drives."""

    @abstractmethod
    async def on_connect(self, session: "ControlSession", subscriber: Subscriber) -> None:
        ...

    @abstractmethod
    async def on_disconnect(self, session: "ControlSession", subscriber: Subscriber) -> None:
        ...

    @abstractmethod
    async def on_write(self, session: "ControlSession", command: str) -> Optional[str]:
        """Handle one command. The return value, if any, is the direct reply."""

import logging
from typing import Optional

from .session import ControlSession
from .storage import LutStorage
from .transport import ControlCallbacks, Subscriber

logger = logging.getLogger(__name__)


class CommandHandler(ControlCallbacks):
    """Default control channel callbacks.

    Commands (case-insensitive verb, space separated argument):
        PING                -> PONG
        STATUS              -> STATUS lut=<name|-> clients=<n>
        LIST_LUTS           -> LUTS <name,name,...>
        SELECT_LUT <name>   -> OK SELECT_LUT <name>, broadcasts LUT_SELECTED <name>
    """

    def __init__(self, storage: LutStorage):
        self.storage = storage

    async def on_connect(self, session: ControlSession, subscriber: Subscriber) -> None:
        session.attach(subscriber)
        await subscriber.send_text(session.ready_message)

    async def on_disconnect(self, session: ControlSession, subscriber: Subscriber) -> None:
        session.detach(subscriber)

    async def on_write(self, session: ControlSession, command: str) -> Optional[str]:
        command = command.strip()
        if not command:
            return None

        logger.info(f"Received command: {command}")
        verb, _, arg = command.partition(" ")
        verb = verb.upper()
        arg = arg.strip()

        if verb == "PING":
            return "PONG"

        if verb == "STATUS":
            return f"STATUS lut={session.active_lut or '-'} clients={len(session.subscribers)}"

        if verb == "LIST_LUTS":
            return f"LUTS {','.join(self.storage.list_luts())}"

        if verb == "SELECT_LUT":
            if not arg:
                return "ERROR SELECT_LUT requires a LUT name"
            if not self.storage.exists(arg):
                return f"ERROR unknown LUT: {arg}"
            session.active_lut = arg
            await session.notify(f"LUT_SELECTED {arg}")
            return f"OK SELECT_LUT {arg}"

        logger.warning(f"Unknown command: {command}")
        return f"ERROR unknown command: {verb}"

from fastapi.requests import HTTPConnection

from backend.core.commands import CommandHandler
from backend.core.session import ControlSession
from backend.core.storage import LutStorage


def get_session(conn: HTTPConnection) -> ControlSession:
    """Dependency: the control session owned by this app instance."""
    return conn.app.state.session


def get_storage(conn: HTTPConnection) -> LutStorage:
    """Dependency: the LUT library."""
    return conn.app.state.storage


def get_handler(conn: HTTPConnection) -> CommandHandler:
    """Dependency: the control channel callbacks."""
    return conn.app.state.handler

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from backend.api.dependencies import get_handler, get_session
from backend.core.commands import CommandHandler
from backend.core.session import ControlSession
from backend.schemas import ControlStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _report_edge(session: ControlSession) -> None:
    edge = session.check_status()
    if edge is not None:
        logger.info(f"Control channel {edge} ({len(session.subscribers)} clients)")


@router.websocket("/control")
async def control_channel(
    websocket: WebSocket,
    session: ControlSession = Depends(get_session),
    handler: CommandHandler = Depends(get_handler),
):
    """Command/notification channel.

    Every text frame is one command; the direct reply goes back to the
    sender, notifications go to every connected client.
    """
    await websocket.accept()
    await handler.on_connect(session, websocket)
    _report_edge(session)
    try:
        while True:
            command = await websocket.receive_text()
            reply = await handler.on_write(session, command)
            if reply is not None:
                await websocket.send_text(reply)
    except WebSocketDisconnect as e:
        logger.debug(f"Control client closed the connection (code={e.code})")
    finally:
        await handler.on_disconnect(session, websocket)
        _report_edge(session)


@router.get("/control/status", response_model=ControlStatusResponse)
async def control_status(session: ControlSession = Depends(get_session)):
    return ControlStatusResponse(
        device_name=session.device_name,
        connected=session.connected,
        clients=len(session.subscribers),
        active_lut=session.active_lut,
        debounce_seconds=session.debouncer.window_seconds,
    )

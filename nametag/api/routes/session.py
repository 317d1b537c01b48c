"""WebSocket session endpoint: binary audio frames in, JSON events out."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from nametag import dependencies
from nametag.api.models import IdentityEvent, SessionEnded
from nametag.identity.models import ResolutionResult

logger = logging.getLogger(__name__)

router = APIRouter()

END_MESSAGE = "end"


class WebSocketPresenter:
    """Forwards identification events to the connected client."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.connected = True

    async def present(self, result: ResolutionResult) -> None:
        if not self.connected:
            return
        await self.websocket.send_json(IdentityEvent.from_result(result).model_dump(mode="json"))


@router.websocket("/ws/session")
async def session_socket(websocket: WebSocket) -> None:
    """Run one live session for the lifetime of the connection.

    Binary frames are raw 16-bit mono PCM. A text frame ``"end"`` ends the
    session gracefully and the server replies with a ``session_ended``
    message; a plain disconnect still triggers the final flush and summary.
    """
    await websocket.accept()
    session_id = websocket.query_params.get("session_id") or uuid.uuid4().hex
    presenter = WebSocketPresenter(websocket)
    session = dependencies.create_session(session_id, presenter=presenter)
    await session.start()
    logger.info("Session started", extra={"session_id": session_id})

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                presenter.connected = False
                break
            if message.get("bytes"):
                session.ingest(message["bytes"])
            elif (message.get("text") or "").strip().lower() == END_MESSAGE:
                break
    except WebSocketDisconnect:
        presenter.connected = False
    finally:
        outcome = await session.close()

    if presenter.connected:
        await websocket.send_json(SessionEnded.from_summary(outcome).model_dump(mode="json"))
        await websocket.close()

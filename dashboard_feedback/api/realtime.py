"""
WebSocket endpoint for live notification delivery.

Connect: ws://host/api/v1/ws?token=<jwt>

The socket joins the room of the user the token belongs to. Client messages:
    {"type": "join-room", "user_id": "<own id>"}  -> {"type": "joined", ...}
    {"type": "join-room", "user_id": "<other>"}   -> {"type": "error", ...}
    {"type": "ping"}                              -> {"type": "pong", ...}

Messages sent to client:
    {"type": "<event name>", "payload": {...}}
"""

import asyncio
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from ..core.security import user_id_from_token
from ..services.realtime import Connection, ConnectionHub, get_hub

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])

UNAUTHORIZED_CLOSE_CODE = 4001


async def _pump(websocket: WebSocket, connection: Connection) -> None:
    """Forward queued hub events to the socket."""
    while True:
        message = await connection.queue.get()
        await websocket.send_json(jsonable_encoder(message))


async def _listen(websocket: WebSocket, connection: Connection) -> None:
    """Answer client control messages until the client disconnects."""
    own_id = str(connection.user_id)
    while True:
        try:
            data: Any = await websocket.receive_json()
        except ValueError:
            await websocket.send_json({"type": "error", "payload": {"message": "Invalid message"}})
            continue

        message_type = data.get("type") if isinstance(data, dict) else None
        if message_type == "join-room":
            if str(data.get("user_id")) == own_id:
                await websocket.send_json({"type": "joined", "payload": {"user_id": own_id}})
            else:
                logger.warning(
                    f"Rejected join-room for user={data.get('user_id')} "
                    f"from connection of user={own_id}"
                )
                await websocket.send_json(
                    {"type": "error", "payload": {"message": "You can only join your own room"}}
                )
        elif message_type == "ping":
            await websocket.send_json({"type": "pong", "payload": {}})
        else:
            await websocket.send_json(
                {"type": "error", "payload": {"message": "Unknown message type"}}
            )


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    hub: Annotated[ConnectionHub, Depends(get_hub)],
    token: str = Query(default=""),
):
    """Authenticated per-user event stream."""
    user_id = user_id_from_token(token) if token else None
    if user_id is None:
        await websocket.close(code=UNAUTHORIZED_CLOSE_CODE, reason="Unauthorized")
        return

    await websocket.accept()
    connection = hub.join(user_id)
    await websocket.send_json({"type": "joined", "payload": {"user_id": str(user_id)}})

    tasks = {
        asyncio.create_task(_pump(websocket, connection)),
        asyncio.create_task(_listen(websocket, connection)),
    }
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning(f"Realtime connection for user={user_id} failed: {exc}")
    finally:
        # The endpoint itself may be cancelled while waiting
        for task in tasks:
            if not task.done():
                task.cancel()
        hub.leave(connection)

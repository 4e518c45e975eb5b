"""WebSocket endpoint: live request notifications for owner dashboards.

Each dashboard connects to /ws/restaurants/{restaurant_id}?token=JWT.
The handler:
1. Authenticates the JWT query param (close 4001)
2. Checks the restaurant exists and belongs to the caller (4004 / 4003)
3. Accepts, then joins the restaurant's group in the hub
4. Runs a writer (hub buffer → socket) and a reader (detects disconnect)
5. Leaves the hub when either side stops

This is a long-lived connection, one per restaurant per browser tab. The
database session is released before the loop starts so an idle dashboard
never pins a pooled connection.
"""

import asyncio
import uuid

import structlog
from fastapi import APIRouter, Depends, WebSocket
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.websockets import WebSocketState

from tablecall.auth.dependencies import identity_from_token
from tablecall.auth.jwt import TokenError
from tablecall.config import settings
from tablecall.db.engine import get_db
from tablecall.realtime.connection import Connection
from tablecall.realtime.hub import NotificationHub, get_hub
from tablecall.services.errors import ForbiddenError, NotFoundError, ServiceError
from tablecall.services.restaurant_service import RestaurantService

logger = structlog.get_logger()
router = APIRouter()

CLOSE_UNAUTHORIZED = 4001
CLOSE_FORBIDDEN = 4003
CLOSE_NOT_FOUND = 4004


@router.websocket("/ws/restaurants/{restaurant_id}")
async def restaurant_websocket(
    websocket: WebSocket,
    restaurant_id: str,
    db: AsyncSession = Depends(get_db),
    hub: NotificationHub = Depends(get_hub),
):
    # ── Authentication ──────────────────────────────────────
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=CLOSE_UNAUTHORIZED, reason="Authentication required")
        return
    try:
        identity = identity_from_token(token)
    except TokenError:
        await websocket.close(code=CLOSE_UNAUTHORIZED, reason="Invalid or expired token")
        return

    # ── Ownership ───────────────────────────────────────────
    try:
        rid = uuid.UUID(restaurant_id)
        await RestaurantService(db).get_owned_restaurant(rid, identity.user_id)
    except (ValueError, NotFoundError):
        await websocket.close(code=CLOSE_NOT_FOUND, reason="Restaurant not found")
        return
    except ForbiddenError:
        await websocket.close(code=CLOSE_FORBIDDEN, reason="Forbidden")
        return
    except ServiceError:
        await websocket.close(code=CLOSE_UNAUTHORIZED, reason="Invalid token subject")
        return
    finally:
        await db.close()

    # ── Connection accepted ─────────────────────────────────
    await websocket.accept()

    connection = Connection(
        str(rid),
        websocket=websocket,
        user_id=identity.user_id,
        buffer_size=settings.ws_send_buffer,
    )
    hub.join(connection)

    async def writer():
        """Drain the connection's buffer onto the socket."""
        async for message in connection.messages():
            await websocket.send_text(message)

    async def reader():
        """Wait for the client to go away. Inbound messages are ignored."""
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

    writer_task = asyncio.create_task(writer())
    reader_task = asyncio.create_task(reader())

    try:
        done, pending = await asyncio.wait(
            [writer_task, reader_task],
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.info(
                    "ws.transport_error",
                    connection_id=connection.id,
                    error=str(task.exception()),
                )
    finally:
        hub.leave(connection)
        if websocket.client_state == WebSocketState.CONNECTED:
            try:
                await websocket.close()
            except RuntimeError:
                # Socket already closed underneath us
                pass

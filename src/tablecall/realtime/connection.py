"""A single dashboard push connection.

Each connection owns a bounded anyio memory stream. The hub writes into
the send side without waiting; the connection's writer task drains the
receive side onto the WebSocket. Closing the send side ends the writer
once the already-buffered messages are flushed.
"""

import uuid
from typing import AsyncIterator, Optional

import anyio
from starlette.websockets import WebSocket


class Connection:
    """One live subscriber of one restaurant's events."""

    def __init__(
        self,
        restaurant_id: str,
        websocket: Optional[WebSocket] = None,
        user_id: Optional[str] = None,
        buffer_size: int = 256,
    ):
        self.id = str(uuid.uuid4())
        self.restaurant_id = str(restaurant_id)
        self.user_id = user_id
        self.websocket = websocket
        self._send, self._receive = anyio.create_memory_object_stream(
            max_buffer_size=buffer_size
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, message: str) -> bool:
        """Enqueue without blocking. False means full or already closed."""
        if self._closed:
            return False
        try:
            self._send.send_nowait(message)
        except (anyio.WouldBlock, anyio.ClosedResourceError, anyio.BrokenResourceError):
            return False
        return True

    def close(self) -> None:
        """Close the outbound buffer. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._send.close()

    async def messages(self) -> AsyncIterator[str]:
        """Yield queued messages until the buffer is closed and drained."""
        async with self._receive:
            async for message in self._receive:
                yield message

    def __repr__(self) -> str:
        return f"<Connection {self.id} restaurant={self.restaurant_id}>"

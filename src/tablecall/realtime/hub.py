"""Notification hub: fan-out of restaurant events to dashboards.

Delivery is best-effort and at-most-once. publish() serializes once,
snapshots the restaurant's subscribers and offers the message to each
without waiting. A subscriber whose buffer is full is evicted on the spot;
its dashboard has to reconnect and re-read the pending list.
"""

import json
from typing import Any, Protocol

import structlog
from pydantic import BaseModel
from starlette.requests import HTTPConnection

from tablecall.realtime.connection import Connection
from tablecall.realtime.registry import ConnectionRegistry

logger = structlog.get_logger()


class Publisher(Protocol):
    """What the request workflow needs from the hub: one fire-and-forget call."""

    def publish(self, restaurant_id: str, payload: Any) -> None:
        ...


def encode_payload(payload: Any) -> str:
    """Serialize a payload to the JSON text sent over the wire."""
    if isinstance(payload, BaseModel):
        return payload.model_dump_json()
    return json.dumps(payload)


class NotificationHub:
    """Connection registry + broadcast router."""

    def __init__(self, registry: ConnectionRegistry | None = None):
        self.registry = registry or ConnectionRegistry()

    # ─── Membership ───────────────────────────────────────

    def join(self, connection: Connection) -> None:
        self.registry.join(connection)

    def leave(self, connection: Connection) -> None:
        self.registry.leave(connection)

    def count_subscribers(self, restaurant_id: str) -> int:
        return self.registry.count_subscribers(restaurant_id)

    def stats(self) -> dict[str, int]:
        return self.registry.stats()

    # ─── Broadcast ────────────────────────────────────────

    def publish(self, restaurant_id: str, payload: Any) -> int:
        """Deliver a payload to every subscriber of a restaurant.

        Returns the number of subscribers the message was queued for.
        Never raises and never waits on a subscriber.
        """
        restaurant_id = str(restaurant_id)
        try:
            message = encode_payload(payload)
        except (TypeError, ValueError) as e:
            logger.error(
                "hub.serialize_failed", restaurant_id=restaurant_id, error=str(e)
            )
            return 0

        subscribers = self.registry.snapshot(restaurant_id)
        if not subscribers:
            return 0

        delivered = 0
        for connection in subscribers:
            if connection.offer(message):
                delivered += 1
                continue
            # Full buffer: the consumer is stuck, drop it. A connection that
            # left after the snapshot was taken is already gone.
            if self.registry.leave(connection):
                logger.warning(
                    "hub.evicted",
                    connection_id=connection.id,
                    restaurant_id=restaurant_id,
                )

        logger.debug(
            "hub.broadcast",
            restaurant_id=restaurant_id,
            subscribers=len(subscribers),
            delivered=delivered,
        )
        return delivered


def get_hub(conn: HTTPConnection) -> NotificationHub:
    """FastAPI dependency: the application's hub (HTTP and WebSocket routes)."""
    return conn.app.state.hub

"""Connection registry: which dashboards watch which restaurant.

A single threading.Lock guards the restaurant → connections map. It is
never nested and never held across an await, so every join, leave and
eviction is atomic with respect to the others, and snapshots taken for
delivery never see a half-updated group.
"""

import threading

import structlog

from tablecall.realtime.connection import Connection

logger = structlog.get_logger()


class ConnectionRegistry:
    """Live connections grouped by restaurant id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._groups: dict[str, set[Connection]] = {}

    def join(self, connection: Connection) -> None:
        with self._lock:
            group = self._groups.setdefault(connection.restaurant_id, set())
            group.add(connection)
            size = len(group)
        logger.info(
            "hub.joined",
            connection_id=connection.id,
            restaurant_id=connection.restaurant_id,
            subscribers=size,
        )

    def leave(self, connection: Connection) -> bool:
        """Remove a connection and close its buffer.

        Returns True if the connection was registered. Leaving twice, or
        leaving after an eviction, only closes the (already closed) buffer.
        """
        removed = False
        with self._lock:
            group = self._groups.get(connection.restaurant_id)
            if group is not None and connection in group:
                group.discard(connection)
                removed = True
                if not group:
                    del self._groups[connection.restaurant_id]
        connection.close()
        if removed:
            logger.info(
                "hub.left",
                connection_id=connection.id,
                restaurant_id=connection.restaurant_id,
            )
        return removed

    def snapshot(self, restaurant_id: str) -> tuple[Connection, ...]:
        """Copy of the group, safe to iterate without the lock."""
        with self._lock:
            return tuple(self._groups.get(str(restaurant_id), ()))

    def count_subscribers(self, restaurant_id: str) -> int:
        with self._lock:
            return len(self._groups.get(str(restaurant_id), ()))

    def has_group(self, restaurant_id: str) -> bool:
        with self._lock:
            return str(restaurant_id) in self._groups

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "restaurants": len(self._groups),
                "connections": sum(len(g) for g in self._groups.values()),
            }

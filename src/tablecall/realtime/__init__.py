"""Real-time infrastructure: in-process hub + WebSocket.

Events flow one way:
1. Request service → NotificationHub.publish (after the DB commit)
2. Hub → each dashboard connection's bounded buffer → WebSocket

The hub lives in this process only. A dashboard that misses an event
(disconnected, too slow) reconciles through the pending-requests endpoint.
"""

from tablecall.realtime.connection import Connection
from tablecall.realtime.hub import NotificationHub, Publisher
from tablecall.realtime.registry import ConnectionRegistry

__all__ = ["Connection", "ConnectionRegistry", "NotificationHub", "Publisher"]

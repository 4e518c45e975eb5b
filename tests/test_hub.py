"""Notification hub tests: registry bookkeeping, fan-out and eviction.

Connections here have no WebSocket; the drain fixture reads what was
queued for them.
"""

import json
import threading

import anyio
import pytest
from structlog.testing import capture_logs

from tablecall.realtime import Connection, ConnectionRegistry, NotificationHub


@pytest.fixture()
def hub():
    return NotificationHub()


# ═══════════════════════════════════════════════════════════
# Fan-out
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_publish_reaches_only_that_restaurant(hub, drain):
    a = Connection("r1")
    b = Connection("r2")
    hub.join(a)
    hub.join(b)

    delivered = hub.publish("r1", {"type": "request.created", "n": 1})

    assert delivered == 1
    assert [json.loads(m) for m in await drain(a)] == [{"type": "request.created", "n": 1}]
    assert await drain(b) == []


@pytest.mark.asyncio
async def test_publish_reaches_every_subscriber_of_restaurant(hub, drain):
    conns = [Connection("r1") for _ in range(3)]
    for c in conns:
        hub.join(c)

    assert hub.publish("r1", {"x": 1}) == 3
    for c in conns:
        assert len(await drain(c)) == 1


def test_publish_without_subscribers_is_noop(hub):
    assert hub.publish("nobody", {"x": 1}) == 0
    assert hub.stats() == {"restaurants": 0, "connections": 0}


@pytest.mark.asyncio
async def test_publish_preserves_order_per_subscriber(hub, drain):
    c = Connection("r1")
    hub.join(c)
    for i in range(5):
        hub.publish("r1", {"seq": i})

    assert [json.loads(m)["seq"] for m in await drain(c)] == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_publish_accepts_pydantic_models(hub, drain):
    from pydantic import BaseModel

    class Event(BaseModel):
        type: str
        table: int

    c = Connection("r1")
    hub.join(c)
    hub.publish("r1", Event(type="request.created", table=9))

    assert json.loads((await drain(c))[0]) == {"type": "request.created", "table": 9}


@pytest.mark.asyncio
async def test_unserializable_payload_is_dropped(hub, drain):
    c = Connection("r1")
    hub.join(c)

    assert hub.publish("r1", {"bad": object()}) == 0
    # The subscriber is not punished for a bad payload
    assert hub.count_subscribers("r1") == 1
    assert await drain(c) == []


# ═══════════════════════════════════════════════════════════
# Backpressure
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_full_buffer_evicts_subscriber(hub, drain):
    slow = Connection("r1", buffer_size=2)
    fast = Connection("r1", buffer_size=10)
    hub.join(slow)
    hub.join(fast)

    assert hub.publish("r1", {"seq": 0}) == 2
    assert hub.publish("r1", {"seq": 1}) == 2
    # Third message overflows the slow subscriber
    assert hub.publish("r1", {"seq": 2}) == 1

    assert slow.closed
    assert hub.count_subscribers("r1") == 1

    # Evicted subscriber gets nothing further
    assert hub.publish("r1", {"seq": 3}) == 1
    assert [json.loads(m)["seq"] for m in await drain(slow)] == [0, 1]
    assert [json.loads(m)["seq"] for m in await drain(fast)] == [0, 1, 2, 3]


def test_evicting_last_subscriber_drops_group(hub):
    c = Connection("r1", buffer_size=1)
    hub.join(c)
    hub.publish("r1", {"seq": 0})
    hub.publish("r1", {"seq": 1})

    assert hub.count_subscribers("r1") == 0
    assert not hub.registry.has_group("r1")


def test_eviction_is_logged(hub):
    c = Connection("r1", buffer_size=1)
    hub.join(c)
    hub.publish("r1", {"seq": 0})

    with capture_logs() as logs:
        hub.publish("r1", {"seq": 1})

    assert [e["event"] for e in logs if e["log_level"] == "warning"] == ["hub.evicted"]


def test_subscriber_that_already_left_is_not_reported_evicted(hub, monkeypatch):
    c = Connection("r1")
    hub.join(c)
    # Snapshot taken while c was still a member
    stale = hub.registry.snapshot("r1")
    hub.leave(c)
    monkeypatch.setattr(hub.registry, "snapshot", lambda restaurant_id: stale)

    with capture_logs() as logs:
        assert hub.publish("r1", {"seq": 0}) == 0

    assert "hub.evicted" not in [e["event"] for e in logs]
    assert hub.count_subscribers("r1") == 0


# ═══════════════════════════════════════════════════════════
# Registry bookkeeping
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_leave_twice_is_noop(hub, drain):
    registry = hub.registry
    a = Connection("r1")
    b = Connection("r1")
    registry.join(a)
    registry.join(b)

    assert registry.leave(a) is True
    assert registry.leave(a) is False
    assert registry.count_subscribers("r1") == 1
    assert not b.closed

    # The remaining subscriber still gets deliveries
    assert hub.publish("r1", {"seq": 1}) == 1
    assert [json.loads(m) for m in await drain(b)] == [{"seq": 1}]
    assert await drain(a) == []


def test_leave_of_unknown_connection_is_noop():
    registry = ConnectionRegistry()
    c = Connection("r1")
    assert registry.leave(c) is False
    assert c.closed


def test_group_created_and_removed_with_membership():
    registry = ConnectionRegistry()
    c = Connection("r1")

    assert registry.count_subscribers("r1") == 0
    assert not registry.has_group("r1")

    registry.join(c)
    assert registry.count_subscribers("r1") == 1
    assert registry.stats() == {"restaurants": 1, "connections": 1}

    registry.leave(c)
    assert registry.count_subscribers("r1") == 0
    assert not registry.has_group("r1")
    assert registry.stats() == {"restaurants": 0, "connections": 0}


def test_closed_connection_rejects_offers():
    c = Connection("r1")
    c.close()
    c.close()
    assert c.offer("hello") is False


def test_concurrent_join_and_leave():
    registry = ConnectionRegistry()
    conns = [Connection(f"r{i % 4}") for i in range(200)]

    def churn(chunk):
        for c in chunk:
            registry.join(c)
        for c in chunk:
            registry.leave(c)

    threads = [threading.Thread(target=churn, args=(conns[i::8],)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert registry.stats() == {"restaurants": 0, "connections": 0}


# ═══════════════════════════════════════════════════════════
# Writer side
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_messages_drains_buffer_after_close():
    c = Connection("r1")
    for i in range(3):
        assert c.offer(f"m{i}")
    c.close()

    received = [m async for m in c.messages()]
    assert received == ["m0", "m1", "m2"]


@pytest.mark.asyncio
async def test_writer_wakes_on_publish(hub):
    c = Connection("r1")
    hub.join(c)
    received = []

    async def writer():
        async for message in c.messages():
            received.append(json.loads(message))

    async with anyio.create_task_group() as tg:
        tg.start_soon(writer)
        await anyio.sleep(0)
        hub.publish("r1", {"seq": 1})
        hub.leave(c)

    assert received == [{"seq": 1}]

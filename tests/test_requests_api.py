"""Service request API tests: public QR endpoint and owner handling."""

import json
import uuid
from urllib.parse import parse_qs, urlparse

import pytest

from tablecall.realtime import Connection


async def _setup(client, table_count=3):
    r = await client.post(
        "/api/v1/setup/restaurant",
        json={"name": "La Esquina", "cuit": "20-1", "address": "Main 1", "table_count": table_count},
    )
    assert r.status_code == 201
    return r.json()


def _scan(table: dict) -> dict:
    """What the diner's phone posts after scanning a table's QR code."""
    q = {k: v[0] for k, v in parse_qs(urlparse(table["qr_code"]).query).items()}
    return {
        "restaurant_id": q["r"],
        "branch_id": q["b"],
        "table_id": q["t"],
        "table_number": int(q["n"]),
        "hash": q["h"],
    }


# ═══════════════════════════════════════════════════════════
# Public endpoint
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_scan_creates_pending_request(client):
    data = await _setup(client)
    r = await client.post("/api/v1/public/request-account", json=_scan(data["tables"][1]))
    assert r.status_code == 201
    request = r.json()
    assert request["status"] == "pending"
    assert request["table_number"] == 2
    assert request["restaurant_id"] == data["restaurant"]["id"]


@pytest.mark.asyncio
async def test_public_endpoint_needs_no_auth(app, client, unauthenticated_client):
    data = await _setup(client)
    from tablecall.auth.dependencies import get_current_user

    app.dependency_overrides.pop(get_current_user)
    r = await unauthenticated_client.post(
        "/api/v1/public/request-account", json=_scan(data["tables"][0])
    )
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_scan_notifies_connected_dashboard(app, client, drain):
    data = await _setup(client)
    dashboard = Connection(data["restaurant"]["id"])
    elsewhere = Connection(str(uuid.uuid4()))
    app.state.hub.join(dashboard)
    app.state.hub.join(elsewhere)

    r = await client.post("/api/v1/public/request-account", json=_scan(data["tables"][2]))
    assert r.status_code == 201

    messages = [json.loads(m) for m in await drain(dashboard)]
    assert len(messages) == 1
    assert messages[0]["type"] == "request.created"
    assert messages[0]["request"]["id"] == r.json()["id"]
    assert messages[0]["request"]["table_number"] == 3
    assert await drain(elsewhere) == []


@pytest.mark.asyncio
async def test_wrong_hash_rejected_and_nothing_pushed(app, client, drain):
    data = await _setup(client)
    dashboard = Connection(data["restaurant"]["id"])
    app.state.hub.join(dashboard)

    body = _scan(data["tables"][0])
    body["hash"] = "wrong"
    r = await client.post("/api/v1/public/request-account", json=body)
    assert r.status_code == 400
    assert await drain(dashboard) == []

    r = await client.get(f"/api/v1/requests/restaurant/{data['restaurant']['id']}")
    assert r.json() == []


@pytest.mark.asyncio
async def test_tampered_table_number_rejected(client):
    data = await _setup(client)
    body = _scan(data["tables"][0])
    body["table_number"] = 3
    r = await client.post("/api/v1/public/request-account", json=body)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_inactive_branch_rejected(client):
    data = await _setup(client)
    r = await client.put(f"/api/v1/branches/{data['branch']['id']}", json={"is_active": False})
    assert r.status_code == 200

    r = await client.post("/api/v1/public/request-account", json=_scan(data["tables"][0]))
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_renumbered_table_old_qr_rejected(client):
    data = await _setup(client)
    table = data["tables"][0]
    old_scan = _scan(table)
    r = await client.put(f"/api/v1/tables/{table['id']}", json={"number": 7})

    assert (await client.post("/api/v1/public/request-account", json=old_scan)).status_code == 400
    new_scan = _scan(r.json())
    assert (await client.post("/api/v1/public/request-account", json=new_scan)).status_code == 201


@pytest.mark.asyncio
async def test_missing_hash_is_validation_error(client):
    data = await _setup(client)
    body = _scan(data["tables"][0])
    del body["hash"]
    r = await client.post("/api/v1/public/request-account", json=body)
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# Owner endpoints
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_and_pending(client):
    data = await _setup(client)
    rid = data["restaurant"]["id"]
    ids = []
    for table in data["tables"]:
        r = await client.post("/api/v1/public/request-account", json=_scan(table))
        ids.append(r.json()["id"])

    r = await client.put(f"/api/v1/requests/{ids[0]}/status", json={"status": "attended"})
    assert r.status_code == 200
    assert r.json()["status"] == "attended"

    r = await client.get(f"/api/v1/requests/restaurant/{rid}")
    assert len(r.json()) == 3

    r = await client.get(f"/api/v1/requests/restaurant/{rid}/pending")
    assert sorted(x["id"] for x in r.json()) == sorted(ids[1:])

    r = await client.get(f"/api/v1/requests/restaurant/{rid}", params={"status": "attended"})
    assert [x["id"] for x in r.json()] == [ids[0]]


@pytest.mark.asyncio
async def test_list_with_invalid_status_filter(client):
    data = await _setup(client)
    r = await client.get(
        f"/api/v1/requests/restaurant/{data['restaurant']['id']}", params={"status": "eaten"}
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_update_status_rejects_unknown_value(client):
    data = await _setup(client)
    r = await client.post("/api/v1/public/request-account", json=_scan(data["tables"][0]))
    r = await client.put(f"/api/v1/requests/{r.json()['id']}/status", json={"status": "eaten"})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_get_and_delete_request(client):
    data = await _setup(client)
    r = await client.post("/api/v1/public/request-account", json=_scan(data["tables"][0]))
    request_id = r.json()["id"]

    r = await client.get(f"/api/v1/requests/{request_id}")
    assert r.status_code == 200
    assert (await client.delete(f"/api/v1/requests/{request_id}")).status_code == 204
    assert (await client.get(f"/api/v1/requests/{request_id}")).status_code == 404


@pytest.mark.asyncio
async def test_requests_of_other_owner_forbidden(client, switch_user):
    data = await _setup(client)
    r = await client.post("/api/v1/public/request-account", json=_scan(data["tables"][0]))
    request_id = r.json()["id"]

    switch_user()
    assert (await client.get(f"/api/v1/requests/{request_id}")).status_code == 403
    r = await client.get(f"/api/v1/requests/restaurant/{data['restaurant']['id']}/pending")
    assert r.status_code == 403
    r = await client.put(f"/api/v1/requests/{request_id}/status", json={"status": "cancelled"})
    assert r.status_code == 403

from datetime import timedelta

import httpx
import pytest

from lotus_backend.server import create_app
from tests.conftest import TEST_SECRET, make_token


@pytest.fixture
async def client(engine, seeded):
    app = create_app(engine=engine, jwt_secret=TEST_SECRET, bootstrap=False)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def auth(user_id: str = "u1", role: str = "user"):
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


async def test_health(client):
    res = await client.get("/api/health")
    assert res.status_code == 200
    assert res.json()["connected"] is True


async def test_requests_need_a_valid_token(client):
    assert (await client.get("/api/backpack")).status_code == 401

    forged = make_token("u1", secret="another-secret")
    res = await client.get("/api/backpack", headers={"Authorization": f"Bearer {forged}"})
    assert res.status_code == 401


async def test_check_in_flow(client):
    status = (await client.get("/api/activities/checkin/status", headers=auth())).json()
    assert status["can_check_in"] is True

    first = await client.post("/api/activities/checkin", headers=auth())
    assert first.status_code == 200
    assert first.json()["quantity"] == 5

    again = await client.post("/api/activities/checkin", headers=auth())
    assert again.status_code == 400
    assert again.json()["detail"]["code"] == "already_checked_in"

    backpack = (await client.get("/api/backpack", headers=auth())).json()
    assert [(row["item"]["name"], row["quantity"]) for row in backpack] == [("莲子", 5)]


async def test_exchange_and_use_flow(client, clock):
    await client.post("/api/activities/checkin", headers=auth())

    rules = (await client.get("/api/activities/exchange", headers=auth())).json()
    assert len(rules) == 1
    rule_id = rules[0]["id"]

    short = await client.post("/api/activities/exchange", json={"rule_id": rule_id}, headers=auth())
    assert short.status_code == 400
    assert short.json()["detail"]["code"] == "insufficient_balance"
    assert short.json()["detail"]["details"]["shortfall"] == 5

    clock.today += timedelta(days=1)
    await client.post("/api/activities/checkin", headers=auth())

    done = await client.post("/api/activities/exchange", json={"rule_id": rule_id, "quantity": 1}, headers=auth())
    assert done.status_code == 200
    assert (done.json()["from_item"], done.json()["to_item"]) == (0, 1)

    ticket_id = done.json()["to_item_id"]
    used = await client.post("/api/backpack/use", json={"item_id": ticket_id}, headers=auth())
    assert used.status_code == 200
    assert used.json()["remaining"] == 0

    history = (await client.get("/api/backpack/history", params={"limit": 5}, headers=auth())).json()
    assert history["total"] == 1
    assert history["entries"][0]["item_id"] == ticket_id


async def test_request_validation(client):
    res = await client.post("/api/backpack/use", json={"item_id": "x", "quantity": 0}, headers=auth())
    assert res.status_code == 422

    res = await client.get("/api/backpack/history", params={"limit": 500}, headers=auth())
    assert res.status_code == 422


async def test_currency_cannot_be_used(client):
    await client.post("/api/activities/checkin", headers=auth())
    lotus_id = (await client.get("/api/backpack", headers=auth())).json()[0]["item_id"]

    res = await client.post("/api/backpack/use", json={"item_id": lotus_id}, headers=auth())
    assert res.status_code == 400
    assert res.json()["detail"]["code"] == "item_not_usable"


async def test_rule_admin_requires_admin_role(client, seeded):
    body = {
        "from_item_id": seeded["ticket"].id,
        "to_item_id": seeded["lotus"].id,
        "from_quantity": 1,
        "to_quantity": 8,
    }
    assert (await client.post("/api/activities/exchange/rules", json=body, headers=auth())).status_code == 403

    created = await client.post("/api/activities/exchange/rules", json=body, headers=auth("boss", "admin"))
    assert created.status_code == 201
    rule_id = created.json()["id"]

    dup = await client.post("/api/activities/exchange/rules", json=body, headers=auth("boss", "admin"))
    assert dup.status_code == 409

    updated = await client.put(
        f"/api/activities/exchange/rules/{rule_id}", json={"is_active": False}, headers=auth("boss", "admin")
    )
    assert updated.json()["is_active"] is False
    assert len((await client.get("/api/activities/exchange", headers=auth())).json()) == 1
    assert len((await client.get("/api/activities/exchange/rules", headers=auth("boss", "admin"))).json()) == 2

    deleted = await client.delete(f"/api/activities/exchange/rules/{rule_id}", headers=auth("boss", "admin"))
    assert deleted.status_code == 200
    missing = await client.get(f"/api/activities/exchange/rules/{rule_id}", headers=auth("boss", "admin"))
    assert missing.status_code == 404


async def test_activity_routes(client):
    listed = (await client.get("/api/activities", headers=auth())).json()
    assert [a["type"] for a in listed] == ["checkin"]
    activity_id = listed[0]["id"]

    assert (await client.get(f"/api/activities/{activity_id}", headers=auth())).status_code == 200
    assert (await client.get("/api/activities/nope", headers=auth())).status_code == 404

    paused = await client.put(
        f"/api/activities/{activity_id}", json={"is_active": False}, headers=auth("boss", "admin")
    )
    assert paused.status_code == 200
    assert (await client.get("/api/activities", headers=auth())).json() == []

    blocked = await client.post("/api/activities/checkin", headers=auth())
    assert blocked.json()["detail"]["code"] == "activity_inactive"

    assert (await client.delete(f"/api/activities/{activity_id}", headers=auth())).status_code == 403
    assert (await client.delete(f"/api/activities/{activity_id}", headers=auth("boss", "admin"))).status_code == 200

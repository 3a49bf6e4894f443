from decimal import Decimal

import pytest

from models.credit_pack import CreditPack
from models.enums import UserRole, UserStatus
from models.tool import Tool
from models.user import User
from services.session_token import create_session_token


async def _seed_portal(session_maker):
    async with session_maker() as session:
        admin = User(
            id="portal-admin",
            email="admin@urbavisu.ch",
            role=UserRole.ADMIN,
            status=UserStatus.APPROVED,
            validated=True,
        )
        pack = CreditPack(name="Professionnel", credits=10, bonus_credits=2, price=Decimal("49.00"))
        zoning = Tool(name="Zonage", credit_cost=3)
        basics = Tool(name="Informations de base", credit_cost=0, is_free=True)
        report = Tool(name="Rapport complet", credit_cost=40)
        session.add_all([admin, pack, zoning, basics, report])
        await session.commit()
        return {
            "admin_token": create_session_token(admin.id, admin.email)["token"],
            "pack_id": pack.id,
            "zoning_id": zoning.id,
            "basics_id": basics.id,
            "report_id": report.id,
        }


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


async def _sign_up(client, email="marie.dupont@example.ch", password="secret123"):
    response = await client.post(
        "/auth/signup",
        json={
            "email": email,
            "password": password,
            "confirm_password": password,
            "first_name": "Marie",
            "last_name": "Dupont",
            "company": "Bureau Dupont",
        },
    )
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_signup_approval_purchase_and_order(api_client):
    client, session_maker = api_client
    seeded = await _seed_portal(session_maker)

    session = await _sign_up(client)
    assert session["status"] == "pending"
    assert session["role"] == "client"
    user_id = session["user_id"]
    token = session["session_token"]

    blocked = await client.post("/credits/purchase", json={"pack_id": seeded["pack_id"]}, headers=_auth(token))
    assert blocked.status_code == 403

    approve = await client.post(
        f"/admin/users/{user_id}/status",
        json={"status": "approved"},
        headers=_auth(seeded["admin_token"]),
    )
    assert approve.status_code == 200
    assert approve.json()["welcome_bonus_granted"] is True
    assert approve.json()["user"]["credits"] == 5

    summary = await client.get("/credits", headers=_auth(token))
    assert summary.status_code == 200
    assert summary.json()["balance"] == 5
    assert summary.json()["in_sync"] is True

    purchase = await client.post("/credits/purchase", json={"pack_id": seeded["pack_id"]}, headers=_auth(token))
    assert purchase.status_code == 200
    assert purchase.json()["credits_added"] == 12
    assert purchase.json()["balance_after"] == 17
    assert purchase.json()["payment_reference"].startswith("sim_")

    lookup = await client.post(
        "/orders/search",
        json={"address": "Chemin des Verjus 103, 1228 Plan-les-Ouates"},
        headers=_auth(token),
    )
    assert lookup.status_code == 200
    assert lookup.json()["parcel_number"] == "12345"
    assert lookup.json()["surface"] == "850 m²"

    order = await client.post(
        "/orders",
        json={
            "searched_address": "Chemin des Verjus 103, 1228 Plan-les-Ouates",
            "options": [seeded["zoning_id"], seeded["basics_id"]],
        },
        headers=_auth(token),
    )
    assert order.status_code == 200
    assert order.json()["charged"] == 3
    assert order.json()["balance_after"] == 14
    assert order.json()["order"]["status"] == "pending"

    too_expensive = await client.post(
        "/orders",
        json={
            "searched_address": "Chemin des Verjus 103, 1228 Plan-les-Ouates",
            "options": [seeded["report_id"]],
        },
        headers=_auth(token),
    )
    assert too_expensive.status_code == 402
    assert too_expensive.json()["detail"]["required"] == 40
    assert too_expensive.json()["detail"]["available"] == 14

    orders = await client.get("/orders", headers=_auth(token))
    assert orders.status_code == 200
    assert len(orders.json()["items"]) == 1
    assert orders.json()["items"][0]["total_cost"] == 3

    history = await client.get("/credits/history", headers=_auth(token))
    assert history.status_code == 200
    items = history.json()["items"]
    assert sorted(item["type"] for item in items) == ["gift", "purchase", "usage"]
    assert sum(item["quantity"] for item in items) == 14

    me = await client.get("/auth/me", headers=_auth(token))
    assert me.status_code == 200
    assert me.json()["credits"] == 14
    assert me.json()["is_admin"] is False


@pytest.mark.asyncio
async def test_signup_rejects_bad_passwords_and_duplicate_email(api_client):
    client, _ = api_client

    too_short = await client.post(
        "/auth/signup",
        json={
            "email": "short@example.ch",
            "password": "abc",
            "confirm_password": "abc",
            "first_name": "A",
            "last_name": "B",
        },
        headers={"X-Language": "EN"},
    )
    assert too_short.status_code == 422
    assert too_short.json()["detail"] == "Password must be at least 6 characters"

    mismatch = await client.post(
        "/auth/signup",
        json={
            "email": "mismatch@example.ch",
            "password": "secret123",
            "confirm_password": "secret124",
            "first_name": "A",
            "last_name": "B",
        },
        headers={"X-Language": "EN"},
    )
    assert mismatch.status_code == 422
    assert mismatch.json()["detail"] == "Passwords do not match"

    await _sign_up(client, email="taken@example.ch")
    duplicate = await client.post(
        "/auth/signup",
        json={
            "email": "Taken@Example.ch",
            "password": "secret123",
            "first_name": "A",
            "last_name": "B",
        },
    )
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_login_logout_and_revoked_session(api_client):
    client, _ = api_client
    await _sign_up(client, email="login@example.ch", password="secret123")

    wrong = await client.post("/auth/login", json={"email": "login@example.ch", "password": "nope-nope"})
    assert wrong.status_code == 401

    login = await client.post("/auth/login", json={"email": " LOGIN@example.ch ", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["session_token"]

    me = await client.get("/auth/me", headers=_auth(token))
    assert me.status_code == 200
    assert me.json()["email"] == "login@example.ch"

    logout = await client.post("/auth/logout", headers=_auth(token))
    assert logout.status_code == 200

    after = await client.get("/auth/me", headers=_auth(token))
    assert after.status_code == 401

    anonymous = await client.get("/credits")
    assert anonymous.status_code == 401


@pytest.mark.asyncio
async def test_credit_endpoints_reject_cross_user_scope(api_client):
    client, _ = api_client
    session = await _sign_up(client, email="scope@example.ch")

    response = await client.get(
        "/credits",
        params={"user_id": "someone-else"},
        headers=_auth(session["session_token"]),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_profile_update_cannot_touch_credits(api_client):
    client, _ = api_client
    session = await _sign_up(client, email="profile@example.ch")

    response = await client.patch(
        "/profile",
        json={"company": "Atelier Rhône", "credits": 999},
        headers=_auth(session["session_token"]),
    )
    assert response.status_code == 200
    assert response.json()["company"] == "Atelier Rhône"
    assert response.json()["credits"] == 0


@pytest.mark.asyncio
async def test_catalog_lists_active_entries_only(api_client):
    client, session_maker = api_client
    await _seed_portal(session_maker)
    async with session_maker() as session:
        session.add(Tool(name="Retired", credit_cost=2, is_active=False))
        await session.commit()

    tools = await client.get("/catalog/tools")
    assert tools.status_code == 200
    costs = [item["credit_cost"] for item in tools.json()["items"]]
    assert costs == sorted(costs)
    assert "Retired" not in [item["name"] for item in tools.json()["items"]]

    packs = await client.get("/catalog/packs")
    assert packs.status_code == 200
    assert packs.json()["items"][0]["price"] == "49.00"
    assert packs.json()["items"][0]["total_credits"] == 12

from datetime import datetime, timezone

import pytest

from models.admin_route import AdminRoute
from models.credit_entry import CreditEntry
from models.enums import CreditType, OrderStatus, UserRole, UserStatus
from models.order import Order
from models.user import User
from services.admin_routes import DEFAULT_ADMIN_ROUTES, list_admin_routes
from services.dashboard import get_dashboard_stats, start_of_day
from services.session_token import create_session_token


async def _seed_staff(session_maker):
    async with session_maker() as session:
        session.add_all(
            [
                User(id="root", email="root@urbavisu.ch", role=UserRole.SUPER_ADMIN, status=UserStatus.APPROVED),
                User(id="client-1", email="anna.keller@example.ch", first_name="Anna", last_name="Keller",
                     status=UserStatus.APPROVED, credits=7),
                User(id="client-2", email="luca.rossi@example.ch", first_name="Luca", last_name="Rossi",
                     status=UserStatus.PENDING),
                User(id="manager-1", email="paul@example.ch", role=UserRole.MANAGER, status=UserStatus.APPROVED),
            ]
        )
        await session.commit()
    return {
        "admin": create_session_token("root", "root@urbavisu.ch")["token"],
        "client": create_session_token("client-1", "anna.keller@example.ch")["token"],
        "manager": create_session_token("manager-1", "paul@example.ch")["token"],
    }


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/admin/dashboard", "/admin/users", "/admin/translations", "/admin/routes"])
async def test_non_admin_is_sent_back_to_dashboard(api_client, path):
    client, session_maker = api_client
    tokens = await _seed_staff(session_maker)

    for role in ("client", "manager"):
        response = await client.get(path, headers=_auth(tokens[role]))
        assert response.status_code == 403
        assert response.json()["detail"] == {"redirect_to": "/dashboard"}


@pytest.mark.asyncio
async def test_admin_user_list_filters_and_search(api_client):
    client, session_maker = api_client
    tokens = await _seed_staff(session_maker)

    everyone = await client.get("/admin/users", headers=_auth(tokens["admin"]))
    assert everyone.status_code == 200
    assert everyone.json()["total_count"] == 4

    pending = await client.get("/admin/users", params={"status": "pending"}, headers=_auth(tokens["admin"]))
    assert [item["id"] for item in pending.json()["items"]] == ["client-2"]

    by_name = await client.get("/admin/users", params={"search": "anna kel"}, headers=_auth(tokens["admin"]))
    assert [item["id"] for item in by_name.json()["items"]] == ["client-1"]

    managers = await client.get("/admin/users", params={"role": "manager"}, headers=_auth(tokens["admin"]))
    assert managers.json()["total_count"] == 1

    paged = await client.get("/admin/users", params={"limit": 2, "page": 2}, headers=_auth(tokens["admin"]))
    assert paged.json()["total_count"] == 4
    assert len(paged.json()["items"]) == 2


@pytest.mark.asyncio
async def test_admin_status_transition_and_manual_credits(api_client):
    client, session_maker = api_client
    tokens = await _seed_staff(session_maker)

    rejected = await client.post(
        "/admin/users/client-2/status", json={"status": "rejected"}, headers=_auth(tokens["admin"])
    )
    assert rejected.status_code == 200
    assert rejected.json()["welcome_bonus_granted"] is False

    back = await client.post(
        "/admin/users/client-2/status", json={"status": "pending"}, headers=_auth(tokens["admin"])
    )
    assert back.status_code == 409

    unknown = await client.post(
        "/admin/users/ghost/status", json={"status": "approved"}, headers=_auth(tokens["admin"])
    )
    assert unknown.status_code == 404

    zero = await client.post("/admin/users/client-1/credits", json={"quantity": 0}, headers=_auth(tokens["admin"]))
    assert zero.status_code == 422

    granted = await client.post(
        "/admin/users/client-1/credits", json={"quantity": 4}, headers=_auth(tokens["admin"])
    )
    assert granted.status_code == 200
    assert granted.json()["balance_after"] == 11

    negative = await client.patch("/admin/users/client-1", json={"credits": -1}, headers=_auth(tokens["admin"]))
    assert negative.status_code == 422


@pytest.mark.asyncio
async def test_admin_creates_user_with_chosen_role(api_client):
    client, session_maker = api_client
    tokens = await _seed_staff(session_maker)

    created = await client.post(
        "/admin/users",
        json={
            "email": "New.Admin@urbavisu.ch",
            "password": "changeme1",
            "first_name": "Nora",
            "last_name": "Favre",
            "role": "admin",
            "status": "approved",
        },
        headers=_auth(tokens["admin"]),
    )
    assert created.status_code == 200
    assert created.json()["email"] == "new.admin@urbavisu.ch"
    assert created.json()["role"] == "admin"
    assert created.json()["validated"] is True

    missing = await client.post(
        "/admin/users",
        json={"email": "x@urbavisu.ch", "password": "changeme1", "first_name": "", "last_name": ""},
        headers=_auth(tokens["admin"]),
    )
    assert missing.status_code == 422

    login = await client.post("/auth/login", json={"email": "new.admin@urbavisu.ch", "password": "changeme1"})
    assert login.status_code == 200
    assert login.json()["role"] == "admin"


@pytest.mark.asyncio
async def test_translation_create_update_and_duplicate_key(api_client):
    client, session_maker = api_client
    tokens = await _seed_staff(session_maker)

    created = await client.post(
        "/admin/translations",
        json={"key": "nav.home", "fr": "Accueil", "de": "Startseite", "en": "Home", "category": "nav"},
        headers=_auth(tokens["admin"]),
    )
    assert created.status_code == 200
    translation_id = created.json()["id"]

    duplicate = await client.post(
        "/admin/translations",
        json={"key": "nav.home", "fr": "Maison"},
        headers=_auth(tokens["admin"]),
    )
    assert duplicate.status_code == 409

    missing_fr = await client.post(
        "/admin/translations",
        json={"key": "nav.search", "en": "Search"},
        headers=_auth(tokens["admin"]),
    )
    assert missing_fr.status_code == 422

    updated = await client.patch(
        f"/admin/translations/{translation_id}",
        json={"it": "Pagina iniziale"},
        headers=_auth(tokens["admin"]),
    )
    assert updated.status_code == 200
    assert updated.json()["it"] == "Pagina iniziale"
    assert updated.json()["fr"] == "Accueil"

    listing = await client.get(
        "/admin/translations", params={"search": "home"}, headers=_auth(tokens["admin"])
    )
    assert [item["key"] for item in listing.json()["items"]] == ["nav.home"]
    assert listing.json()["categories"] == ["nav"]

    bundle = await client.get("/translations/it")
    assert bundle.json()["language"] == "IT"
    assert bundle.json()["messages"]["nav.home"] == "Pagina iniziale"

    fallback = await client.get("/translations/en")
    assert fallback.json()["messages"]["nav.home"] == "Home"


@pytest.mark.asyncio
async def test_translation_bundle_falls_back_to_french(api_client):
    client, session_maker = api_client
    tokens = await _seed_staff(session_maker)

    await client.post(
        "/admin/translations",
        json={"key": "search.title", "fr": "Recherche d'adresse"},
        headers=_auth(tokens["admin"]),
    )
    bundle = await client.get("/translations/DE")
    assert bundle.json()["messages"]["search.title"] == "Recherche d'adresse"


@pytest.mark.asyncio
async def test_admin_catalog_management(api_client):
    client, session_maker = api_client
    tokens = await _seed_staff(session_maker)

    tool = await client.post(
        "/admin/tools",
        json={"name": "Servitudes", "credit_cost": 4},
        headers=_auth(tokens["admin"]),
    )
    assert tool.status_code == 200
    assert tool.json()["is_active"] is True

    retired = await client.patch(
        f"/admin/tools/{tool.json()['id']}", json={"is_active": False}, headers=_auth(tokens["admin"])
    )
    assert retired.json()["is_active"] is False
    public_tools = await client.get("/catalog/tools")
    assert public_tools.json()["items"] == []

    pack = await client.post(
        "/admin/packs",
        json={"name": "Entreprise", "credits": 100, "bonus_credits": 15, "price": "400"},
        headers=_auth(tokens["admin"]),
    )
    assert pack.status_code == 200
    assert pack.json()["total_credits"] == 115
    assert pack.json()["price"] == "400.00"

    incomplete = await client.post("/admin/packs", json={"name": "Broken"}, headers=_auth(tokens["admin"]))
    assert incomplete.status_code == 422


@pytest.mark.asyncio
async def test_dashboard_stats_count_sales_and_usage(session_maker):
    now = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)
    # 23:30 and 00:30 in Zurich (CEST, UTC+2) on either side of local midnight.
    late_yesterday = datetime(2026, 10, 18, 21, 30, tzinfo=timezone.utc)
    early_today = datetime(2026, 10, 18, 22, 30, tzinfo=timezone.utc)
    async with session_maker() as session:
        session.add_all(
            [
                User(id="u1", email="u1@example.ch", status=UserStatus.APPROVED, credits=9),
                User(id="u2", email="u2@example.ch", status=UserStatus.PENDING),
                CreditEntry(user_id="u1", type=CreditType.PURCHASE, quantity=12, reason="Pack purchase Pro"),
                CreditEntry(user_id="u1", type=CreditType.GIFT, quantity=5, reason="welcome credits"),
                CreditEntry(user_id="u1", type=CreditType.USAGE, quantity=-8, reason="Order: Genève"),
                Order(id="o1", user_id="u1", searched_address="Genève", options=["t"], total_cost=8,
                      status=OrderStatus.PENDING, created_at=now),
                Order(id="o2", user_id="u1", searched_address="Lausanne", options=["t"], total_cost=0,
                      status=OrderStatus.PENDING, created_at=late_yesterday),
                Order(id="o3", user_id="u1", searched_address="Sion", options=["t"], total_cost=0,
                      status=OrderStatus.PENDING, created_at=early_today),
            ]
        )
        await session.commit()

    async with session_maker() as session:
        dashboard = await get_dashboard_stats(session, now=now)

    stats = dashboard["stats"]
    assert stats["total_users"] == 2
    assert stats["pending_users"] == 1
    assert stats["total_orders"] == 3
    assert stats["today_orders"] == 2
    assert stats["credits_sold"] == 12
    assert stats["credits_used"] == 8
    assert [order["id"] for order in dashboard["recent_orders"]] == ["o1", "o3", "o2"]
    assert len(dashboard["recent_users"]) == 2


def test_start_of_day_uses_local_midnight():
    summer = datetime(2026, 10, 19, 23, 59, tzinfo=timezone.utc)
    assert start_of_day(summer) == datetime(2026, 10, 19, 22, 0, tzinfo=timezone.utc)

    winter = datetime(2026, 12, 1, 10, 0, tzinfo=timezone.utc)
    assert start_of_day(winter) == datetime(2026, 11, 30, 23, 0, tzinfo=timezone.utc)

    assert start_of_day(summer, tz_name="UTC") == datetime(2026, 10, 19, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_admin_routes_default_and_role_filtering(session_maker):
    async with session_maker() as session:
        defaults = await list_admin_routes(session, UserRole.ADMIN)
        assert [route["path"] for route in defaults] == [route["path"] for route in DEFAULT_ADMIN_ROUTES]
        assert await list_admin_routes(session, UserRole.CLIENT) == []

        session.add_all(
            [
                AdminRoute(path="/admin/billing", label="admin.nav.billing", roles=["super_admin"], order_index=2),
                AdminRoute(path="/admin", label="admin.nav.dashboard", roles=["admin", "super_admin"], order_index=1),
                AdminRoute(path="/admin/old", label="old", roles=["admin"], order_index=3, is_active=False),
            ]
        )
        await session.commit()

        admin_routes = await list_admin_routes(session, UserRole.ADMIN)
        super_routes = await list_admin_routes(session, UserRole.SUPER_ADMIN)

    assert [route["path"] for route in admin_routes] == ["/admin"]
    assert [route["path"] for route in super_routes] == ["/admin", "/admin/billing"]

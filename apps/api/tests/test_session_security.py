import pytest

from main import app
from models.enums import UserStatus
from models.user import User
from routers import rate_limit
from services.session_token import create_session_token, decode_session_token, is_session_revoked, revoke_session


def test_session_token_round_trip_carries_subject_and_jti():
    session = create_session_token("user-42", "user42@example.ch")
    payload = decode_session_token(session["token"])

    assert payload["sub"] == "user-42"
    assert payload["email"] == "user42@example.ch"
    assert payload["exp"] == session["expires_at"]
    assert payload["jti"]


def test_decode_rejects_garbage_token():
    with pytest.raises(ValueError):
        decode_session_token("not-a-token")


@pytest.mark.asyncio
async def test_revoked_session_falls_back_to_local_store_without_redis():
    payload = decode_session_token(create_session_token("user-7")["token"])
    assert await is_session_revoked(payload) is False

    await revoke_session(payload)

    assert await is_session_revoked(payload) is True


@pytest.mark.asyncio
async def test_token_for_deleted_user_is_rejected(api_client):
    client, _ = api_client
    token = create_session_token("ghost-user")["token"]

    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_search_rate_limit_uses_local_counters(api_client):
    client, session_maker = api_client
    async with session_maker() as session:
        session.add(User(id="busy-user", email="busy@example.ch", status=UserStatus.APPROVED))
        await session.commit()
    token = create_session_token("busy-user")["token"]
    headers = {"Authorization": f"Bearer {token}"}

    app.state.disable_rate_limits = False
    statuses = []
    for _ in range(121):
        response = await client.post("/orders/search", json={"address": "Rue de Lausanne 1"}, headers=headers)
        statuses.append(response.status_code)

    assert statuses[:120] == [200] * 120
    assert statuses[-1] == 429
    assert any(key.startswith("urbavisu:rate:address_search:tok:") for key in rate_limit._local_counters)


@pytest.mark.asyncio
async def test_health_reports_degraded_redis(api_client):
    client, _ = api_client

    live = await client.get("/health/live")
    assert live.json() == {"alive": True}

    health = await client.get("/health")
    assert health.status_code == 200
    assert health.json()["redis"].startswith("down")

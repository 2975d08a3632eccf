import pytest
from httpx import AsyncClient
from sqlmodel import select

from gateway.domain.base import to_epoch_ms
from gateway.domain.entities import SecurityConfig, SecurityEvent
from tests.utils.auth import ADMIN_HEADERS
from tests.utils.json_compare import exclude_keys


@pytest.mark.asyncio
async def test_admin_routes_require_api_key(client: AsyncClient):
    missing = await client.get("/api/admin/rate-limits/login")
    wrong = await client.get("/api/admin/rate-limits/login", headers={"X-Admin-API-Key": "nope"})

    assert missing.status_code == 401
    assert missing.json()["error"]["code"] == "UNAUTHORIZED"
    assert wrong.status_code == 401
    assert wrong.json()["error"]["code"] == "INVALID_API_KEY"


@pytest.mark.asyncio
async def test_upsert_and_read_rate_limit(client: AsyncClient, test_data):
    body = test_data.get_copy("login_rate_limit")

    created = await client.put("/api/admin/rate-limits/auth/login", json=body, headers=ADMIN_HEADERS)
    body["maxRequests"] = 10
    updated = await client.put("/api/admin/rate-limits/auth/login", json=body, headers=ADMIN_HEADERS)
    fetched = await client.get("/api/admin/rate-limits/auth/login", headers=ADMIN_HEADERS)

    assert created.status_code == 200
    assert updated.json()["maxRequests"] == 10
    assert exclude_keys(fetched.json(), {"updatedAt"}) == {
        "endpoint": "auth/login",
        "maxRequests": 10,
        "windowSeconds": 60,
        "blockDurationSeconds": 300,
        "isActive": True,
    }


@pytest.mark.asyncio
async def test_missing_rate_limit_is_not_found(client: AsyncClient):
    response = await client.get("/api/admin/rate-limits/unknown", headers=ADMIN_HEADERS)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RATE_LIMIT_CONFIG_NOT_FOUND"


@pytest.mark.asyncio
async def test_invalid_rate_limit_is_rejected(client: AsyncClient):
    response = await client.put(
        "/api/admin/rate-limits/login",
        json={"maxRequests": 0, "windowSeconds": 60, "blockDurationSeconds": 0},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_optimize_purges_noise_and_expires_tokens(client: AsyncClient, db_session, test_data, fake_clock):
    """
    Given an old client_log event, an old page_view, a fresh page_view and an unused token
    When maintenance runs after both retention horizons have passed
    Then the old noise is deleted, fresh events stay and the token is expired
    And a second run removes nothing
    """
    session_id = test_data.get("session_id")
    await client.post(
        "/api/tokens", json={"sessionId": session_id, "timestamp": to_epoch_ms(fake_clock())}
    )
    await client.post("/api/security-events", json={"event_type": "client_log", "severity": "low"})
    await client.post("/api/security-events", json={"event_type": "page_view"})
    await client.post(
        "/api/security-events", json={"event_type": "failed_login_attempt", "severity": "high"}
    )

    fake_clock.advance(hours=25)
    await client.post("/api/security-events", json={"event_type": "page_view"})

    first = await client.post("/api/admin/maintenance/optimize", headers=ADMIN_HEADERS)
    second = await client.post("/api/admin/maintenance/optimize", headers=ADMIN_HEADERS)

    assert first.status_code == 200
    assert first.json() == {
        "client_log_events_cleaned": 1,
        "low_priority_events_cleaned": 1,
        "expired_tokens_deactivated": 1,
    }
    assert second.json() == {
        "client_log_events_cleaned": 0,
        "low_priority_events_cleaned": 0,
        "expired_tokens_deactivated": 0,
    }

    remaining = (await db_session.execute(select(SecurityEvent))).scalars().all()
    assert sorted(e.event_type for e in remaining) == [
        "csrf_token_generated",
        "failed_login_attempt",
        "page_view",
    ]
    page_view = next(e for e in remaining if e.event_type == "page_view")
    assert page_view.created_at == fake_clock()

    token = (await db_session.execute(select(SecurityConfig))).scalars().one()
    await db_session.refresh(token)
    assert token.is_active is False
    assert token.config_value["status"] == "expired"


@pytest.mark.asyncio
async def test_health_check_is_unprefixed(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

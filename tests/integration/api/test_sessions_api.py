import pytest
from httpx import AsyncClient
from sqlmodel import select

from gateway.domain.entities import SecurityEvent
from tests.utils.auth import bearer
from tests.utils.json_compare import exclude_keys


async def register(client: AsyncClient, headers, fingerprint):
    response = await client.post("/api/sessions", json={"deviceFingerprint": fingerprint}, headers=headers)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_registered_device_validates(client: AsyncClient, user_headers, test_data):
    """
    Given a session registered for this device
    When the session is validated from the same device
    Then the verdict is valid at normal security level
    """
    fingerprint = test_data.get("device_fingerprint")
    session = await register(client, user_headers, fingerprint)
    assert session["userId"] == "user-42"
    assert "sessionId" in session

    response = await client.post(
        "/api/sessions/validate",
        json={"deviceFingerprint": fingerprint, "timestamp": 1772452800000},
        headers=user_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "valid": True,
        "reason": None,
        "securityLevel": "normal",
        "actions": [],
    }


@pytest.mark.asyncio
async def test_unknown_device_requires_verification(client: AsyncClient, user_headers, test_data):
    await register(client, user_headers, test_data.get("device_fingerprint"))

    response = await client.post(
        "/api/sessions/validate", json={"deviceFingerprint": "fp-unseen"}, headers=user_headers
    )

    data = response.json()
    assert response.status_code == 200
    assert exclude_keys(data, {"actions"}) == {
        "valid": False,
        "reason": "UNKNOWN_DEVICE",
        "securityLevel": "critical",
    }
    assert data["actions"] == ["Device verification required"]


@pytest.mark.asyncio
async def test_idle_session_lapses(client: AsyncClient, user_headers, test_data, fake_clock):
    fingerprint = test_data.get("device_fingerprint")
    await register(client, user_headers, fingerprint)

    fake_clock.advance(minutes=31)
    response = await client.post(
        "/api/sessions/validate", json={"deviceFingerprint": fingerprint}, headers=user_headers
    )

    assert response.json()["reason"] == "NO_ACTIVE_SESSION"


@pytest.mark.asyncio
async def test_validation_keeps_session_alive(client: AsyncClient, user_headers, test_data, fake_clock):
    fingerprint = test_data.get("device_fingerprint")
    await register(client, user_headers, fingerprint)

    for _ in range(3):
        fake_clock.advance(minutes=20)
        response = await client.post(
            "/api/sessions/validate", json={"deviceFingerprint": fingerprint}, headers=user_headers
        )
        assert response.json()["valid"] is True


@pytest.mark.asyncio
async def test_sessions_are_per_user(client: AsyncClient, user_headers, test_data):
    fingerprint = test_data.get("device_fingerprint")
    await register(client, user_headers, fingerprint)

    response = await client.post(
        "/api/sessions/validate", json={"deviceFingerprint": fingerprint}, headers=bearer("user-99")
    )

    assert response.json()["reason"] == "NO_ACTIVE_SESSION"


@pytest.mark.asyncio
async def test_missing_identity_is_unauthorized(client: AsyncClient):
    response = await client.post("/api/sessions/validate", json={"deviceFingerprint": "fp"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_invalid_bearer_token_is_rejected(client: AsyncClient):
    response = await client.post(
        "/api/sessions/validate",
        json={"deviceFingerprint": "fp"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_session_older_than_a_day_goes_stale(client: AsyncClient, user_headers, test_data, fake_clock):
    """
    Given a session kept alive by validation every 25 minutes
    When it becomes older than 24 hours
    Then validation reports SESSION_TOO_OLD and the session no longer validates
    """
    fingerprint = test_data.get("device_fingerprint")
    await register(client, user_headers, fingerprint)

    for _ in range(57):
        fake_clock.advance(minutes=25)
        response = await client.post(
            "/api/sessions/validate", json={"deviceFingerprint": fingerprint}, headers=user_headers
        )
        assert response.json()["valid"] is True

    fake_clock.advance(minutes=25)
    response = await client.post(
        "/api/sessions/validate", json={"deviceFingerprint": fingerprint}, headers=user_headers
    )

    assert response.status_code == 200
    assert response.json() == {
        "valid": False,
        "reason": "SESSION_TOO_OLD",
        "securityLevel": "enhanced",
        "actions": ["Session refresh required"],
    }

    response = await client.post(
        "/api/sessions/validate", json={"deviceFingerprint": fingerprint}, headers=user_headers
    )
    assert response.json()["reason"] == "NO_ACTIVE_SESSION"


@pytest.mark.asyncio
async def test_register_requires_bearer_token(client: AsyncClient, user_headers, test_data):
    await register(client, user_headers, test_data.get("device_fingerprint"))

    response = await client.post(
        "/api/sessions", json={"deviceFingerprint": "fp-attacker", "userId": "user-42"}
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"

    response = await client.post(
        "/api/sessions/validate", json={"deviceFingerprint": "fp-attacker"}, headers=user_headers
    )
    assert response.json()["reason"] == "UNKNOWN_DEVICE"


@pytest.mark.asyncio
async def test_body_user_id_cannot_override_token(client: AsyncClient, user_headers, test_data):
    await register(client, user_headers, test_data.get("device_fingerprint"))

    response = await client.post(
        "/api/sessions",
        json={"deviceFingerprint": "fp-attacker", "userId": "user-42"},
        headers=bearer("user-99"),
    )

    assert response.status_code == 201
    assert response.json()["userId"] == "user-99"

    response = await client.post(
        "/api/sessions/validate", json={"deviceFingerprint": "fp-attacker"}, headers=user_headers
    )
    assert response.json()["reason"] == "UNKNOWN_DEVICE"


@pytest.mark.asyncio
async def test_validate_ignores_body_user_id_without_token(client: AsyncClient, user_headers, test_data):
    fingerprint = test_data.get("device_fingerprint")
    await register(client, user_headers, fingerprint)

    response = await client.post(
        "/api/sessions/validate", json={"deviceFingerprint": fingerprint, "userId": "user-42"}
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_validations_by_different_users_are_all_recorded(client: AsyncClient, db_session, fake_clock):
    for user in ("alice", "bob"):
        headers = bearer(user)
        await register(client, headers, f"fp-{user}")
        response = await client.post(
            "/api/sessions/validate", json={"deviceFingerprint": f"fp-{user}"}, headers=headers
        )
        assert response.json()["valid"] is True

    fake_clock.advance(seconds=5)
    await client.post("/api/sessions/validate", json={"deviceFingerprint": "fp-alice"}, headers=bearer("alice"))

    rows = (
        await db_session.execute(
            select(SecurityEvent.actor_id).where(SecurityEvent.event_type == "session_validation")
        )
    ).all()
    assert sorted(row[0] for row in rows) == ["alice", "bob"]

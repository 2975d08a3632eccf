import pytest
from httpx import AsyncClient

from gateway.domain.base import to_epoch_ms
from tests.utils.auth import ADMIN_HEADERS


async def configure_login_limit(client: AsyncClient, test_data):
    response = await client.put(
        "/api/admin/rate-limits/login", json=test_data.get_copy("login_rate_limit"), headers=ADMIN_HEADERS
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_fourth_attempt_in_window_is_blocked(client: AsyncClient, test_data, fake_clock):
    """
    Given login is limited to 3 attempts per 60 seconds with a 300 second block
    When the same identifier makes 4 attempts inside the window
    Then attempts 1-3 are allowed and attempt 4 is blocked
    And after the window passes attempts are allowed again
    """
    await configure_login_limit(client, test_data)
    body = {"endpoint": "login", "identifier": "alice@example.com"}

    decisions = []
    for _ in range(4):
        response = await client.post("/api/rate-limit/check", json=body)
        assert response.status_code == 200
        decisions.append(response)
        fake_clock.advance(seconds=1)

    assert [r.json()["allowed"] for r in decisions] == [True, True, True, False]
    assert [r.json()["attempts"] for r in decisions] == [1, 2, 3, 4]

    blocked = decisions[-1].json()
    assert blocked["maxAttempts"] == 3
    assert blocked["blockDuration"] == 300
    assert blocked["reason"] == "RATE_LIMIT_EXCEEDED"
    assert blocked["message"] == "Rate limit exceeded. Try again in 5 minutes."

    assert decisions[0].headers["X-RateLimit-Limit"] == "3"
    assert decisions[0].headers["X-RateLimit-Remaining"] == "2"
    assert decisions[-1].headers["X-RateLimit-Remaining"] == "0"

    fake_clock.advance(seconds=60)
    response = await client.post("/api/rate-limit/check", json=body)
    assert response.json()["allowed"] is True
    assert response.json()["attempts"] == 1


@pytest.mark.asyncio
async def test_reset_header_is_epoch_millis(client: AsyncClient, fake_clock):
    response = await client.post(
        "/api/rate-limit/check", json={"endpoint": "search", "identifier": "bob"}
    )

    assert response.json()["maxAttempts"] == 100
    assert response.headers["X-RateLimit-Reset"] == str(to_epoch_ms(fake_clock()) + 3600 * 1000)


@pytest.mark.asyncio
async def test_secure_check_uses_same_counter(client: AsyncClient, test_data):
    await configure_login_limit(client, test_data)
    body = {"endpoint": "login", "identifier": "carol"}

    for _ in range(3):
        await client.post("/api/rate-limit/check", json=body)
    response = await client.post("/api/rate-limit/secure-check", json=body)

    assert response.status_code == 200
    assert response.json()["allowed"] is False

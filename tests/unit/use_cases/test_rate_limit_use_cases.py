"""
Unit tests for rate limit check and config use cases
"""

from datetime import timedelta

import pytest
from unittest.mock import AsyncMock

from gateway.app.use_cases.rate_limit import (
    CheckRateLimitUseCase,
    GetRateLimitConfigUseCase,
    RateLimitCheckCommand,
    RateLimitConfigCommand,
    UpsertRateLimitConfigUseCase,
)
from gateway.domain.entities import RateLimitConfig, Severity
from tests.utils.events import logged_events, logged_types

ENDPOINT = "/auth/login"


def login_limit(now):
    return RateLimitConfig(
        endpoint=ENDPOINT,
        max_requests=3,
        window_seconds=60,
        block_duration_seconds=300,
        is_active=True,
        updated_at=now,
    )


def command(identifier="alice@example.com"):
    return RateLimitCheckCommand(endpoint=ENDPOINT, identifier=identifier)


@pytest.mark.asyncio
async def test_unconfigured_endpoint_uses_default_limit(mock_uow, clock, now):
    mock_uow.rate_limit_configs.get_active_by_endpoint = AsyncMock(return_value=None)
    mock_uow.security_events.count_rate_limit_attempts = AsyncMock(side_effect=[0, 1])

    result = await CheckRateLimitUseCase(mock_uow, clock).execute(command(), "203.0.113.5")

    assert result.is_ok()
    decision = result.value
    assert decision.allowed is True
    assert decision.attempts == 1
    assert decision.max_attempts == 100
    assert decision.reset_time == now + timedelta(seconds=3600)
    assert decision.message == "Request allowed"


@pytest.mark.asyncio
@pytest.mark.parametrize("prior", [0, 1, 2])
async def test_attempts_under_limit_are_allowed(mock_uow, clock, now, prior):
    mock_uow.rate_limit_configs.get_active_by_endpoint = AsyncMock(return_value=login_limit(now))
    mock_uow.security_events.count_rate_limit_attempts = AsyncMock(side_effect=[prior, prior + 1])

    result = await CheckRateLimitUseCase(mock_uow, clock).execute(command())

    decision = result.value
    assert decision.allowed is True
    assert decision.attempts == prior + 1
    assert decision.max_attempts == 3
    assert decision.block_duration is None

    event = logged_events(mock_uow)[0]
    assert event.event_type == "rate_limit_attempt"
    assert event.severity == Severity.info
    assert event.source == "rate_limit:/auth/login"
    assert event.actor_id == "alice@example.com"


@pytest.mark.asyncio
async def test_fourth_attempt_in_window_is_blocked(mock_uow, clock, now):
    mock_uow.rate_limit_configs.get_active_by_endpoint = AsyncMock(return_value=login_limit(now))
    mock_uow.security_events.count_rate_limit_attempts = AsyncMock(return_value=3)

    result = await CheckRateLimitUseCase(mock_uow, clock).execute(command(), "203.0.113.5")

    decision = result.value
    assert decision.allowed is False
    assert decision.attempts == 4
    assert decision.max_attempts == 3
    assert decision.block_duration == 300
    assert decision.reason == "RATE_LIMIT_EXCEEDED"
    assert decision.message == "Rate limit exceeded. Try again in 5 minutes."

    # Blocked attempts are recorded too, then the exceeded event
    assert logged_types(mock_uow) == ["rate_limit_attempt", "rate_limit_exceeded"]
    attempt, exceeded = logged_events(mock_uow)
    assert attempt.severity == Severity.high
    assert attempt.payload["blocked"] is True
    assert exceeded.severity == Severity.high
    assert exceeded.source == "server"
    mock_uow.security_events.count_rate_limit_attempts.assert_called_once()


@pytest.mark.asyncio
async def test_counts_by_identifier_or_ip_within_window(mock_uow, clock, now):
    mock_uow.rate_limit_configs.get_active_by_endpoint = AsyncMock(return_value=login_limit(now))
    mock_uow.security_events.count_rate_limit_attempts = AsyncMock(side_effect=[0, 1])

    await CheckRateLimitUseCase(mock_uow, clock).execute(command(), "203.0.113.5")

    first_call = mock_uow.security_events.count_rate_limit_attempts.call_args_list[0]
    assert first_call.args == (
        "rate_limit:/auth/login",
        "alice@example.com",
        "203.0.113.5",
        now - timedelta(seconds=60),
    )


@pytest.mark.asyncio
async def test_concurrent_overshoot_turns_admit_into_block(mock_uow, clock, now):
    mock_uow.rate_limit_configs.get_active_by_endpoint = AsyncMock(return_value=login_limit(now))
    # Prior count looked fine, but racing writers pushed the window past 3 + 2
    mock_uow.security_events.count_rate_limit_attempts = AsyncMock(side_effect=[2, 6])

    result = await CheckRateLimitUseCase(mock_uow, clock).execute(command())

    decision = result.value
    assert decision.allowed is False
    assert decision.attempts == 6
    assert "rate_limit_exceeded" in logged_types(mock_uow)


@pytest.mark.asyncio
async def test_overshoot_within_tolerance_still_admits(mock_uow, clock, now):
    mock_uow.rate_limit_configs.get_active_by_endpoint = AsyncMock(return_value=login_limit(now))
    mock_uow.security_events.count_rate_limit_attempts = AsyncMock(side_effect=[2, 5])

    result = await CheckRateLimitUseCase(mock_uow, clock).execute(command())

    assert result.value.allowed is True
    assert result.value.attempts == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("fail_closed,allowed", [(False, True), (True, False)])
async def test_store_failure_follows_fail_policy(mock_uow, clock, fail_closed, allowed):
    mock_uow.rate_limit_configs.get_active_by_endpoint = AsyncMock(
        side_effect=OSError("connection refused")
    )

    use_case = CheckRateLimitUseCase(mock_uow, clock, fail_closed=fail_closed)
    result = await use_case.execute(command())

    assert result.is_ok()
    decision = result.value
    assert decision.allowed is allowed
    assert decision.attempts == 0
    assert decision.max_attempts == 0
    assert decision.message == "Rate limiting unavailable"
    assert decision.reason == "STORE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_upsert_creates_config(mock_uow, clock, now):
    mock_uow.rate_limit_configs.get_by_endpoint = AsyncMock(return_value=None)
    mock_uow.rate_limit_configs.save = AsyncMock(side_effect=lambda config: config)

    result = await UpsertRateLimitConfigUseCase(mock_uow, clock).execute(
        ENDPOINT,
        RateLimitConfigCommand(max_requests=3, window_seconds=60, block_duration_seconds=300),
    )

    assert result.is_ok()
    assert result.value.endpoint == ENDPOINT
    assert result.value.max_requests == 3
    assert result.value.updated_at == now
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_upsert_updates_existing_config(mock_uow, clock, now):
    existing = login_limit(now - timedelta(days=1))
    mock_uow.rate_limit_configs.get_by_endpoint = AsyncMock(return_value=existing)
    mock_uow.rate_limit_configs.save = AsyncMock(side_effect=lambda config: config)

    result = await UpsertRateLimitConfigUseCase(mock_uow, clock).execute(
        ENDPOINT,
        RateLimitConfigCommand(
            max_requests=10, window_seconds=120, block_duration_seconds=0, is_active=False
        ),
    )

    assert result.value.max_requests == 10
    assert result.value.is_active is False
    assert existing.updated_at == now
    mock_uow.rate_limit_configs.save.assert_called_once_with(existing)


@pytest.mark.asyncio
async def test_get_config_not_found(mock_uow):
    mock_uow.rate_limit_configs.get_by_endpoint = AsyncMock(return_value=None)

    result = await GetRateLimitConfigUseCase(mock_uow).execute("/unknown")

    assert result.is_err()
    assert result.error.code == "RATE_LIMIT_CONFIG_NOT_FOUND"


@pytest.mark.asyncio
async def test_get_config_returns_stored_values(mock_uow, now):
    mock_uow.rate_limit_configs.get_by_endpoint = AsyncMock(return_value=login_limit(now))

    result = await GetRateLimitConfigUseCase(mock_uow).execute(ENDPOINT)

    assert result.is_ok()
    assert result.value.window_seconds == 60
    assert result.value.block_duration_seconds == 300

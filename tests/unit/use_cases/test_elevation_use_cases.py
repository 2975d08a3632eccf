"""
Unit tests for trust elevation
"""

from datetime import timedelta

import pytest
from unittest.mock import AsyncMock

from gateway.app.use_cases.elevation import ElevateTrustCommand, ElevateTrustUseCase, compute_boost
from gateway.domain.entities import SecurityEvent, Severity, TrustLevel
from tests.utils.events import logged_events

USER_ID = "user-42"
DEVICE = "fp-laptop"


def high_risk_event(now, severity):
    return SecurityEvent(
        event_type="suspicious_activity",
        severity=severity,
        actor_id=USER_ID,
        created_at=now - timedelta(hours=2),
    )


def history_event(now, event_type, payload):
    return SecurityEvent(
        event_type=event_type,
        actor_id=USER_ID,
        payload=payload,
        created_at=now - timedelta(days=1),
    )


def stub_history(uow, recent=None, history=None, session_fingerprints=None):
    uow.security_events.list_by_actor_since = AsyncMock(return_value=recent or [])
    uow.security_events.list_by_actor_and_types_since = AsyncMock(return_value=history or [])
    uow.user_sessions.list_fingerprints_active_since = AsyncMock(
        return_value=[DEVICE] if session_fingerprints is None else session_fingerprints
    )


def elevate(uow, clock, score, level, fingerprint=DEVICE):
    command = ElevateTrustCommand(
        current_trust_score=score, required_level=level, device_fingerprint=fingerprint
    )
    return ElevateTrustUseCase(uow, clock).execute(USER_ID, command)


def test_compute_boost_caps_at_threshold_gap_and_max():
    assert compute_boost(80, TrustLevel.critical, 0, 0, True) == 15
    assert compute_boost(60, TrustLevel.elevated, 0, 0, True) == 25
    assert compute_boost(50, TrustLevel.normal, 0, 0, True) == 20


def test_compute_boost_below_minimum_base_is_zero():
    assert compute_boost(49, TrustLevel.normal, 0, 0, True) == 0


def test_compute_boost_applies_penalties():
    assert compute_boost(80, TrustLevel.critical, 1, 2, True) == 15 - 5 - 4
    assert compute_boost(80, TrustLevel.critical, 0, 0, False) == 5


def test_compute_boost_never_negative():
    for score in range(0, 101, 5):
        for level in TrustLevel:
            for critical in range(4):
                for high in range(4):
                    for known in (True, False):
                        boost = compute_boost(score, level, critical, high, known)
                        assert boost >= 0
                        assert min(100, score + boost) >= score


@pytest.mark.asyncio
async def test_critical_elevation_from_80_succeeds(mock_uow, clock):
    stub_history(mock_uow)

    result = await elevate(mock_uow, clock, 80, TrustLevel.critical)

    response = result.value
    assert response.success is True
    assert response.new_trust_score == 95
    assert response.method == "critical_security_challenge"
    assert response.additional_steps_required == [
        "Multi-factor authentication required",
        "Device verification required",
        "Security question verification",
        "Time-limited access (1 hour maximum)",
    ]
    assert response.message == "Access elevated successfully using critical_security_challenge"

    event = logged_events(mock_uow)[0]
    assert event.event_type == "access_elevation_attempt"
    assert event.payload["score_boost"] == 15
    assert event.payload["success"] is True


@pytest.mark.asyncio
async def test_critical_event_penalty_blocks_elevation(mock_uow, clock, now):
    stub_history(mock_uow, recent=[high_risk_event(now, Severity.critical)])

    result = await elevate(mock_uow, clock, 80, TrustLevel.critical)

    response = result.value
    assert response.success is False
    assert response.new_trust_score == 90
    assert "Security incident review required" in response.additional_steps_required
    assert response.message == "Elevation failed - additional verification required"
    assert logged_events(mock_uow)[0].severity == Severity.medium


@pytest.mark.asyncio
async def test_already_sufficient_is_logged(mock_uow, clock):
    result = await elevate(mock_uow, clock, 90, TrustLevel.elevated)

    response = result.value
    assert response.success is True
    assert response.new_trust_score == 90
    assert response.method == "already_sufficient"
    event = logged_events(mock_uow)[0]
    assert event.event_type == "access_elevation_attempt"
    assert event.actor_id == USER_ID
    assert event.payload["method"] == "already_sufficient"
    assert event.payload["score_boost"] == 0
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_already_sufficient_survives_logging_failure(mock_uow, clock):
    mock_uow.security_events.create = AsyncMock(side_effect=OSError("unreachable"))

    result = await elevate(mock_uow, clock, 96, TrustLevel.critical)

    assert result.value.success is True
    assert result.value.method == "already_sufficient"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "level,score,message",
    [
        (TrustLevel.critical, 74, "Trust score too low for critical access elevation"),
        (TrustLevel.elevated, 59, "Trust score too low for elevated access"),
    ],
)
async def test_insufficient_base_score(mock_uow, clock, level, score, message):
    stub_history(mock_uow)

    result = await elevate(mock_uow, clock, score, level)

    response = result.value
    assert response.success is False
    assert response.new_trust_score == score
    assert response.method == "insufficient_base_score"
    assert response.reason == "INSUFFICIENT_BASE_SCORE"
    assert response.message == message
    mock_uow.security_events.list_by_actor_since.assert_not_called()
    assert logged_events(mock_uow)[0].payload["method"] == "insufficient_base_score"


@pytest.mark.asyncio
async def test_normal_level_below_base_gets_no_boost(mock_uow, clock):
    stub_history(mock_uow)

    result = await elevate(mock_uow, clock, 40, TrustLevel.normal)

    response = result.value
    assert response.success is False
    assert response.new_trust_score == 40
    assert response.method == "basic_verification"


@pytest.mark.asyncio
async def test_unknown_device_is_penalised(mock_uow, clock):
    stub_history(mock_uow, session_fingerprints=[])

    result = await elevate(mock_uow, clock, 70, TrustLevel.elevated, fingerprint="fp-new")

    response = result.value
    assert response.success is False
    assert response.new_trust_score == 75
    assert response.additional_steps_required[-1] == "New device verification required"


@pytest.mark.asyncio
async def test_device_known_from_successful_validation_event(mock_uow, clock, now):
    history = [
        history_event(
            now,
            "session_validation",
            {"valid": True, "reason": "ok", "security_level": "normal", "device_fingerprint": "fp-phone"},
        )
    ]
    stub_history(mock_uow, history=history, session_fingerprints=[])

    result = await elevate(mock_uow, clock, 70, TrustLevel.elevated, fingerprint="fp-phone")

    assert result.value.success is True
    assert result.value.new_trust_score == 85


@pytest.mark.asyncio
async def test_failed_checks_do_not_vouch_for_device(mock_uow, clock, now):
    history = [
        history_event(
            now,
            "session_validation",
            {"valid": False, "reason": "UNKNOWN_DEVICE", "security_level": "critical", "device_fingerprint": "fp-x"},
        ),
        history_event(
            now,
            "access_elevation_attempt",
            {
                "required_level": "elevated",
                "current_score": 70,
                "new_trust_score": 75,
                "score_boost": 5,
                "method": "enhanced_verification",
                "success": False,
                "device_fingerprint": "fp-x",
            },
        ),
    ]
    stub_history(mock_uow, history=history, session_fingerprints=[])

    result = await elevate(mock_uow, clock, 70, TrustLevel.elevated, fingerprint="fp-x")

    assert result.value.success is False
    assert logged_events(mock_uow)[0].payload["known_device"] is False


@pytest.mark.asyncio
async def test_store_failure_reports_unavailable(mock_uow, clock):
    mock_uow.security_events.list_by_actor_since = AsyncMock(side_effect=OSError("unreachable"))

    result = await elevate(mock_uow, clock, 80, TrustLevel.critical)

    assert result.is_ok()
    response = result.value
    assert response.success is False
    assert response.new_trust_score == 80
    assert response.reason == "STORE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_already_sufficient_attempt_does_not_vouch_for_device(mock_uow, clock, now):
    history = [
        history_event(
            now,
            "access_elevation_attempt",
            {
                "required_level": "normal",
                "current_score": 90,
                "new_trust_score": 90,
                "score_boost": 0,
                "method": "already_sufficient",
                "success": True,
                "device_fingerprint": "fp-x",
            },
        ),
    ]
    stub_history(mock_uow, history=history, session_fingerprints=[])

    result = await elevate(mock_uow, clock, 70, TrustLevel.elevated, fingerprint="fp-x")

    assert result.value.new_trust_score == 75
    assert logged_events(mock_uow)[0].payload["known_device"] is False

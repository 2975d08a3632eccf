"""
Unit tests for geo-risk assessment
"""

import pytest

from gateway.app.services.geo_lookup import GeoLocation
from gateway.app.use_cases.geo import (
    AssessGeoRiskUseCase,
    GeoCheckCommand,
    GeoRiskScorer,
    is_local_address,
)
from gateway.domain.entities import Severity
from tests.utils.events import logged_events
from tests.utils.geo import FakeGeoLookup

KNOWN = {
    "8.8.8.8": GeoLocation(country="United States", country_code="US"),
    "175.45.176.1": GeoLocation(country="North Korea", country_code="KP"),
    "177.10.10.10": GeoLocation(country="Brazil", country_code="BR"),
    "177.20.20.20": GeoLocation(country="Brazil", country_code="BR", is_proxy=True),
    "185.220.101.1": GeoLocation(country="Germany", country_code="DE", is_tor=True),
    "34.120.0.1": GeoLocation(country="United States", country_code="US", is_vpn=True),
}


def assess(uow, clock, ip, lookup=None, **kwargs):
    use_case = AssessGeoRiskUseCase(uow, lookup or FakeGeoLookup(KNOWN), clock, **kwargs)
    return use_case.execute(GeoCheckCommand(ip_address=ip, admin_email="admin@example.com"))


@pytest.mark.parametrize(
    "ip,expected",
    [
        ("localhost", True),
        ("127.0.0.1", True),
        ("10.1.2.3", True),
        ("192.168.0.10", True),
        ("169.254.1.1", True),
        ("::1", True),
        ("8.8.8.8", False),
    ],
)
def test_is_local_address(ip, expected):
    assert is_local_address(ip) is expected


def test_is_local_address_rejects_garbage():
    with pytest.raises(ValueError):
        is_local_address("not-an-ip")


def test_scorer_stacks_country_and_network_flags():
    scorer = GeoRiskScorer()
    assert scorer.score(KNOWN["8.8.8.8"]) == 0
    assert scorer.score(KNOWN["177.10.10.10"]) == 40
    assert scorer.score(KNOWN["177.20.20.20"]) == 70
    assert scorer.score(KNOWN["185.220.101.1"]) == 50
    assert scorer.score(GeoLocation(country_code="KP", is_tor=True, is_proxy=True)) == 100


def test_scorer_uses_configured_country_lists():
    scorer = GeoRiskScorer(allowed_countries=["br"], blocked_countries=["us"])
    assert scorer.score(KNOWN["177.10.10.10"]) == 0
    assert scorer.is_blocked(KNOWN["8.8.8.8"]) is True


@pytest.mark.asyncio
async def test_local_address_skips_lookup_and_logging(mock_uow, clock):
    lookup = FakeGeoLookup(KNOWN)

    result = await assess(mock_uow, clock, "192.168.1.20", lookup=lookup)

    assessment = result.value
    assert assessment.allowed is True
    assert assessment.risk_score == 0
    assert assessment.threat_level == "low"
    assert lookup.calls == []
    assert logged_events(mock_uow) == []


@pytest.mark.asyncio
async def test_invalid_ip_is_an_error(mock_uow, clock):
    result = await assess(mock_uow, clock, "999.1.1.1")

    assert result.is_err()
    assert result.error.code == "INVALID_IP_ADDRESS"


@pytest.mark.asyncio
async def test_clean_address_is_allowed(mock_uow, clock):
    result = await assess(mock_uow, clock, "8.8.8.8")

    assessment = result.value
    assert assessment.allowed is True
    assert assessment.flagged_for_review is False
    assert assessment.risk_score == 0
    assert assessment.geo_data["country_code"] == "US"

    event = logged_events(mock_uow)[0]
    assert event.event_type == "geo_check_passed"
    assert event.severity == Severity.info
    assert event.source == "geo_block_check"
    assert event.risk_score == 0


@pytest.mark.asyncio
async def test_blocked_country_is_hard_block(mock_uow, clock):
    result = await assess(mock_uow, clock, "175.45.176.1")

    assessment = result.value
    assert assessment.allowed is False
    assert assessment.code == "GEO_BLOCKED"
    assert assessment.risk_score == 100
    assert assessment.threat_level == "critical"
    assert assessment.reason == "Access blocked from North Korea - high-risk region"

    event = logged_events(mock_uow)[0]
    assert event.event_type == "geo_check_blocked"
    assert event.severity == Severity.critical
    assert event.risk_score == 100


@pytest.mark.asyncio
async def test_proxy_from_neutral_country_reaches_block_threshold(mock_uow, clock):
    result = await assess(mock_uow, clock, "177.20.20.20")

    assessment = result.value
    assert assessment.allowed is False
    assert assessment.code == "GEO_HIGH_RISK"
    assert assessment.risk_score == 70
    assert assessment.reason == "High risk detected (score: 70) - Proxy detected"


@pytest.mark.asyncio
async def test_neutral_country_is_flagged_for_review(mock_uow, clock):
    result = await assess(mock_uow, clock, "177.10.10.10")

    assessment = result.value
    assert assessment.allowed is True
    assert assessment.flagged_for_review is True
    assert assessment.risk_score == 40
    assert assessment.threat_level == "medium"
    assert logged_events(mock_uow)[0].severity == Severity.warning


@pytest.mark.asyncio
async def test_vpn_in_allowed_country_is_scored_but_low_threat(mock_uow, clock):
    result = await assess(mock_uow, clock, "34.120.0.1")

    assessment = result.value
    assert assessment.allowed is True
    assert assessment.flagged_for_review is False
    assert assessment.risk_score == 25
    assert assessment.threat_level == "low"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "lookup",
    [FakeGeoLookup(fail=True), FakeGeoLookup(delay=1.0), FakeGeoLookup()],
    ids=["error", "timeout", "no-answer"],
)
async def test_unresolvable_address_is_unknown_and_flagged(mock_uow, clock, lookup):
    result = await assess(mock_uow, clock, "1.1.1.1", lookup=lookup, lookup_timeout=0.05)

    assessment = result.value
    assert assessment.allowed is True
    assert assessment.flagged_for_review is True
    assert assessment.risk_score == 50
    assert assessment.threat_level == "medium"
    assert assessment.reason == "Location unknown - logged for review"


@pytest.mark.asyncio
async def test_logging_failure_does_not_change_verdict(mock_uow, clock):
    mock_uow.commit.side_effect = OSError("disk full")

    result = await assess(mock_uow, clock, "8.8.8.8")

    assert result.is_ok()
    assert result.value.allowed is True

"""
Assess Geo Risk Use Case

Scores a network address by country and network type and decides
allow, allow-and-flag, or block.
"""

import asyncio
import ipaddress
import logging
from typing import Iterable, Optional

from gateway.app.services.event_filter import EventFilter
from gateway.app.services.geo_lookup import GeoLocation, GeoLookup, GeoLookupError
from gateway.app.services.security_event_logger import SecurityEventLogger
from gateway.app.services.store_guard import StoreUnavailableError, guarded
from gateway.app.services.unit_of_work import UnitOfWork
from gateway.domain.base import Clock, utc_now
from gateway.domain.constants import (
    DEFAULT_STORE_TIMEOUT_SECONDS,
    GEO_BLOCK_THRESHOLD,
    GEO_BLOCKED_COUNTRY_SCORE,
    GEO_DATACENTER_SCORE,
    GEO_DEFAULT_ALLOWED_COUNTRIES,
    GEO_DEFAULT_BLOCKED_COUNTRIES,
    GEO_NON_ALLOWED_COUNTRY_SCORE,
    GEO_PROXY_SCORE,
    GEO_REVIEW_THRESHOLD,
    GEO_TOR_SCORE,
    GEO_UNKNOWN_SCORE,
    GEO_VPN_SCORE,
    TRUST_SCORE_MAX,
    TRUST_SCORE_MIN,
)
from gateway.domain.entities import ErrorCode, Severity, ThreatLevel
from gateway.domain.payloads import GeoCheckPayload
from gateway.libs.result import Error, Result, Return

from .dtos import GeoAssessment, GeoCheckCommand

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_TIMEOUT_SECONDS = 3.0


def is_local_address(ip: str) -> bool:
    """Private, loopback and link-local addresses never leave the network."""
    if ip == "localhost":
        return True
    address = ipaddress.ip_address(ip)
    return address.is_private or address.is_loopback or address.is_link_local


class GeoRiskScorer:
    """Three-tier country policy (allowed / neutral / blocked) plus network flags"""

    def __init__(
        self,
        allowed_countries: Iterable[str] = GEO_DEFAULT_ALLOWED_COUNTRIES,
        blocked_countries: Iterable[str] = GEO_DEFAULT_BLOCKED_COUNTRIES,
    ):
        self.allowed_countries = {c.upper() for c in allowed_countries}
        self.blocked_countries = {c.upper() for c in blocked_countries}

    def is_blocked(self, geo: GeoLocation) -> bool:
        return geo.country_code.upper() in self.blocked_countries

    def score(self, geo: GeoLocation) -> int:
        code = geo.country_code.upper()
        score = 0
        if code in self.blocked_countries:
            score += GEO_BLOCKED_COUNTRY_SCORE
        elif code not in self.allowed_countries:
            score += GEO_NON_ALLOWED_COUNTRY_SCORE
        if geo.is_proxy:
            score += GEO_PROXY_SCORE
        if geo.is_vpn:
            score += GEO_VPN_SCORE
        if geo.is_tor:
            score += GEO_TOR_SCORE
        if geo.is_datacenter:
            score += GEO_DATACENTER_SCORE
        return max(TRUST_SCORE_MIN, min(TRUST_SCORE_MAX, score))

    def threat_level(self, geo: GeoLocation) -> ThreatLevel:
        code = geo.country_code.upper()
        if code in self.blocked_countries:
            return ThreatLevel.critical
        if geo.is_proxy or geo.is_tor or geo.is_datacenter:
            return ThreatLevel.high
        if code not in self.allowed_countries:
            return ThreatLevel.medium
        return ThreatLevel.low


def _high_risk_cause(geo: GeoLocation) -> str:
    if geo.is_tor:
        return "Tor exit node"
    if geo.is_proxy:
        return "Proxy detected"
    if geo.is_datacenter:
        return "Datacenter IP"
    return "Unusual location"


class AssessGeoRiskUseCase:
    """
    Use case for geographic/network risk assessment.

    Business Rules:
    - Local addresses score 0, threat low, always allowed
    - Block-list country is a hard block whatever the score
    - score >= 70 blocks, 40 <= score < 70 allows but flags for review
    - Lookup failure or timeout is treated as unknown: score 50, medium, flagged
    - Logged as critical (blocked), warning (flagged) or info (clean)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        geo_lookup: GeoLookup,
        clock: Clock = utc_now,
        event_filter: Optional[EventFilter] = None,
        scorer: Optional[GeoRiskScorer] = None,
        lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT_SECONDS,
        store_timeout: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ):
        self.uow = uow
        self.geo_lookup = geo_lookup
        self.scorer = scorer or GeoRiskScorer()
        self.lookup_timeout = lookup_timeout
        self.store_timeout = store_timeout
        self.events = SecurityEventLogger(uow, event_filter, clock, store_timeout)

    async def execute(self, command: GeoCheckCommand) -> Result[GeoAssessment]:
        ip = command.ip_address.strip()
        try:
            local = is_local_address(ip)
        except ValueError:
            return Return.err(
                Error(ErrorCode.INVALID_IP_ADDRESS.value, f"Invalid IP address: {ip}")
            )

        if local:
            logger.info(f"Local/private address {ip}, allowing")
            return Return.ok(
                GeoAssessment(
                    allowed=True,
                    reason="Local/private network",
                    risk_score=0,
                    threat_level=ThreatLevel.low.value,
                    geo_data={"country": "Local", "country_code": "LO"},
                )
            )

        geo = await self._lookup(ip)
        assessment = self._assess(geo)

        if not assessment.allowed:
            severity = Severity.critical
        elif assessment.flagged_for_review:
            severity = Severity.warning
        else:
            severity = Severity.info

        try:
            async with self.uow:
                await self.events.log(
                    "geo_check_passed" if assessment.allowed else "geo_check_blocked",
                    severity,
                    "geo_block_check",
                    GeoCheckPayload(
                        ip_address=ip,
                        action=command.action,
                        admin_email=command.admin_email,
                        geo_data=assessment.geo_data,
                        risk_score=assessment.risk_score,
                        result="allowed" if assessment.allowed else "blocked",
                        reason=assessment.reason,
                    ),
                    ip_address=ip,
                    risk_score=assessment.risk_score,
                )
                await guarded(self.uow.commit(), self.store_timeout)
        except StoreUnavailableError as exc:
            logger.error(f"Could not record geo assessment for {ip}: {exc}")

        logger.info(
            f"Geo check for {ip}: {'ALLOWED' if assessment.allowed else 'BLOCKED'} "
            f"(risk: {assessment.risk_score})"
        )
        return Return.ok(assessment)

    async def _lookup(self, ip: str) -> Optional[GeoLocation]:
        try:
            return await asyncio.wait_for(self.geo_lookup.lookup(ip), timeout=self.lookup_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Geo lookup timed out for {ip}")
        except GeoLookupError as exc:
            logger.warning(f"Geo lookup failed for {ip}: {exc}")
        return None

    def _assess(self, geo: Optional[GeoLocation]) -> GeoAssessment:
        if geo is None:
            return GeoAssessment(
                allowed=True,
                reason="Location unknown - logged for review",
                risk_score=GEO_UNKNOWN_SCORE,
                threat_level=ThreatLevel.medium.value,
                flagged_for_review=True,
            )

        score = self.scorer.score(geo)
        threat = self.scorer.threat_level(geo).value
        geo_data = geo.model_dump()
        geo_data["threat_level"] = threat

        if self.scorer.is_blocked(geo):
            return GeoAssessment(
                allowed=False,
                reason=f"Access blocked from {geo.country} - high-risk region",
                code=ErrorCode.GEO_BLOCKED.value,
                risk_score=TRUST_SCORE_MAX,
                threat_level=threat,
                geo_data=geo_data,
            )
        if score >= GEO_BLOCK_THRESHOLD:
            return GeoAssessment(
                allowed=False,
                reason=f"High risk detected (score: {score}) - {_high_risk_cause(geo)}",
                code=ErrorCode.GEO_HIGH_RISK.value,
                risk_score=score,
                threat_level=threat,
                geo_data=geo_data,
            )
        if score >= GEO_REVIEW_THRESHOLD:
            return GeoAssessment(
                allowed=True,
                reason=f"Medium risk location ({geo.country}) - logged for review",
                risk_score=score,
                threat_level=threat,
                geo_data=geo_data,
                flagged_for_review=True,
            )
        return GeoAssessment(
            allowed=True, risk_score=score, threat_level=threat, geo_data=geo_data
        )

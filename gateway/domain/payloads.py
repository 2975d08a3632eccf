"""
Typed security event payloads.

The events table stores a free-form JSON payload. Writers build one of the
models below; readers call parse_payload() and get the matching model back,
or OtherPayload wrapping the raw dict for event types this service does not
model (client-reported events, older rows).
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError


class EventPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class TokenIssuedPayload(EventPayload):
    session_id: str
    token_expiration: str
    security_level: str
    rotation_scheduled: bool = False
    entropy_sources: Dict[str, bool] = {}


class TokenValidationPayload(EventPayload):
    token_preview: str
    reason: Optional[str] = None
    session_id: Optional[str] = None
    expected_session: Optional[str] = None


class RateLimitAttemptPayload(EventPayload):
    endpoint: str
    identifier: str
    action: str = "access"
    attempt_count: int
    max_requests: int
    window_seconds: int
    blocked: bool
    block_duration_seconds: Optional[int] = None


class SessionValidationPayload(EventPayload):
    valid: bool
    reason: str
    security_level: str
    actions: List[str] = []
    device_fingerprint: str
    validation_timestamp: Optional[int] = None


class GeoCheckPayload(EventPayload):
    ip_address: str
    action: str = "login"
    admin_email: Optional[str] = None
    geo_data: Optional[Dict[str, Any]] = None
    risk_score: int
    result: str
    reason: Optional[str] = None


class ElevationAttemptPayload(EventPayload):
    required_level: str
    current_score: int
    new_trust_score: int
    score_boost: int
    method: str
    success: bool
    device_fingerprint: str
    critical_events: int = 0
    high_events: int = 0
    known_device: bool = True
    additional_steps_required: List[str] = []


class OtherPayload(EventPayload):
    raw: Dict[str, Any] = {}


PAYLOAD_TYPES = {
    "csrf_token_generated": TokenIssuedPayload,
    "csrf_token_validation_failed": TokenValidationPayload,
    "csrf_token_session_mismatch": TokenValidationPayload,
    "csrf_token_validated_successfully": TokenValidationPayload,
    "rate_limit_attempt": RateLimitAttemptPayload,
    "rate_limit_exceeded": RateLimitAttemptPayload,
    "session_validation": SessionValidationPayload,
    "geo_check_passed": GeoCheckPayload,
    "geo_check_blocked": GeoCheckPayload,
    "access_elevation_attempt": ElevationAttemptPayload,
}

AnyPayload = Union[
    TokenIssuedPayload,
    TokenValidationPayload,
    RateLimitAttemptPayload,
    SessionValidationPayload,
    GeoCheckPayload,
    ElevationAttemptPayload,
    OtherPayload,
]


def parse_payload(event_type: str, raw: Optional[Dict[str, Any]]) -> AnyPayload:
    """Decode a stored payload into its typed model, falling back to OtherPayload."""
    raw = raw or {}
    model = PAYLOAD_TYPES.get(event_type)
    if model is None:
        return OtherPayload(raw=raw)
    try:
        return model.model_validate(raw)
    except ValidationError:
        return OtherPayload(raw=raw)


def device_fingerprint_of(event_type: str, raw: Optional[Dict[str, Any]]) -> Optional[str]:
    """Device fingerprint carried by an event payload, if any."""
    payload = parse_payload(event_type, raw)
    if isinstance(payload, OtherPayload):
        value = payload.raw.get("device_fingerprint") or payload.raw.get("deviceFingerprint")
        return value if isinstance(value, str) else None
    return getattr(payload, "device_fingerprint", None)

"""
Trust Gateway Domain Enums

All enumeration types used across domain entities and use cases.
"""

from enum import Enum


class Severity(str, Enum):
    """Security event severity"""

    info = "info"
    low = "low"
    medium = "medium"
    warning = "warning"
    high = "high"
    critical = "critical"


class SecurityLevel(str, Enum):
    """Session security level, ordered normal < enhanced < critical"""

    normal = "normal"
    enhanced = "enhanced"
    critical = "critical"


class TokenSecurityLevel(str, Enum):
    standard = "standard"
    enhanced = "enhanced"


class TokenStatus(str, Enum):
    active = "active"
    used = "used"
    expired = "expired"


class SessionStatus(str, Enum):
    """Session state machine: active -> stale | anomalous | revoked"""

    active = "active"
    stale = "stale"
    anomalous = "anomalous"
    revoked = "revoked"


class ThreatLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class TrustLevel(str, Enum):
    """Level a sensitive operation requires"""

    normal = "normal"
    elevated = "elevated"
    critical = "critical"


class ElevationMethod(str, Enum):
    already_sufficient = "already_sufficient"
    critical_security_challenge = "critical_security_challenge"
    enhanced_verification = "enhanced_verification"
    basic_verification = "basic_verification"
    insufficient_base_score = "insufficient_base_score"


class AlertStatus(str, Enum):
    open = "open"
    acknowledged = "acknowledged"
    resolved = "resolved"


class ErrorCode(str, Enum):
    """Denial and failure taxonomy surfaced to callers"""

    REPLAY_WINDOW_VIOLATION = "REPLAY_WINDOW_VIOLATION"
    INVALID_SESSION_IDENTIFIER = "INVALID_SESSION_IDENTIFIER"
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_SESSION_MISMATCH = "TOKEN_SESSION_MISMATCH"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    UNKNOWN_DEVICE = "UNKNOWN_DEVICE"
    SESSION_EXPIRED_FOR_DEVICE = "SESSION_EXPIRED_FOR_DEVICE"
    SESSION_TOO_OLD = "SESSION_TOO_OLD"
    CRITICAL_EVENTS_DETECTED = "CRITICAL_EVENTS_DETECTED"
    AUTOMATED_ATTACK_SUSPECTED = "AUTOMATED_ATTACK_SUSPECTED"
    GEO_BLOCKED = "GEO_BLOCKED"
    GEO_HIGH_RISK = "GEO_HIGH_RISK"
    INSUFFICIENT_BASE_SCORE = "INSUFFICIENT_BASE_SCORE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    INVALID_IP_ADDRESS = "INVALID_IP_ADDRESS"
    UNAUTHORIZED = "UNAUTHORIZED"


SECURITY_LEVEL_RANK = {
    SecurityLevel.normal: 0,
    SecurityLevel.enhanced: 1,
    SecurityLevel.critical: 2,
}


def escalate(current: SecurityLevel, candidate: SecurityLevel) -> SecurityLevel:
    """Return the stricter of two security levels."""
    if SECURITY_LEVEL_RANK[candidate] > SECURITY_LEVEL_RANK[current]:
        return candidate
    return current

"""
Trust Gateway Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AlertStatus,
    ElevationMethod,
    ErrorCode,
    SecurityLevel,
    SessionStatus,
    Severity,
    ThreatLevel,
    TokenSecurityLevel,
    TokenStatus,
    TrustLevel,
)

# Export all entities
from .security_event import SecurityEvent
from .security_config import SecurityConfig
from .user_session import UserSession
from .rate_limit_config import RateLimitConfig
from .security_alert import SecurityAlert

__all__ = [
    # Enums
    "AlertStatus",
    "ElevationMethod",
    "ErrorCode",
    "SecurityLevel",
    "SessionStatus",
    "Severity",
    "ThreatLevel",
    "TokenSecurityLevel",
    "TokenStatus",
    "TrustLevel",
    # Entities
    "SecurityEvent",
    "SecurityConfig",
    "UserSession",
    "RateLimitConfig",
    "SecurityAlert",
]

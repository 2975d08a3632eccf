"""
Rate Limit Use Cases
"""

from .check_rate_limit_use_case import CheckRateLimitUseCase
from .rate_limit_config_use_cases import GetRateLimitConfigUseCase, UpsertRateLimitConfigUseCase
from .dtos import (
    RateLimitCheckCommand,
    RateLimitConfigCommand,
    RateLimitConfigResponse,
    RateLimitDecision,
)

__all__ = [
    "CheckRateLimitUseCase",
    "UpsertRateLimitConfigUseCase",
    "GetRateLimitConfigUseCase",
    "RateLimitCheckCommand",
    "RateLimitDecision",
    "RateLimitConfigCommand",
    "RateLimitConfigResponse",
]

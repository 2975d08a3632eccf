"""
Rate Limit Use Case DTOs
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from gateway.domain.base import CamelModel


class RateLimitCheckCommand(CamelModel):
    endpoint: str = Field(..., min_length=1, max_length=255)
    identifier: str = Field(..., min_length=1, max_length=255)
    action: str = "access"


class RateLimitDecision(CamelModel):
    """Admit/block verdict; returned with HTTP 200 either way"""

    allowed: bool
    attempts: int
    max_attempts: int
    reset_time: Optional[datetime] = None
    block_duration: Optional[int] = None
    message: str
    reason: Optional[str] = None


class RateLimitConfigCommand(CamelModel):
    max_requests: int = Field(..., gt=0)
    window_seconds: int = Field(..., gt=0)
    block_duration_seconds: int = Field(..., ge=0)
    is_active: bool = True


class RateLimitConfigResponse(CamelModel):
    endpoint: str
    max_requests: int
    window_seconds: int
    block_duration_seconds: int
    is_active: bool
    updated_at: datetime

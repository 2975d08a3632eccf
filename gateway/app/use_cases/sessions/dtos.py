"""
Session Use Case DTOs
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from gateway.domain.base import CamelModel


class RegisterSessionCommand(CamelModel):
    device_fingerprint: str = Field(..., min_length=1, max_length=255)


class RegisterSessionResponse(CamelModel):
    session_id: str
    user_id: str
    expires_at: datetime


class ValidateSessionCommand(CamelModel):
    device_fingerprint: str = Field(..., min_length=1, max_length=255)
    timestamp: Optional[int] = Field(None, description="Client clock, epoch milliseconds")


class SessionValidationResponse(CamelModel):
    """Single validity verdict with the accumulated security level and actions"""

    valid: bool
    reason: Optional[str] = None
    security_level: str
    actions: List[str] = []

"""
Token Use Case DTOs

Commands and responses for anti-forgery token issue and validation.
JSON field names are camelCase to match the browser client.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from gateway.domain.base import CamelModel


class IssueTokenCommand(CamelModel):
    """Request to issue a token bound to a session"""

    session_id: str = Field(..., description="Session the token is bound to")
    timestamp: int = Field(..., description="Client clock, epoch milliseconds")
    user_agent: Optional[str] = None
    entropy: Optional[str] = None
    behavioral_fingerprint: Optional[str] = None
    additional_entropy: Optional[str] = None
    rotation_scheduled: bool = False


class IssueTokenResponse(CamelModel):
    token: str
    expires_at: datetime
    security_level: str
    rotation_scheduled: bool


class ValidateTokenCommand(CamelModel):
    token: str
    session_id: Optional[str] = None


class TokenValidationResponse(CamelModel):
    is_valid: bool
    reason: Optional[str] = None


"""
Security Event Use Case DTOs
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from gateway.domain.entities import Severity


class RecordSecurityEventCommand(BaseModel):
    event_type: str = Field(..., min_length=1, max_length=100)
    severity: Severity = Severity.info
    source: str = Field("client", max_length=100)
    event_data: Dict[str, Any] = Field(default_factory=dict)
    session_id: Optional[str] = None
    user_id: Optional[str] = None


class RecordSecurityEventResponse(BaseModel):
    success: bool
    logged: bool
    event_id: Optional[str] = None
    reason: Optional[str] = None


class OptimizeSecurityEventsResponse(BaseModel):
    client_log_events_cleaned: int
    low_priority_events_cleaned: int
    expired_tokens_deactivated: int

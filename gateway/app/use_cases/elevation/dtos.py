"""
Trust Elevation Use Case DTOs
"""

from typing import List, Optional

from pydantic import Field

from gateway.domain.base import CamelModel
from gateway.domain.entities import TrustLevel


class ElevateTrustCommand(CamelModel):
    current_trust_score: int = Field(..., ge=0, le=100)
    required_level: TrustLevel
    device_fingerprint: str = Field(..., min_length=1, max_length=255)
    timestamp: Optional[int] = None


class ElevationResponse(CamelModel):
    success: bool
    new_trust_score: int
    method: str
    additional_steps_required: List[str] = []
    message: str
    reason: Optional[str] = None

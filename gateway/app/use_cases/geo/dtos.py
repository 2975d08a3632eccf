"""
Geo-Risk Use Case DTOs

Field names stay snake_case; this endpoint's callers are server-side.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class GeoCheckCommand(BaseModel):
    ip_address: str = Field(..., min_length=1, max_length=64)
    admin_email: Optional[str] = None
    action: str = "login"


class GeoAssessment(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    code: Optional[str] = None
    risk_score: int
    threat_level: str
    geo_data: Optional[Dict[str, Any]] = None
    flagged_for_review: bool = False

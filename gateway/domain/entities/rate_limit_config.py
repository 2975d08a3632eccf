"""
RateLimitConfig Entity

Per-endpoint sliding-window limits, administrator managed.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from gateway.domain.base import utc_now


class RateLimitConfig(SQLModel, table=True):
    """
    RateLimitConfig entity - read-only to the gateway at request time.

    Business Rules:
    - One row per endpoint
    - Inactive rows are ignored and the default limit applies
    """

    __tablename__ = "rate_limit_configs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    endpoint: str = Field(max_length=255, unique=True, index=True)
    max_requests: int = Field(gt=0)
    window_seconds: int = Field(gt=0)
    block_duration_seconds: int = Field(ge=0)
    is_active: bool = Field(default=True)

    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

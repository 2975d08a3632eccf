"""
SecurityConfig Entity

Keyed, expiring configuration rows. One-time anti-forgery tokens live here.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from gateway.domain.base import utc_now


class SecurityConfig(SQLModel, table=True):
    """
    SecurityConfig entity - mutable keyed configuration with expiry.

    Business Rules:
    - config_key is unique
    - Token records use key "csrf_token:<sha256 of token>", never the raw token
    - is_active flips true -> false exactly once for a token record
    """

    __tablename__ = "security_configs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    config_key: str = Field(max_length=255, unique=True)
    config_value: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    is_active: bool = Field(default=True)

    expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_security_config_active", "is_active"),
        Index("idx_security_config_expires_at", "expires_at"),
    )

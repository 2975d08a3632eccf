"""
Token Use Cases

Issue, validate and sweep one-time anti-forgery tokens.
"""

from .issue_token_use_case import IssueTokenUseCase
from .validate_token_use_case import ValidateTokenUseCase
from .sweep_expired_tokens_use_case import SweepExpiredTokensUseCase
from .dtos import (
    IssueTokenCommand,
    IssueTokenResponse,
    TokenValidationResponse,
    ValidateTokenCommand,
)

__all__ = [
    # Use Cases
    "IssueTokenUseCase",
    "ValidateTokenUseCase",
    "SweepExpiredTokensUseCase",
    # DTOs
    "IssueTokenCommand",
    "IssueTokenResponse",
    "ValidateTokenCommand",
    "TokenValidationResponse",
]

"""
Session Use Cases

Session registration and trust validation.
"""

from .register_session_use_case import RegisterSessionUseCase
from .validate_session_use_case import ValidateSessionUseCase, detect_burst
from .dtos import (
    RegisterSessionCommand,
    RegisterSessionResponse,
    SessionValidationResponse,
    ValidateSessionCommand,
)

__all__ = [
    "RegisterSessionUseCase",
    "ValidateSessionUseCase",
    "detect_burst",
    "RegisterSessionCommand",
    "RegisterSessionResponse",
    "ValidateSessionCommand",
    "SessionValidationResponse",
]

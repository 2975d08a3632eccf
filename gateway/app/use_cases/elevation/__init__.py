"""
Trust Elevation Use Cases
"""

from .elevate_trust_use_case import ElevateTrustUseCase, compute_boost
from .dtos import ElevateTrustCommand, ElevationResponse

__all__ = [
    "ElevateTrustUseCase",
    "compute_boost",
    "ElevateTrustCommand",
    "ElevationResponse",
]

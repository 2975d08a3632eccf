"""
Geo-Risk Use Cases
"""

from .assess_geo_risk_use_case import AssessGeoRiskUseCase, GeoRiskScorer, is_local_address
from .dtos import GeoAssessment, GeoCheckCommand

__all__ = [
    "AssessGeoRiskUseCase",
    "GeoRiskScorer",
    "is_local_address",
    "GeoCheckCommand",
    "GeoAssessment",
]

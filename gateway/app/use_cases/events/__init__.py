"""
Security Event Use Cases

Event ingestion and store maintenance.
"""

from .record_security_event_use_case import RecordSecurityEventUseCase
from .optimize_security_events_use_case import OptimizeSecurityEventsUseCase
from .dtos import (
    OptimizeSecurityEventsResponse,
    RecordSecurityEventCommand,
    RecordSecurityEventResponse,
)

__all__ = [
    "RecordSecurityEventUseCase",
    "OptimizeSecurityEventsUseCase",
    "RecordSecurityEventCommand",
    "RecordSecurityEventResponse",
    "OptimizeSecurityEventsResponse",
]

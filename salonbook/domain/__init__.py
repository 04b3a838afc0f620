"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    BreakPeriod,
    Reservation,
    ReservationStatus,
    Service,
    Slot,
    Staff,
    WorkingHoursWindow,
)
from .slot_calculator import SlotCalculator

__all__ = [
    "BreakPeriod",
    "Reservation",
    "ReservationStatus",
    "Service",
    "Slot",
    "SlotCalculator",
    "Staff",
    "WorkingHoursWindow",
]

"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityCalculator, ReservationStore
from .booking import BookingService
from .notifications import EmailNotifier, EmailTransport, OutgoingEmail

__all__ = [
    "AvailabilityCalculator",
    "BookingService",
    "EmailNotifier",
    "EmailTransport",
    "OutgoingEmail",
    "ReservationStore",
]

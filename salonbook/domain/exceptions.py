"""
Domain-specific exception hierarchy for the salon booking application.

Every error carries a machine-readable ``code`` and the HTTP-equivalent
``status_code`` a request handler should answer with.
"""

from typing import List, Optional, Sequence

SLOT_TAKEN_MESSAGE = "This time slot is no longer available. Please select another time."


class SalonBookError(Exception):
    """Base class for all application-level errors."""

    code = "INTERNAL_ERROR"
    status_code = 500


class ValidationError(SalonBookError):
    """Raised when request input is malformed or violates booking policy."""

    code = "INVALID_INPUT"
    status_code = 400

    def __init__(self, errors: Sequence[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid input")


class NotFoundError(SalonBookError):
    """Raised when a service, staff member or reservation does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class PermissionDenied(SalonBookError):
    """Raised when a user acts on a reservation they do not own."""

    code = "FORBIDDEN"
    status_code = 403


class BookingConflict(SalonBookError):
    """A requested slot cannot be taken. Recoverable by choosing another time."""

    code = "SLOT_UNAVAILABLE"
    status_code = 409

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or SLOT_TAKEN_MESSAGE)


class SlotConflict(BookingConflict):
    """The point-in-time availability check rejected the slot."""


class PersistenceConflict(BookingConflict):
    """The store's uniqueness constraint rejected the insert."""

    code = "DOUBLE_BOOKING"


class InvalidTransition(SalonBookError):
    """Raised for a reservation status change the lifecycle does not allow."""

    code = "INVALID_TRANSITION"
    status_code = 400


class CancellationNotAllowed(InvalidTransition):
    """Raised when cancelling a reservation whose start time has passed."""

    code = "CANNOT_CANCEL_PAST_BOOKING"


class StoreError(SalonBookError):
    """Raised when the reservation store cannot be reached or answers oddly."""

    code = "DATABASE_ERROR"


class NotificationError(SalonBookError):
    """Raised by an email transport when a message cannot be delivered."""

    code = "EMAIL_ERROR"

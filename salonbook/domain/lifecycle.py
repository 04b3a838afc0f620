"""
Reservation state machine.

    pending ──> confirmed ──> completed
       │            │
       └────────────┴──> cancelled   (only before the appointment starts)

completed and cancelled are terminal; nothing reopens.
"""

from typing import Dict, FrozenSet

from pendulum import DateTime

from .exceptions import CancellationNotAllowed, InvalidTransition
from .models import Reservation, ReservationStatus

ALLOWED_TRANSITIONS: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition(
    reservation: Reservation,
    target: ReservationStatus,
    *,
    now: DateTime,
    timezone: str
) -> Reservation:
    """
    Move a reservation to a new status.

    Args:
        reservation: Current reservation
        target: Requested status
        now: Current time (timezone-aware)
        timezone: Salon timezone the reservation's wall-clock time is in

    Returns:
        A copy of the reservation carrying the new status

    Raises:
        InvalidTransition: If the lifecycle does not allow the change
        CancellationNotAllowed: If cancelling at or after the start time
    """
    if reservation.status is ReservationStatus.CANCELLED and target is ReservationStatus.CANCELLED:
        raise InvalidTransition("Booking is already cancelled")

    if not can_transition(reservation.status, target):
        raise InvalidTransition(
            f"Cannot change booking from {reservation.status.value} to {target.value}"
        )

    if target is ReservationStatus.CANCELLED and now >= reservation.starts_at(timezone):
        raise CancellationNotAllowed("Cannot cancel past bookings")

    return reservation.with_status(target)

"""
Domain models for working hours, reservations and computed slots.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, time
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Optional, Tuple
from uuid import uuid4

from pendulum import DateTime

from .times import combine, to_hhmm


class ReservationStatus(str, Enum):
    """Lifecycle states of a reservation."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def blocks_slot(self) -> bool:
        """Only cancelled reservations free their slot again."""
        return self is not ReservationStatus.CANCELLED

    @property
    def is_terminal(self) -> bool:
        return self in (ReservationStatus.COMPLETED, ReservationStatus.CANCELLED)


@dataclass(frozen=True)
class WorkingHoursWindow:
    """
    Recurring weekly interval during which one staff member can be booked.

    Invariant: day_of_week is in 0..6 with 0=Sunday.
    An empty service_ids set means the staff member performs every service.
    """
    staff_id: str
    day_of_week: int
    start_time: time
    end_time: time
    staff_name: str = ""
    service_ids: FrozenSet[str] = frozenset()

    def __post_init__(self):
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")

    def contains(self, moment: time) -> bool:
        """Check if a wall-clock time falls inside [start_time, end_time)."""
        return self.start_time <= moment < self.end_time

    def offers(self, service_id: Optional[str]) -> bool:
        """Check if the staff member behind this window performs a service."""
        return service_id is None or not self.service_ids or service_id in self.service_ids

    def __str__(self) -> str:
        return f"{self.staff_name or self.staff_id}: {to_hhmm(self.start_time)} - {to_hhmm(self.end_time)}"


@dataclass(frozen=True)
class BreakPeriod:
    """A daily pause (e.g. lunch) during which no slot may start."""
    start_time: time
    end_time: time

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Break start {self.start_time} must be before break end {self.end_time}"
            )

    def contains(self, moment: time) -> bool:
        return self.start_time <= moment < self.end_time


@dataclass(frozen=True)
class Reservation:
    """A customer's claim on a staff member at a date and time."""
    staff_id: str
    date: date
    time: time
    status: ReservationStatus = ReservationStatus.PENDING
    id: str = field(default_factory=lambda: str(uuid4()))
    service_id: Optional[str] = None
    user_id: Optional[str] = None
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: Optional[str] = None
    notes: Optional[str] = None

    @property
    def slot_key(self) -> Tuple[str, date, str]:
        """The (staff, date, HH:MM) key that at most one live reservation may hold."""
        return (self.staff_id, self.date, to_hhmm(self.time))

    def starts_at(self, timezone: str) -> DateTime:
        return combine(self.date, self.time, timezone)

    def with_status(self, status: ReservationStatus) -> "Reservation":
        return replace(self, status=status)


@dataclass(frozen=True)
class Slot:
    """
    A computed, displayable time option. Never persisted.

    Before collapsing there is one Slot per (staff, time); afterwards one
    per time, carrying an available staff member when there is one.
    """
    time: str  # HH:MM
    staff_id: Optional[str]
    staff_name: Optional[str]
    available: bool


@dataclass(frozen=True)
class Staff:
    id: str
    name: str
    active: bool = True
    service_ids: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class Service:
    id: str
    name: str
    price: Decimal
    duration_minutes: int
    active: bool = True
    minimum_price: Optional[Decimal] = None

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValueError(
                f"Service {self.name!r} must have a positive duration, got {self.duration_minutes}"
            )

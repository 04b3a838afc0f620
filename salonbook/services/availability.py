"""
Application service answering "which times can be booked?".

The service fetches working-hours windows and reservations through a store
adapter and delegates the slot arithmetic to the domain-level
``SlotCalculator``. The store dependency is a protocol so the Supabase
adapter, the in-memory store or a test stub can be plugged in.
"""

from __future__ import annotations

import logging
from datetime import date, time
from typing import List, Optional, Protocol, Union

from ..domain.models import (
    Reservation,
    ReservationStatus,
    Service,
    Slot,
    Staff,
    WorkingHoursWindow,
)
from ..domain.slot_calculator import SlotCalculator
from ..domain.times import day_of_week, parse_date, parse_time

logger = logging.getLogger(__name__)


class ReservationStore(Protocol):
    """Protocol describing the persistence operations the services need."""

    async def select_windows(self, day_of_week: int) -> List[WorkingHoursWindow]:
        """Return windows of active staff for a weekday (0=Sunday)."""

    async def select_windows_for_staff(
        self,
        staff_id: str,
        day_of_week: int,
    ) -> List[WorkingHoursWindow]:
        """Return one staff member's windows for a weekday."""

    async def select_reservations(self, target_date: date) -> List[Reservation]:
        """Return non-cancelled reservations on a date."""

    async def select_reservations_for_user(self, user_id: str) -> List[Reservation]:
        """Return every reservation of one customer, newest first."""

    async def find_reservation(
        self,
        staff_id: str,
        target_date: date,
        slot_time: time,
    ) -> Optional[Reservation]:
        """Return the non-cancelled reservation holding a slot, if any."""

    async def insert_reservation(self, reservation: Reservation) -> Reservation:
        """Persist a reservation; raises PersistenceConflict on a taken slot."""

    async def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        """Return a reservation by id."""

    async def update_reservation_status(
        self,
        reservation_id: str,
        status: ReservationStatus,
    ) -> Reservation:
        """Store a new status and return the updated reservation."""

    async def get_service(self, service_id: str) -> Optional[Service]:
        """Return a service by id."""

    async def get_staff(self, staff_id: str) -> Optional[Staff]:
        """Return a staff member by id."""


class AvailabilityCalculator:
    """
    Lists bookable slots for a day and checks single slots before booking.

    Results reflect the reservations visible when the store was queried.
    A slot reported as available can still be taken by a concurrent
    booking; the store's uniqueness constraint decides at insert time.
    """

    def __init__(
        self,
        store: ReservationStore,
        slot_calculator: SlotCalculator,
    ) -> None:
        self._store = store
        self._slot_calculator = slot_calculator

    async def list_time_slots(
        self,
        target_date: Union[date, str],
        service_id: Optional[str] = None,
    ) -> List[Slot]:
        """
        Return one slot per time for a date, sorted by time.

        An empty list means nobody works that day; it is not an error.
        """
        target_date = parse_date(target_date)
        weekday = day_of_week(target_date)

        windows = await self._store.select_windows(weekday)
        if not windows:
            logger.debug("No working hours on %s (weekday %d)", target_date, weekday)
            return []

        reservations = await self._store.select_reservations(target_date)

        slots = self._slot_calculator.calculate(
            target_date=target_date,
            windows=windows,
            reservations=reservations,
            service_id=service_id,
        )
        logger.debug(
            "Computed %d slots (%d available) for %s",
            len(slots),
            sum(1 for slot in slots if slot.available),
            target_date,
        )
        return slots

    async def is_slot_available(
        self,
        staff_id: str,
        target_date: Union[date, str],
        slot_time: Union[time, str],
    ) -> bool:
        """
        Check that a staff member works at a time and nobody holds the slot.

        This is a fast pre-check for a nicer error message, not a guarantee.
        """
        target_date = parse_date(target_date)
        slot_time = parse_time(slot_time)

        windows = await self._store.select_windows_for_staff(
            staff_id, day_of_week(target_date)
        )
        if not self._slot_calculator.is_within_windows(
            windows, staff_id, target_date, slot_time
        ):
            return False

        existing = await self._store.find_reservation(staff_id, target_date, slot_time)
        return existing is None

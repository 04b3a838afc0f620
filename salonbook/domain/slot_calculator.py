"""
Core business logic for calculating bookable time slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). Callers fetch
working-hours windows and reservations and hand them in.
"""

from datetime import date, time
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .models import BreakPeriod, Reservation, Slot, WorkingHoursWindow
from .times import day_of_week, minutes_to_hhmm, parse_time, to_hhmm, to_minutes

SUPPORTED_INTERVALS = (15, 30, 60)


class SlotCalculator:
    """
    Calculates bookable slots for one day from staff windows and reservations.

    Algorithm:
    1. Keep only windows for the requested weekday (and service, if given)
    2. Walk each window in fixed increments; a time is emitted while a whole
       interval still fits before the window closes
    3. Skip times that start inside a break period
    4. Mark each (staff, time) pair unavailable when a live reservation holds it
    5. Collapse to one slot per time, preferring an available staff member
    6. Sort by time
    """

    def __init__(
        self,
        interval_minutes: int = 30,
        breaks: Sequence[BreakPeriod] = ()
    ):
        if interval_minutes not in SUPPORTED_INTERVALS:
            raise ValueError(
                f"interval_minutes must be one of {SUPPORTED_INTERVALS}, got {interval_minutes}"
            )
        self.interval_minutes = interval_minutes
        self.breaks = tuple(breaks)

    def calculate(
        self,
        target_date: date,
        windows: Iterable[WorkingHoursWindow],
        reservations: Iterable[Reservation],
        service_id: Optional[str] = None
    ) -> List[Slot]:
        """
        Compute the collapsed, sorted slot list for a date.

        Args:
            target_date: Day to compute slots for
            windows: Working-hours windows (windows for other weekdays are ignored)
            reservations: Reservations for the day (cancelled ones are ignored)
            service_id: Optional service restricting which staff are considered

        Returns:
            One Slot per time, sorted ascending. Empty if nobody works that day.
        """
        staff_slots = self.build_staff_slots(
            target_date=target_date,
            windows=windows,
            reservations=reservations,
            service_id=service_id
        )
        return self.collapse_by_time(staff_slots)

    def build_staff_slots(
        self,
        target_date: date,
        windows: Iterable[WorkingHoursWindow],
        reservations: Iterable[Reservation],
        service_id: Optional[str] = None
    ) -> List[Slot]:
        """
        Generate one Slot per (staff, time) pair, before collapsing.
        """
        weekday = day_of_week(target_date)
        booked = self._booked_keys(target_date, reservations)

        staff_slots: List[Slot] = []

        for window in windows:
            if window.day_of_week != weekday or not window.offers(service_id):
                continue

            for slot_time in self.generate_times(window.start_time, window.end_time):
                staff_slots.append(
                    Slot(
                        time=slot_time,
                        staff_id=window.staff_id,
                        staff_name=window.staff_name or None,
                        available=(window.staff_id, slot_time) not in booked
                    )
                )

        return staff_slots

    def generate_times(self, start: time, end: time) -> List[str]:
        """
        Generate HH:MM start times inside a window.

        Example with 30-minute steps:
        09:00 - 17:00 -> 09:00, 09:30, ..., 16:30 (16 times)
        09:00 - 09:30 -> 09:00
        09:00 - 09:29 -> nothing
        """
        times: List[str] = []
        current = to_minutes(start)
        end_minutes = to_minutes(end)

        while current + self.interval_minutes <= end_minutes:
            if not self._in_break(current):
                times.append(minutes_to_hhmm(current))
            current += self.interval_minutes

        return times

    def collapse_by_time(self, staff_slots: Iterable[Slot]) -> List[Slot]:
        """
        Reduce per-staff slots to one slot per time.

        A time is available if any staff member is free then. Which free
        staff member is attached is not part of the contract; the first
        one encountered is kept.
        """
        by_time: Dict[str, Slot] = {}

        for slot in staff_slots:
            existing = by_time.get(slot.time)
            if existing is None or (slot.available and not existing.available):
                by_time[slot.time] = slot

        return [by_time[key] for key in sorted(by_time)]

    def is_within_windows(
        self,
        windows: Iterable[WorkingHoursWindow],
        staff_id: str,
        target_date: date,
        slot_time: time
    ) -> bool:
        """
        Check if a staff member can start an appointment at a given time.

        Same rules as generate_times: the time starts inside a window, a
        whole interval fits before the window closes, and it is not inside
        a break. Times off the interval grid are accepted.
        """
        weekday = day_of_week(target_date)
        minutes = to_minutes(slot_time)
        if self._in_break(minutes):
            return False

        return any(
            window.staff_id == staff_id
            and window.day_of_week == weekday
            and window.contains(slot_time)
            and minutes + self.interval_minutes <= to_minutes(window.end_time)
            for window in windows
        )

    def _in_break(self, minutes: int) -> bool:
        moment = parse_time(minutes_to_hhmm(minutes))
        return any(period.contains(moment) for period in self.breaks)

    @staticmethod
    def _booked_keys(
        target_date: date,
        reservations: Iterable[Reservation]
    ) -> Set[Tuple[str, str]]:
        return {
            (reservation.staff_id, to_hhmm(reservation.time))
            for reservation in reservations
            if reservation.status.blocks_slot and reservation.date == target_date
        }

"""
In-memory reservation store for testing and demos without a database.
"""

import asyncio
import json
from datetime import date, time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..domain.exceptions import NotFoundError, PersistenceConflict, StoreError
from ..domain.models import (
    Reservation,
    ReservationStatus,
    Service,
    Staff,
    WorkingHoursWindow,
)
from ..domain.times import to_hhmm
from .rows import reservation_from_row, service_from_row, staff_from_row, window_from_row


class InMemoryStore:
    """
    Store that keeps staff, services, windows and reservations in dicts.

    It enforces the same rule as the production database's unique index:
    at most one non-cancelled reservation per (staff, date, time). The
    check and the write happen without yielding to the event loop, so
    concurrent inserts for one slot cannot both succeed.

    Every call yields to the event loop once after reading, like a network
    round-trip would; ``latency`` makes that pause longer.
    """

    def __init__(
        self,
        *,
        staff: Iterable[Staff] = (),
        services: Iterable[Service] = (),
        windows: Iterable[WorkingHoursWindow] = (),
        reservations: Iterable[Reservation] = (),
        latency: float = 0.0,
    ):
        self._staff: Dict[str, Staff] = {member.id: member for member in staff}
        self._services: Dict[str, Service] = {service.id: service for service in services}
        self._windows: List[WorkingHoursWindow] = list(windows)
        self._reservations: Dict[str, Reservation] = {}
        self._latency = latency

        for reservation in reservations:
            self._insert(reservation)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], **kwargs) -> "InMemoryStore":
        """
        Build a store from row dictionaries.

        Expected keys: staff, services, availability, bookings.
        """
        try:
            staff = [staff_from_row(row) for row in data.get("staff", [])]
            services = [service_from_row(row) for row in data.get("services", [])]
            windows = [window_from_row(row) for row in data.get("availability", [])]
            reservations = [reservation_from_row(row) for row in data.get("bookings", [])]
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Invalid salon data: {exc}") from exc

        return cls(
            staff=staff,
            services=services,
            windows=windows,
            reservations=reservations,
            **kwargs,
        )

    @classmethod
    def from_json(cls, data_file: Optional[Path] = None, **kwargs) -> "InMemoryStore":
        """Load salon data from a JSON file (defaults to the bundled demo data)."""
        data_file = data_file or Path(__file__).parent / "mock_salon_data.json"

        try:
            with open(data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Could not load salon data from {data_file}: {exc}") from exc

        return cls.from_dict(data, **kwargs)

    @property
    def reservations(self) -> List[Reservation]:
        return list(self._reservations.values())

    async def select_windows(self, day_of_week: int) -> List[WorkingHoursWindow]:
        windows = [
            self._with_staff_details(window)
            for window in self._windows
            if window.day_of_week == day_of_week and self._is_active(window.staff_id)
        ]
        windows.sort(key=lambda w: (w.start_time, w.staff_name, w.staff_id))
        await self._respond()
        return windows

    async def select_windows_for_staff(
        self,
        staff_id: str,
        day_of_week: int,
    ) -> List[WorkingHoursWindow]:
        windows = [
            self._with_staff_details(window)
            for window in self._windows
            if window.staff_id == staff_id and window.day_of_week == day_of_week
        ]
        windows.sort(key=lambda w: w.start_time)
        await self._respond()
        return windows

    async def select_reservations(self, target_date: date) -> List[Reservation]:
        reservations = sorted(
            (
                reservation
                for reservation in self._reservations.values()
                if reservation.date == target_date and reservation.status.blocks_slot
            ),
            key=lambda r: r.time,
        )
        await self._respond()
        return reservations

    async def select_reservations_for_user(self, user_id: str) -> List[Reservation]:
        reservations = sorted(
            (r for r in self._reservations.values() if r.user_id == user_id),
            key=lambda r: (r.date, r.time),
            reverse=True,
        )
        await self._respond()
        return reservations

    async def find_reservation(
        self,
        staff_id: str,
        target_date: date,
        slot_time: time,
    ) -> Optional[Reservation]:
        holder = self._holder((staff_id, target_date, to_hhmm(slot_time)))
        await self._respond()
        return holder

    async def insert_reservation(self, reservation: Reservation) -> Reservation:
        stored = self._insert(reservation)
        await self._respond()
        return stored

    async def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        reservation = self._reservations.get(reservation_id)
        await self._respond()
        return reservation

    async def update_reservation_status(
        self,
        reservation_id: str,
        status: ReservationStatus,
    ) -> Reservation:
        current = self._reservations.get(reservation_id)
        if current is None:
            raise NotFoundError("Booking not found")

        if status.blocks_slot and not current.status.blocks_slot:
            holder = self._holder(current.slot_key)
            if holder is not None:
                raise PersistenceConflict()

        updated = current.with_status(status)
        self._reservations[reservation_id] = updated
        await self._respond()
        return updated

    async def get_service(self, service_id: str) -> Optional[Service]:
        service = self._services.get(service_id)
        await self._respond()
        return service

    async def get_staff(self, staff_id: str) -> Optional[Staff]:
        member = self._staff.get(staff_id)
        await self._respond()
        return member

    def _insert(self, reservation: Reservation) -> Reservation:
        if reservation.id in self._reservations:
            raise StoreError(f"Reservation {reservation.id} already exists")

        if reservation.status.blocks_slot and self._holder(reservation.slot_key) is not None:
            raise PersistenceConflict()

        self._reservations[reservation.id] = reservation
        return reservation

    def _holder(self, slot_key) -> Optional[Reservation]:
        for reservation in self._reservations.values():
            if reservation.status.blocks_slot and reservation.slot_key == slot_key:
                return reservation
        return None

    def _is_active(self, staff_id: str) -> bool:
        member = self._staff.get(staff_id)
        return member is not None and member.active

    def _with_staff_details(self, window: WorkingHoursWindow) -> WorkingHoursWindow:
        member = self._staff.get(window.staff_id)
        if member is None:
            return window
        return WorkingHoursWindow(
            staff_id=window.staff_id,
            day_of_week=window.day_of_week,
            start_time=window.start_time,
            end_time=window.end_time,
            staff_name=member.name,
            service_ids=member.service_ids,
        )

    async def _respond(self) -> None:
        await asyncio.sleep(self._latency)

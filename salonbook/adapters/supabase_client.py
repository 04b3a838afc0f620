"""
Reservation store backed by a Supabase (PostgREST) database.
"""

import asyncio
import logging
from datetime import date, time
from typing import Any, Dict, List, Optional

import requests

from ..domain.exceptions import (
    NotFoundError,
    PersistenceConflict,
    SalonBookError,
    StoreError,
    ValidationError,
)
from ..domain.models import Reservation, ReservationStatus, Service, Staff, WorkingHoursWindow
from .rows import (
    reservation_from_row,
    reservation_to_row,
    service_from_row,
    staff_from_row,
    window_from_row,
)

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NO_ROWS = "PGRST116"

WINDOW_SELECT = "staff_id,day_of_week,start_time,end_time,staff:staff_id(id,name,active)"


class SupabaseStore:
    """
    Client for the salon tables exposed through the Supabase REST API.

    Requests run in a worker thread so the async services are not blocked.
    The database carries a partial unique index on bookings
    (staff_id, booking_date, booking_time) where status <> 'cancelled';
    violations surface as PersistenceConflict.
    """

    def __init__(
        self,
        url: str,
        service_role_key: str,
        timeout: int = 10,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            url: Project URL, e.g. https://xyz.supabase.co
            service_role_key: Server-side API key (bypasses row-level security)
            timeout: Per-request timeout in seconds
            session: Optional pre-configured requests session
        """
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.timeout = timeout
        self.headers = {
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
            "Content-Type": "application/json",
        }
        self._session = session or requests.Session()

    async def select_windows(self, day_of_week: int) -> List[WorkingHoursWindow]:
        rows = await self._call(
            "GET",
            "availability",
            params={
                "select": WINDOW_SELECT,
                "day_of_week": f"eq.{day_of_week}",
                "order": "start_time",
            },
        )
        return [
            self._window(row)
            for row in rows
            if (row.get("staff") or {}).get("active")
        ]

    async def select_windows_for_staff(
        self,
        staff_id: str,
        day_of_week: int,
    ) -> List[WorkingHoursWindow]:
        rows = await self._call(
            "GET",
            "availability",
            params={
                "select": WINDOW_SELECT,
                "staff_id": f"eq.{staff_id}",
                "day_of_week": f"eq.{day_of_week}",
                "order": "start_time",
            },
        )
        return [self._window(row) for row in rows]

    async def select_reservations(self, target_date: date) -> List[Reservation]:
        rows = await self._call(
            "GET",
            "bookings",
            params={
                "select": "*",
                "booking_date": f"eq.{target_date.isoformat()}",
                "status": f"neq.{ReservationStatus.CANCELLED.value}",
                "order": "booking_time",
            },
        )
        return [reservation_from_row(row) for row in rows]

    async def select_reservations_for_user(self, user_id: str) -> List[Reservation]:
        rows = await self._call(
            "GET",
            "bookings",
            params={
                "select": "*",
                "user_id": f"eq.{user_id}",
                "order": "booking_date.desc,booking_time.desc",
            },
        )
        return [reservation_from_row(row) for row in rows]

    async def find_reservation(
        self,
        staff_id: str,
        target_date: date,
        slot_time: time,
    ) -> Optional[Reservation]:
        rows = await self._call(
            "GET",
            "bookings",
            params={
                "select": "*",
                "staff_id": f"eq.{staff_id}",
                "booking_date": f"eq.{target_date.isoformat()}",
                "booking_time": f"eq.{slot_time.strftime('%H:%M:%S')}",
                "status": f"neq.{ReservationStatus.CANCELLED.value}",
                "limit": "1",
            },
        )
        return reservation_from_row(rows[0]) if rows else None

    async def insert_reservation(self, reservation: Reservation) -> Reservation:
        rows = await self._call(
            "POST",
            "bookings",
            json=reservation_to_row(reservation),
            prefer="return=representation",
        )
        if not rows:
            raise StoreError("Insert returned no booking row")
        return reservation_from_row(rows[0])

    async def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        rows = await self._call(
            "GET",
            "bookings",
            params={"select": "*", "id": f"eq.{reservation_id}"},
        )
        return reservation_from_row(rows[0]) if rows else None

    async def update_reservation_status(
        self,
        reservation_id: str,
        status: ReservationStatus,
    ) -> Reservation:
        rows = await self._call(
            "PATCH",
            "bookings",
            params={"id": f"eq.{reservation_id}"},
            json={"status": status.value},
            prefer="return=representation",
        )
        if not rows:
            raise NotFoundError("Booking not found")
        return reservation_from_row(rows[0])

    async def get_service(self, service_id: str) -> Optional[Service]:
        rows = await self._call(
            "GET",
            "services",
            params={"select": "*", "id": f"eq.{service_id}"},
        )
        return service_from_row(rows[0]) if rows else None

    async def get_staff(self, staff_id: str) -> Optional[Staff]:
        rows = await self._call(
            "GET",
            "staff",
            params={"select": "*", "id": f"eq.{staff_id}"},
        )
        return staff_from_row(rows[0]) if rows else None

    async def _call(self, method: str, table: str, **kwargs) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._request, method, table, **kwargs)

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
        prefer: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Perform one REST call against a table.

        Raises:
            StoreError: If the API cannot be reached or answers unexpectedly
            PersistenceConflict: On a unique-constraint violation
        """
        url = f"{self.base_url}/{table}"
        headers = dict(self.headers)
        if prefer:
            headers["Prefer"] = prefer

        try:
            response = self._session.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise StoreError(f"Failed to reach Supabase: {e}") from e

        if response.status_code >= 400:
            raise self._map_error(response)

        if not response.content:
            return []

        try:
            data = response.json()
        except ValueError as e:
            raise StoreError(f"Invalid JSON from Supabase: {e}") from e

        return data if isinstance(data, list) else [data]

    @staticmethod
    def _map_error(response: requests.Response) -> SalonBookError:
        """
        Translate a PostgREST error response into a domain error.

        Error body format:
        {"code": "23505", "message": "duplicate key value ...", "details": ..., "hint": ...}
        """
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        code = str(payload.get("code", ""))
        message = payload.get("message") or response.reason or "Database operation failed"

        if code == FOREIGN_KEY_VIOLATION:
            return ValidationError(["Invalid service or staff reference"])
        if code == UNIQUE_VIOLATION or response.status_code == 409:
            return PersistenceConflict()
        if code == NO_ROWS:
            return NotFoundError("Resource not found")

        logger.warning(
            "Supabase request failed with %s (%s): %s",
            response.status_code,
            code or "no code",
            message,
        )
        return StoreError(f"Database operation failed: {message}")

    def _window(self, row: Dict[str, Any]) -> WorkingHoursWindow:
        staff_row = row.get("staff")
        staff = staff_from_row(staff_row) if staff_row else None
        return window_from_row(row, staff)

"""
Conversion between database rows (dicts) and domain models.

Column names follow the salon database schema: ``availability``,
``staff``, ``services`` and ``bookings`` tables, times stored as HH:MM:SS.
"""

from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from ..domain.models import Reservation, ReservationStatus, Service, Staff, WorkingHoursWindow
from ..domain.times import parse_date, parse_time


def window_from_row(row: Mapping[str, Any], staff: Optional[Staff] = None) -> WorkingHoursWindow:
    return WorkingHoursWindow(
        staff_id=row["staff_id"],
        day_of_week=int(row["day_of_week"]),
        start_time=parse_time(row["start_time"]),
        end_time=parse_time(row["end_time"]),
        staff_name=staff.name if staff else "",
        service_ids=staff.service_ids if staff else frozenset(),
    )


def staff_from_row(row: Mapping[str, Any]) -> Staff:
    return Staff(
        id=row["id"],
        name=row["name"],
        active=bool(row.get("active", True)),
        service_ids=frozenset(row.get("service_ids") or ()),
    )


def service_from_row(row: Mapping[str, Any]) -> Service:
    minimum_price = row.get("minimum_price")
    return Service(
        id=row["id"],
        name=row["name"],
        price=Decimal(str(row["price"])),
        duration_minutes=int(row.get("duration") or row.get("duration_minutes") or 0),
        active=bool(row.get("is_active", True)),
        minimum_price=Decimal(str(minimum_price)) if minimum_price is not None else None,
    )


def reservation_from_row(row: Mapping[str, Any]) -> Reservation:
    return Reservation(
        id=row["id"],
        staff_id=row["staff_id"],
        date=parse_date(row["booking_date"]),
        time=parse_time(row["booking_time"]),
        status=ReservationStatus(row.get("status", ReservationStatus.PENDING.value)),
        service_id=row.get("service_id"),
        user_id=row.get("user_id"),
        customer_name=row.get("customer_name") or "",
        customer_email=row.get("customer_email") or "",
        customer_phone=row.get("customer_phone"),
        notes=row.get("notes"),
    )


def reservation_to_row(reservation: Reservation) -> Dict[str, Any]:
    return {
        "id": reservation.id,
        "staff_id": reservation.staff_id,
        "booking_date": reservation.date.isoformat(),
        "booking_time": reservation.time.strftime("%H:%M:%S"),
        "status": reservation.status.value,
        "service_id": reservation.service_id,
        "user_id": reservation.user_id,
        "customer_name": reservation.customer_name,
        "customer_email": reservation.customer_email,
        "customer_phone": reservation.customer_phone,
        "notes": reservation.notes,
    }

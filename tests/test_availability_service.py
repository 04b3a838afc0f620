"""
Tests for the AvailabilityCalculator orchestration layer.
"""

import asyncio
from datetime import date, time
from decimal import Decimal

from salonbook.adapters.memory_store import InMemoryStore
from salonbook.domain.models import (
    BreakPeriod,
    Reservation,
    ReservationStatus,
    Service,
    Staff,
    WorkingHoursWindow,
)
from salonbook.domain.slot_calculator import SlotCalculator
from salonbook.services.availability import AvailabilityCalculator

ADA = "6f1c2d7e-3b4a-4c5d-9e8f-1a2b3c4d5e01"
BISI = "6f1c2d7e-3b4a-4c5d-9e8f-1a2b3c4d5e02"
CHIOMA = "6f1c2d7e-3b4a-4c5d-9e8f-1a2b3c4d5e03"
MANICURE_ID = "0b7e4f3a-8c21-4d6e-a5b9-2f3e4d5c6b01"
BRAIDS_ID = "0b7e4f3a-8c21-4d6e-a5b9-2f3e4d5c6b02"

SUNDAY = date(2025, 3, 9)
MONDAY = date(2025, 3, 10)
TUESDAY = date(2025, 3, 11)


class CountingStore(InMemoryStore):
    """In-memory store that records which queries were made."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = []

    async def select_windows(self, day_of_week):
        self.calls.append(("select_windows", day_of_week))
        return await super().select_windows(day_of_week)

    async def select_reservations(self, target_date):
        self.calls.append(("select_reservations", target_date))
        return await super().select_reservations(target_date)


def _build_store(reservations=()):
    return CountingStore(
        staff=[
            Staff(id=ADA, name="Adaeze Okafor"),
            Staff(id=BISI, name="Bisi Adeyemi", service_ids=frozenset({MANICURE_ID})),
            Staff(id=CHIOMA, name="Chioma Eze", active=False),
        ],
        services=[
            Service(id=MANICURE_ID, name="Classic Manicure", price=Decimal("8000"), duration_minutes=30),
            Service(id=BRAIDS_ID, name="Knotless Braids", price=Decimal("35000"), duration_minutes=240),
        ],
        windows=[
            *(WorkingHoursWindow(ADA, day, time(9, 0), time(17, 0)) for day in range(1, 6)),
            WorkingHoursWindow(BISI, 2, time(12, 0), time(18, 0)),
            WorkingHoursWindow(CHIOMA, 1, time(7, 0), time(9, 0)),
        ],
        reservations=reservations,
    )


def _build_service(reservations=()):
    store = _build_store(reservations)
    return AvailabilityCalculator(store, SlotCalculator()), store


def test_list_time_slots_for_a_working_day():
    """Inactive staff contribute no slots; names come from the staff table."""
    service, _ = _build_service()

    slots = asyncio.run(service.list_time_slots("2025-03-10"))

    assert len(slots) == 16
    assert slots[0].time == "09:00"
    assert slots[-1].time == "16:30"
    assert all(slot.staff_name == "Adaeze Okafor" for slot in slots)


def test_list_time_slots_without_working_hours_skips_reservation_query():
    service, store = _build_service()

    slots = asyncio.run(service.list_time_slots(SUNDAY))

    assert slots == []
    assert store.calls == [("select_windows", 0)]


def test_reservation_blocks_time_unless_another_staff_is_free():
    reservations = [
        Reservation(staff_id=ADA, date=MONDAY, time=time(14, 0), status=ReservationStatus.CONFIRMED),
        Reservation(staff_id=ADA, date=TUESDAY, time=time(14, 0), status=ReservationStatus.CONFIRMED),
    ]
    service, _ = _build_service(reservations)

    monday = {slot.time: slot for slot in asyncio.run(service.list_time_slots(MONDAY))}
    tuesday = {slot.time: slot for slot in asyncio.run(service.list_time_slots(TUESDAY))}

    assert monday["14:00"].available is False
    assert tuesday["14:00"].available is True
    assert tuesday["14:00"].staff_id == BISI


def test_list_time_slots_filters_by_service():
    service, _ = _build_service()

    manicure = asyncio.run(service.list_time_slots(TUESDAY, MANICURE_ID))
    braids = asyncio.run(service.list_time_slots(TUESDAY, BRAIDS_ID))

    assert manicure[-1].time == "17:30"
    assert braids[-1].time == "16:30"


def test_list_time_slots_is_repeatable():
    reservations = [Reservation(staff_id=ADA, date=TUESDAY, time=time(10, 0))]
    service, _ = _build_service(reservations)

    first = asyncio.run(service.list_time_slots(TUESDAY))
    second = asyncio.run(service.list_time_slots(TUESDAY))

    assert first == second


def test_is_slot_available_inside_window():
    service, _ = _build_service()

    assert asyncio.run(service.is_slot_available(ADA, "2025-03-10", "09:00")) is True
    assert asyncio.run(service.is_slot_available(ADA, MONDAY, time(16, 30))) is True


def test_is_slot_available_false_outside_windows():
    service, _ = _build_service()

    assert asyncio.run(service.is_slot_available(ADA, MONDAY, "08:30")) is False
    assert asyncio.run(service.is_slot_available(ADA, MONDAY, "16:45")) is False
    assert asyncio.run(service.is_slot_available(ADA, MONDAY, "17:00")) is False
    assert asyncio.run(service.is_slot_available(ADA, SUNDAY, "10:00")) is False
    assert asyncio.run(service.is_slot_available(BISI, MONDAY, "13:00")) is False


def test_is_slot_available_false_when_reserved():
    reservations = [
        Reservation(staff_id=ADA, date=MONDAY, time=time(10, 0)),
        Reservation(
            staff_id=ADA, date=MONDAY, time=time(11, 0), status=ReservationStatus.CANCELLED
        ),
    ]
    service, _ = _build_service(reservations)

    assert asyncio.run(service.is_slot_available(ADA, MONDAY, "10:00")) is False
    assert asyncio.run(service.is_slot_available(ADA, MONDAY, "11:00")) is True


def test_is_slot_available_false_during_break():
    store = _build_store()
    service = AvailabilityCalculator(
        store,
        SlotCalculator(breaks=[BreakPeriod(start_time=time(13, 0), end_time=time(14, 0))]),
    )

    listed = [slot.time for slot in asyncio.run(service.list_time_slots(MONDAY))]

    assert "13:00" not in listed
    assert asyncio.run(service.is_slot_available(ADA, MONDAY, "13:00")) is False
    assert asyncio.run(service.is_slot_available(ADA, MONDAY, "14:00")) is True

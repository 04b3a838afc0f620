"""
Tests for booking request and customer validation.
"""

from datetime import date, time

import pendulum
import pytest

from salonbook.domain.exceptions import ValidationError
from salonbook.domain.validation import (
    BookingPolicy,
    check_booking_policy,
    is_valid_phone,
    is_valid_uuid,
    validate_booking_request,
    validate_customer,
)

TZ = "Africa/Lagos"
SERVICE_ID = "0b7e4f3a-8c21-4d6e-a5b9-2f3e4d5c6b01"
STAFF_ID = "6f1c2d7e-3b4a-4c5d-9e8f-1a2b3c4d5e01"
NOW = pendulum.datetime(2025, 3, 10, 8, 0, tz=TZ)  # Monday morning


def _payload(**overrides):
    payload = {
        "service_id": SERVICE_ID,
        "staff_id": STAFF_ID,
        "booking_date": "2025-03-11",
        "booking_time": "10:00",
    }
    payload.update(overrides)
    return payload


def _validate(payload, now=NOW):
    return validate_booking_request(payload, policy=BookingPolicy(), now=now, timezone=TZ)


class TestBookingRequest:

    def test_valid_request(self):
        request = _validate(_payload(notes="  Short nails please  "))

        assert request.booking_date == date(2025, 3, 11)
        assert request.booking_time == time(10, 0)
        assert request.notes == "Short nails please"

    def test_invalid_uuid(self):
        with pytest.raises(ValidationError) as exc_info:
            _validate(_payload(service_id="not-a-uuid"))

        assert exc_info.value.errors == ["service_id must be a valid UUID"]
        assert exc_info.value.status_code == 400

    def test_missing_field(self):
        payload = _payload()
        del payload["staff_id"]

        with pytest.raises(ValidationError) as exc_info:
            _validate(payload)

        assert "staff_id is required" in exc_info.value.errors

    def test_collects_every_format_error(self):
        with pytest.raises(ValidationError) as exc_info:
            _validate(_payload(staff_id="nope", booking_date="11/03/2025", booking_time="25:00"))

        errors = exc_info.value.errors
        assert len(errors) == 3
        assert "staff_id must be a valid UUID" in errors
        assert any("YYYY-MM-DD" in message for message in errors)
        assert any("HH:MM" in message for message in errors)

    def test_past_date(self):
        with pytest.raises(ValidationError) as exc_info:
            _validate(_payload(booking_date="2025-03-09"))

        assert exc_info.value.errors == ["booking_date cannot be in the past"]

    def test_too_far_ahead(self):
        _validate(_payload(booking_date="2025-06-08"))  # exactly 90 days

        with pytest.raises(ValidationError) as exc_info:
            _validate(_payload(booking_date="2025-06-09"))

        assert exc_info.value.errors == ["booking_date cannot be more than 90 days ahead"]

    @pytest.mark.parametrize("booking_time", ["08:30", "18:00", "21:15"])
    def test_outside_business_hours(self, booking_time):
        with pytest.raises(ValidationError) as exc_info:
            _validate(_payload(booking_time=booking_time))

        assert exc_info.value.errors == ["booking_time must be between 09:00 and 18:00"]

    def test_same_day_lead_time(self):
        _validate(_payload(booking_date="2025-03-10", booking_time="09:00"))

        with pytest.raises(ValidationError) as exc_info:
            _validate(
                _payload(booking_date="2025-03-10", booking_time="09:00"),
                now=NOW.add(minutes=30),
            )

        assert exc_info.value.errors == [
            "Bookings must be made at least 60 minutes in advance"
        ]

    def test_policy_uses_salon_timezone(self):
        """23:30 UTC on the 10th is already the 11th in Lagos."""
        now = pendulum.datetime(2025, 3, 10, 23, 30, tz="UTC")

        errors = check_booking_policy(
            date(2025, 3, 10),
            time(12, 0),
            policy=BookingPolicy(),
            now=now,
            timezone=TZ,
        )

        assert errors == ["booking_date cannot be in the past"]

    def test_custom_policy(self):
        policy = BookingPolicy(min_advance_minutes=0, max_days_ahead=7, business_start_hour=7)

        errors = check_booking_policy(
            date(2025, 3, 20), time(7, 0), policy=policy, now=NOW, timezone=TZ
        )

        assert errors == ["booking_date cannot be more than 7 days ahead"]


class TestCustomerDetails:

    def test_email_is_normalised(self):
        customer = validate_customer({"name": " Amaka ", "email": "Amaka@Example.COM"})

        assert customer.name == "Amaka"
        assert customer.email == "amaka@example.com"
        assert customer.phone is None

    def test_invalid_contact_details(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_customer({"name": "", "email": "amaka", "phone": "12345"})

        assert exc_info.value.errors == [
            "name must not be empty",
            "'amaka' is not a valid email address",
            "phone must contain 10 to 15 digits",
        ]


@pytest.mark.parametrize(
    "value,expected",
    [
        ("+234 801 234 5678", True),
        ("(080) 1234-5678", True),
        ("12345", False),
        ("1234567890123456", False),
    ],
)
def test_is_valid_phone(value, expected):
    assert is_valid_phone(value) is expected


def test_is_valid_uuid():
    assert is_valid_uuid(SERVICE_ID)
    assert not is_valid_uuid("0b7e4f3a")
    assert not is_valid_uuid(None)

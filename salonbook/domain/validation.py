"""
Input validation for booking requests.

Format checks live on Pydantic models; checks that depend on the current
time (past dates, booking window, lead time) run against a BookingPolicy.
"""

import re
import uuid
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Any, List, Mapping, Optional

from pendulum import DateTime
from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError
from .times import combine, parse_date, parse_time

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class BookingPolicy:
    """
    Business rules a booking must satisfy at creation time.

    Defaults: book at least 60 minutes ahead, at most 90 days ahead,
    appointments starting between 09:00 and 18:00.
    """
    min_advance_minutes: int = 60
    max_days_ahead: int = 90
    business_start_hour: int = 9
    business_end_hour: int = 18


def is_valid_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (ValueError, TypeError, AttributeError):
        return False
    return True


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def is_valid_phone(value: str) -> bool:
    """Phone numbers must carry 10 to 15 digits once punctuation is removed."""
    digits = re.sub(r"\D", "", value)
    return 10 <= len(digits) <= 15


class BookingRequest(BaseModel):
    """A customer's request for a specific service, staff member and time."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    service_id: str
    staff_id: str
    booking_date: date
    booking_time: time
    notes: Optional[str] = None

    @field_validator("service_id", "staff_id")
    @classmethod
    def validate_identifier(cls, value: str, info: ValidationInfo) -> str:
        if not is_valid_uuid(value):
            raise ValueError(f"{info.field_name} must be a valid UUID")
        return value

    @field_validator("booking_date", mode="before")
    @classmethod
    def validate_date(cls, value: Any) -> date:
        if not isinstance(value, (str, date)):
            raise ValueError("booking_date must be in YYYY-MM-DD format")
        return parse_date(value)

    @field_validator("booking_time", mode="before")
    @classmethod
    def validate_time(cls, value: Any) -> time:
        if not isinstance(value, (str, time)):
            raise ValueError("booking_time must be in HH:MM format")
        return parse_time(value)


class CustomerDetails(BaseModel):
    """Contact details attached to a reservation."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str
    email: str
    phone: Optional[str] = None
    user_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value:
            raise ValueError("name must not be empty")
        return value

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.lower()
        if not is_valid_email(value):
            raise ValueError(f"'{value}' is not a valid email address")
        return value

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: Optional[str]) -> Optional[str]:
        if value and not is_valid_phone(value):
            raise ValueError("phone must contain 10 to 15 digits")
        return value or None


def validate_booking_request(
    payload: Mapping[str, Any],
    *,
    policy: BookingPolicy,
    now: DateTime,
    timezone: str
) -> BookingRequest:
    """
    Parse a raw booking payload and check it against the booking policy.

    Raises:
        ValidationError: With every problem found, not just the first
    """
    try:
        request = BookingRequest.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise ValidationError(_error_messages(exc)) from exc

    errors = check_booking_policy(
        request.booking_date,
        request.booking_time,
        policy=policy,
        now=now,
        timezone=timezone
    )
    if errors:
        raise ValidationError(errors)

    return request


def validate_customer(payload: Mapping[str, Any]) -> CustomerDetails:
    """
    Raises:
        ValidationError: If any contact field is malformed
    """
    try:
        return CustomerDetails.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise ValidationError(_error_messages(exc)) from exc


def check_booking_policy(
    booking_date: date,
    booking_time: time,
    *,
    policy: BookingPolicy,
    now: DateTime,
    timezone: str
) -> List[str]:
    """Return the list of policy violations for a requested appointment."""
    errors: List[str] = []
    local_now = now.in_timezone(timezone)
    today = local_now.date()

    if booking_date < today:
        return ["booking_date cannot be in the past"]

    if booking_date > today + timedelta(days=policy.max_days_ahead):
        errors.append(
            f"booking_date cannot be more than {policy.max_days_ahead} days ahead"
        )

    if not policy.business_start_hour <= booking_time.hour < policy.business_end_hour:
        errors.append(
            f"booking_time must be between {policy.business_start_hour:02d}:00 "
            f"and {policy.business_end_hour:02d}:00"
        )

    starts_at = combine(booking_date, booking_time, timezone)
    if starts_at < local_now.add(minutes=policy.min_advance_minutes):
        errors.append(
            f"Bookings must be made at least {policy.min_advance_minutes} minutes in advance"
        )

    return errors


def _error_messages(exc: PydanticValidationError) -> List[str]:
    messages: List[str] = []
    for error in exc.errors():
        field_name = ".".join(str(part) for part in error["loc"]) or "payload"
        if error["type"] == "missing":
            messages.append(f"{field_name} is required")
            continue
        message = error["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        messages.append(message)
    return messages

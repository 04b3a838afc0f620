"""
Transactional email with bounded retries.

Delivery is attempted after a reservation is stored; a failed email is
logged and reported as False, it never undoes or fails the booking.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol

from ..domain.exceptions import NotificationError
from ..domain.models import Reservation, Service, Staff
from ..domain.pricing import calculate_service_price
from ..domain.times import format_date, format_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    text: str
    html: Optional[str] = None


class EmailTransport(Protocol):
    """Protocol for anything that can deliver one email."""

    def send(self, message: OutgoingEmail, sender: str) -> None:
        """Deliver a message or raise NotificationError."""


class EmailNotifier:
    """
    Sends emails through a transport, retrying with exponential backoff.

    With max_retries=3 and base_delay=1.0 a message gets four attempts,
    waiting 1s, 2s and 4s in between.
    """

    def __init__(
        self,
        transport: EmailTransport,
        *,
        sender: str,
        salon_name: str = "Modern Beauty Studio",
        max_retries: int = 3,
        base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self.sender = sender
        self.salon_name = salon_name
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep

    async def send(self, message: OutgoingEmail) -> bool:
        """
        Deliver a message, retrying failures.

        Returns:
            True once delivered, False when every attempt failed
        """
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            logger.debug(
                "Sending email to %s (attempt %d/%d)", message.to, attempt + 1, attempts
            )
            try:
                await asyncio.to_thread(self._transport.send, message, self.sender)
            except NotificationError as exc:
                logger.warning(
                    "Email to %s failed on attempt %d/%d: %s",
                    message.to,
                    attempt + 1,
                    attempts,
                    exc,
                )
                if attempt < self.max_retries:
                    await self._sleep(self.base_delay * 2 ** attempt)
                continue

            logger.info("Email '%s' sent to %s", message.subject, message.to)
            return True

        logger.error("Giving up on email to %s after %d attempts", message.to, attempts)
        return False

    async def send_booking_confirmation(
        self,
        reservation: Reservation,
        service: Service,
        staff: Staff,
    ) -> bool:
        price = calculate_service_price(service)
        lines = [
            f"Hello {reservation.customer_name or 'there'},",
            "",
            f"Thank you for booking with {self.salon_name}. Your appointment is reserved.",
            "",
            f"Service:  {service.name} ({service.duration_minutes} min)",
            f"With:     {staff.name}",
            f"Date:     {format_date(reservation.date)}",
            f"Time:     {format_time(reservation.time)}",
            f"Price:    {price}",
            f"Booking:  {reservation.id}",
        ]
        if reservation.notes:
            lines += ["", f"Notes: {reservation.notes}"]

        return await self.send(
            OutgoingEmail(
                to=reservation.customer_email,
                subject=f"Booking Confirmed - {service.name}",
                text="\n".join(lines),
            )
        )

    async def send_cancellation_notice(self, reservation: Reservation) -> bool:
        text = "\n".join([
            f"Hello {reservation.customer_name or 'there'},",
            "",
            f"Your appointment on {format_date(reservation.date)} at "
            f"{format_time(reservation.time)} has been cancelled.",
            f"Booking: {reservation.id}",
        ])
        return await self.send(
            OutgoingEmail(
                to=reservation.customer_email,
                subject=f"Booking Cancelled - {self.salon_name}",
                text=text,
            )
        )

    async def send_booking_reminder(
        self,
        reservation: Reservation,
        service: Service,
        staff: Staff,
    ) -> bool:
        text = "\n".join([
            f"Hello {reservation.customer_name or 'there'},",
            "",
            f"This is a friendly reminder about your appointment at {self.salon_name} tomorrow.",
            "",
            f"Service:  {service.name}",
            f"With:     {staff.name}",
            f"Date:     {format_date(reservation.date)}",
            f"Time:     {format_time(reservation.time)}",
            "",
            "If you need to reschedule or cancel, please contact us as soon as possible.",
        ])
        return await self.send(
            OutgoingEmail(
                to=reservation.customer_email,
                subject="Reminder: Your Appointment is Tomorrow!",
                text=text,
            )
        )

"""
Application service for creating, cancelling and progressing reservations.

Creation runs the cheap availability check first for a friendly error, then
relies on the store's uniqueness constraint as the final word. Emails go out
as background tasks once the reservation is stored.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Coroutine, List, Mapping, Optional, Set, Union

import pendulum
from pendulum import DateTime

from ..domain.exceptions import (
    NotFoundError,
    NotificationError,
    PermissionDenied,
    PersistenceConflict,
    SlotConflict,
    ValidationError,
)
from ..domain.lifecycle import transition
from ..domain.models import Reservation, ReservationStatus, Service, Staff
from ..domain.validation import (
    BookingPolicy,
    CustomerDetails,
    validate_booking_request,
    validate_customer,
)
from .availability import AvailabilityCalculator, ReservationStore
from .notifications import EmailNotifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderSummary:
    """Outcome of one reminder run."""

    total: int
    sent: int
    failed: int


class BookingService:
    """
    Orchestrates validation, availability checks, persistence and email.
    """

    def __init__(
        self,
        store: ReservationStore,
        availability: AvailabilityCalculator,
        *,
        policy: Optional[BookingPolicy] = None,
        timezone: str = "Africa/Lagos",
        notifier: Optional[EmailNotifier] = None,
    ) -> None:
        self._store = store
        self._availability = availability
        self.policy = policy or BookingPolicy()
        self.timezone = timezone
        self._notifier = notifier
        self._background: Set[asyncio.Task] = set()

    async def create_reservation(
        self,
        payload: Mapping[str, Any],
        customer: Union[CustomerDetails, Mapping[str, Any]],
        *,
        now: Optional[DateTime] = None,
    ) -> Reservation:
        """
        Validate a booking request and store it as a pending reservation.

        Raises:
            ValidationError: If the request or customer details are invalid
            NotFoundError: If the service or staff member is unknown or inactive
            SlotConflict: If the slot is outside working hours or already taken
            PersistenceConflict: If a concurrent booking won the slot
        """
        now = now or pendulum.now(self.timezone)
        request = validate_booking_request(
            payload, policy=self.policy, now=now, timezone=self.timezone
        )
        if not isinstance(customer, CustomerDetails):
            customer = validate_customer(customer)

        service = await self._require_service(request.service_id)
        staff = await self._require_staff(request.staff_id)

        if staff.service_ids and service.id not in staff.service_ids:
            raise ValidationError([f"{staff.name} does not offer {service.name}"])

        available = await self._availability.is_slot_available(
            request.staff_id, request.booking_date, request.booking_time
        )
        if not available:
            logger.info(
                "Slot %s %s for staff %s rejected by availability check",
                request.booking_date,
                request.booking_time,
                request.staff_id,
            )
            raise SlotConflict()

        reservation = Reservation(
            staff_id=request.staff_id,
            date=request.booking_date,
            time=request.booking_time,
            service_id=service.id,
            user_id=customer.user_id,
            customer_name=customer.name,
            customer_email=customer.email,
            customer_phone=customer.phone,
            notes=request.notes,
        )

        try:
            stored = await self._store.insert_reservation(reservation)
        except PersistenceConflict:
            logger.info("Slot %s was taken by a concurrent booking", reservation.slot_key)
            raise

        logger.info(
            "Created reservation %s: %s with %s on %s at %s",
            stored.id,
            service.name,
            staff.name,
            stored.date,
            stored.time,
        )

        if self._notifier is not None and stored.customer_email:
            self._run_in_background(
                self._notifier.send_booking_confirmation(stored, service, staff)
            )

        return stored

    async def cancel_reservation(
        self,
        reservation_id: str,
        *,
        user_id: str,
        now: Optional[DateTime] = None,
    ) -> Reservation:
        """
        Cancel a customer's own reservation before it starts.

        Raises:
            NotFoundError: If the reservation does not exist
            PermissionDenied: If it belongs to another user
            InvalidTransition: If it is already cancelled or completed
            CancellationNotAllowed: If its start time has passed
        """
        reservation = await self._require_reservation(reservation_id)

        if reservation.user_id != user_id:
            raise PermissionDenied("Unauthorized to cancel this booking")

        stored = await self._apply_transition(
            reservation, ReservationStatus.CANCELLED, now
        )

        if self._notifier is not None and stored.customer_email:
            self._run_in_background(self._notifier.send_cancellation_notice(stored))

        return stored

    async def update_status(
        self,
        reservation_id: str,
        status: Union[ReservationStatus, str],
        *,
        now: Optional[DateTime] = None,
    ) -> Reservation:
        """Move a reservation through its lifecycle (staff/admin action)."""
        reservation = await self._require_reservation(reservation_id)
        return await self._apply_transition(reservation, ReservationStatus(status), now)

    async def list_reservations(self, user_id: str) -> List[Reservation]:
        """Return a customer's reservations, most recent appointment first."""
        return await self._store.select_reservations_for_user(user_id)

    async def send_reminders(self, *, now: Optional[DateTime] = None) -> ReminderSummary:
        """
        Email every confirmed customer whose appointment is tomorrow.

        Tomorrow is taken in the salon timezone. Pending bookings and
        bookings without an email address are skipped. Emails are sent one
        after another; a failed email is counted and the run continues.

        Raises:
            NotificationError: If no email notifier is configured
        """
        if self._notifier is None:
            raise NotificationError("Email delivery is not configured")

        now = now or pendulum.now(self.timezone)
        tomorrow = now.in_timezone(self.timezone).add(days=1).date()
        due = [
            reservation
            for reservation in await self._store.select_reservations(tomorrow)
            if reservation.status is ReservationStatus.CONFIRMED and reservation.customer_email
        ]
        logger.info("Sending %d reminder(s) for %s", len(due), tomorrow)

        sent = 0
        for reservation in due:
            service = None
            if reservation.service_id:
                service = await self._store.get_service(reservation.service_id)
            staff = await self._store.get_staff(reservation.staff_id)
            if service is None or staff is None:
                logger.warning(
                    "Skipping reminder for %s: service or staff member not found", reservation.id
                )
                continue
            if await self._notifier.send_booking_reminder(reservation, service, staff):
                sent += 1

        summary = ReminderSummary(total=len(due), sent=sent, failed=len(due) - sent)
        logger.info(
            "Reminders for %s: %d sent, %d failed", tomorrow, summary.sent, summary.failed
        )
        return summary

    async def wait_for_notifications(self) -> None:
        """Wait until every email queued so far has finished (or failed)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _apply_transition(
        self,
        reservation: Reservation,
        target: ReservationStatus,
        now: Optional[DateTime],
    ) -> Reservation:
        updated = transition(
            reservation,
            target,
            now=now or pendulum.now(self.timezone),
            timezone=self.timezone,
        )
        stored = await self._store.update_reservation_status(updated.id, updated.status)
        logger.info(
            "Reservation %s moved from %s to %s",
            reservation.id,
            reservation.status.value,
            stored.status.value,
        )
        return stored

    async def _require_service(self, service_id: str) -> Service:
        service = await self._store.get_service(service_id)
        if service is None or not service.active:
            raise NotFoundError("Service not found or inactive")
        return service

    async def _require_staff(self, staff_id: str) -> Staff:
        staff = await self._store.get_staff(staff_id)
        if staff is None or not staff.active:
            raise NotFoundError("Staff member not found or inactive")
        return staff

    async def _require_reservation(self, reservation_id: str) -> Reservation:
        reservation = await self._store.get_reservation(reservation_id)
        if reservation is None:
            raise NotFoundError("Booking not found")
        return reservation

    def _run_in_background(self, coroutine: Coroutine[Any, Any, bool]) -> None:
        task = asyncio.create_task(coroutine)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background notification failed: %s", exc, exc_info=exc)

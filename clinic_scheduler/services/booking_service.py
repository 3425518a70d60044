"""Booking lifecycle: creation, rescheduling, cancellation and status changes."""

import random
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import and_, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.config import settings
from clinic_scheduler.core.exceptions import (
    ClientConflictError,
    CodeGenerationExhaustedError,
    NotFoundError,
    SlotAlignmentError,
    SlotTakenError,
)
from clinic_scheduler.database import atomic, store_read
from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.scheduling.clock import Clock, clinic_now
from clinic_scheduler.scheduling.policies import (
    ensure_client_cancellable,
    ensure_client_editable,
    ensure_lead_time,
    ensure_provider_transition,
    generate_appointment_code,
)
from clinic_scheduler.scheduling.slots import WorkingHours, format_time, normalize_time
from clinic_scheduler.schemas.appointments import (
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    BookingCreate,
    BookingGroup,
    BookingUpdate,
    ClientBookingList,
)
from clinic_scheduler.services.conflict_detector import ConflictDetector
from clinic_scheduler.services.provider_service import ProviderService

logger = structlog.get_logger()


def classify_integrity_error(error: IntegrityError) -> str | None:
    """
    Name the appointments constraint behind an integrity error.

    PostgreSQL reports the index name, SQLite the indexed columns.

    Returns:
        ``"code"``, ``"provider_slot"``, ``"client_slot"`` or None
    """
    message = str(error.orig) if hasattr(error, "orig") else str(error)
    if "appointment_code" in message:
        return "code"
    if "provider_slot" in message or "appointments.provider_id" in message:
        return "provider_slot"
    if "client_slot" in message or "appointments.client_id" in message:
        return "client_slot"
    return None


class BookingService:
    """Service owning the appointment state machine."""

    def __init__(
        self,
        db: AsyncSession,
        now: Clock = clinic_now,
        rng: random.Random | None = None,
    ):
        """Initialize service with database session, clinic clock and code RNG."""
        self.db = db
        self.now = now
        self.rng = rng
        self.providers = ProviderService(db)
        self.detector = ConflictDetector(db, now=now)

    # ------------------------------------------------------------------
    # Client operations
    # ------------------------------------------------------------------

    async def create_booking(self, client_id: int, data: BookingCreate) -> AppointmentResponse:
        """
        Book a slot for a client.

        The provider row is locked for the whole check-then-insert, and the
        partial unique indexes reject anything that still slips through.

        Args:
            client_id: Authenticated client
            data: Provider, date, time and optional reason

        Returns:
            Created appointment with status ``booked``

        Raises:
            NotFoundError: If provider not found
            PastDateError: If the date is before today
            SlotAlignmentError: If the time is not on the provider's lattice
            SlotTakenError: If the provider slot is taken
            ProviderUnavailableError: If the slot is blocked
            ClientConflictError: If the client is already booked at that time
            CodeGenerationExhaustedError: If no unused code could be found
        """
        at_time = normalize_time(data.appointment_time)

        async with atomic(self.db):
            provider = await self.providers.get_provider(data.provider_id, lock=True)
            self.detector.ensure_not_past(data.appointment_date)
            self._ensure_on_lattice(provider, at_time)

            await self.detector.check(
                data.provider_id,
                client_id,
                data.appointment_date,
                at_time,
            )

            code = await self._unused_code()
            now = datetime.now(UTC)
            stmt = (
                insert(appointments)
                .values(
                    appointment_code=code,
                    provider_id=data.provider_id,
                    client_id=client_id,
                    appointment_date=data.appointment_date,
                    appointment_time=at_time,
                    status=AppointmentStatus.BOOKED.value,
                    reason_for_visit=data.reason_for_visit,
                    created_at=now,
                    updated_at=now,
                )
                .returning(appointments)
            )
            row = await self._write(stmt)

        logger.info(
            "booking_created",
            appointment_id=row["id"],
            code=row["appointment_code"],
            provider_id=data.provider_id,
            client_id=client_id,
            date=data.appointment_date.isoformat(),
            time=at_time.isoformat(),
        )
        return AppointmentResponse.model_validate(row)

    async def update_booking(
        self,
        client_id: int,
        appointment_id: int,
        data: BookingUpdate,
    ) -> AppointmentResponse:
        """
        Reschedule a booking or edit its reason.

        The lead-time policy is evaluated against the currently scheduled
        slot. Fields left unset in ``data`` keep their stored values.

        Raises:
            NotFoundError: If the booking does not exist or is not the client's
            TerminalStateError: If cancelled or completed
            LeadTimeError: If the appointment starts within the lead time
            SlotAlignmentError: If the new time is not on the lattice
            PastDateError, SlotTakenError, ProviderUnavailableError,
            ClientConflictError: If the new slot is rejected
        """
        async with atomic(self.db):
            current = await self._get_client_booking(client_id, appointment_id)
            # Provider lock first, same order as create_booking
            provider = await self.providers.get_provider(current["provider_id"], lock=True)
            booking = await self._get_client_booking(client_id, appointment_id, lock=True)

            ensure_client_editable(AppointmentStatus(booking["status"]))
            ensure_lead_time(
                booking["appointment_date"],
                booking["appointment_time"],
                self.now(),
                settings.lead_time_hours,
            )

            values: dict[str, Any] = {}
            if data.appointment_date is not None or data.appointment_time is not None:
                new_date = (
                    data.appointment_date
                    if data.appointment_date is not None
                    else booking["appointment_date"]
                )
                new_time = normalize_time(
                    data.appointment_time
                    if data.appointment_time is not None
                    else booking["appointment_time"]
                )
                self.detector.ensure_not_past(new_date)
                self._ensure_on_lattice(provider, new_time)

                await self.detector.check(
                    booking["provider_id"],
                    client_id,
                    new_date,
                    new_time,
                    exclude_appointment_id=appointment_id,
                )
                values["appointment_date"] = new_date
                values["appointment_time"] = new_time

            if data.reason_for_visit is not None:
                values["reason_for_visit"] = data.reason_for_visit

            values["updated_at"] = datetime.now(UTC)

            stmt = (
                update(appointments)
                .where(appointments.c.id == appointment_id)
                .values(**values)
                .returning(appointments)
            )
            row = await self._write(stmt)

        logger.info(
            "booking_updated",
            appointment_id=appointment_id,
            client_id=client_id,
            fields=sorted(values),
        )
        return AppointmentResponse.model_validate(row)

    async def cancel_booking(self, client_id: int, appointment_id: int) -> None:
        """
        Cancel a booking; the row is kept with status ``cancelled``.

        Raises:
            NotFoundError: If the booking does not exist or is not the client's
            AlreadyCancelledError: If already cancelled
            AlreadyCompletedError: If completed
            LeadTimeError: If the appointment starts within the lead time
        """
        async with atomic(self.db):
            booking = await self._get_client_booking(client_id, appointment_id, lock=True)

            ensure_client_cancellable(AppointmentStatus(booking["status"]))
            ensure_lead_time(
                booking["appointment_date"],
                booking["appointment_time"],
                self.now(),
                settings.lead_time_hours,
            )

            now = datetime.now(UTC)
            await self.db.execute(
                update(appointments)
                .where(
                    and_(
                        appointments.c.id == appointment_id,
                        appointments.c.client_id == client_id,
                    )
                )
                .values(
                    status=AppointmentStatus.CANCELLED.value,
                    cancelled_at=now,
                    updated_at=now,
                )
            )

        logger.info("booking_cancelled", appointment_id=appointment_id, client_id=client_id)

    async def get_client_booking(self, client_id: int, appointment_id: int) -> AppointmentResponse:
        """
        Get one of the client's bookings.

        Raises:
            NotFoundError: If the booking does not exist or is not the client's
        """
        async with store_read(self.db):
            booking = await self._get_client_booking(client_id, appointment_id)
        return AppointmentResponse.model_validate(booking)

    async def list_client_bookings(self, client_id: int) -> ClientBookingList:
        """List all of a client's bookings, newest first, split around now."""
        stmt = (
            select(appointments)
            .where(appointments.c.client_id == client_id)
            .order_by(
                appointments.c.appointment_date.desc(),
                appointments.c.appointment_time.desc(),
            )
        )
        async with store_read(self.db):
            result = await self.db.execute(stmt)
            rows = [
                AppointmentResponse.model_validate(dict(row)) for row in result.mappings().all()
            ]

        now = self.now()
        upcoming = [
            row
            for row in rows
            if datetime.combine(row.appointment_date, row.appointment_time) > now
        ]
        past = [
            row
            for row in rows
            if datetime.combine(row.appointment_date, row.appointment_time) <= now
        ]

        return ClientBookingList(
            total=len(rows),
            upcoming=BookingGroup(count=len(upcoming), bookings=upcoming),
            past=BookingGroup(count=len(past), bookings=past),
        )

    # ------------------------------------------------------------------
    # Provider operations
    # ------------------------------------------------------------------

    async def set_appointment_status(
        self,
        provider_id: int,
        appointment_id: int,
        data: AppointmentStatusUpdate,
    ) -> AppointmentResponse:
        """
        Move one of the provider's appointments to a new status.

        Raises:
            NotFoundError: If the appointment is not the provider's
            TerminalStateError: If the current status is terminal
        """
        async with atomic(self.db):
            stmt = (
                select(appointments)
                .where(
                    and_(
                        appointments.c.id == appointment_id,
                        appointments.c.provider_id == provider_id,
                    )
                )
                .with_for_update()
            )
            result = await self.db.execute(stmt)
            appointment = result.mappings().first()

            if not appointment:
                raise NotFoundError("Appointment not found")

            old_status = AppointmentStatus(appointment["status"])
            ensure_provider_transition(old_status, data.status)

            now = datetime.now(UTC)
            values: dict[str, Any] = {
                "status": data.status.value,
                "updated_at": now,
            }
            if data.notes:
                values["notes"] = data.notes
            if data.status == AppointmentStatus.CANCELLED:
                values["cancelled_at"] = now

            row = await self._write(
                update(appointments)
                .where(appointments.c.id == appointment_id)
                .values(**values)
                .returning(appointments)
            )

        logger.info(
            "appointment_status_changed",
            appointment_id=appointment_id,
            provider_id=provider_id,
            old_status=old_status.value,
            new_status=data.status.value,
        )
        return AppointmentResponse.model_validate(row)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_client_booking(
        self,
        client_id: int,
        appointment_id: int,
        lock: bool = False,
    ) -> dict[str, Any]:
        # Someone else's booking is reported exactly like a missing one
        stmt = select(appointments).where(
            and_(
                appointments.c.id == appointment_id,
                appointments.c.client_id == client_id,
            )
        )
        if lock:
            stmt = stmt.with_for_update()

        result = await self.db.execute(stmt)
        booking = result.mappings().first()

        if not booking:
            raise NotFoundError("Booking not found")

        return dict(booking)

    @staticmethod
    def _ensure_on_lattice(provider: dict[str, Any], at_time) -> None:
        hours = WorkingHours.for_provider(provider)
        if not hours.is_on_lattice(at_time):
            raise SlotAlignmentError(
                f"{format_time(at_time)} is not a bookable slot; slots run every "
                f"{hours.interval_minutes} minutes from {format_time(hours.start)} "
                f"to {format_time(hours.end)}"
            )

    async def _unused_code(self) -> str:
        """Draw appointment codes until one is free, up to the configured limit."""
        attempts = settings.code_generation_max_attempts
        for _ in range(attempts):
            code = generate_appointment_code(self.now(), self.rng)
            result = await self.db.execute(
                select(appointments.c.id).where(appointments.c.appointment_code == code)
            )
            if result.first() is None:
                return code
            logger.debug("appointment_code_collision", code=code)

        raise CodeGenerationExhaustedError(attempts)

    async def _write(self, stmt) -> dict[str, Any]:
        """Execute an insert/update and map unique-index violations to domain errors."""
        try:
            result = await self.db.execute(stmt)
        except IntegrityError as e:
            constraint = classify_integrity_error(e)
            if constraint == "provider_slot":
                raise SlotTakenError() from e
            if constraint == "client_slot":
                raise ClientConflictError() from e
            if constraint == "code":
                raise CodeGenerationExhaustedError(settings.code_generation_max_attempts) from e
            raise

        return dict(result.mappings().one())

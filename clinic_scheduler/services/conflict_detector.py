"""Pre-write validation for bookings and reschedules."""

from datetime import date, time

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.exceptions import (
    ClientConflictError,
    PastDateError,
    ProviderUnavailableError,
    SlotTakenError,
)
from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.models.unavailability_blocks import unavailability_blocks
from clinic_scheduler.scheduling.clock import Clock, clinic_now
from clinic_scheduler.schemas.appointments import AppointmentStatus


class ConflictDetector:
    """
    Validate a prospective slot for one client and provider.

    Checks run in a fixed order and the first failure is raised:

    1. the date is not in the past
    2. the provider has no other active appointment in the slot
    3. the slot is outside every block for that day
    4. the client has no other active appointment at the same date and time
    """

    def __init__(self, db: AsyncSession, now: Clock = clinic_now):
        """Initialize detector with database session and clinic clock."""
        self.db = db
        self.now = now

    async def check(
        self,
        provider_id: int,
        client_id: int,
        on_date: date,
        at_time: time,
        exclude_appointment_id: int | None = None,
    ) -> None:
        """
        Raise on the first rule the slot breaks.

        Args:
            provider_id: Provider being booked
            client_id: Client booking
            on_date: Requested date
            at_time: Requested slot time
            exclude_appointment_id: Appointment being rescheduled, ignored by
                the double-booking checks

        Raises:
            PastDateError: If the date is before today
            SlotTakenError: If the provider slot is taken
            ProviderUnavailableError: If the slot is blocked
            ClientConflictError: If the client is already booked at that time
        """
        self.ensure_not_past(on_date)

        if await self._active_appointment_exists(
            appointments.c.provider_id == provider_id,
            on_date,
            at_time,
            exclude_appointment_id,
        ):
            raise SlotTakenError()

        if await self._is_blocked(provider_id, on_date, at_time):
            raise ProviderUnavailableError()

        if await self._active_appointment_exists(
            appointments.c.client_id == client_id,
            on_date,
            at_time,
            exclude_appointment_id,
        ):
            raise ClientConflictError()

    def ensure_not_past(self, on_date: date) -> None:
        """Reject dates before clinic-local today."""
        if on_date < self.now().date():
            raise PastDateError("Cannot book appointments in the past")

    async def _active_appointment_exists(
        self,
        owner_clause,
        on_date: date,
        at_time: time,
        exclude_appointment_id: int | None,
    ) -> bool:
        conditions = [
            owner_clause,
            appointments.c.appointment_date == on_date,
            appointments.c.appointment_time == at_time,
            appointments.c.status != AppointmentStatus.CANCELLED.value,
        ]
        if exclude_appointment_id is not None:
            conditions.append(appointments.c.id != exclude_appointment_id)

        stmt = select(appointments.c.id).where(and_(*conditions)).limit(1)
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def _is_blocked(self, provider_id: int, on_date: date, at_time: time) -> bool:
        stmt = (
            select(unavailability_blocks.c.id)
            .where(
                and_(
                    unavailability_blocks.c.provider_id == provider_id,
                    unavailability_blocks.c.blocked_date == on_date,
                    or_(
                        unavailability_blocks.c.is_full_day.is_(True),
                        and_(
                            unavailability_blocks.c.start_time <= at_time,
                            unavailability_blocks.c.end_time > at_time,
                        ),
                    ),
                )
            )
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.first() is not None

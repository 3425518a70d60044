"""Availability resolution for a provider's day."""

from datetime import date, time
from typing import Any

from sqlalchemy import Time, and_, cast, false, literal_column, null, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.database import store_read
from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.models.unavailability_blocks import unavailability_blocks
from clinic_scheduler.scheduling.slots import (
    WorkingHours,
    format_time,
    in_block_range,
    normalize_time,
)
from clinic_scheduler.schemas.appointments import AppointmentStatus
from clinic_scheduler.schemas.availability import AvailabilityView, SlotView
from clinic_scheduler.services.provider_service import ProviderService

APPOINTMENT = "appointment"
BLOCK = "block"


class AvailabilityService:
    """Service for building free/busy views."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def day_ledger(self, provider_id: int, on_date: date) -> list[dict[str, Any]]:
        """
        Read active appointments and blocks for one provider day.

        Both come back from a single statement so they share one snapshot.
        Rows carry ``kind`` (``appointment`` or ``block``), ``start_time``,
        ``end_time`` and ``is_full_day``.
        """
        booked = select(
            literal_column(f"'{APPOINTMENT}'").label("kind"),
            appointments.c.appointment_time.label("start_time"),
            cast(null(), Time).label("end_time"),
            false().label("is_full_day"),
        ).where(
            and_(
                appointments.c.provider_id == provider_id,
                appointments.c.appointment_date == on_date,
                appointments.c.status != AppointmentStatus.CANCELLED.value,
            )
        )

        blocked = select(
            literal_column(f"'{BLOCK}'").label("kind"),
            unavailability_blocks.c.start_time,
            unavailability_blocks.c.end_time,
            unavailability_blocks.c.is_full_day,
        ).where(
            and_(
                unavailability_blocks.c.provider_id == provider_id,
                unavailability_blocks.c.blocked_date == on_date,
            )
        )

        result = await self.db.execute(union_all(booked, blocked))
        return [dict(row) for row in result.mappings().all()]

    async def generate_availability(self, provider_id: int, on_date: date) -> AvailabilityView:
        """
        Build the free/busy view for a provider on a date.

        Args:
            provider_id: Provider ID
            on_date: Clinic-local date

        Returns:
            Every lattice slot flagged available or not, with counts. A
            full-day block short-circuits to an unavailable, empty view.

        Raises:
            NotFoundError: If provider not found
        """
        async with store_read(self.db):
            provider = await ProviderService(self.db).get_provider(provider_id)
            hours = WorkingHours.for_provider(provider)
            ledger = await self.day_ledger(provider_id, on_date)

        blocks = [row for row in ledger if row["kind"] == BLOCK]
        if any(row["is_full_day"] for row in blocks):
            return AvailabilityView(
                provider_id=provider_id,
                date=on_date,
                available=False,
                message="Provider is not available on this day",
            )

        booked_times = {
            normalize_time(row["start_time"]) for row in ledger if row["kind"] == APPOINTMENT
        }
        ranges: list[tuple[time, time]] = [
            (normalize_time(row["start_time"]), normalize_time(row["end_time"])) for row in blocks
        ]

        slots: list[SlotView] = []
        booked_count = 0
        blocked_count = 0
        for slot in hours.slots():
            is_booked = slot in booked_times
            is_blocked = any(in_block_range(slot, start, end) for start, end in ranges)
            booked_count += is_booked
            blocked_count += is_blocked and not is_booked
            slots.append(
                SlotView(
                    time=slot,
                    display=format_time(slot),
                    is_available=not (is_booked or is_blocked),
                )
            )

        return AvailabilityView(
            provider_id=provider_id,
            date=on_date,
            available=True,
            total_slots=len(slots),
            available_count=sum(1 for slot in slots if slot.is_available),
            booked_count=booked_count,
            blocked_count=blocked_count,
            slots=slots,
        )

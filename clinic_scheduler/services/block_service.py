"""Unavailability block management."""

from datetime import UTC, date, datetime

import structlog
from sqlalchemy import and_, delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.exceptions import (
    ConflictingAppointmentsError,
    DuplicateBlockError,
    MalformedRangeError,
    NotFoundError,
    PastDateError,
)
from clinic_scheduler.database import atomic, store_read
from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.models.unavailability_blocks import unavailability_blocks
from clinic_scheduler.scheduling.clock import Clock, clinic_now
from clinic_scheduler.scheduling.slots import normalize_time
from clinic_scheduler.schemas.appointments import AppointmentStatus
from clinic_scheduler.schemas.blocks import BlockListResponse, BlockRange, BlockResponse
from clinic_scheduler.services.provider_service import ProviderService

logger = structlog.get_logger()


class BlockService:
    """Service for provider-declared unavailability."""

    def __init__(self, db: AsyncSession, now: Clock = clinic_now):
        """Initialize service with database session and clinic clock."""
        self.db = db
        self.now = now

    async def create_block(
        self,
        provider_id: int,
        block_date: date,
        block_range: BlockRange,
        reason: str | None = None,
    ) -> BlockResponse:
        """
        Block a full day or a ``[start_time, end_time)`` window.

        Args:
            provider_id: Owning provider
            block_date: Clinic-local date to block
            block_range: Full-day flag or time window
            reason: Optional free text

        Returns:
            Created block

        Raises:
            NotFoundError: If provider not found
            PastDateError: If the date is before today
            MalformedRangeError: If a partial block lacks a usable window
            DuplicateBlockError: If the date is already full-day blocked, or the
                window repeats or overlaps an existing one
            ConflictingAppointmentsError: If active appointments fall inside a
                partial window
        """
        async with atomic(self.db):
            await ProviderService(self.db).get_provider(provider_id, lock=True)

            if block_date < self.now().date():
                raise PastDateError("Cannot block past dates")

            start_time = end_time = None
            if not block_range.is_full_day:
                if block_range.start_time is None or block_range.end_time is None:
                    raise MalformedRangeError(
                        "Start time and end time are required when not blocking full day"
                    )
                start_time = normalize_time(block_range.start_time)
                end_time = normalize_time(block_range.end_time)
                if start_time >= end_time:
                    raise MalformedRangeError()

            existing = await self.db.execute(
                select(unavailability_blocks).where(
                    and_(
                        unavailability_blocks.c.provider_id == provider_id,
                        unavailability_blocks.c.blocked_date == block_date,
                    )
                )
            )
            for block in existing.mappings().all():
                if block["is_full_day"]:
                    raise DuplicateBlockError()
                if block_range.is_full_day:
                    # A full day subsumes partial blocks, they just become redundant
                    continue
                other_start = normalize_time(block["start_time"])
                other_end = normalize_time(block["end_time"])
                if (other_start, other_end) == (start_time, end_time):
                    raise DuplicateBlockError()
                if start_time < other_end and other_start < end_time:
                    raise DuplicateBlockError(
                        f"Overlaps the existing block {other_start:%H:%M}-{other_end:%H:%M}"
                    )

            if not block_range.is_full_day:
                conflicts = await self.db.execute(
                    select(func.count())
                    .select_from(appointments)
                    .where(
                        and_(
                            appointments.c.provider_id == provider_id,
                            appointments.c.appointment_date == block_date,
                            appointments.c.appointment_time >= start_time,
                            appointments.c.appointment_time < end_time,
                            appointments.c.status != AppointmentStatus.CANCELLED.value,
                        )
                    )
                )
                count = conflicts.scalar() or 0
                if count > 0:
                    raise ConflictingAppointmentsError(count=count)

            now = datetime.now(UTC)
            stmt = (
                insert(unavailability_blocks)
                .values(
                    provider_id=provider_id,
                    blocked_date=block_date,
                    is_full_day=block_range.is_full_day,
                    start_time=start_time,
                    end_time=end_time,
                    reason=reason,
                    created_at=now,
                    updated_at=now,
                )
                .returning(unavailability_blocks)
            )
            result = await self.db.execute(stmt)
            row = result.mappings().one()

        logger.info(
            "block_created",
            provider_id=provider_id,
            block_id=row["id"],
            date=block_date.isoformat(),
            is_full_day=block_range.is_full_day,
        )
        return BlockResponse.model_validate(dict(row))

    async def delete_block(self, provider_id: int, block_id: int) -> None:
        """
        Remove a block permanently.

        Raises:
            NotFoundError: If the block does not exist or belongs to someone else
        """
        async with atomic(self.db):
            stmt = delete(unavailability_blocks).where(
                and_(
                    unavailability_blocks.c.id == block_id,
                    unavailability_blocks.c.provider_id == provider_id,
                )
            )
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("Blocked time not found")

        logger.info("block_deleted", provider_id=provider_id, block_id=block_id)

    async def list_upcoming_blocks(self, provider_id: int) -> BlockListResponse:
        """List blocks dated today or later, by date then start time."""
        stmt = (
            select(unavailability_blocks)
            .where(
                and_(
                    unavailability_blocks.c.provider_id == provider_id,
                    unavailability_blocks.c.blocked_date >= self.now().date(),
                )
            )
            .order_by(
                unavailability_blocks.c.blocked_date.asc(),
                unavailability_blocks.c.is_full_day.desc(),
                unavailability_blocks.c.start_time.asc(),
            )
        )

        async with store_read(self.db):
            result = await self.db.execute(stmt)
            items = [BlockResponse.model_validate(dict(row)) for row in result.mappings().all()]
        return BlockListResponse(total=len(items), items=items)

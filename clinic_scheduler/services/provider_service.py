"""Provider lookups and directory queries."""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.exceptions import NotFoundError
from clinic_scheduler.database import store_read
from clinic_scheduler.models.providers import providers
from clinic_scheduler.scheduling.slots import WorkingHours
from clinic_scheduler.schemas.providers import (
    ProviderDirectory,
    ProviderSummary,
    SpecializationCount,
    SpecializationList,
)


class ProviderService:
    """Service for provider operations."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_provider(self, provider_id: int, lock: bool = False) -> dict[str, Any]:
        """
        Get provider by ID.

        Args:
            provider_id: Provider ID
            lock: Take a row lock for the rest of the transaction. Every write
                that depends on the provider's ledger takes this lock first, so
                writers for one provider are serialized.

        Returns:
            Provider row

        Raises:
            NotFoundError: If provider not found
        """
        stmt = select(providers).where(providers.c.id == provider_id)
        if lock:
            stmt = stmt.with_for_update()

        result = await self.db.execute(stmt)
        provider = result.mappings().first()

        if not provider:
            raise NotFoundError("Provider not found")

        return dict(provider)

    async def get_working_hours(self, provider_id: int) -> WorkingHours:
        """Get the slot lattice parameters for a provider."""
        async with store_read(self.db):
            provider = await self.get_provider(provider_id)
        return WorkingHours.for_provider(provider)

    async def list_by_specialization(self, specialization: str) -> ProviderDirectory:
        """
        List providers with a specialization, case-insensitively.

        Raises:
            NotFoundError: If no provider offers it
        """
        stmt = (
            select(providers)
            .where(func.lower(providers.c.specialization) == specialization.lower())
            .order_by(providers.c.full_name.asc())
        )
        async with store_read(self.db):
            result = await self.db.execute(stmt)
            rows = result.mappings().all()

        if not rows:
            raise NotFoundError(f"No providers found for specialization: {specialization}")

        return ProviderDirectory(
            specialization=specialization,
            total=len(rows),
            providers=[ProviderSummary.model_validate(dict(row)) for row in rows],
        )

    async def list_specializations(self) -> SpecializationList:
        """List every specialization with its provider count."""
        provider_count = func.count().label("provider_count")
        stmt = (
            select(providers.c.specialization, provider_count)
            .group_by(providers.c.specialization)
            .order_by(providers.c.specialization.asc())
        )
        async with store_read(self.db):
            result = await self.db.execute(stmt)
            rows = result.all()

        return SpecializationList(
            total=len(rows),
            specializations=[
                SpecializationCount(name=row.specialization, provider_count=row.provider_count)
                for row in rows
            ],
        )

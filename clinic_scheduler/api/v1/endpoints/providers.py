"""Provider directory and public availability endpoints."""

from datetime import date

from fastapi import APIRouter, Query, status

from clinic_scheduler.dependencies import CurrentPrincipal, DatabaseSession
from clinic_scheduler.schemas.availability import AvailabilityView
from clinic_scheduler.schemas.providers import ProviderDirectory, SpecializationList
from clinic_scheduler.services.availability_service import AvailabilityService
from clinic_scheduler.services.provider_service import ProviderService

router = APIRouter()


@router.get(
    "/providers",
    response_model=ProviderDirectory,
    status_code=status.HTTP_200_OK,
    summary="List providers by specialization",
)
async def list_providers(
    _: CurrentPrincipal,
    db: DatabaseSession,
    specialization: str = Query(..., min_length=1, max_length=100),
) -> ProviderDirectory:
    """
    List providers offering a specialization (case-insensitive).

    Args:
        specialization: Specialization name
        db: Database session

    Returns:
        Matching providers
    """
    service = ProviderService(db)
    return await service.list_by_specialization(specialization)


@router.get(
    "/providers/specializations",
    response_model=SpecializationList,
    status_code=status.HTTP_200_OK,
    summary="List specializations",
)
async def list_specializations(
    _: CurrentPrincipal,
    db: DatabaseSession,
) -> SpecializationList:
    """List every specialization with its provider count."""
    service = ProviderService(db)
    return await service.list_specializations()


@router.get(
    "/providers/{provider_id}/availability",
    response_model=AvailabilityView,
    status_code=status.HTTP_200_OK,
    summary="Get provider availability for a date",
)
async def get_availability(
    provider_id: int,
    _: CurrentPrincipal,
    db: DatabaseSession,
    on_date: date = Query(..., alias="date"),
) -> AvailabilityView:
    """
    Resolve which slots of a provider's day are bookable.

    Args:
        provider_id: Provider ID
        on_date: Calendar date to inspect
        db: Database session

    Returns:
        Per-slot availability with counts, or an unavailable day
    """
    service = AvailabilityService(db)
    return await service.generate_availability(provider_id, on_date)

"""Endpoints for the authenticated provider's own schedule."""

from datetime import date

from fastapi import APIRouter, Query, status

from clinic_scheduler.dependencies import CurrentProvider, DatabaseSession
from clinic_scheduler.scheduling.clock import clinic_now
from clinic_scheduler.scheduling.policies import Period
from clinic_scheduler.schemas.appointments import AppointmentResponse, AppointmentStatusUpdate
from clinic_scheduler.schemas.availability import AvailabilityView
from clinic_scheduler.schemas.reports import DashboardStats, PeriodReport, ProviderSchedule
from clinic_scheduler.services.availability_service import AvailabilityService
from clinic_scheduler.services.booking_service import BookingService
from clinic_scheduler.services.report_service import ReportService

router = APIRouter()


@router.get(
    "/dashboard",
    response_model=DashboardStats,
    status_code=status.HTTP_200_OK,
    summary="Dashboard figures",
)
async def get_dashboard(
    current_provider: CurrentProvider,
    db: DatabaseSession,
) -> DashboardStats:
    """Today's progress, week and month totals, and the next appointment."""
    service = ReportService(db)
    return await service.get_dashboard(current_provider.id)


@router.get(
    "/appointments",
    response_model=ProviderSchedule,
    status_code=status.HTTP_200_OK,
    summary="Appointments in a period",
)
async def get_schedule(
    current_provider: CurrentProvider,
    db: DatabaseSession,
    period: Period = Query(Period.DAY),
) -> ProviderSchedule:
    """
    List active appointments for the period containing today, grouped by day.

    Args:
        current_provider: Authenticated provider
        db: Database session
        period: day, week, month or year

    Returns:
        Schedule grouped by date
    """
    service = ReportService(db)
    return await service.get_provider_schedule(current_provider.id, period)


@router.patch(
    "/appointments/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    current_provider: CurrentProvider,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Move one of the provider's appointments to a new status.

    Args:
        appointment_id: Appointment ID
        data: Target status and optional notes
        current_provider: Authenticated provider
        db: Database session

    Returns:
        Updated appointment
    """
    service = BookingService(db)
    return await service.set_appointment_status(current_provider.id, appointment_id, data)


@router.get(
    "/availability",
    response_model=AvailabilityView,
    status_code=status.HTTP_200_OK,
    summary="My availability for a date",
)
async def get_own_availability(
    current_provider: CurrentProvider,
    db: DatabaseSession,
    on_date: date | None = Query(None, alias="date"),
) -> AvailabilityView:
    """Resolve the provider's own slots; defaults to today."""
    service = AvailabilityService(db)
    return await service.generate_availability(
        current_provider.id,
        on_date or clinic_now().date(),
    )


@router.get(
    "/reports",
    response_model=PeriodReport,
    status_code=status.HTTP_200_OK,
    summary="Period report",
)
async def get_report(
    current_provider: CurrentProvider,
    db: DatabaseSession,
    period: Period = Query(Period.DAY),
) -> PeriodReport:
    """Status counts, rates, daily breakdown, top reasons and busiest slots."""
    service = ReportService(db)
    return await service.get_period_report(current_provider.id, period)

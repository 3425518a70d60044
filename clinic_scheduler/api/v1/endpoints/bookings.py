"""Client booking endpoints."""

from fastapi import APIRouter, status

from clinic_scheduler.dependencies import CurrentClient, DatabaseSession
from clinic_scheduler.schemas.appointments import (
    AppointmentResponse,
    BookingCreate,
    BookingUpdate,
    ClientBookingList,
)
from clinic_scheduler.services.booking_service import BookingService

router = APIRouter()


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
async def create_booking(
    data: BookingCreate,
    current_client: CurrentClient,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Book a slot with a provider for the authenticated client.

    Args:
        data: Provider, date, time and optional reason
        current_client: Authenticated client
        db: Database session

    Returns:
        Created appointment
    """
    service = BookingService(db)
    return await service.create_booking(current_client.id, data)


@router.get(
    "",
    response_model=ClientBookingList,
    status_code=status.HTTP_200_OK,
    summary="List my bookings",
)
async def list_bookings(
    current_client: CurrentClient,
    db: DatabaseSession,
) -> ClientBookingList:
    """List the authenticated client's bookings split into upcoming and past."""
    service = BookingService(db)
    return await service.list_client_bookings(current_client.id)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Get booking",
)
async def get_booking(
    appointment_id: int,
    current_client: CurrentClient,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Fetch one of the authenticated client's bookings."""
    service = BookingService(db)
    return await service.get_client_booking(current_client.id, appointment_id)


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    summary="Reschedule or edit booking",
)
async def update_booking(
    appointment_id: int,
    data: BookingUpdate,
    current_client: CurrentClient,
    db: DatabaseSession,
) -> AppointmentResponse:
    """
    Move a booking to another slot or change its reason.

    Args:
        appointment_id: Appointment ID
        data: Fields to change
        current_client: Authenticated client
        db: Database session

    Returns:
        Updated appointment
    """
    service = BookingService(db)
    return await service.update_booking(current_client.id, appointment_id, data)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel booking",
)
async def cancel_booking(
    appointment_id: int,
    current_client: CurrentClient,
    db: DatabaseSession,
) -> None:
    """Cancel one of the authenticated client's bookings."""
    service = BookingService(db)
    await service.cancel_booking(current_client.id, appointment_id)

"""Appointment schemas for request/response validation."""

from datetime import date, datetime, time
from enum import Enum

from pydantic import BaseModel, Field, computed_field, model_validator

from clinic_scheduler.scheduling.slots import format_time


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    BOOKED = "booked"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class BookingCreate(BaseModel):
    """Schema for a client booking a slot."""

    provider_id: int = Field(..., gt=0)
    appointment_date: date
    appointment_time: time
    reason_for_visit: str | None = Field(None, max_length=500)


class BookingUpdate(BaseModel):
    """Schema for a client rescheduling or editing a booking."""

    appointment_date: date | None = None
    appointment_time: time | None = None
    reason_for_visit: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def validate_not_empty(self) -> "BookingUpdate":
        """Reject a patch that changes nothing."""
        if (
            self.appointment_date is None
            and self.appointment_time is None
            and self.reason_for_visit is None
        ):
            raise ValueError("No fields to update")
        return self


class AppointmentStatusUpdate(BaseModel):
    """Schema for a provider updating appointment status."""

    status: AppointmentStatus
    notes: str | None = Field(None, max_length=1000)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: int
    appointment_code: str
    provider_id: int
    client_id: int
    appointment_date: date
    appointment_time: time
    status: AppointmentStatus
    reason_for_visit: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_time(self) -> str:
        return format_time(self.appointment_time)


class BookingGroup(BaseModel):
    """A counted list of bookings."""

    count: int
    bookings: list[AppointmentResponse]


class ClientBookingList(BaseModel):
    """Schema for a client's bookings split around the current time."""

    total: int
    upcoming: BookingGroup
    past: BookingGroup

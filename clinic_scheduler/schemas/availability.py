"""Availability schemas."""

from datetime import date, time

from pydantic import BaseModel


class SlotView(BaseModel):
    """One lattice slot and whether it can be booked."""

    time: time
    display: str
    is_available: bool


class AvailabilityView(BaseModel):
    """Free/busy view for one provider on one date."""

    provider_id: int
    date: date
    available: bool
    message: str | None = None
    total_slots: int = 0
    available_count: int = 0
    booked_count: int = 0
    blocked_count: int = 0
    slots: list[SlotView] = []

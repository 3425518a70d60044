"""Unavailability block schemas."""

from datetime import date, datetime, time

from pydantic import BaseModel, Field


class BlockRange(BaseModel):
    """Full day, or a ``[start_time, end_time)`` window."""

    is_full_day: bool = False
    start_time: time | None = None
    end_time: time | None = None


class BlockCreate(BlockRange):
    """Schema for a provider blocking time."""

    date: date
    reason: str | None = Field(None, max_length=500)


class BlockResponse(BaseModel):
    """Schema for block response."""

    id: int
    provider_id: int
    blocked_date: date
    is_full_day: bool
    start_time: time | None = None
    end_time: time | None = None
    reason: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BlockListResponse(BaseModel):
    """Schema for a provider's upcoming blocks."""

    total: int
    items: list[BlockResponse]

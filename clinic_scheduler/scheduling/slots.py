"""
Slot lattice generation.

A provider's working day is a fixed-cadence lattice of start times. Everything
that books, blocks or reports on a time of day works against this lattice.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from clinic_scheduler.config import settings
from clinic_scheduler.core.exceptions import InvalidRangeError


def generate_slots(start: time, end: time, interval_minutes: int) -> list[time]:
    """
    Generate the ordered slot start times for one working day.

    Args:
        start: First slot of the day
        end: Exclusive upper bound; no slot starts at or after it
        interval_minutes: Cadence between consecutive slots

    Returns:
        Slot times ``start, start + interval, ...`` strictly before ``end``

    Raises:
        InvalidRangeError: If ``start >= end`` or ``interval_minutes <= 0``
    """
    if interval_minutes <= 0 or start >= end:
        raise InvalidRangeError()

    # Arithmetic on an arbitrary anchor day, times carry no date
    anchor = date(2000, 1, 1)
    current = datetime.combine(anchor, start)
    stop = datetime.combine(anchor, end)
    step = timedelta(minutes=interval_minutes)

    slots: list[time] = []
    while current < stop:
        slots.append(current.time())
        current += step
    return slots


@dataclass(frozen=True)
class WorkingHours:
    """Lattice parameters for one provider."""

    start: time
    end: time
    interval_minutes: int

    @classmethod
    def clinic_default(cls) -> "WorkingHours":
        """Clinic-wide hours from settings."""
        return cls(
            start=settings.clinic_open_time,
            end=settings.clinic_close_time,
            interval_minutes=settings.slot_interval_minutes,
        )

    @classmethod
    def for_provider(cls, provider: Any) -> "WorkingHours":
        """Provider override where set, clinic default otherwise."""
        default = cls.clinic_default()
        return cls(
            start=provider["work_start_time"] or default.start,
            end=provider["work_end_time"] or default.end,
            interval_minutes=provider["slot_interval_minutes"] or default.interval_minutes,
        )

    def slots(self) -> list[time]:
        return generate_slots(self.start, self.end, self.interval_minutes)

    def is_on_lattice(self, value: time) -> bool:
        return normalize_time(value) in self.slots()


def normalize_time(value: time) -> time:
    """Drop seconds and tzinfo so stored and requested times compare equal."""
    return time(value.hour, value.minute)


def in_block_range(slot: time, start: time, end: time) -> bool:
    """Half-open membership: ``start`` is blocked, ``end`` is not."""
    return start <= slot < end


def format_time(value: time | None) -> str:
    """Render a time as ``9:30 AM``."""
    if value is None:
        return ""
    period = "PM" if value.hour >= 12 else "AM"
    hour = value.hour % 12 or 12
    return f"{hour}:{value.minute:02d} {period}"


def day_name(value: date) -> str:
    return value.strftime("%A")

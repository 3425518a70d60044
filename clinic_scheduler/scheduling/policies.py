"""
Booking policies.

Pure business rules for the appointment lifecycle. Nothing here touches the
store, so every rule can be unit tested in isolation.
"""

import random
from datetime import date, datetime, time, timedelta
from enum import Enum

from clinic_scheduler.core.exceptions import (
    AlreadyCancelledError,
    AlreadyCompletedError,
    LeadTimeError,
    TerminalStateError,
)
from clinic_scheduler.schemas.appointments import AppointmentStatus

# =============================================================================
# STATE MACHINE
# =============================================================================

TERMINAL_STATUSES = frozenset(
    {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }
)

# Provider-side transitions: any target from a live appointment, nothing out of
# a terminal one.
PROVIDER_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    status: (
        frozenset() if status in TERMINAL_STATUSES else frozenset(AppointmentStatus)
    )
    for status in AppointmentStatus
}

# Clients may reschedule or edit anything not yet cancelled or completed
CLIENT_EDIT_BLOCKED = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED})


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES


def ensure_provider_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    """
    Validate a provider-initiated status change.

    Raises:
        TerminalStateError: If ``current`` is terminal
    """
    if target not in PROVIDER_TRANSITIONS[current]:
        raise TerminalStateError(
            f"Cannot change a {current.value} appointment to {target.value}"
        )


def ensure_client_editable(current: AppointmentStatus) -> None:
    """
    Validate that a client may edit the appointment.

    Raises:
        TerminalStateError: If the appointment is cancelled or completed
    """
    if current in CLIENT_EDIT_BLOCKED:
        raise TerminalStateError(f"Cannot update a {current.value} appointment")


def ensure_client_cancellable(current: AppointmentStatus) -> None:
    """
    Validate that a client may cancel the appointment.

    Raises:
        AlreadyCancelledError: If already cancelled
        AlreadyCompletedError: If completed
    """
    if current == AppointmentStatus.CANCELLED:
        raise AlreadyCancelledError()
    if current == AppointmentStatus.COMPLETED:
        raise AlreadyCompletedError()


# =============================================================================
# LEAD TIME
# =============================================================================


def ensure_lead_time(
    scheduled_date: date,
    scheduled_time: time,
    now: datetime,
    hours: int,
) -> None:
    """
    Block client changes once the appointment is within ``hours`` of starting.

    The check is made against the currently scheduled slot, never a proposed one.

    Raises:
        LeadTimeError: If ``now >= scheduled - hours``
    """
    scheduled_at = datetime.combine(scheduled_date, scheduled_time)
    if now >= scheduled_at - timedelta(hours=hours):
        raise LeadTimeError(hours)


# =============================================================================
# APPOINTMENT CODES
# =============================================================================

CODE_PREFIX = "APT"


def generate_appointment_code(now: datetime, rng: random.Random | None = None) -> str:
    """Build ``APT-<last 6 digits of epoch millis>-<3 random digits>``."""
    rng = rng or random.SystemRandom()
    millis = int(now.timestamp() * 1000)
    timestamp = str(millis)[-6:]
    return f"{CODE_PREFIX}-{timestamp}-{rng.randrange(1000):03d}"


# =============================================================================
# REPORTING PERIODS
# =============================================================================


class Period(str, Enum):
    """Reporting window relative to today."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


def period_bounds(period: Period, today: date) -> tuple[date, date]:
    """
    Inclusive date range for a period containing ``today``.

    Weeks start on Sunday.
    """
    if period == Period.DAY:
        return today, today
    if period == Period.WEEK:
        # date.weekday(): Monday=0 ... Sunday=6
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start, start + timedelta(days=6)
    if period == Period.MONTH:
        start = today.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        return start, next_month - timedelta(days=1)
    return date(today.year, 1, 1), date(today.year, 12, 31)


def percentage(part: int, total: int) -> int:
    """Integer percentage rounded half up, 0 for an empty total."""
    if total <= 0:
        return 0
    return (part * 200 + total) // (total * 2)

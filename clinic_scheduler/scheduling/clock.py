"""Clinic-local clock."""

from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

from clinic_scheduler.config import settings

Clock = Callable[[], datetime]


def clinic_now() -> datetime:
    """Current wall-clock time in the clinic zone, as a naive datetime."""
    return datetime.now(ZoneInfo(settings.clinic_timezone)).replace(tzinfo=None)

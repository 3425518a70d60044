"""Database models."""

from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.models.base import metadata
from clinic_scheduler.models.clients import clients
from clinic_scheduler.models.providers import providers
from clinic_scheduler.models.unavailability_blocks import unavailability_blocks

__all__ = [
    "appointments",
    "clients",
    "metadata",
    "providers",
    "unavailability_blocks",
]

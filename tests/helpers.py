"""Shared test constants and helpers."""

from datetime import date, datetime, timedelta

from clinic_scheduler.core.security import Principal, Role, create_principal_token

# Thursday; the scenario dates below are the next two days
FROZEN_NOW = datetime(2026, 2, 19, 8, 0)
TOMORROW = date(2026, 2, 20)
DAY_AFTER = date(2026, 2, 21)


def frozen_clock(at: datetime = FROZEN_NOW):
    """Build a clock that always reads ``at``."""
    return lambda: at


def auth_headers_for(principal_id: int, role: Role) -> dict:
    """Create authentication headers for a principal."""
    token = create_principal_token(
        Principal(id=principal_id, role=role),
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}

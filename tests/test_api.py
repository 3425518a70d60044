"""Tests for the HTTP binding: routing, roles and error mapping."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.config import settings
from clinic_scheduler.core.exceptions import StoreUnavailableError
from clinic_scheduler.core.security import Role
from clinic_scheduler.middleware.logging import _outcome_level
from clinic_scheduler.scheduling.clock import clinic_now
from clinic_scheduler.services.availability_service import AvailabilityService
from tests.helpers import auth_headers_for

API = "/api/v1"


def next_week(days: int = 7) -> str:
    return (clinic_now().date() + timedelta(days=days)).isoformat()


def booking_body(provider_id: int, at: str = "09:00", on: str | None = None) -> dict:
    return {
        "provider_id": provider_id,
        "appointment_date": on or next_week(),
        "appointment_time": at,
        "reason_for_visit": "Checkup",
    }


# =============================================================================
# Health
# =============================================================================


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get(f"{API}/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_detailed_health_and_ping(client: AsyncClient) -> None:
    detailed = await client.get(f"{API}/health/detailed")
    assert detailed.status_code == 200
    assert detailed.json()["database"] == "healthy"

    ping = await client.get(f"{API}/ping")
    assert ping.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    response = await client.get(f"{API}/ping", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_request_id_is_generated_when_absent(client: AsyncClient) -> None:
    first = await client.get(f"{API}/ping")
    second = await client.get(f"{API}/ping")

    assert len(first.headers["X-Request-ID"]) == 32
    assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]
    assert float(first.headers["X-Process-Time"]) >= 0


@pytest.mark.parametrize(
    ("status_code", "level"),
    [(200, "info"), (204, "info"), (404, "warning"), (409, "warning"), (503, "error")],
)
def test_request_outcome_log_level(status_code: int, level: str) -> None:
    assert _outcome_level(status_code) == level


# =============================================================================
# Authentication and roles
# =============================================================================


@pytest.mark.asyncio
async def test_missing_token(client: AsyncClient, provider_id: int) -> None:
    response = await client.get(f"{API}/bookings")

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_garbage_token(client: AsyncClient) -> None:
    response = await client.get(
        f"{API}/bookings",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_roles_are_enforced(
    client: AsyncClient,
    provider_id: int,
    client_headers: dict,
    provider_headers: dict,
) -> None:
    as_client = await client.get(f"{API}/provider/dashboard", headers=client_headers)
    as_provider = await client.post(
        f"{API}/bookings",
        json=booking_body(provider_id),
        headers=provider_headers,
    )

    assert as_client.status_code == 403
    assert as_provider.status_code == 403


# =============================================================================
# Directory and availability
# =============================================================================


@pytest.mark.asyncio
async def test_directory(
    client: AsyncClient,
    provider_id: int,
    other_provider_id: int,
    client_headers: dict,
) -> None:
    listing = await client.get(
        f"{API}/providers",
        params={"specialization": "DERMATOLOGY"},
        headers=client_headers,
    )
    assert listing.status_code == 200
    assert listing.json()["providers"][0]["id"] == other_provider_id

    specializations = await client.get(f"{API}/providers/specializations", headers=client_headers)
    assert specializations.json()["total"] == 2

    missing = await client.get(
        f"{API}/providers",
        params={"specialization": "Neurology"},
        headers=client_headers,
    )
    assert missing.status_code == 404
    assert missing.json()["error"] == "NotFoundError"


@pytest.mark.asyncio
async def test_availability(
    client: AsyncClient,
    provider_id: int,
    client_headers: dict,
) -> None:
    response = await client.get(
        f"{API}/providers/{provider_id}/availability",
        params={"date": next_week()},
        headers=client_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["available"] is True
    assert data["total_slots"] == 16
    assert data["slots"][0] == {"time": "09:00:00", "display": "9:00 AM", "is_available": True}


@pytest.mark.asyncio
async def test_availability_requires_date(
    client: AsyncClient,
    provider_id: int,
    client_headers: dict,
) -> None:
    response = await client.get(
        f"{API}/providers/{provider_id}/availability",
        headers=client_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_provider_sees_own_availability_for_today(
    client: AsyncClient,
    provider_headers: dict,
) -> None:
    response = await client.get(f"{API}/provider/availability", headers=provider_headers)

    assert response.status_code == 200
    assert response.json()["date"] == clinic_now().date().isoformat()


# =============================================================================
# Booking lifecycle
# =============================================================================


@pytest.mark.asyncio
async def test_booking_lifecycle(
    client: AsyncClient,
    provider_id: int,
    client_headers: dict,
) -> None:
    created = await client.post(
        f"{API}/bookings",
        json=booking_body(provider_id),
        headers=client_headers,
    )
    assert created.status_code == 201
    booking = created.json()
    assert booking["status"] == "booked"
    assert booking["display_time"] == "9:00 AM"

    fetched = await client.get(f"{API}/bookings/{booking['id']}", headers=client_headers)
    assert fetched.json()["appointment_code"] == booking["appointment_code"]

    moved = await client.patch(
        f"{API}/bookings/{booking['id']}",
        json={"appointment_time": "10:30"},
        headers=client_headers,
    )
    assert moved.status_code == 200
    assert moved.json()["appointment_time"] == "10:30:00"

    listing = await client.get(f"{API}/bookings", headers=client_headers)
    assert listing.json()["upcoming"]["count"] == 1

    cancelled = await client.delete(f"{API}/bookings/{booking['id']}", headers=client_headers)
    assert cancelled.status_code == 204

    again = await client.delete(f"{API}/bookings/{booking['id']}", headers=client_headers)
    assert again.status_code == 400
    assert again.json()["error"] == "AlreadyCancelledError"


@pytest.mark.asyncio
async def test_double_booking_is_a_conflict(
    client: AsyncClient,
    provider_id: int,
    client_id: int,
    other_client_id: int,
    client_headers: dict,
) -> None:
    first = await client.post(
        f"{API}/bookings",
        json=booking_body(provider_id),
        headers=client_headers,
    )
    second = await client.post(
        f"{API}/bookings",
        json=booking_body(provider_id),
        headers=auth_headers_for(other_client_id, Role.CLIENT),
    )

    assert first.status_code == 201
    assert second.status_code == 409
    body = second.json()
    assert body["error"] == "SlotTakenError"
    assert body["retryable"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("overrides", "status_code", "error"),
    [
        ({"appointment_time": "09:10"}, 422, "SlotAlignmentError"),
        ({"appointment_date": "2020-01-06"}, 400, "PastDateError"),
        ({"provider_id": 999}, 404, "NotFoundError"),
        ({"appointment_time": "not-a-time"}, 422, "ValidationError"),
        ({"reason_for_visit": "x" * 501}, 422, "ValidationError"),
    ],
)
async def test_booking_errors(
    client: AsyncClient,
    provider_id: int,
    client_headers: dict,
    overrides: dict,
    status_code: int,
    error: str,
) -> None:
    response = await client.post(
        f"{API}/bookings",
        json={**booking_body(provider_id), **overrides},
        headers=client_headers,
    )

    assert response.status_code == status_code
    assert response.json()["error"] == error


@pytest.mark.asyncio
async def test_empty_patch_is_rejected(
    client: AsyncClient,
    provider_id: int,
    client_headers: dict,
) -> None:
    created = await client.post(
        f"{API}/bookings",
        json=booking_body(provider_id),
        headers=client_headers,
    )

    response = await client.patch(
        f"{API}/bookings/{created.json()['id']}",
        json={},
        headers=client_headers,
    )

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_lead_time_is_forbidden(
    client: AsyncClient,
    provider_id: int,
    client_headers: dict,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    created = await client.post(
        f"{API}/bookings",
        json=booking_body(provider_id),
        headers=client_headers,
    )
    # Widen the window past the booking so it is already too close to change
    monkeypatch.setattr(settings, "lead_time_hours", 24 * 30)

    response = await client.delete(
        f"{API}/bookings/{created.json()['id']}",
        headers=client_headers,
    )

    assert response.status_code == 403
    assert response.json()["error"] == "LeadTimeError"


@pytest.mark.asyncio
async def test_other_clients_booking_is_hidden(
    client: AsyncClient,
    provider_id: int,
    other_client_id: int,
    client_headers: dict,
) -> None:
    created = await client.post(
        f"{API}/bookings",
        json=booking_body(provider_id),
        headers=client_headers,
    )

    response = await client.get(
        f"{API}/bookings/{created.json()['id']}",
        headers=auth_headers_for(other_client_id, Role.CLIENT),
    )

    assert response.status_code == 404


# =============================================================================
# Provider side
# =============================================================================


@pytest.mark.asyncio
async def test_blocks(
    client: AsyncClient,
    provider_id: int,
    provider_headers: dict,
    client_headers: dict,
) -> None:
    await client.post(
        f"{API}/bookings",
        json=booking_body(provider_id, at="13:30"),
        headers=client_headers,
    )
    window = {"date": next_week(), "start_time": "13:00", "end_time": "14:00"}

    conflicting = await client.post(f"{API}/provider/blocks", json=window, headers=provider_headers)
    assert conflicting.status_code == 409
    assert conflicting.json()["error"] == "ConflictingAppointmentsError"

    malformed = await client.post(
        f"{API}/provider/blocks",
        json={**window, "start_time": "15:00"},
        headers=provider_headers,
    )
    assert malformed.status_code == 422
    assert malformed.json()["error"] == "MalformedRangeError"

    full_day = await client.post(
        f"{API}/provider/blocks",
        json={"date": next_week(8), "is_full_day": True, "reason": "Conference"},
        headers=provider_headers,
    )
    assert full_day.status_code == 201

    listing = await client.get(f"{API}/provider/blocks", headers=provider_headers)
    assert listing.json()["total"] == 1

    removed = await client.delete(
        f"{API}/provider/blocks/{full_day.json()['id']}",
        headers=provider_headers,
    )
    assert removed.status_code == 204

    missing = await client.delete(
        f"{API}/provider/blocks/{full_day.json()['id']}",
        headers=provider_headers,
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_status_schedule_and_reports(
    client: AsyncClient,
    provider_id: int,
    provider_headers: dict,
    client_headers: dict,
) -> None:
    created = await client.post(
        f"{API}/bookings",
        json=booking_body(provider_id, on=next_week(0), at="16:30"),
        headers=client_headers,
    )
    appointment_id = created.json()["id"]

    confirmed = await client.patch(
        f"{API}/provider/appointments/{appointment_id}/status",
        json={"status": "confirmed", "notes": "Bring previous results"},
        headers=provider_headers,
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["notes"] == "Bring previous results"

    completed = await client.patch(
        f"{API}/provider/appointments/{appointment_id}/status",
        json={"status": "completed"},
        headers=provider_headers,
    )
    assert completed.status_code == 200

    reopened = await client.patch(
        f"{API}/provider/appointments/{appointment_id}/status",
        json={"status": "booked"},
        headers=provider_headers,
    )
    assert reopened.status_code == 400
    assert reopened.json()["error"] == "TerminalStateError"

    unknown_status = await client.patch(
        f"{API}/provider/appointments/{appointment_id}/status",
        json={"status": "rescheduled"},
        headers=provider_headers,
    )
    assert unknown_status.status_code == 422

    schedule = await client.get(f"{API}/provider/appointments", headers=provider_headers)
    assert schedule.status_code == 200
    assert schedule.json()["period"] == "day"

    report = await client.get(
        f"{API}/provider/reports",
        params={"period": "year"},
        headers=provider_headers,
    )
    assert report.status_code == 200

    bad_period = await client.get(
        f"{API}/provider/reports",
        params={"period": "decade"},
        headers=provider_headers,
    )
    assert bad_period.status_code == 422

    dashboard = await client.get(f"{API}/provider/dashboard", headers=provider_headers)
    assert dashboard.status_code == 200
    assert dashboard.json()["total_clients"] == 1


@pytest.mark.asyncio
async def test_unknown_provider_token(client: AsyncClient) -> None:
    response = await client.get(
        f"{API}/provider/dashboard",
        headers=auth_headers_for(999, Role.PROVIDER),
    )
    assert response.status_code == 404


# =============================================================================
# Infrastructure failures
# =============================================================================


@pytest.mark.asyncio
async def test_store_unavailable_is_retryable(
    client: AsyncClient,
    provider_id: int,
    client_headers: dict,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def unavailable(self, provider_id, on_date):
        raise StoreUnavailableError()

    monkeypatch.setattr(AvailabilityService, "generate_availability", unavailable)

    response = await client.get(
        f"{API}/providers/{provider_id}/availability",
        params={"date": next_week()},
        headers=client_headers,
    )

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "1"
    assert response.json()["retryable"] is True


@pytest.mark.asyncio
async def test_dropped_connection_on_read_is_retryable(
    client: AsyncClient,
    db_session: AsyncSession,
    provider_id: int,
    provider_headers: dict,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def refuse(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

    monkeypatch.setattr(db_session, "execute", refuse)

    response = await client.get(f"{API}/provider/reports", headers=provider_headers)

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "1"
    body = response.json()
    assert body["error"] == "StoreUnavailableError"
    assert body["retryable"] is True

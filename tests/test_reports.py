"""Tests for provider reports, schedules and the dashboard."""

from datetime import date, datetime, time

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.core.exceptions import NotFoundError
from clinic_scheduler.scheduling.policies import Period
from clinic_scheduler.schemas.appointments import AppointmentStatusUpdate, BookingCreate
from clinic_scheduler.services.booking_service import BookingService
from clinic_scheduler.services.report_service import ReportService
from tests.helpers import FROZEN_NOW, frozen_clock

# (day of February 2026, time, client, reason, final status)
LEDGER = [
    (16, "09:00", "a", "Checkup", "completed"),
    (17, "09:00", "a", "Checkup", "cancelled"),
    (17, "10:00", "b", "Rash", "no_show"),
    (19, "10:00", "b", "Checkup", None),
    (20, "09:00", "a", None, "confirmed"),
    (25, "09:00", "a", None, None),
]


@pytest_asyncio.fixture
async def ledger(
    db_session: AsyncSession,
    provider_id: int,
    other_provider_id: int,
    client_id: int,
    other_client_id: int,
) -> dict[str, str]:
    """A week of mixed appointments; returns codes keyed by ISO date and time."""
    service = BookingService(db_session, now=frozen_clock(datetime(2026, 2, 1, 8, 0)))
    clients = {"a": client_id, "b": other_client_id}
    codes: dict[str, str] = {}

    for day, at, who, reason, final in LEDGER:
        created = await service.create_booking(
            clients[who],
            BookingCreate(
                provider_id=provider_id,
                appointment_date=date(2026, 2, day),
                appointment_time=at,
                reason_for_visit=reason,
            ),
        )
        codes[f"2026-02-{day:02d}T{at}"] = created.appointment_code
        if final:
            await service.set_appointment_status(
                provider_id, created.id, AppointmentStatusUpdate(status=final)
            )

    # Someone else's day, never counted
    await service.create_booking(
        other_client_id,
        BookingCreate(
            provider_id=other_provider_id,
            appointment_date=date(2026, 2, 19),
            appointment_time="10:20",
            reason_for_visit="Checkup",
        ),
    )
    return codes


@pytest.fixture
def reports(db_session: AsyncSession) -> ReportService:
    return ReportService(db_session, now=frozen_clock())


@pytest.mark.asyncio
async def test_week_report(reports: ReportService, provider_id: int, ledger: dict) -> None:
    report = await reports.get_period_report(provider_id, Period.WEEK)

    assert report.period == "week"
    assert report.date_range.start == date(2026, 2, 15)
    assert report.date_range.end == date(2026, 2, 21)

    stats = report.stats
    assert stats.total_appointments == 5
    assert (stats.completed, stats.cancelled, stats.booked) == (1, 1, 1)
    assert (stats.confirmed, stats.no_show) == (1, 1)
    assert stats.unique_clients == 2
    assert stats.completion_rate == 20
    assert stats.cancellation_rate == 20

    assert [(d.date.day, d.total, d.completed, d.cancelled) for d in report.daily_breakdown] == [
        (16, 1, 1, 0),
        (17, 2, 0, 1),
        (19, 1, 0, 0),
        (20, 1, 0, 0),
    ]
    assert [(r.reason, r.count) for r in report.top_reasons] == [("Checkup", 3), ("Rash", 1)]
    assert [(s.time, s.display, s.count) for s in report.busiest_slots] == [
        ("09:00", "9:00 AM", 3),
        ("10:00", "10:00 AM", 2),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("period", "total"),
    [(Period.DAY, 1), (Period.WEEK, 5), (Period.MONTH, 6), (Period.YEAR, 6)],
)
async def test_period_totals(
    reports: ReportService,
    provider_id: int,
    ledger: dict,
    period: Period,
    total: int,
) -> None:
    report = await reports.get_period_report(provider_id, period)
    assert report.stats.total_appointments == total


@pytest.mark.asyncio
async def test_empty_period_has_zero_rates(reports: ReportService, provider_id: int) -> None:
    report = await reports.get_period_report(provider_id, Period.MONTH)

    assert report.stats.total_appointments == 0
    assert report.stats.completion_rate == 0
    assert report.stats.cancellation_rate == 0
    assert report.daily_breakdown == []
    assert report.top_reasons == []
    assert report.busiest_slots == []


@pytest.mark.asyncio
async def test_schedule_groups_active_appointments_by_day(
    reports: ReportService,
    provider_id: int,
    ledger: dict,
) -> None:
    schedule = await reports.get_provider_schedule(provider_id, Period.WEEK)

    assert schedule.total_count == 4
    assert [(day.date.day, day.day_name, day.count) for day in schedule.days] == [
        (16, "Monday", 1),
        (17, "Tuesday", 1),
        (19, "Thursday", 1),
        (20, "Friday", 1),
    ]
    assert schedule.days[1].appointments[0].appointment_time == time(10, 0)


@pytest.mark.asyncio
async def test_dashboard(reports: ReportService, provider_id: int, ledger: dict) -> None:
    dashboard = await reports.get_dashboard(provider_id)

    assert dashboard.today.total == 1
    assert dashboard.today.completed == 0
    assert dashboard.today.remaining == 1
    assert dashboard.week_total == 4
    assert dashboard.month_total == 5
    assert dashboard.total_clients == 2
    assert dashboard.next_appointment is not None
    assert dashboard.next_appointment.time == "10:00"
    assert dashboard.next_appointment.code == ledger["2026-02-19T10:00"]


@pytest.mark.asyncio
async def test_dashboard_after_last_appointment(
    db_session: AsyncSession,
    provider_id: int,
    ledger: dict,
) -> None:
    evening = ReportService(db_session, now=frozen_clock(FROZEN_NOW.replace(hour=18)))

    dashboard = await evening.get_dashboard(provider_id)

    assert dashboard.next_appointment is None


@pytest.mark.asyncio
async def test_unknown_provider(reports: ReportService) -> None:
    with pytest.raises(NotFoundError):
        await reports.get_period_report(404, Period.DAY)
    with pytest.raises(NotFoundError):
        await reports.get_dashboard(404)

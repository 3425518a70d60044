"""Provider reports, schedules and dashboard figures."""

from collections import OrderedDict
from datetime import date

from sqlalchemy import and_, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_scheduler.database import store_read
from clinic_scheduler.models.appointments import appointments
from clinic_scheduler.scheduling.clock import Clock, clinic_now
from clinic_scheduler.scheduling.policies import Period, percentage, period_bounds
from clinic_scheduler.scheduling.slots import day_name, format_time
from clinic_scheduler.schemas.appointments import AppointmentResponse, AppointmentStatus
from clinic_scheduler.schemas.reports import (
    DailyBreakdown,
    DashboardStats,
    DashboardToday,
    DateRange,
    NextAppointment,
    PeriodReport,
    ProviderSchedule,
    ReasonCount,
    ReportStats,
    ScheduleDay,
    SlotCount,
)
from clinic_scheduler.services.provider_service import ProviderService

TOP_N = 5

COMPLETED = AppointmentStatus.COMPLETED.value
CANCELLED = AppointmentStatus.CANCELLED.value


def _count_where(condition):
    return func.count().filter(condition)


class ReportService:
    """Read-only aggregation over the appointment ledger."""

    def __init__(self, db: AsyncSession, now: Clock = clinic_now):
        """Initialize service with database session and clinic clock."""
        self.db = db
        self.now = now

    async def get_period_report(self, provider_id: int, period: Period) -> PeriodReport:
        """
        Summarize a provider's appointments for the period containing today.

        Args:
            provider_id: Provider ID
            period: day, week (Sunday start), month or year

        Returns:
            Status counts, rates, per-day breakdown, top reasons and busiest slots

        Raises:
            NotFoundError: If provider not found
        """
        async with store_read(self.db):
            await ProviderService(self.db).get_provider(provider_id)
            start, end = period_bounds(period, self.now().date())
            in_period = and_(
                appointments.c.provider_id == provider_id,
                appointments.c.appointment_date >= start,
                appointments.c.appointment_date <= end,
            )
            status = appointments.c.status

            stats_stmt = select(
                func.count().label("total"),
                _count_where(status == COMPLETED).label("completed"),
                _count_where(status == CANCELLED).label("cancelled"),
                _count_where(status == AppointmentStatus.BOOKED.value).label("booked"),
                _count_where(status == AppointmentStatus.CONFIRMED.value).label("confirmed"),
                _count_where(status == AppointmentStatus.NO_SHOW.value).label("no_show"),
                func.count(distinct(appointments.c.client_id)).label("unique_clients"),
            ).where(in_period)
            stats = (await self.db.execute(stats_stmt)).one()

            daily_stmt = (
                select(
                    appointments.c.appointment_date,
                    func.count().label("total"),
                    _count_where(status == COMPLETED).label("completed"),
                    _count_where(status == CANCELLED).label("cancelled"),
                )
                .where(in_period)
                .group_by(appointments.c.appointment_date)
                .order_by(appointments.c.appointment_date.asc())
            )
            daily = (await self.db.execute(daily_stmt)).all()

            reason_count = func.count().label("occurrences")
            reasons_stmt = (
                select(appointments.c.reason_for_visit, reason_count)
                .where(and_(in_period, appointments.c.reason_for_visit.is_not(None)))
                .group_by(appointments.c.reason_for_visit)
                .order_by(reason_count.desc(), appointments.c.reason_for_visit.asc())
                .limit(TOP_N)
            )
            reasons = (await self.db.execute(reasons_stmt)).all()

            slot_count = func.count().label("occurrences")
            slots_stmt = (
                select(appointments.c.appointment_time, slot_count)
                .where(in_period)
                .group_by(appointments.c.appointment_time)
                .order_by(slot_count.desc(), appointments.c.appointment_time.asc())
                .limit(TOP_N)
            )
            busiest = (await self.db.execute(slots_stmt)).all()

        total = stats.total or 0
        return PeriodReport(
            period=period.value,
            date_range=DateRange(start=start, end=end),
            stats=ReportStats(
                total_appointments=total,
                completed=stats.completed,
                cancelled=stats.cancelled,
                booked=stats.booked,
                confirmed=stats.confirmed,
                no_show=stats.no_show,
                unique_clients=stats.unique_clients,
                completion_rate=percentage(stats.completed, total),
                cancellation_rate=percentage(stats.cancelled, total),
            ),
            daily_breakdown=[
                DailyBreakdown(
                    date=row.appointment_date,
                    total=row.total,
                    completed=row.completed,
                    cancelled=row.cancelled,
                )
                for row in daily
            ],
            top_reasons=[
                ReasonCount(reason=row.reason_for_visit, count=row.occurrences) for row in reasons
            ],
            busiest_slots=[
                SlotCount(
                    time=row.appointment_time.strftime("%H:%M"),
                    display=format_time(row.appointment_time),
                    count=row.occurrences,
                )
                for row in busiest
            ],
        )

    async def get_provider_schedule(self, provider_id: int, period: Period) -> ProviderSchedule:
        """
        List a provider's active appointments for a period, grouped by day.

        Raises:
            NotFoundError: If provider not found
        """
        async with store_read(self.db):
            await ProviderService(self.db).get_provider(provider_id)
            start, end = period_bounds(period, self.now().date())

            stmt = (
                select(appointments)
                .where(
                    and_(
                        appointments.c.provider_id == provider_id,
                        appointments.c.appointment_date >= start,
                        appointments.c.appointment_date <= end,
                        appointments.c.status != CANCELLED,
                    )
                )
                .order_by(
                    appointments.c.appointment_date.asc(),
                    appointments.c.appointment_time.asc(),
                )
            )
            result = await self.db.execute(stmt)
            rows = [
                AppointmentResponse.model_validate(dict(row)) for row in result.mappings().all()
            ]

        grouped: OrderedDict[date, list[AppointmentResponse]] = OrderedDict()
        for row in rows:
            grouped.setdefault(row.appointment_date, []).append(row)

        return ProviderSchedule(
            period=period.value,
            date_range=DateRange(start=start, end=end),
            total_count=len(rows),
            days=[
                ScheduleDay(
                    date=day,
                    day_name=day_name(day),
                    count=len(items),
                    appointments=items,
                )
                for day, items in grouped.items()
            ],
        )

    async def get_dashboard(self, provider_id: int) -> DashboardStats:
        """
        Today's progress plus week/month totals for a provider.

        Raises:
            NotFoundError: If provider not found
        """
        async with store_read(self.db):
            await ProviderService(self.db).get_provider(provider_id)
            now = self.now()
            today = now.date()
            week_start, week_end = period_bounds(Period.WEEK, today)
            month_start, month_end = period_bounds(Period.MONTH, today)

            status = appointments.c.status
            on_date = appointments.c.appointment_date
            active = status != CANCELLED

            stats_stmt = select(
                _count_where(and_(on_date == today, active)).label("today_total"),
                _count_where(and_(on_date == today, status == COMPLETED)).label("today_completed"),
                _count_where(
                    and_(on_date == today, status == AppointmentStatus.BOOKED.value)
                ).label("today_remaining"),
                _count_where(and_(on_date >= week_start, on_date <= week_end, active)).label(
                    "week_total"
                ),
                _count_where(and_(on_date >= month_start, on_date <= month_end, active)).label(
                    "month_total"
                ),
                func.count(distinct(appointments.c.client_id)).label("total_clients"),
            ).where(appointments.c.provider_id == provider_id)
            stats = (await self.db.execute(stats_stmt)).one()

            next_stmt = (
                select(appointments)
                .where(
                    and_(
                        appointments.c.provider_id == provider_id,
                        on_date == today,
                        appointments.c.appointment_time > now.time().replace(microsecond=0),
                        status == AppointmentStatus.BOOKED.value,
                    )
                )
                .order_by(appointments.c.appointment_time.asc())
                .limit(1)
            )
            upcoming = (await self.db.execute(next_stmt)).mappings().first()

        next_appointment = None
        if upcoming:
            next_appointment = NextAppointment(
                time=upcoming["appointment_time"].strftime("%H:%M"),
                display=format_time(upcoming["appointment_time"]),
                code=upcoming["appointment_code"],
                client_id=upcoming["client_id"],
            )

        return DashboardStats(
            today=DashboardToday(
                total=stats.today_total,
                completed=stats.today_completed,
                remaining=stats.today_remaining,
            ),
            week_total=stats.week_total,
            month_total=stats.month_total,
            total_clients=stats.total_clients,
            next_appointment=next_appointment,
        )


"""Report, schedule and dashboard schemas."""

from datetime import date

from pydantic import BaseModel

from clinic_scheduler.schemas.appointments import AppointmentResponse


class DateRange(BaseModel):
    """Inclusive date range."""

    start: date
    end: date


class ReportStats(BaseModel):
    """Status counts and rates for a period."""

    total_appointments: int
    completed: int
    cancelled: int
    booked: int
    confirmed: int
    no_show: int
    unique_clients: int
    completion_rate: int
    cancellation_rate: int


class DailyBreakdown(BaseModel):
    """Per-day counts within a period."""

    date: date
    total: int
    completed: int
    cancelled: int


class ReasonCount(BaseModel):
    reason: str
    count: int


class SlotCount(BaseModel):
    time: str
    display: str
    count: int


class PeriodReport(BaseModel):
    """Schema for a provider's period report."""

    period: str
    date_range: DateRange
    stats: ReportStats
    daily_breakdown: list[DailyBreakdown]
    top_reasons: list[ReasonCount]
    busiest_slots: list[SlotCount]


class ScheduleDay(BaseModel):
    """Appointments for one day of a schedule."""

    date: date
    day_name: str
    count: int
    appointments: list[AppointmentResponse]


class ProviderSchedule(BaseModel):
    """Schema for a provider's active appointments over a period."""

    period: str
    date_range: DateRange
    total_count: int
    days: list[ScheduleDay]


class NextAppointment(BaseModel):
    time: str
    display: str
    code: str
    client_id: int


class DashboardToday(BaseModel):
    total: int
    completed: int
    remaining: int


class DashboardStats(BaseModel):
    """Schema for the provider dashboard summary."""

    today: DashboardToday
    week_total: int
    month_total: int
    total_clients: int
    next_appointment: NextAppointment | None = None

"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Time,
    func,
    text,
)

from clinic_scheduler.models.base import metadata

# Rows in this state no longer hold their slot
ACTIVE_ONLY = text("status <> 'cancelled'")

appointments = Table(
    "appointments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("appointment_code", String(32), nullable=False, unique=True),
    # Ownership / references
    Column(
        "provider_id",
        Integer,
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "client_id",
        Integer,
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
    ),
    # Slot
    Column("appointment_date", Date, nullable=False),
    Column("appointment_time", Time, nullable=False),
    # Status management
    Column("status", String(20), nullable=False, server_default="booked"),
    # Details
    Column("reason_for_visit", Text, nullable=True),
    Column("notes", Text, nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    # Constraints
    CheckConstraint(
        "status IN ('booked', 'confirmed', 'completed', 'cancelled', 'no_show')",
        name="status_check",
    ),
    Index("ix_appointments_provider_date", "provider_id", "appointment_date"),
    Index("ix_appointments_client_date", "client_id", "appointment_date"),
    # One active appointment per provider slot and per client slot
    Index(
        "uq_appointments_provider_slot_active",
        "provider_id",
        "appointment_date",
        "appointment_time",
        unique=True,
        postgresql_where=ACTIVE_ONLY,
        sqlite_where=ACTIVE_ONLY,
    ),
    Index(
        "uq_appointments_client_slot_active",
        "client_id",
        "appointment_date",
        "appointment_time",
        unique=True,
        postgresql_where=ACTIVE_ONLY,
        sqlite_where=ACTIVE_ONLY,
    ),
)

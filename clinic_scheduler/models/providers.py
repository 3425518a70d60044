"""Providers table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    String,
    Table,
    Text,
    Time,
    func,
)

from clinic_scheduler.models.base import metadata

providers = Table(
    "providers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("full_name", Text, nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone", String(20), nullable=True),
    Column("specialization", String(200), nullable=False, index=True),
    # Working hours override; NULL falls back to the clinic defaults
    Column("work_start_time", Time, nullable=True),
    Column("work_end_time", Time, nullable=True),
    Column("slot_interval_minutes", Integer, nullable=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "slot_interval_minutes IS NULL OR slot_interval_minutes > 0",
        name="slot_interval_positive",
    ),
)

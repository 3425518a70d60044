"""Unavailability blocks table model using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Table,
    Text,
    Time,
    func,
    text,
)

from clinic_scheduler.models.base import metadata

unavailability_blocks = Table(
    "unavailability_blocks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "provider_id",
        Integer,
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("blocked_date", Date, nullable=False),
    Column("is_full_day", Boolean, nullable=False, server_default=text("false")),
    Column("start_time", Time, nullable=True),
    Column("end_time", Time, nullable=True),
    Column("reason", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    # Full-day rows carry no range, partial rows carry a non-empty one
    CheckConstraint(
        "(is_full_day AND start_time IS NULL AND end_time IS NULL) OR "
        "(NOT is_full_day AND start_time IS NOT NULL AND end_time IS NOT NULL "
        "AND start_time < end_time)",
        name="range_shape",
    ),
    Index("ix_unavailability_blocks_provider_date", "provider_id", "blocked_date"),
)

"""Clients table model using SQLAlchemy Core."""

from sqlalchemy import Column, DateTime, Integer, String, Table, Text, func

from clinic_scheduler.models.base import metadata

clients = Table(
    "clients",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("full_name", Text, nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone", String(20), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

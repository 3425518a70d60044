"""Create scheduling tables

Revision ID: 001_create_scheduling_tables
Revises:
Create Date: 2026-10-19

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_ONLY = sa.text("status <> 'cancelled'")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create providers, clients, appointments and unavailability_blocks."""
    op.create_table(
        "providers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("specialization", sa.String(length=200), nullable=False),
        sa.Column("work_start_time", sa.Time(), nullable=True),
        sa.Column("work_end_time", sa.Time(), nullable=True),
        sa.Column("slot_interval_minutes", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_providers"),
        sa.UniqueConstraint("email", name="uq_providers_email"),
        sa.CheckConstraint(
            "slot_interval_minutes IS NULL OR slot_interval_minutes > 0",
            name="ck_providers_slot_interval_positive",
        ),
    )
    op.create_index("ix_providers_specialization", "providers", ["specialization"])

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_clients"),
        sa.UniqueConstraint("email", name="uq_clients_email"),
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("appointment_code", sa.String(length=32), nullable=False),
        sa.Column("provider_id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.Time(), nullable=False),
        sa.Column(
            "status",
            sa.String(length=20),
            server_default=sa.text("'booked'"),
            nullable=False,
        ),
        sa.Column("reason_for_visit", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_appointments"),
        sa.UniqueConstraint("appointment_code", name="uq_appointments_appointment_code"),
        sa.ForeignKeyConstraint(
            ["provider_id"],
            ["providers.id"],
            name="fk_appointments_provider_id_providers",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["client_id"],
            ["clients.id"],
            name="fk_appointments_client_id_clients",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "status IN ('booked', 'confirmed', 'completed', 'cancelled', 'no_show')",
            name="ck_appointments_status_check",
        ),
    )
    op.create_index(
        "ix_appointments_provider_date",
        "appointments",
        ["provider_id", "appointment_date"],
    )
    op.create_index(
        "ix_appointments_client_date",
        "appointments",
        ["client_id", "appointment_date"],
    )
    # At most one active appointment per provider slot and per client slot
    op.create_index(
        "uq_appointments_provider_slot_active",
        "appointments",
        ["provider_id", "appointment_date", "appointment_time"],
        unique=True,
        postgresql_where=ACTIVE_ONLY,
        sqlite_where=ACTIVE_ONLY,
    )
    op.create_index(
        "uq_appointments_client_slot_active",
        "appointments",
        ["client_id", "appointment_date", "appointment_time"],
        unique=True,
        postgresql_where=ACTIVE_ONLY,
        sqlite_where=ACTIVE_ONLY,
    )

    op.create_table(
        "unavailability_blocks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("provider_id", sa.Integer(), nullable=False),
        sa.Column("blocked_date", sa.Date(), nullable=False),
        sa.Column(
            "is_full_day",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_unavailability_blocks"),
        sa.ForeignKeyConstraint(
            ["provider_id"],
            ["providers.id"],
            name="fk_unavailability_blocks_provider_id_providers",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "(is_full_day AND start_time IS NULL AND end_time IS NULL) OR "
            "(NOT is_full_day AND start_time IS NOT NULL AND end_time IS NOT NULL "
            "AND start_time < end_time)",
            name="ck_unavailability_blocks_range_shape",
        ),
    )
    op.create_index(
        "ix_unavailability_blocks_provider_date",
        "unavailability_blocks",
        ["provider_id", "blocked_date"],
    )


def downgrade() -> None:
    """Drop scheduling tables."""
    op.drop_table("unavailability_blocks")
    op.drop_table("appointments")
    op.drop_table("clients")
    op.drop_table("providers")

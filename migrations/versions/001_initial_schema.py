"""Initial schema: providers, provider_schedules, appointments.

Revision ID: 001_initial
Revises:
Create Date: 2025-05-03

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

day_of_week = sa.Enum(
    "MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY",
    name="dayofweek",
)
appointment_status = sa.Enum("CONFIRMED", "CANCELLED", "RESCHEDULED", "NO_SHOW", name="appointmentstatus")


def upgrade() -> None:
    op.create_table(
        "providers",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("timezone", sa.String(), nullable=False, server_default="UTC"),
        sa.Column("appointment_duration", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "provider_schedules",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("provider_id", sa.String(), nullable=False),
        sa.Column("day_of_week", day_of_week, nullable=False),
        sa.Column("start_time", sa.String(), nullable=False),
        sa.Column("end_time", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(["provider_id"], ["providers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("provider_id", "day_of_week", name="uq_provider_schedules_day"),
    )
    op.create_index(op.f("ix_provider_schedules_provider_id"), "provider_schedules", ["provider_id"], unique=False)

    op.create_table(
        "appointments",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("patient_id", sa.String(), nullable=False),
        sa.Column("provider_id", sa.String(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("status", appointment_status, nullable=False, server_default="CONFIRMED"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["provider_id"], ["providers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_appointments_patient_id"), "appointments", ["patient_id"], unique=False)
    op.create_index(
        "ix_appointments_provider_range", "appointments", ["provider_id", "start_time", "end_time"], unique=False
    )
    op.create_index(
        "uq_appointments_provider_start_active",
        "appointments",
        ["provider_id", "start_time"],
        unique=True,
        sqlite_where=sa.text("status != 'CANCELLED'"),
        postgresql_where=sa.text("status != 'CANCELLED'"),
    )


def downgrade() -> None:
    op.drop_index("uq_appointments_provider_start_active", table_name="appointments")
    op.drop_index("ix_appointments_provider_range", table_name="appointments")
    op.drop_index(op.f("ix_appointments_patient_id"), table_name="appointments")
    op.drop_table("appointments")
    op.drop_index(op.f("ix_provider_schedules_provider_id"), table_name="provider_schedules")
    op.drop_table("provider_schedules")
    op.drop_table("providers")
    appointment_status.drop(op.get_bind(), checkfirst=True)
    day_of_week.drop(op.get_bind(), checkfirst=True)

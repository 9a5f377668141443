from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel

from booking.models.types import UTCDateTime, utc_now


class AppointmentStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    RESCHEDULED = "RESCHEDULED"
    NO_SHOW = "NO_SHOW"


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    # No two live appointments of a provider may share a start; cancelled rows free the slot.
    __table_args__ = (
        Index(
            "uq_appointments_provider_start_active",
            "provider_id",
            "start_time",
            unique=True,
            sqlite_where=text("status != 'CANCELLED'"),
            postgresql_where=text("status != 'CANCELLED'"),
        ),
        Index("ix_appointments_provider_range", "provider_id", "start_time", "end_time"),
    )
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    patient_id: str = Field(index=True)
    provider_id: str = Field(foreign_key="providers.id")
    start_time: datetime = Field(sa_type=UTCDateTime)
    end_time: datetime = Field(sa_type=UTCDateTime)
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )


class BookedInterval(SQLModel):
    start: datetime
    end: datetime

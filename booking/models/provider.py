from datetime import date, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from booking.models.types import UTCDateTime, utc_now


class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def for_date(cls, d: date) -> "DayOfWeek":
        # date.weekday(): Monday == 0
        return list(cls)[d.weekday()]


class Provider(SQLModel, table=True):
    __tablename__ = "providers"
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    timezone: str = "UTC"
    appointment_duration: int = 30  # minutes
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, sa_column_kwargs={"onupdate": utc_now}
    )

    schedules: list["ProviderSchedule"] = Relationship(
        back_populates="provider",
        sa_relationship_kwargs={"lazy": "selectin", "cascade": "all, delete-orphan"},
    )


class ProviderSchedule(SQLModel, table=True):
    """One working window per (provider, day of week), in the provider's local time."""

    __tablename__ = "provider_schedules"
    __table_args__ = (UniqueConstraint("provider_id", "day_of_week", name="uq_provider_schedules_day"),)
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    provider_id: str = Field(foreign_key="providers.id", index=True, ondelete="CASCADE")
    day_of_week: DayOfWeek
    start_time: str  # "HH:mm"
    end_time: str  # "HH:mm"

    provider: Provider | None = Relationship(back_populates="schedules")


class DailyWindow(SQLModel):
    start: str
    end: str


WeeklySchedule = dict[DayOfWeek, DailyWindow]

from pydantic import BaseModel, Field, field_validator, model_validator

from booking.core.config import settings
from booking.models.provider import DayOfWeek
from booking.services.time_service import is_valid_timezone

HHMM_PATTERN = r"^(?:[01]\d|2[0-3]):[0-5]\d$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class DailyScheduleIn(BaseModel):
    start: str = Field(pattern=HHMM_PATTERN)
    end: str = Field(pattern=HHMM_PATTERN)

    @model_validator(mode="after")
    def end_after_start(self) -> "DailyScheduleIn":
        # Zero-padded HH:mm compares correctly as text
        if self.end <= self.start:
            raise ValueError("End time must be after start time for a day's schedule")
        return self


class UpsertScheduleRequest(BaseModel):
    weekly_schedule: dict[str, DailyScheduleIn]
    timezone: str = settings.default_timezone
    appointment_duration: int = Field(
        default=settings.default_appointment_duration, ge=settings.min_appointment_duration
    )

    @field_validator("weekly_schedule")
    @classmethod
    def known_days(cls, value: dict[str, DailyScheduleIn]) -> dict[str, DailyScheduleIn]:
        if not value:
            raise ValueError("Weekly schedule cannot be empty")
        days = {d.value.lower() for d in DayOfWeek}
        unknown = [k for k in value if k.lower() not in days]
        if unknown:
            raise ValueError(f"Unknown day(s) of week: {', '.join(unknown)}")
        return value

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        if not is_valid_timezone(value):
            raise ValueError("Invalid or unrecognized IANA timezone identifier.")
        return value


class AvailabilityQuery(BaseModel):
    date: str | None = Field(default=None, pattern=DATE_PATTERN)
    start_date: str | None = Field(default=None, pattern=DATE_PATTERN)
    end_date: str | None = Field(default=None, pattern=DATE_PATTERN)

    @model_validator(mode="after")
    def single_date_or_range(self) -> "AvailabilityQuery":
        if self.date and (self.start_date or self.end_date):
            raise ValueError('Cannot provide both "date" and "start_date"/"end_date"')
        if not self.date and not (self.start_date and self.end_date):
            raise ValueError('Either "date" or both "start_date" and "end_date" must be provided')
        return self


class DayAvailability(BaseModel):
    provider_id: str
    date: str  # YYYY-MM-DD, provider local
    available_slots: list[str]  # HH:mm, provider local

import logging
from collections.abc import Mapping
from datetime import date

from pydantic import ValidationError

from booking.core.config import settings
from booking.core.errors import BadRequestError, NotFoundError
from booking.models.provider import DailyWindow, DayOfWeek, Provider, WeeklySchedule
from booking.repositories.provider_repository import ProviderRepository
from booking.services.availability_service import AvailabilityService
from booking.services.time_service import get_zone, parse_local_time

logger = logging.getLogger(__name__)


def normalize_weekly_schedule(weekly_schedule: Mapping[str, DailyWindow | Mapping]) -> WeeklySchedule:
    """Validate day names and "HH:mm" windows (end after start)."""
    if not weekly_schedule:
        raise BadRequestError("Weekly schedule cannot be empty.")
    normalized: WeeklySchedule = {}
    for day_name, window in weekly_schedule.items():
        try:
            day = day_name if isinstance(day_name, DayOfWeek) else DayOfWeek(str(day_name).upper())
        except ValueError as e:
            raise BadRequestError(f"Unknown day of week: {day_name!r}") from e
        if not isinstance(window, DailyWindow):
            try:
                window = DailyWindow.model_validate(window)
            except ValidationError as e:
                raise BadRequestError(f"Invalid window for {day.value.lower()}: {e}") from e
        start = parse_local_time(window.start)
        end = parse_local_time(window.end)
        if end <= start:
            raise BadRequestError(f"End time must be after start time for {day.value.lower()}.")
        normalized[day] = DailyWindow(start=start.strftime("%H:%M"), end=end.strftime("%H:%M"))
    return normalized


class ProviderService:
    def __init__(
        self, provider_repository: ProviderRepository, availability_service: AvailabilityService
    ) -> None:
        self.provider_repository = provider_repository
        self.availability_service = availability_service

    async def set_schedule(
        self,
        provider_id: str,
        weekly_schedule: Mapping[str, DailyWindow | Mapping],
        timezone: str,
        appointment_duration: int,
    ) -> Provider:
        get_zone(timezone)
        if appointment_duration < settings.min_appointment_duration:
            raise BadRequestError(
                f"Appointment duration must be at least {settings.min_appointment_duration} minutes."
            )
        schedule = normalize_weekly_schedule(weekly_schedule)
        provider = await self.provider_repository.upsert_schedule(
            provider_id, schedule, timezone, appointment_duration
        )
        logger.info(
            "Schedule updated for provider %s: %d day(s), tz=%s, duration=%d",
            provider_id,
            len(schedule),
            timezone,
            appointment_duration,
        )
        return provider

    async def get_provider(self, provider_id: str) -> Provider:
        provider = await self.provider_repository.find_provider_with_schedule(provider_id)
        if not provider:
            raise NotFoundError("Provider")
        return provider

    async def available_slots(self, provider_id: str, d: str | date) -> list[str]:
        provider = await self.get_provider(provider_id)
        return await self.availability_service.slots_for_date(provider, d)

    async def available_slots_in_range(
        self, provider_id: str, start_date: str | date, end_date: str | date
    ) -> dict[str, list[str]]:
        provider = await self.get_provider(provider_id)
        return await self.availability_service.slots_for_range(provider, start_date, end_date)

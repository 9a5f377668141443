import logging
from datetime import date, datetime, timedelta
from typing import Iterable

from booking.core.errors import InvalidRangeError
from booking.models.appointment import BookedInterval
from booking.models.provider import DayOfWeek, Provider, ProviderSchedule
from booking.repositories.appointment_repository import AppointmentRepository
from booking.services.slot_service import generate_slots
from booking.services.time_service import get_zone, parse_date, start_of_local_day_utc, utc_to_local_time

logger = logging.getLogger(__name__)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open [start, end) overlap: touching intervals do not overlap."""
    return not (a_end <= b_start or b_end <= a_start)


def schedule_for_day(provider: Provider, d: date) -> ProviderSchedule | None:
    day = DayOfWeek.for_date(d)
    for entry in provider.schedules:
        if entry.day_of_week == day:
            return entry
    return None


def available_slot_starts(
    provider: Provider, d: str | date, booked_intervals: Iterable[BookedInterval]
) -> list[datetime]:
    """UTC starts of the provider's free slots on local date ``d``.

    Each local "HH:mm" label names one instant. When the clocks fall back the
    repeated wall-clock hour keeps only its first occurrence, the same
    resolution ``local_to_utc`` applies.
    """
    d = parse_date(d)
    entry = schedule_for_day(provider, d)
    if entry is None:
        return []
    duration = timedelta(minutes=provider.appointment_duration)
    booked = list(booked_intervals)
    seen: set[str] = set()
    free: list[datetime] = []
    for start in generate_slots(
        entry.start_time, entry.end_time, d, provider.appointment_duration, provider.timezone
    ):
        label = utc_to_local_time(start, provider.timezone)
        if label in seen:
            continue
        seen.add(label)
        end = start + duration
        if not any(intervals_overlap(start, end, b.start, b.end) for b in booked):
            free.append(start)
    return free


def available_slots_for_date(
    provider: Provider, d: str | date, booked_intervals: Iterable[BookedInterval]
) -> list[str]:
    """Free slots on local date ``d`` as "HH:mm" in the provider's timezone."""
    return [
        utc_to_local_time(start, provider.timezone)
        for start in available_slot_starts(provider, d, booked_intervals)
    ]


class AvailabilityService:
    def __init__(self, appointment_repository: AppointmentRepository) -> None:
        self.appointment_repository = appointment_repository

    async def slot_starts_for_date(self, provider: Provider, d: str | date) -> list[datetime]:
        d = parse_date(d)
        get_zone(provider.timezone)
        if schedule_for_day(provider, d) is None:
            # Provider does not work this day; skip the booked-intervals query
            return []
        # Query the whole local day, which may straddle two UTC dates
        range_start = start_of_local_day_utc(d, provider.timezone)
        range_end = start_of_local_day_utc(d + timedelta(days=1), provider.timezone)
        booked = await self.appointment_repository.find_booked_intervals(
            provider.id, range_start, range_end
        )
        return available_slot_starts(provider, d, booked)

    async def slots_for_date(self, provider: Provider, d: str | date) -> list[str]:
        starts = await self.slot_starts_for_date(provider, d)
        return [utc_to_local_time(s, provider.timezone) for s in starts]

    async def slots_for_range(
        self, provider: Provider, start_date: str | date, end_date: str | date
    ) -> dict[str, list[str]]:
        """Map each local date in [start_date, end_date] to its free slots, omitting empty dates."""
        start_date = parse_date(start_date)
        end_date = parse_date(end_date)
        if start_date > end_date:
            raise InvalidRangeError()
        result: dict[str, list[str]] = {}
        current = start_date
        while current <= end_date:
            slots = await self.slots_for_date(provider, current)
            if slots:
                result[current.isoformat()] = slots
            current += timedelta(days=1)
        logger.debug(
            "Availability for provider %s %s..%s: %d working date(s)",
            provider.id,
            start_date,
            end_date,
            len(result),
        )
        return result

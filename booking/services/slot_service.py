from datetime import date, datetime, time, timedelta

from booking.core.errors import BadRequestError
from booking.services.time_service import local_to_utc


def generate_slots(
    local_start: str | time,
    local_end: str | time,
    d: str | date,
    duration_minutes: int,
    timezone: str,
) -> list[datetime]:
    """Generate slot start times as aware UTC for one local working window.

    A slot may end exactly at the window's close, but no slot starts after
    ``end - duration``. The window edges are converted to UTC before stepping,
    so a window spanning a DST change yields its true number of slots.
    """
    if duration_minutes <= 0:
        raise BadRequestError("Appointment duration must be a positive number of minutes.")
    start = local_to_utc(d, local_start, timezone)
    end = local_to_utc(d, local_end, timezone)
    delta = timedelta(minutes=duration_minutes)
    last_start = end - delta
    slots: list[datetime] = []
    current = start
    while current <= last_start:
        slots.append(current)
        current += delta
    return slots

"""Conversions between a provider's local wall-clock time and UTC instants.

All civil-to-absolute conversions go through zoneinfo. Local times that fall
into a DST gap or overlap resolve with fold=0: a skipped time keeps the offset
in force before the transition, a repeated time maps to its first occurrence.
"""

from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking.core.errors import BadRequestError, InvalidTimezoneError


def get_zone(timezone: str) -> ZoneInfo:
    """Resolve an IANA identifier against the timezone database."""
    if not timezone:
        raise InvalidTimezoneError(timezone)
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise InvalidTimezoneError(timezone) from e


def is_valid_timezone(timezone: str) -> bool:
    try:
        get_zone(timezone)
    except InvalidTimezoneError:
        return False
    return True


def parse_local_time(value: str | time) -> time:
    """Parse "HH:mm" into a time."""
    if isinstance(value, time):
        return value
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError) as e:
        raise BadRequestError(f"Invalid time format (HH:mm): {value!r}") from e


def parse_date(value: str | date) -> date:
    """Parse "YYYY-MM-DD" into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise BadRequestError(f"Invalid date format (YYYY-MM-DD): {value!r}") from e


def ensure_utc(instant: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def local_to_utc(d: str | date, local_time: str | time, timezone: str) -> datetime:
    zone = get_zone(timezone)
    local = datetime.combine(parse_date(d), parse_local_time(local_time), tzinfo=zone)
    return local.astimezone(UTC)


def utc_to_local_time(instant: datetime, timezone: str) -> str:
    return ensure_utc(instant).astimezone(get_zone(timezone)).strftime("%H:%M")


def utc_to_local_date(instant: datetime, timezone: str) -> str:
    return ensure_utc(instant).astimezone(get_zone(timezone)).date().isoformat()


def start_of_local_day_utc(d: str | date, timezone: str) -> datetime:
    return local_to_utc(d, time(0, 0), timezone)

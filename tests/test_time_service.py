from datetime import UTC, date, datetime, time, timedelta, timezone

import pytest

from booking.core.errors import BadRequestError, InvalidTimezoneError
from booking.services.time_service import (
    ensure_utc,
    get_zone,
    is_valid_timezone,
    local_to_utc,
    parse_date,
    parse_local_time,
    start_of_local_day_utc,
    utc_to_local_date,
    utc_to_local_time,
)


class TestTimezoneValidation:
    @pytest.mark.parametrize("tz", ["UTC", "Europe/Berlin", "America/Los_Angeles", "Asia/Kolkata"])
    def test_known_zones(self, tz):
        assert is_valid_timezone(tz)
        assert get_zone(tz).key == tz

    @pytest.mark.parametrize("tz", ["", "Mars/Olympus", "Not/AZone", "Europe", "../etc/passwd"])
    def test_unknown_zones(self, tz):
        assert not is_valid_timezone(tz)
        with pytest.raises(InvalidTimezoneError) as exc_info:
            get_zone(tz)
        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "INVALID_TIMEZONE"


class TestParsing:
    def test_parse_local_time(self):
        assert parse_local_time("09:30") == time(9, 30)
        assert parse_local_time(time(7, 0)) == time(7, 0)

    @pytest.mark.parametrize("value", ["9.30", "25:00", "noon", ""])
    def test_parse_local_time_rejects_garbage(self, value):
        with pytest.raises(BadRequestError):
            parse_local_time(value)

    def test_parse_date(self):
        assert parse_date("2025-06-16") == date(2025, 6, 16)
        assert parse_date(date(2025, 6, 16)) == date(2025, 6, 16)
        assert parse_date(datetime(2025, 6, 16, 12, 0)) == date(2025, 6, 16)

    def test_parse_date_rejects_garbage(self):
        with pytest.raises(BadRequestError):
            parse_date("16/06/2025")


class TestConversions:
    def test_local_to_utc_summer_offset(self):
        # Berlin is UTC+2 in June
        assert local_to_utc("2025-06-16", "09:00", "Europe/Berlin") == datetime(2025, 6, 16, 7, 0, tzinfo=UTC)

    def test_local_to_utc_winter_offset(self):
        assert local_to_utc("2025-01-13", "09:00", "Europe/Berlin") == datetime(2025, 1, 13, 8, 0, tzinfo=UTC)

    def test_local_to_utc_crosses_utc_date(self):
        # 20:00 in Los Angeles (UTC-7) is already the next UTC day
        instant = local_to_utc("2025-06-16", "20:00", "America/Los_Angeles")
        assert instant == datetime(2025, 6, 17, 3, 0, tzinfo=UTC)

    def test_spring_forward_gap_uses_offset_before_transition(self):
        # 02:30 does not exist in Berlin on 2025-03-30
        assert local_to_utc("2025-03-30", "02:30", "Europe/Berlin") == datetime(2025, 3, 30, 1, 30, tzinfo=UTC)

    def test_fall_back_overlap_uses_first_occurrence(self):
        # 02:30 happens twice in Berlin on 2025-10-26; the first is still CEST
        assert local_to_utc("2025-10-26", "02:30", "Europe/Berlin") == datetime(2025, 10, 26, 0, 30, tzinfo=UTC)

    def test_utc_to_local_round_trip(self):
        instant = datetime(2025, 6, 17, 3, 0, tzinfo=UTC)
        assert utc_to_local_time(instant, "America/Los_Angeles") == "20:00"
        assert utc_to_local_date(instant, "America/Los_Angeles") == "2025-06-16"

    def test_naive_input_is_treated_as_utc(self):
        naive = datetime(2025, 6, 16, 7, 0)
        assert ensure_utc(naive) == datetime(2025, 6, 16, 7, 0, tzinfo=UTC)
        assert utc_to_local_time(naive, "Europe/Berlin") == "09:00"

    def test_ensure_utc_normalizes_offsets(self):
        plus_two = datetime(2025, 6, 16, 9, 0, tzinfo=timezone(timedelta(hours=2)))
        normalized = ensure_utc(plus_two)
        assert normalized == datetime(2025, 6, 16, 7, 0, tzinfo=UTC)
        assert normalized.tzinfo is UTC

    def test_start_of_local_day(self):
        assert start_of_local_day_utc("2025-06-16", "Europe/Berlin") == datetime(2025, 6, 15, 22, 0, tzinfo=UTC)
        assert start_of_local_day_utc("2025-06-16", "UTC") == datetime(2025, 6, 16, 0, 0, tzinfo=UTC)

    def test_invalid_zone_in_conversion(self):
        with pytest.raises(InvalidTimezoneError):
            local_to_utc("2025-06-16", "09:00", "Nowhere/Town")

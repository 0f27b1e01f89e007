"""Unit tests for time and timezone utility functions."""

from datetime import date, datetime, timedelta

import pytest
from freezegun import freeze_time

from medtracker.utils import InvalidTimeError
from medtracker.utils.timezone import (
    get_user_current_time,
    get_user_today,
    is_time_to_take,
    iso_week_label,
    normalize_time,
    parse_date,
    parse_timezone_offset,
    week_start_for,
)


class TestParseTimezoneOffset:
    """Test cases for parse_timezone_offset function."""

    def test_parse_positive_timezone(self):
        assert parse_timezone_offset("+03:00") == timedelta(hours=3)
        assert parse_timezone_offset("+05:30") == timedelta(hours=5, minutes=30)
        assert parse_timezone_offset("+14:00") == timedelta(hours=14)

    def test_parse_negative_timezone(self):
        assert parse_timezone_offset("-05:00") == timedelta(hours=-5)
        assert parse_timezone_offset("-08:30") == timedelta(hours=-8, minutes=-30)

    def test_surrounding_whitespace_is_ignored(self):
        assert parse_timezone_offset(" +01:00 ") == timedelta(hours=1)

    @pytest.mark.parametrize(
        "offset",
        ["", "+3:00", "+03:0", "03:00", "+15:00", "+03:60", "+ab:cd", "UTC"],
    )
    def test_invalid_formats(self, offset):
        with pytest.raises(InvalidTimeError):
            parse_timezone_offset(offset)


class TestNormalizeTime:
    def test_pads_hours(self):
        assert normalize_time("8:05") == "08:05"
        assert normalize_time("23:59") == "23:59"

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "8", "", "12:5"])
    def test_rejects_invalid(self, value):
        with pytest.raises(InvalidTimeError):
            normalize_time(value)


def test_parse_date():
    assert parse_date("2024-01-03") == date(2024, 1, 3)
    assert parse_date(" 2024-02-29 ") == date(2024, 2, 29)


@pytest.mark.parametrize(
    "value",
    ["2024-W01-1", "20240103", "2024-1-3", "2024-02-30", "2024-01-03T10:00", "", "today"],
)
def test_parse_date_rejects_other_formats(value):
    with pytest.raises(InvalidTimeError):
        parse_date(value)


@freeze_time("2024-01-01 22:30:00")
def test_get_user_current_time_applies_offset():
    assert get_user_current_time("+03:00") == datetime(2024, 1, 2, 1, 30)
    assert get_user_current_time("-05:00") == datetime(2024, 1, 1, 17, 30)


@freeze_time("2024-01-01 22:30:00")
def test_get_user_today_crosses_midnight():
    assert get_user_today("+03:00") == date(2024, 1, 2)
    assert get_user_today("+00:00") == date(2024, 1, 1)


def test_week_start_for_is_monday():
    # 2024-01-01 is a Monday
    assert week_start_for(date(2024, 1, 1)) == date(2024, 1, 1)
    assert week_start_for(date(2024, 1, 7)) == date(2024, 1, 1)
    assert week_start_for(date(2024, 1, 8)) == date(2024, 1, 8)


def test_iso_week_label():
    assert iso_week_label(date(2024, 1, 1)) == "2024-W01"
    # ISO week of 2021-01-01 belongs to 2020
    assert iso_week_label(date(2021, 1, 1)) == "2020-W53"


class TestIsTimeToTake:
    """Test cases for is_time_to_take function."""

    def test_due_and_not_recorded(self):
        assert is_time_to_take("10:00", datetime(2024, 1, 1, 10, 30)) is True

    def test_exactly_on_time(self):
        assert is_time_to_take("10:00", datetime(2024, 1, 1, 10, 0)) is True

    def test_not_yet_due(self):
        assert is_time_to_take("10:00", datetime(2024, 1, 1, 9, 59)) is False

    def test_as_needed_is_never_due(self):
        assert is_time_to_take(None, datetime(2024, 1, 1, 23, 0)) is False

    def test_recorded_today(self):
        assert is_time_to_take("10:00", datetime(2024, 1, 1, 11, 0), recorded_today=True) is False

    def test_reminded_recently(self):
        now = datetime(2024, 1, 1, 10, 30)
        assert is_time_to_take(
            "10:00", now,
            last_reminded_at=datetime(2024, 1, 1, 10, 0),
            repeat_interval=timedelta(hours=1),
        ) is False

    def test_repeat_after_interval(self):
        now = datetime(2024, 1, 1, 11, 0)
        assert is_time_to_take(
            "10:00", now,
            last_reminded_at=datetime(2024, 1, 1, 10, 0),
            repeat_interval=timedelta(hours=1),
        ) is True

    def test_no_repeat_without_interval(self):
        now = datetime(2024, 1, 1, 20, 0)
        assert is_time_to_take(
            "10:00", now, last_reminded_at=datetime(2024, 1, 1, 10, 0)
        ) is False

    def test_reminder_from_yesterday_does_not_block(self):
        now = datetime(2024, 1, 2, 10, 5)
        assert is_time_to_take(
            "10:00", now, last_reminded_at=datetime(2024, 1, 1, 23, 0)
        ) is True

    def test_malformed_time_is_not_due(self):
        assert is_time_to_take("ten", datetime(2024, 1, 1, 11, 0)) is False

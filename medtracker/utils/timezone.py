"""Time and timezone utility functions for the medication tracker."""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from loguru import logger

from medtracker.utils.error_handler import InvalidTimeError

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_timezone_offset(offset_str: str) -> timedelta:
    """Parse timezone offset string to timedelta.

    Args:
        offset_str: Timezone offset in format "+03:00" or "-05:00"

    Returns:
        timedelta representing the offset

    Raises:
        InvalidTimeError: If offset string format is invalid

    Examples:
        >>> parse_timezone_offset("+03:00")
        datetime.timedelta(seconds=10800)
        >>> parse_timezone_offset("-05:00")
        datetime.timedelta(days=-1, seconds=68400)
    """
    try:
        offset_str = offset_str.strip()

        if len(offset_str) != 6 or offset_str[0] not in ["+", "-"]:
            raise ValueError(f"Invalid timezone offset format: {offset_str}")

        sign = 1 if offset_str[0] == "+" else -1

        hours_str, minutes_str = offset_str[1:].split(":")
        hours = int(hours_str)
        minutes = int(minutes_str)

        if not (0 <= hours <= 14):
            raise ValueError(f"Hours out of range: {hours}")
        if not (0 <= minutes <= 59):
            raise ValueError(f"Minutes out of range: {minutes}")

        total_minutes = sign * (hours * 60 + minutes)
        return timedelta(minutes=total_minutes)

    except (ValueError, IndexError, AttributeError) as e:
        logger.error(f"Failed to parse timezone offset '{offset_str}': {e}")
        raise InvalidTimeError(f"Invalid timezone offset format: {offset_str}") from e


def normalize_time(time_str: str) -> str:
    """Validate a clock time and return it in zero-padded HH:MM form.

    Raises:
        InvalidTimeError: If the time is not a valid 24-hour clock time

    Examples:
        >>> normalize_time("8:05")
        '08:05'
    """
    match = _TIME_RE.match(time_str.strip()) if time_str else None
    if not match:
        raise InvalidTimeError(f"Invalid time format: {time_str!r} (expected HH:MM)")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeError(f"Time out of range: {time_str!r}")

    return f"{hours:02d}:{minutes:02d}"


def parse_date(date_str: str) -> date:
    """Parse a YYYY-MM-DD date string.

    Raises:
        InvalidTimeError: If the string is not a valid YYYY-MM-DD date
    """
    try:
        date_str = date_str.strip()
        if not _DATE_RE.match(date_str):
            raise ValueError("not in YYYY-MM-DD form")
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except (ValueError, AttributeError) as e:
        raise InvalidTimeError(
            f"Invalid date: {date_str!r} (expected YYYY-MM-DD)"
        ) from e


def get_user_current_time(timezone_offset: str) -> datetime:
    """Get current time in the patient's timezone.

    Args:
        timezone_offset: Timezone offset (e.g., "+03:00", "-05:00")

    Returns:
        Current datetime in the patient's timezone (naive datetime)
    """
    offset = parse_timezone_offset(timezone_offset)
    utc_now = datetime.now(timezone.utc).replace(tzinfo=None)
    return utc_now + offset


def get_user_today(timezone_offset: str) -> date:
    """Get today's date in the patient's timezone."""
    return get_user_current_time(timezone_offset).date()


def week_start_for(day: date) -> date:
    """Return the Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def iso_week_label(day: date) -> str:
    """Return the ISO week label, e.g. ``2024-W01``."""
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def is_time_to_take(
    medication_time: Optional[str],
    current_time: datetime,
    recorded_today: bool = False,
    last_reminded_at: Optional[datetime] = None,
    repeat_interval: Optional[timedelta] = None,
) -> bool:
    """Check if a reminder should go out for a medication.

    Logic:
    - Medications without a clock time ("As needed") are never due
    - Current time must be >= medication time
    - Nothing is sent once the dose is recorded for today
    - A reminder already sent today is repeated only after ``repeat_interval``

    Args:
        medication_time: Time to take medication in "HH:MM" format, or None
        current_time: Current time in the patient's timezone
        recorded_today: Whether the dose is already recorded (taken or missed) for today
        last_reminded_at: When the last reminder went out (patient's timezone)
        repeat_interval: Minimum gap between repeated reminders, None disables repeats

    Returns:
        True if it's time to send a reminder, False otherwise

    Examples:
        >>> is_time_to_take("10:00", datetime(2024, 1, 1, 10, 30))
        True
        >>> is_time_to_take("10:00", datetime(2024, 1, 1, 9, 30))
        False
    """
    if medication_time is None:
        return False

    try:
        med_hour, med_minute = map(int, medication_time.split(":"))
        med_datetime = current_time.replace(
            hour=med_hour, minute=med_minute, second=0, microsecond=0
        )
    except (ValueError, AttributeError) as e:
        logger.error(
            f"Error checking medication time: medication_time={medication_time}, "
            f"current_time={current_time}, error={e}"
        )
        return False

    if current_time < med_datetime:
        logger.debug(
            f"Not time yet: current {current_time.strftime('%H:%M')} < "
            f"medication {medication_time}"
        )
        return False

    if recorded_today:
        logger.debug(f"Already recorded today: {medication_time}")
        return False

    if last_reminded_at is not None and last_reminded_at.date() == current_time.date():
        if repeat_interval is None or current_time - last_reminded_at < repeat_interval:
            logger.debug(
                f"Reminder for {medication_time} already sent at "
                f"{last_reminded_at.strftime('%H:%M')}"
            )
            return False

    logger.debug(f"Time to take: {medication_time}")
    return True

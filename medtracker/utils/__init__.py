"""Utility functions for the medication tracker."""

from .error_handler import (
    DuplicateMedicationError,
    InvalidTimeError,
    MedicationNotFoundError,
    PatientExistsError,
    PatientNotFoundError,
    TrackerError,
    format_error_for_user,
    handle_errors,
    log_operation,
)
from .logger import logger, setup_logger
from .timezone import (
    get_user_current_time,
    get_user_today,
    is_time_to_take,
    iso_week_label,
    normalize_time,
    parse_date,
    parse_timezone_offset,
    week_start_for,
)

__all__ = [
    # Timezone utilities
    "parse_timezone_offset",
    "normalize_time",
    "parse_date",
    "get_user_current_time",
    "get_user_today",
    "week_start_for",
    "iso_week_label",
    "is_time_to_take",
    # Logger utilities
    "setup_logger",
    "logger",
    # Error handling utilities
    "TrackerError",
    "PatientNotFoundError",
    "PatientExistsError",
    "MedicationNotFoundError",
    "DuplicateMedicationError",
    "InvalidTimeError",
    "handle_errors",
    "format_error_for_user",
    "log_operation",
]

"""Error types and error handling utilities for the medication tracker."""

import functools
from typing import Any, Callable, Optional, TypeVar

from loguru import logger

T = TypeVar("T")


class TrackerError(ValueError):
    """Base class for medication tracker domain errors."""


class PatientNotFoundError(TrackerError):
    """Raised when no data exists for the requested patient."""

    def __init__(self, patient_name: str):
        self.patient_name = patient_name
        super().__init__(f"Patient '{patient_name}' not found")


class PatientExistsError(TrackerError):
    """Raised when creating a patient that already has a data file."""

    def __init__(self, patient_name: str):
        self.patient_name = patient_name
        super().__init__(f"Patient '{patient_name}' already exists")


class MedicationNotFoundError(TrackerError):
    """Raised when a medication is not on the patient's list."""

    def __init__(self, medication_name: str):
        self.medication_name = medication_name
        super().__init__("Medication not found")


class DuplicateMedicationError(TrackerError):
    """Raised when adding a medication whose name is already on the list."""

    def __init__(self, medication_name: str):
        self.medication_name = medication_name
        super().__init__(f"Medication '{medication_name}' is already on the list")


class InvalidTimeError(TrackerError):
    """Raised for malformed clock times, dates or timezone offsets."""


def handle_errors(
    default_return: Any = None,
    log_level: str = "ERROR",
) -> Callable:
    """Decorator for async functions that logs errors and returns a default.

    Used for background work where one failure must not stop the loop.

    Args:
        default_return: Value to return on error (default: None)
        log_level: Log level for error messages (default: ERROR)

    Example:
        @handle_errors(default_return=0)
        async def check_patient(name: str) -> int:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.opt(exception=True).log(
                    log_level.upper(),
                    f"Error in {func.__name__}: {type(e).__name__}: {e}",
                )
                return default_return

        return wrapper
    return decorator


def format_error_for_user(error: Exception) -> str:
    """Convert technical errors to user-friendly messages.

    Args:
        error: Exception to format

    Returns:
        Message suitable for printing to the patient
    """
    if isinstance(error, MedicationNotFoundError):
        return (
            f"Medication '{error.medication_name}' not found. "
            "Use 'list' to see your medications."
        )

    if isinstance(error, PatientNotFoundError):
        return (
            f"No records for patient '{error.patient_name}'. "
            "Add a medication first to start tracking."
        )

    if isinstance(error, DuplicateMedicationError):
        return f"'{error.medication_name}' is already on your list."

    if isinstance(error, TrackerError):
        return str(error)

    if isinstance(error, (FileNotFoundError, PermissionError, IOError)):
        return "Could not read or write your medication records. Please check the data directory."

    if isinstance(error, ValueError):
        return f"Invalid input: {error}"

    return "Something went wrong. Please try again."


def log_operation(
    operation_name: str,
    patient: Optional[str] = None,
    medication: Optional[str] = None,
    **extra_context,
) -> None:
    """Log an operation with structured context.

    Args:
        operation_name: Name of the operation being performed
        patient: Patient name (if applicable)
        medication: Medication name (if applicable)
        **extra_context: Additional context to include in log
    """
    context = {"operation": operation_name}

    if patient is not None:
        context["patient"] = patient

    if medication is not None:
        context["medication"] = medication

    context.update(extra_context)

    logger.bind(**context).info(f"Operation: {operation_name} {context}")


__all__ = [
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

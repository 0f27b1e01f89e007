"""Data layer for the medication tracker.

This module provides data models and local storage management for patient data.
"""

from .models import (
    AS_NEEDED,
    TIME_OF_DAY_SLOTS,
    IntakeEntry,
    Medication,
    PatientData,
    normalize_time_of_day,
)
from .storage import DataManager, patient_slug

__all__ = [
    "AS_NEEDED",
    "TIME_OF_DAY_SLOTS",
    "IntakeEntry",
    "Medication",
    "PatientData",
    "normalize_time_of_day",
    "DataManager",
    "patient_slug",
]

"""Daily intake tracking for the medication tracker."""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Union

from loguru import logger

from medtracker.data.models import IntakeEntry, Medication, PatientData
from medtracker.data.storage import DataManager
from medtracker.services.schedule_manager import sort_medications
from medtracker.utils import (
    MedicationNotFoundError,
    PatientNotFoundError,
    log_operation,
    parse_date,
)

DateLike = Union[date, str]


def _day_key(day: DateLike) -> str:
    if isinstance(day, date):
        return day.isoformat()
    return parse_date(day).isoformat()


@dataclass
class DoseStatus:
    """Status of one medication on one day."""

    name: str
    details: str
    taken: bool
    reminder: str


class IntakeTracker:
    """Records doses taken or missed and reports the status of a day."""

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager
        logger.debug("IntakeTracker initialized")

    async def _load(self, patient_name: str) -> PatientData:
        patient_data = await self.data_manager.get_patient_data(patient_name)
        if patient_data is None:
            logger.error(f"Patient {patient_name} not found")
            raise PatientNotFoundError(patient_name)
        return patient_data

    async def mark_taken(
        self,
        patient_name: str,
        medication_name: str,
        day: DateLike,
        taken: bool = True,
    ) -> Medication:
        """Record a dose as taken (or missed) on ``day``.

        Stock follows the recorded state: switching to taken deducts one dose
        (never below zero), switching a taken dose back to missed returns the
        dose only if one was deducted for it.
        Recording the same state twice leaves stock alone.

        Args:
            patient_name: Patient name
            medication_name: Medication name (case-insensitive)
            day: Date of the dose
            taken: True for taken, False for missed

        Returns:
            The updated Medication instance

        Raises:
            PatientNotFoundError: If the patient has no records
            MedicationNotFoundError: If the medication is not on the list
        """
        day_key = _day_key(day)
        patient_data = await self._load(patient_name)

        medication = patient_data.get_medication_by_name(medication_name)
        if medication is None:
            logger.error(
                f"Medication {medication_name} not found for patient {patient_name}"
            )
            raise MedicationNotFoundError(medication_name)

        previous = patient_data.get_intake(day_key, medication.id)
        was_taken = previous is not None and previous.taken
        deducted = previous is not None and previous.deducted

        if taken and not was_taken:
            if medication.current_count > 0:
                medication.current_count -= 1
                deducted = True
            else:
                logger.warning(
                    f"{medication.name} recorded as taken for {patient_name} "
                    f"but no doses are left in stock"
                )
        elif not taken and deducted:
            # Only a dose that actually left stock goes back
            medication.current_count += 1
            deducted = False

        patient_data.set_intake(
            day_key,
            medication.id,
            IntakeEntry(
                taken=taken,
                recorded_at=int(datetime.now(timezone.utc).timestamp()),
                deducted=deducted,
            ),
        )
        await self.data_manager.save_patient_data(patient_data)

        log_operation(
            "dose_taken" if taken else "dose_missed",
            patient=patient_name,
            medication=medication.name,
            date=day_key,
            current_count=medication.current_count,
        )
        return medication

    async def check_today_status(self, patient_name: str, day: DateLike) -> list[DoseStatus]:
        """Status of every medication on ``day``, in schedule order."""
        day_key = _day_key(day)
        patient_data = await self._load(patient_name)

        statuses = []
        for medication in sort_medications(patient_data.medications):
            taken = patient_data.is_taken(day_key, medication.id)
            statuses.append(
                DoseStatus(
                    name=medication.name,
                    details=f"{medication.dosage} ({medication.time_of_day})",
                    taken=taken,
                    reminder=(
                        "Taken" if taken
                        else f"REMINDER: Take {medication.name} at {medication.time_of_day}"
                    ),
                )
            )
        return statuses

    async def get_missed_medications(self, patient_name: str, day: DateLike) -> list[str]:
        """``"<name> at <time_of_day>"`` for each medication not taken on ``day``."""
        patient_data = await self._load(patient_name)
        return missed_medications(patient_data, _day_key(day))


def missed_medications(patient_data: PatientData, day_key: str) -> list[str]:
    """Medications not recorded as taken on ``day_key``, in schedule order."""
    return [
        f"{medication.name} at {medication.time_of_day}"
        for medication in sort_medications(patient_data.medications)
        if not patient_data.is_taken(day_key, medication.id)
    ]

"""Schedule manager for the medication tracker."""

from typing import Optional

from loguru import logger

from medtracker.config import settings
from medtracker.data.models import AS_NEEDED, Medication, PatientData, normalize_time_of_day
from medtracker.data.storage import DataManager
from medtracker.utils import (
    DuplicateMedicationError,
    MedicationNotFoundError,
    PatientNotFoundError,
    log_operation,
    normalize_time,
    parse_timezone_offset,
)


class ScheduleManager:
    """Manager for medication list CRUD operations.

    Handles all operations related to a patient's medications:
    - Adding and removing medications
    - Refilling stock
    - Updating dosages, times and timezone
    - Retrieving and formatting the medication list
    """

    def __init__(
        self,
        data_manager: DataManager,
        slot_times: Optional[dict[str, str]] = None,
        default_quantity: Optional[int] = None,
    ):
        """Initialize schedule manager.

        Args:
            data_manager: DataManager instance for persistence
            slot_times: Clock time for each time-of-day slot (default: settings)
            default_quantity: Starting stock when none is given (default: settings)
        """
        self.data_manager = data_manager
        self.slot_times = slot_times if slot_times is not None else settings.slot_times
        self.default_quantity = (
            default_quantity if default_quantity is not None
            else settings.default_starting_quantity
        )
        logger.debug("ScheduleManager initialized")

    async def _load(self, patient_name: str) -> PatientData:
        patient_data = await self.data_manager.get_patient_data(patient_name)
        if patient_data is None:
            logger.error(f"Patient {patient_name} not found")
            raise PatientNotFoundError(patient_name)
        return patient_data

    def _find(self, patient_data: PatientData, name: str) -> Medication:
        medication = patient_data.get_medication_by_name(name)
        if medication is None:
            logger.error(
                f"Medication {name} not found for patient {patient_data.patient_name}"
            )
            raise MedicationNotFoundError(name)
        return medication

    def resolve_time(self, time_of_day: str, time: Optional[str] = None) -> Optional[str]:
        """Reminder time for a slot: explicit ``time`` wins, "As needed" has none."""
        if time:
            return normalize_time(time)
        if time_of_day == AS_NEEDED:
            return None
        return normalize_time(self.slot_times[time_of_day])

    async def add_medication(
        self,
        patient_name: str,
        name: str,
        dosage: str,
        time_of_day: str,
        count: Optional[int] = None,
        time: Optional[str] = None,
        timezone_offset: Optional[str] = None,
    ) -> Medication:
        """Add a medication to the patient's list, creating the patient on first use.

        Args:
            patient_name: Patient name
            name: Medication name
            dosage: Dosage information (e.g., "1 pill")
            time_of_day: Slot label, matched case-insensitively
            count: Starting quantity (default: configured starting quantity)
            time: Explicit reminder time overriding the slot's clock time
            timezone_offset: Timezone for a newly created patient

        Returns:
            Created Medication instance

        Raises:
            DuplicateMedicationError: If the name is already on the list
            InvalidTimeError: If the slot or time is invalid
            ValueError: If name is empty or count is negative
        """
        name = name.strip()
        if not name:
            raise ValueError("Medication name cannot be empty")
        if count is None:
            count = self.default_quantity
        if count < 0:
            raise ValueError("Starting quantity cannot be negative")

        slot = normalize_time_of_day(time_of_day)
        reminder_time = self.resolve_time(slot, time)

        patient_data = await self.data_manager.get_or_create_patient(
            patient_name, timezone_offset or settings.default_timezone_offset
        )

        if patient_data.get_medication_by_name(name) is not None:
            logger.warning(
                f"Skipping duplicate medication for patient {patient_name}: {name}"
            )
            raise DuplicateMedicationError(name)

        medication = patient_data.add_medication(
            name=name,
            dosage=dosage.strip(),
            time_of_day=slot,
            time=reminder_time,
            count=count,
        )
        await self.data_manager.save_patient_data(patient_data)

        log_operation(
            "medication_added",
            patient=patient_name,
            medication=name,
            time_of_day=slot,
            count=count,
        )
        return medication

    async def remove_medication(self, patient_name: str, name: str) -> Medication:
        """Remove a medication and its intake history.

        Returns:
            The removed Medication instance
        """
        patient_data = await self._load(patient_name)
        medication = self._find(patient_data, name)

        patient_data.remove_medication(medication.id)
        await self.data_manager.save_patient_data(patient_data)

        log_operation("medication_removed", patient=patient_name, medication=medication.name)
        return medication

    async def refill_medication(self, patient_name: str, name: str, amount: int) -> Medication:
        """Add ``amount`` doses to both current stock and total prescribed.

        Raises:
            ValueError: If amount is not positive
        """
        if amount <= 0:
            raise ValueError("Refill amount must be positive")

        patient_data = await self._load(patient_name)
        medication = self._find(patient_data, name)

        medication.current_count += amount
        medication.total_prescribed += amount
        await self.data_manager.save_patient_data(patient_data)

        log_operation(
            "medication_refilled",
            patient=patient_name,
            medication=medication.name,
            amount=amount,
            current_count=medication.current_count,
        )
        return medication

    async def update_dosage(self, patient_name: str, name: str, dosage: str) -> Medication:
        patient_data = await self._load(patient_name)
        medication = self._find(patient_data, name)

        old_dosage = medication.dosage
        medication.dosage = dosage.strip()
        await self.data_manager.save_patient_data(patient_data)

        logger.info(
            f"Updated dosage for {medication.name} of patient {patient_name}: "
            f"from '{old_dosage}' to '{medication.dosage}'"
        )
        return medication

    async def update_time(
        self,
        patient_name: str,
        name: str,
        time_of_day: str,
        time: Optional[str] = None,
    ) -> Medication:
        """Move a medication to another slot, optionally with an explicit time."""
        slot = normalize_time_of_day(time_of_day)
        reminder_time = self.resolve_time(slot, time)

        patient_data = await self._load(patient_name)
        medication = self._find(patient_data, name)

        medication.time_of_day = slot
        medication.time = reminder_time
        await self.data_manager.save_patient_data(patient_data)

        logger.info(
            f"Updated time for {medication.name} of patient {patient_name}: "
            f"{slot} ({reminder_time or 'no reminder'})"
        )
        return medication

    async def update_timezone(self, patient_name: str, timezone_offset: str) -> None:
        """Update the patient's timezone offset.

        Raises:
            InvalidTimeError: If the offset is malformed
        """
        parse_timezone_offset(timezone_offset)

        patient_data = await self._load(patient_name)
        old_timezone = patient_data.timezone_offset
        patient_data.timezone_offset = timezone_offset.strip()
        await self.data_manager.save_patient_data(patient_data)

        logger.info(
            f"Updated timezone for patient {patient_name}: "
            f"from {old_timezone} to {patient_data.timezone_offset}"
        )

    async def get_schedule(self, patient_name: str) -> list[Medication]:
        """Get the patient's medications ordered by reminder time.

        "As needed" medications come last; ties are broken by name.
        """
        patient_data = await self._load(patient_name)
        return sort_medications(patient_data.medications)

    def format_medication_list(self, medications: list[Medication]) -> list[str]:
        """Format medications as ``"<name> - <dosage> at <slot> (<n> left)"`` lines."""
        return [medication.describe() for medication in medications]


def sort_medications(medications: list[Medication]) -> list[Medication]:
    """Order medications by reminder time, "As needed" last, then by name."""
    return sorted(
        medications,
        key=lambda m: (m.time is None, m.time or "", m.name.lower()),
    )

"""Data models for the medication tracker."""

from dataclasses import dataclass, field
from typing import Optional

from medtracker.utils.error_handler import InvalidTimeError

AS_NEEDED = "As needed"

# Order matters: it is the menu order and the display order
TIME_OF_DAY_SLOTS = ("Morning", "Afternoon", "Evening", "Bedtime", AS_NEEDED)


def normalize_time_of_day(label: str) -> str:
    """Return the canonical slot label for ``label`` (case-insensitive).

    Raises:
        InvalidTimeError: If the label is not a known slot
    """
    wanted = " ".join(label.split()).lower()
    for slot in TIME_OF_DAY_SLOTS:
        if slot.lower() == wanted:
            return slot
    raise InvalidTimeError(
        f"Unknown time of day: {label!r} "
        f"(expected one of: {', '.join(TIME_OF_DAY_SLOTS)})"
    )


@dataclass
class Medication:
    """Medication data model.

    Attributes:
        id: Unique identifier for the medication (incremental per patient)
        name: Name of the medication
        dosage: Dosage information (e.g., "1 pill", "5ml")
        time_of_day: Slot label (Morning, Afternoon, Evening, Bedtime, As needed)
        time: Reminder time in HH:MM format (local timezone), None for "As needed"
        current_count: Doses left
        total_prescribed: Doses prescribed including refills
    """

    id: int
    name: str
    dosage: str
    time_of_day: str
    time: Optional[str] = None
    current_count: int = 0
    total_prescribed: int = 0

    def to_dict(self) -> dict:
        """Convert medication to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "dosage": self.dosage,
            "time_of_day": self.time_of_day,
            "time": self.time,
            "current_count": self.current_count,
            "total_prescribed": self.total_prescribed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Medication":
        """Create medication from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            dosage=data.get("dosage", ""),
            time_of_day=data.get("time_of_day", AS_NEEDED),
            time=data.get("time"),
            current_count=data.get("current_count", 0),
            total_prescribed=data.get("total_prescribed", 0),
        )

    def describe(self) -> str:
        """One-line description used in medication lists."""
        return f"{self.name} - {self.dosage} at {self.time_of_day} ({self.current_count} left)"


@dataclass
class IntakeEntry:
    """Record of whether a dose was taken on a given day.

    Attributes:
        taken: True if taken, False if explicitly marked missed
        recorded_at: Unix timestamp (UTC) of when it was recorded
        deducted: True if recording the dose took one from stock
    """

    taken: bool
    recorded_at: int
    deducted: bool = False

    def to_dict(self) -> dict:
        return {
            "taken": self.taken,
            "recorded_at": self.recorded_at,
            "deducted": self.deducted,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "IntakeEntry":
        return cls(
            taken=bool(data["taken"]),
            recorded_at=data.get("recorded_at", 0),
            deducted=bool(data.get("deducted", False)),
        )


@dataclass
class PatientData:
    """Patient data model.

    Attributes:
        patient_name: Display name of the patient
        timezone_offset: Timezone offset from UTC (e.g., "+03:00", "-05:00")
        medications: List of the patient's medications
        logs: Intake log, keyed by date (YYYY-MM-DD) then medication ID
    """

    patient_name: str
    timezone_offset: str
    medications: list[Medication] = field(default_factory=list)
    logs: dict[str, dict[int, IntakeEntry]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert patient data to dictionary for JSON serialization.

        JSON object keys are strings, so medication IDs in the log are
        stored as strings and converted back in ``from_dict``.
        """
        return {
            "patient_name": self.patient_name,
            "timezone_offset": self.timezone_offset,
            "medications": [med.to_dict() for med in self.medications],
            "logs": {
                day: {str(med_id): entry.to_dict() for med_id, entry in entries.items()}
                for day, entries in sorted(self.logs.items())
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PatientData":
        """Create patient data from dictionary."""
        medications = [
            Medication.from_dict(med_data)
            for med_data in data.get("medications", [])
        ]
        logs = {
            day: {int(med_id): IntakeEntry.from_dict(entry) for med_id, entry in entries.items()}
            for day, entries in data.get("logs", {}).items()
        }
        return cls(
            patient_name=data["patient_name"],
            timezone_offset=data["timezone_offset"],
            medications=medications,
            logs=logs,
        )

    def get_next_medication_id(self) -> int:
        """Get next available medication ID (max existing ID + 1, or 1)."""
        if not self.medications:
            return 1
        return max(med.id for med in self.medications) + 1

    def add_medication(
        self,
        name: str,
        dosage: str,
        time_of_day: str,
        time: Optional[str] = None,
        count: int = 0,
    ) -> Medication:
        """Add new medication to the patient's list.

        Args:
            name: Medication name
            dosage: Dosage information
            time_of_day: Slot label
            time: Reminder time (HH:MM) or None
            count: Starting quantity, also recorded as total prescribed

        Returns:
            Created medication instance
        """
        medication = Medication(
            id=self.get_next_medication_id(),
            name=name,
            dosage=dosage,
            time_of_day=time_of_day,
            time=time,
            current_count=count,
            total_prescribed=count,
        )
        self.medications.append(medication)
        return medication

    def get_medication_by_id(self, medication_id: int) -> Optional[Medication]:
        for med in self.medications:
            if med.id == medication_id:
                return med
        return None

    def get_medication_by_name(self, name: str) -> Optional[Medication]:
        """Find medication by name, ignoring case and surrounding whitespace."""
        name_lower = name.strip().lower()
        for med in self.medications:
            if med.name.lower() == name_lower:
                return med
        return None

    def remove_medication(self, medication_id: int) -> bool:
        """Remove medication by ID, dropping its intake history as well.

        Returns:
            True if medication was removed, False if not found
        """
        for i, med in enumerate(self.medications):
            if med.id == medication_id:
                self.medications.pop(i)
                for entries in self.logs.values():
                    entries.pop(medication_id, None)
                self.logs = {day: entries for day, entries in self.logs.items() if entries}
                return True
        return False

    def get_intake(self, day: str, medication_id: int) -> Optional[IntakeEntry]:
        """Get the intake entry for a medication on a date, if recorded."""
        return self.logs.get(day, {}).get(medication_id)

    def is_taken(self, day: str, medication_id: int) -> bool:
        """Whether the dose was recorded as taken; a missing entry counts as not taken."""
        entry = self.get_intake(day, medication_id)
        return entry is not None and entry.taken

    def set_intake(self, day: str, medication_id: int, entry: IntakeEntry) -> None:
        self.logs.setdefault(day, {})[medication_id] = entry

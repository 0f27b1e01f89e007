"""Notification manager for the medication tracker."""

from datetime import datetime, timedelta
from typing import Optional

from loguru import logger

from medtracker.data.models import Medication, PatientData
from medtracker.data.storage import DataManager
from medtracker.services.schedule_manager import sort_medications
from medtracker.utils import PatientNotFoundError, get_user_current_time, is_time_to_take


class NotificationManager:
    """Manager for medication reminder logic.

    Handles all operations related to reminders:
    - Determining which medications need reminders
    - Formatting reminder messages
    - Finding medications that are running low
    """

    def __init__(self, data_manager: DataManager):
        """Initialize notification manager.

        Args:
            data_manager: DataManager instance for data access
        """
        self.data_manager = data_manager
        logger.debug("NotificationManager initialized")

    async def get_medications_to_remind(
        self,
        patient_name: str,
        last_reminded: Optional[dict[int, datetime]] = None,
        repeat_interval: Optional[timedelta] = None,
        current_time: Optional[datetime] = None,
    ) -> list[Medication]:
        """Get medications that need reminders.

        Returns medications whose time has come today (patient's timezone),
        that have no intake recorded for today, and that were not reminded
        about within ``repeat_interval``.

        Args:
            patient_name: Patient name
            last_reminded: Last reminder time per medication ID (patient's timezone)
            repeat_interval: Minimum gap between repeated reminders
            current_time: Override for the patient's current time

        Returns:
            List of Medication instances that need reminders, in schedule order

        Raises:
            PatientNotFoundError: If patient not found
        """
        patient_data = await self.data_manager.get_patient_data(patient_name)
        if patient_data is None:
            logger.error(f"Patient {patient_name} not found when getting medications to remind")
            raise PatientNotFoundError(patient_name)

        if current_time is None:
            current_time = get_user_current_time(patient_data.timezone_offset)
        last_reminded = last_reminded or {}

        medications_to_remind = [
            medication
            for medication in sort_medications(patient_data.medications)
            if self.should_send_reminder(
                medication,
                patient_data,
                current_time,
                last_reminded.get(medication.id),
                repeat_interval,
            )
        ]

        logger.debug(
            f"Found {len(medications_to_remind)} medication(s) to remind "
            f"for patient {patient_name}"
        )
        return medications_to_remind

    def should_send_reminder(
        self,
        medication: Medication,
        patient_data: PatientData,
        current_time: datetime,
        last_reminded_at: Optional[datetime] = None,
        repeat_interval: Optional[timedelta] = None,
    ) -> bool:
        """Check if reminder should be sent for medication."""
        day_key = current_time.date().isoformat()
        return is_time_to_take(
            medication_time=medication.time,
            current_time=current_time,
            recorded_today=patient_data.get_intake(day_key, medication.id) is not None,
            last_reminded_at=last_reminded_at,
            repeat_interval=repeat_interval,
        )

    def format_reminder_message(self, medications: list[Medication]) -> str:
        """Format reminder message text.

        Format:
            Time to take your medication:
            * Aspirin 1 pill at Morning
            * Vitamin D 5ml at Morning
        """
        if not medications:
            return ""

        lines = ["Time to take your medication:"]
        for medication in medications:
            dosage_str = f" {medication.dosage}" if medication.dosage else ""
            lines.append(f"* {medication.name}{dosage_str} at {medication.time_of_day}")

        return "\n".join(lines)

    async def get_low_stock_medications(
        self,
        patient_name: str,
        threshold: int,
    ) -> list[Medication]:
        """Medications with ``current_count`` at or below ``threshold``."""
        patient_data = await self.data_manager.get_patient_data(patient_name)
        if patient_data is None:
            raise PatientNotFoundError(patient_name)

        return [
            medication
            for medication in sort_medications(patient_data.medications)
            if medication.current_count <= threshold
        ]

    def format_low_stock_message(self, medications: list[Medication]) -> str:
        """Format refill alert text, one line per medication."""
        if not medications:
            return ""

        lines = ["Running low, please refill:"]
        for medication in medications:
            lines.append(
                f"* {medication.name}: {medication.current_count} of "
                f"{medication.total_prescribed} doses left"
            )
        return "\n".join(lines)

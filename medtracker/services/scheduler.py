"""Reminder scheduler for the medication tracker."""

import asyncio
from datetime import date, datetime, timedelta
from typing import Optional

from medtracker.config import settings
from medtracker.data.models import Medication
from medtracker.data.storage import DataManager
from medtracker.services.notification_manager import NotificationManager
from medtracker.services.notifier import Notifier
from medtracker.utils import (
    PatientNotFoundError,
    get_user_current_time,
    handle_errors,
    log_operation,
    logger,
)


class ReminderScheduler:
    """Background scheduler for medication reminders.

    Runs as a background task that checks all patients every interval
    and delivers reminders for medications that need to be taken.

    Features:
    - Checks all patients every ``interval_seconds``
    - Groups all due medications of a patient in one reminder
    - Repeats a reminder for a dose still not recorded after ``repeat_interval_hours``
    - Sends one low-stock alert per medication per day
    - One failing patient never stops the others
    """

    def __init__(
        self,
        data_manager: DataManager,
        notifier: Notifier,
        interval_seconds: Optional[int] = None,
        repeat_interval_hours: Optional[int] = None,
        low_stock_threshold: Optional[int] = None,
    ):
        """Initialize reminder scheduler.

        Args:
            data_manager: DataManager instance
            notifier: Where reminders are delivered
            interval_seconds: Seconds between checks (default: settings)
            repeat_interval_hours: Hours before a reminder repeats, 0 disables
                repeats (default: settings)
            low_stock_threshold: Stock level that triggers a refill alert,
                negative disables alerts (default: settings)
        """
        self.data_manager = data_manager
        self.notifier = notifier
        self.notification_manager = NotificationManager(data_manager)

        self.interval_seconds = (
            interval_seconds if interval_seconds is not None
            else settings.scheduler_interval_seconds
        )
        hours = (
            repeat_interval_hours if repeat_interval_hours is not None
            else settings.reminder_repeat_interval_hours
        )
        self.repeat_interval: Optional[timedelta] = timedelta(hours=hours) if hours > 0 else None
        self.low_stock_threshold = (
            low_stock_threshold if low_stock_threshold is not None
            else settings.low_stock_threshold
        )

        # Times are in each patient's own timezone
        self._last_reminded: dict[str, dict[int, datetime]] = {}
        self._low_stock_alerted: dict[str, dict[int, date]] = {}

        self._running = False
        self._task: Optional[asyncio.Task] = None

        logger.info("ReminderScheduler initialized")

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the scheduler loop."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._scheduler_loop())
        logger.info("Scheduler started")

    async def stop(self):
        """Stop the scheduler gracefully."""
        if not self._running:
            logger.warning("Scheduler not running")
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Scheduler stopped")

    async def _scheduler_loop(self):
        logger.info(f"Scheduler loop started (interval: {self.interval_seconds}s)")

        while self._running:
            try:
                await self.check_and_send_reminders()
            except Exception as e:
                logger.error(f"Error in scheduler loop: {e}")

            await asyncio.sleep(self.interval_seconds)

    async def check_and_send_reminders(self) -> int:
        """Check all patients and send reminders if needed.

        Returns:
            Number of reminders delivered
        """
        patients = await self.data_manager.list_patients()
        if not patients:
            logger.debug("No patients found")
            return 0

        logger.debug(f"Checking {len(patients)} patient(s)")

        sent = 0
        for patient_name in patients:
            sent += await self.process_patient_reminders(patient_name)
        return sent

    @handle_errors(default_return=0)
    async def process_patient_reminders(self, patient_name: str) -> int:
        """Process reminders for a single patient.

        Returns:
            Number of reminders delivered for this patient (0 or 1), plus
            1 if a low-stock alert went out
        """
        patient_data = await self.data_manager.get_patient_data(patient_name)
        if patient_data is None:
            raise PatientNotFoundError(patient_name)

        current_time = get_user_current_time(patient_data.timezone_offset)
        last_reminded = self._last_reminded.setdefault(patient_name, {})

        medications = await self.notification_manager.get_medications_to_remind(
            patient_name,
            last_reminded=last_reminded,
            repeat_interval=self.repeat_interval,
            current_time=current_time,
        )

        sent = 0
        if medications:
            logger.info(
                f"Found {len(medications)} medication(s) to remind for patient {patient_name}"
            )
            await self.send_reminder(patient_name, medications)
            for medication in medications:
                last_reminded[medication.id] = current_time
            sent += 1
        else:
            logger.debug(f"No medications to remind for patient {patient_name}")

        if self.low_stock_threshold >= 0:
            sent += await self._check_low_stock(patient_name, current_time.date())

        return sent

    async def send_reminder(self, patient_name: str, medications: list[Medication]) -> None:
        """Deliver one reminder listing all given medications."""
        message = self.notification_manager.format_reminder_message(medications)
        await self.notifier.notify(patient_name, "Medication reminder", message)

        medication_names = [med.name for med in medications]
        log_operation(
            "reminder_sent",
            patient=patient_name,
            medications_count=len(medications),
            medication_names=medication_names,
        )

    async def _check_low_stock(self, patient_name: str, today: date) -> int:
        alerted = self._low_stock_alerted.setdefault(patient_name, {})
        low = [
            medication
            for medication in await self.notification_manager.get_low_stock_medications(
                patient_name, self.low_stock_threshold
            )
            if alerted.get(medication.id) != today
        ]
        if not low:
            return 0

        message = self.notification_manager.format_low_stock_message(low)
        await self.notifier.notify(patient_name, "Refill needed", message)
        for medication in low:
            alerted[medication.id] = today

        log_operation(
            "low_stock_alert_sent",
            patient=patient_name,
            medication_names=[med.name for med in low],
        )
        return 1

"""Interactive numbered menu, for patients who prefer not to type commands."""

import asyncio
from typing import Optional

from rich.console import Console
from rich.prompt import IntPrompt, Prompt

from medtracker.config import settings
from medtracker.data import TIME_OF_DAY_SLOTS
from medtracker.utils import format_error_for_user, get_user_today, logger

MENU_ITEMS = (
    "View Today's Medications",
    "Mark Medication as Taken",
    "Mark Medication as Missed",
    "View All Medications",
    "Add New Medication",
    "Refill Medication",
    "View Weekly Summary",
    "Save Weekly Report to File",
    "Exit",
)


def print_header(console: Console, text: str) -> None:
    console.print(f"\n{f' {text} ':=^50}")


class MedicationMenu:
    """Menu loop bound to one patient."""

    def __init__(self, services, patient_name: str, console: Console):
        self.services = services
        self.patient = patient_name
        self.console = console

    def _today(self):
        patient_data = asyncio.run(self.services.data_manager.get_patient_data(self.patient))
        offset = patient_data.timezone_offset if patient_data else settings.default_timezone_offset
        return get_user_today(offset)

    def _medication_names(self) -> list[str]:
        patient_data = asyncio.run(self.services.data_manager.get_patient_data(self.patient))
        if patient_data is None:
            return []
        return [med.name for med in patient_data.medications]

    def _choose_medication(self, empty_message: str) -> Optional[str]:
        names = self._medication_names()
        if not names:
            self.console.print(empty_message)
            return None

        for i, name in enumerate(names, start=1):
            self.console.print(f"{i}. {name}")
        choice = IntPrompt.ask("Enter number", console=self.console)
        if not 1 <= choice <= len(names):
            self.console.print("Invalid selection.")
            return None
        return names[choice - 1]

    def show_banner(self) -> None:
        print_header(self.console, f"Hello, {self.patient}")
        day = self._today()
        self.console.print(f"TODAY: {day.isoformat()}")
        self.console.print("-" * 50)

        if self.services.data_manager.patient_exists(self.patient):
            missed = asyncio.run(self.services.intake.get_missed_medications(self.patient, day))
            has_medications = bool(self._medication_names())
        else:
            missed, has_medications = [], False

        if missed:
            self.console.print("REMINDERS - Please take:")
            for reminder in missed:
                self.console.print(f"   * {reminder}")
        elif has_medications:
            self.console.print("All medications taken today!")
        else:
            self.console.print("No medications scheduled.")

        self.console.print("-" * 50)
        self.console.print("MENU:")
        for i, item in enumerate(MENU_ITEMS, start=1):
            self.console.print(f"{i}. {item}")
        self.console.print("-" * 50)

    def view_today(self) -> None:
        print_header(self.console, "TODAY'S MEDICATIONS")
        statuses = asyncio.run(self.services.intake.check_today_status(self.patient, self._today()))
        if not statuses:
            self.console.print("No medications scheduled.")
            return
        for status in statuses:
            self.console.print(status.name, markup=False)
            self.console.print(
                f"   Status: {'[X] TAKEN' if status.taken else '[ ] NOT TAKEN'}", markup=False
            )
            self.console.print(f"   Details: {status.details}", markup=False)
            if not status.taken:
                self.console.print(f"   *** {status.reminder}", markup=False)
            self.console.print()

    def record(self, taken: bool) -> None:
        print_header(self.console, "MARK AS TAKEN" if taken else "MARK AS MISSED")
        name = self._choose_medication("No medications to mark.")
        if name is None:
            return
        asyncio.run(self.services.intake.mark_taken(self.patient, name, self._today(), taken=taken))
        self.console.print(f"Recorded: {name} {'taken' if taken else 'missed'}")

    def view_all(self) -> None:
        print_header(self.console, "ALL MEDICATIONS")
        if not self.services.data_manager.patient_exists(self.patient):
            self.console.print("No medications on record.")
            return
        medications = asyncio.run(self.services.schedule.get_schedule(self.patient))
        if not medications:
            self.console.print("No medications on record.")
        for line in self.services.schedule.format_medication_list(medications):
            self.console.print(f"* {line}", markup=False)

    def add(self) -> None:
        print_header(self.console, "ADD NEW MEDICATION")
        name = Prompt.ask("Medication name", console=self.console)
        dosage = Prompt.ask("Dosage (e.g., '1 pill', '5ml')", console=self.console)

        self.console.print("Time of day:")
        for i, slot in enumerate(TIME_OF_DAY_SLOTS, start=1):
            self.console.print(f"{i}. {slot}")
        slot_choice = IntPrompt.ask(
            f"Select (1-{len(TIME_OF_DAY_SLOTS)})", console=self.console
        )
        if 1 <= slot_choice <= len(TIME_OF_DAY_SLOTS):
            time_of_day = TIME_OF_DAY_SLOTS[slot_choice - 1]
        else:
            time_of_day = TIME_OF_DAY_SLOTS[-1]

        count = IntPrompt.ask(
            "Starting quantity", default=settings.default_starting_quantity, console=self.console
        )
        asyncio.run(
            self.services.schedule.add_medication(self.patient, name, dosage, time_of_day, count=count)
        )
        self.console.print("Medication added!")

    def refill(self) -> None:
        print_header(self.console, "REFILL MEDICATION")
        name = self._choose_medication("No medications to refill.")
        if name is None:
            return
        amount = IntPrompt.ask("Amount to add", console=self.console)
        asyncio.run(self.services.schedule.refill_medication(self.patient, name, amount))
        self.console.print(f"{name} refilled!")

    def weekly_summary(self) -> None:
        print_header(self.console, "WEEKLY SUMMARY")
        summary = asyncio.run(
            self.services.reports.generate_weekly_summary(self.patient, self._today())
        )
        self.console.print(summary, markup=False, highlight=False)

    def save_report(self) -> None:
        print_header(self.console, "SAVE WEEKLY REPORT")
        path = asyncio.run(
            self.services.reports.save_weekly_report(
                self.patient, self._today(), self.services.reports_dir
            )
        )
        self.console.print(f"Report saved to: {path}")

    def run(self) -> None:
        actions = {
            1: self.view_today,
            2: lambda: self.record(taken=True),
            3: lambda: self.record(taken=False),
            4: self.view_all,
            5: self.add,
            6: self.refill,
            7: self.weekly_summary,
            8: self.save_report,
        }

        while True:
            self.show_banner()
            choice = IntPrompt.ask(f"Choice (1-{len(MENU_ITEMS)})", console=self.console)

            if choice == len(MENU_ITEMS):
                self.console.print("Goodbye!")
                return

            action = actions.get(choice)
            if action is None:
                self.console.print("Invalid choice.")
                continue

            try:
                action()
            except (ValueError, OSError) as e:
                logger.debug(f"Menu action {choice} failed: {e}")
                self.console.print(f"Error: {format_error_for_user(e)}", markup=False)


def run_menu(services, patient_name: str, console: Console) -> None:
    """Run the interactive menu until the patient chooses Exit."""
    MedicationMenu(services, patient_name, console).run()

"""Weekly adherence reports for the medication tracker."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

import aiofiles
from loguru import logger

from medtracker.data.models import PatientData
from medtracker.data.storage import DataManager, patient_slug
from medtracker.services.intake_tracker import missed_medications
from medtracker.services.schedule_manager import sort_medications
from medtracker.utils import PatientNotFoundError, iso_week_label, log_operation, week_start_for

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass
class MedicationWeek:
    """One medication's record over a week."""

    name: str
    dosage: str
    days: list[bool]
    current_count: int
    total_prescribed: int

    @property
    def taken_count(self) -> int:
        return sum(self.days)

    @property
    def adherence_percent(self) -> float:
        return self.taken_count / len(DAY_NAMES) * 100.0


@dataclass
class DayOverview:
    """How many medications were taken on one day of the week."""

    day_name: str
    date: date
    taken: int
    total: int
    missed: list[str] = field(default_factory=list)


@dataclass
class WeeklyReport:
    patient_name: str
    week_start: date
    medications: list[MedicationWeek]
    days: list[DayOverview]

    @property
    def week_label(self) -> str:
        return iso_week_label(self.week_start)

    @property
    def overall_adherence_percent(self) -> float:
        """Share of all scheduled doses in the week that were taken."""
        possible = len(self.medications) * len(DAY_NAMES)
        if possible == 0:
            return 0.0
        taken = sum(med.taken_count for med in self.medications)
        return taken / possible * 100.0


def build_weekly_report(patient_data: PatientData, week_start: date) -> WeeklyReport:
    """Build the report for the ISO week containing ``week_start``."""
    monday = week_start_for(week_start)
    dates = [monday + timedelta(days=i) for i in range(len(DAY_NAMES))]
    day_keys = [d.isoformat() for d in dates]
    medications = sort_medications(patient_data.medications)

    medication_weeks = [
        MedicationWeek(
            name=medication.name,
            dosage=medication.dosage,
            days=[patient_data.is_taken(key, medication.id) for key in day_keys],
            current_count=medication.current_count,
            total_prescribed=medication.total_prescribed,
        )
        for medication in medications
    ]

    overview = []
    for day_name, day_date, key in zip(DAY_NAMES, dates, day_keys):
        taken = sum(1 for medication in medications if patient_data.is_taken(key, medication.id))
        total = len(medications)
        overview.append(
            DayOverview(
                day_name=day_name,
                date=day_date,
                taken=taken,
                total=total,
                missed=missed_medications(patient_data, key) if taken < total else [],
            )
        )

    return WeeklyReport(
        patient_name=patient_data.patient_name,
        week_start=monday,
        medications=medication_weeks,
        days=overview,
    )


def render_weekly_summary(report: WeeklyReport) -> str:
    """Render the report as plain text, suitable for printing or saving."""
    lines = [
        "",
        f"========== WEEKLY SUMMARY FOR {report.patient_name} ==========",
        f"Week starting: {report.week_start.isoformat()} ({report.week_label})",
        "",
    ]

    for med in report.medications:
        record = " ".join(
            f"{day} {'[X]' if taken else '[ ]'}" for day, taken in zip(DAY_NAMES, med.days)
        )
        lines.append(f"MEDICATION: {med.name} ({med.dosage})")
        lines.append(f"Daily Record: {record}")
        lines.append(
            f"Adherence: {med.taken_count}/{len(DAY_NAMES)} days ({med.adherence_percent:.1f}%)"
        )
        lines.append(f"Remaining: {med.current_count} of {med.total_prescribed} doses")
        lines.append("")

    lines.append("DAILY OVERVIEW:")
    for day in report.days:
        line = f"{day.day_name}: {day.taken}/{day.total} medications taken"
        if day.missed:
            line += f" - MISSED: {', '.join(day.missed)}"
        lines.append(line)

    lines.append("")
    lines.append(f"Overall adherence: {report.overall_adherence_percent:.1f}%")
    lines.append("")
    lines.append("==========================================")
    return "\n".join(lines) + "\n"


class ReportGenerator:
    """Builds, renders and saves weekly adherence reports."""

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager

    async def build_weekly_report(self, patient_name: str, week_start: date) -> WeeklyReport:
        """Load the patient and build the report for the week of ``week_start``.

        Raises:
            PatientNotFoundError: If the patient has no records
        """
        patient_data = await self.data_manager.get_patient_data(patient_name)
        if patient_data is None:
            raise PatientNotFoundError(patient_name)
        return build_weekly_report(patient_data, week_start)

    async def generate_weekly_summary(self, patient_name: str, week_start: date) -> str:
        report = await self.build_weekly_report(patient_name, week_start)
        return render_weekly_summary(report)

    async def save_weekly_report(
        self,
        patient_name: str,
        week_start: date,
        reports_dir: Optional[Path] = None,
    ) -> Path:
        """Write the summary to ``<slug>_weekly_report_<YYYY-Www>.txt``.

        Args:
            patient_name: Patient name
            week_start: Any date in the week to report on
            reports_dir: Target directory (default: the data directory)

        Returns:
            Path of the written report
        """
        report = await self.build_weekly_report(patient_name, week_start)
        target_dir = Path(reports_dir) if reports_dir is not None else self.data_manager.data_dir
        target_dir.mkdir(parents=True, exist_ok=True)

        file_path = target_dir / f"{patient_slug(patient_name)}_weekly_report_{report.week_label}.txt"
        async with aiofiles.open(file_path, mode="w", encoding="utf-8") as f:
            await f.write(render_weekly_summary(report))

        logger.info(f"Saved weekly report for {patient_name} to {file_path}")
        log_operation(
            "weekly_report_saved",
            patient=patient_name,
            week=report.week_label,
            path=str(file_path),
        )
        return file_path

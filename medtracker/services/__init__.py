"""Service layer: medication management, intake tracking, reminders and reports."""

from .intake_tracker import DoseStatus, IntakeTracker
from .notification_manager import NotificationManager
from .notifier import ConsoleNotifier, Notifier
from .report import ReportGenerator, WeeklyReport, build_weekly_report, render_weekly_summary
from .schedule_manager import ScheduleManager, sort_medications
from .scheduler import ReminderScheduler

__all__ = [
    "DoseStatus",
    "IntakeTracker",
    "NotificationManager",
    "ConsoleNotifier",
    "Notifier",
    "ReportGenerator",
    "WeeklyReport",
    "build_weekly_report",
    "render_weekly_summary",
    "ScheduleManager",
    "sort_medications",
    "ReminderScheduler",
]

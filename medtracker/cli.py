"""Command line interface for the medication tracker.

Every command works on one patient's local records (``--patient``), so a
household can keep several patients in the same data directory.
"""

import asyncio
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Awaitable, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from medtracker.config import settings
from medtracker.data import TIME_OF_DAY_SLOTS, DataManager
from medtracker.services import (
    ConsoleNotifier,
    IntakeTracker,
    NotificationManager,
    ReminderScheduler,
    ReportGenerator,
    ScheduleManager,
)
from medtracker.utils import (
    TrackerError,
    format_error_for_user,
    get_user_today,
    logger,
    parse_date,
    setup_logger,
)

T = TypeVar("T")

app = typer.Typer(
    name="medtracker",
    help="Medication tracker: daily reminders and weekly adherence insights, stored locally.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


@dataclass
class Services:
    """Service instances shared by the commands of one invocation."""

    data_manager: DataManager
    schedule: ScheduleManager
    intake: IntakeTracker
    notifications: NotificationManager
    reports: ReportGenerator
    reports_dir: Path

    @classmethod
    def create(cls, data_dir: Path, reports_dir: Path) -> "Services":
        data_manager = DataManager(data_dir=str(data_dir))
        return cls(
            data_manager=data_manager,
            schedule=ScheduleManager(data_manager),
            intake=IntakeTracker(data_manager),
            notifications=NotificationManager(data_manager),
            reports=ReportGenerator(data_manager),
            reports_dir=reports_dir,
        )


def run_async(coro: Awaitable[T]) -> T:
    """Run a service coroutine, turning domain errors into a friendly exit."""
    try:
        return asyncio.run(coro)
    except (TrackerError, ValueError, OSError) as e:
        logger.debug(f"Command failed: {type(e).__name__}: {e}")
        console.print(f"[red]✗[/red] {format_error_for_user(e)}")
        raise typer.Exit(code=1)


async def resolve_day(services: Services, patient: str, day: Optional[str]) -> date:
    """``--date`` if given, else today in the patient's timezone."""
    if day:
        return parse_date(day)
    patient_data = await services.data_manager.get_patient_data(patient)
    offset = patient_data.timezone_offset if patient_data else settings.default_timezone_offset
    return get_user_today(offset)


PatientOption = typer.Option(
    None, "--patient", "-p", help="Patient name (default: DEFAULT_PATIENT setting)"
)
DateOption = typer.Option(None, "--date", help="Date as YYYY-MM-DD (default: today)")


def _services(ctx: typer.Context) -> Services:
    return ctx.obj


def _patient(patient: Optional[str]) -> str:
    return patient or settings.default_patient


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Path = typer.Option(
        settings.data_dir, "--data-dir", envvar="DATA_DIR", help="Directory for patient records"
    ),
    reports_dir: Path = typer.Option(
        settings.reports_dir, "--reports-dir", envvar="REPORTS_DIR", help="Directory for saved reports"
    ),
    logs_dir: Path = typer.Option(
        settings.logs_dir, "--logs-dir", envvar="LOGS_DIR", help="Directory for log files"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show log messages on the console"),
) -> None:
    """Track medications locally: daily reminders and weekly adherence insights."""
    setup_logger(
        console_level=settings.log_level if verbose else "WARNING",
        logs_dir=logs_dir,
    )
    ctx.obj = Services.create(data_dir, reports_dir)


@app.command()
def patients(ctx: typer.Context) -> None:
    """List patients with records in the data directory."""
    names = run_async(_services(ctx).data_manager.list_patients())
    if not names:
        console.print("No patients on record.")
        return
    for name in names:
        console.print(f"* {name}")


@app.command()
def add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Medication name"),
    dosage: str = typer.Option(..., "--dosage", "-d", help="Dosage, e.g. '1 pill' or '5ml'"),
    time_of_day: str = typer.Option(
        "Morning", "--time-of-day", "-t", help=f"One of: {', '.join(TIME_OF_DAY_SLOTS)}"
    ),
    count: Optional[int] = typer.Option(
        None, "--count", "-c", help="Starting quantity (default: DEFAULT_STARTING_QUANTITY)"
    ),
    at: Optional[str] = typer.Option(None, "--at", help="Exact reminder time HH:MM"),
    patient: Optional[str] = PatientOption,
) -> None:
    """Add a new medication."""
    medication = run_async(
        _services(ctx).schedule.add_medication(
            _patient(patient), name, dosage, time_of_day, count=count, time=at
        )
    )
    console.print(f"[green]✓[/green] Medication added: {medication.describe()}")


@app.command("list")
def list_medications(ctx: typer.Context, patient: Optional[str] = PatientOption) -> None:
    """View all medications."""
    services = _services(ctx)
    medications = run_async(services.schedule.get_schedule(_patient(patient)))
    if not medications:
        console.print("No medications on record.")
        return

    table = Table(title=f"Medications for {_patient(patient)}")
    table.add_column("Name", style="cyan")
    table.add_column("Dosage")
    table.add_column("Time of day")
    table.add_column("Reminder at")
    table.add_column("Left", justify="right")
    for medication in medications:
        table.add_row(
            medication.name,
            medication.dosage,
            medication.time_of_day,
            medication.time or "-",
            f"{medication.current_count} of {medication.total_prescribed}",
        )
    console.print(table)


@app.command()
def today(
    ctx: typer.Context,
    patient: Optional[str] = PatientOption,
    day: Optional[str] = DateOption,
) -> None:
    """View today's medications and reminders."""
    services = _services(ctx)
    name = _patient(patient)

    async def _status():
        target = await resolve_day(services, name, day)
        return target, await services.intake.check_today_status(name, target)

    target, statuses = run_async(_status())
    console.print(f"TODAY: {target.isoformat()}")
    if not statuses:
        console.print("No medications scheduled.")
        return

    for status in statuses:
        symbol = "[green]\\[X] TAKEN[/green]" if status.taken else "[red]\\[ ] NOT TAKEN[/red]"
        console.print(f"[bold]{status.name}[/bold]")
        console.print(f"   Status: {symbol}")
        console.print(f"   Details: {status.details}")
        if not status.taken:
            console.print(f"   *** {status.reminder}")

    if all(status.taken for status in statuses):
        console.print("All medications taken today!")


def _record(ctx: typer.Context, medication: str, patient: Optional[str], day: Optional[str], taken: bool):
    services = _services(ctx)
    name = _patient(patient)

    async def _mark():
        target = await resolve_day(services, name, day)
        return await services.intake.mark_taken(name, medication, target, taken=taken)

    recorded = run_async(_mark())
    console.print(
        f"[green]✓[/green] Recorded: {recorded.name} {'taken' if taken else 'missed'} "
        f"({recorded.current_count} left)"
    )


@app.command()
def take(
    ctx: typer.Context,
    medication: str = typer.Argument(..., help="Medication name"),
    patient: Optional[str] = PatientOption,
    day: Optional[str] = DateOption,
) -> None:
    """Mark a medication as taken."""
    _record(ctx, medication, patient, day, taken=True)


@app.command()
def miss(
    ctx: typer.Context,
    medication: str = typer.Argument(..., help="Medication name"),
    patient: Optional[str] = PatientOption,
    day: Optional[str] = DateOption,
) -> None:
    """Mark a medication as missed."""
    _record(ctx, medication, patient, day, taken=False)


@app.command()
def refill(
    ctx: typer.Context,
    medication: str = typer.Argument(..., help="Medication name"),
    amount: int = typer.Argument(..., help="Number of doses to add"),
    patient: Optional[str] = PatientOption,
) -> None:
    """Refill a medication."""
    refilled = run_async(_services(ctx).schedule.refill_medication(_patient(patient), medication, amount))
    console.print(
        f"[green]✓[/green] {refilled.name} refilled! "
        f"{refilled.current_count} of {refilled.total_prescribed} doses left"
    )


@app.command()
def remove(
    ctx: typer.Context,
    medication: str = typer.Argument(..., help="Medication name"),
    patient: Optional[str] = PatientOption,
) -> None:
    """Remove a medication and its history."""
    removed = run_async(_services(ctx).schedule.remove_medication(_patient(patient), medication))
    console.print(f"[green]✓[/green] Removed {removed.name}")


@app.command()
def dosage(
    ctx: typer.Context,
    medication: str = typer.Argument(..., help="Medication name"),
    new_dosage: str = typer.Argument(..., help="New dosage"),
    patient: Optional[str] = PatientOption,
) -> None:
    """Change a medication's dosage."""
    updated = run_async(_services(ctx).schedule.update_dosage(_patient(patient), medication, new_dosage))
    console.print(f"[green]✓[/green] {updated.describe()}")


@app.command("time")
def change_time(
    ctx: typer.Context,
    medication: str = typer.Argument(..., help="Medication name"),
    time_of_day: str = typer.Argument(..., help=f"One of: {', '.join(TIME_OF_DAY_SLOTS)}"),
    at: Optional[str] = typer.Option(None, "--at", help="Exact reminder time HH:MM"),
    patient: Optional[str] = PatientOption,
) -> None:
    """Move a medication to another time of day."""
    updated = run_async(
        _services(ctx).schedule.update_time(_patient(patient), medication, time_of_day, time=at)
    )
    console.print(
        f"[green]✓[/green] {updated.name} now at {updated.time_of_day} "
        f"({updated.time or 'no reminder'})"
    )


@app.command()
def timezone(
    ctx: typer.Context,
    offset: str = typer.Argument(..., help="UTC offset like +03:00"),
    patient: Optional[str] = PatientOption,
) -> None:
    """Set the patient's timezone offset."""
    run_async(_services(ctx).schedule.update_timezone(_patient(patient), offset))
    console.print(f"[green]✓[/green] Timezone set to {offset.strip()}")


@app.command()
def week(
    ctx: typer.Context,
    week_of: Optional[str] = typer.Option(
        None, "--week-of", "--date", help="Any date in the week, YYYY-MM-DD (default: this week)"
    ),
    save: bool = typer.Option(False, "--save", help="Also save the report to a file"),
    patient: Optional[str] = PatientOption,
) -> None:
    """View the weekly adherence summary."""
    services = _services(ctx)
    name = _patient(patient)

    async def _report():
        target = await resolve_day(services, name, week_of)
        summary = await services.reports.generate_weekly_summary(name, target)
        path = None
        if save:
            path = await services.reports.save_weekly_report(name, target, services.reports_dir)
        return summary, path

    summary, path = run_async(_report())
    console.print(summary, markup=False, highlight=False)
    if path is not None:
        console.print(f"[green]✓[/green] Report saved to: {path}")


@app.command()
def run(
    ctx: typer.Context,
    interval: Optional[int] = typer.Option(
        None, "--interval", help="Seconds between checks (default: SCHEDULER_INTERVAL_SECONDS)"
    ),
    once: bool = typer.Option(False, "--once", help="Check once and exit"),
) -> None:
    """Run the reminder loop in the foreground."""
    services = _services(ctx)
    scheduler = ReminderScheduler(
        services.data_manager,
        ConsoleNotifier(console),
        interval_seconds=interval,
    )

    async def _run():
        if once:
            return await scheduler.check_and_send_reminders()

        await scheduler.start()
        console.print("Reminder loop running. Press Ctrl+C to stop.")
        try:
            while scheduler.running:
                await asyncio.sleep(1)
        finally:
            await scheduler.stop()
        return 0

    try:
        sent = run_async(_run())
    except KeyboardInterrupt:
        console.print("Stopped.")
        return

    if once:
        console.print(f"{sent} reminder(s) sent.")


@app.command()
def menu(ctx: typer.Context, patient: Optional[str] = PatientOption) -> None:
    """Interactive menu."""
    from medtracker.menu import run_menu

    name = patient or typer.prompt("Enter patient name", default=settings.default_patient)
    run_menu(_services(ctx), name.strip(), console)

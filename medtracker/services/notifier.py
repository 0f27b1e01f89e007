"""Reminder delivery for the medication tracker.

Reminders are delivered on the local machine only.
"""

from typing import Optional, Protocol

from rich.console import Console
from rich.panel import Panel


class Notifier(Protocol):
    """Anything that can deliver a reminder to the patient."""

    async def notify(self, patient_name: str, title: str, message: str) -> None:
        ...


class ConsoleNotifier:
    """Print reminders to the terminal as rich panels."""

    def __init__(self, console: Optional[Console] = None, bell: bool = True):
        self.console = console or Console()
        self.bell = bell

    async def notify(self, patient_name: str, title: str, message: str) -> None:
        if self.bell:
            self.console.bell()
        self.console.print(
            Panel(message, title=f"{title} - {patient_name}", border_style="yellow")
        )

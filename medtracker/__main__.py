"""Allow ``python -m medtracker``."""

from medtracker.cli import app

app(prog_name="medtracker")

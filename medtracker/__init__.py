"""Local medication tracker with daily reminders and weekly adherence reports."""

__version__ = "0.1.0"

"""Main entry point for the medication tracker."""

from medtracker.cli import app


if __name__ == "__main__":
    app()

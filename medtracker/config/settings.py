"""Configuration settings for the medication tracker."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        """Initialize settings by loading from .env file and environment variables."""
        # Load .env file if it exists
        env_path = Path(__file__).parent.parent.parent / ".env"
        load_dotenv(dotenv_path=env_path)

        # Storage locations
        self.data_dir: Path = Path(self._get_env("DATA_DIR", "data/patients"))
        self.reports_dir: Path = Path(self._get_env("REPORTS_DIR", "data/reports"))
        self.logs_dir: Path = Path(self._get_env("LOGS_DIR", "logs"))

        # Application Configuration
        self.log_level: str = self._get_env("LOG_LEVEL", "INFO")
        self.default_patient: str = self._get_env("DEFAULT_PATIENT", "default")
        self.default_starting_quantity: int = self._get_int_env(
            "DEFAULT_STARTING_QUANTITY", "30"
        )
        self.low_stock_threshold: int = self._get_int_env("LOW_STOCK_THRESHOLD", "5")

        # Scheduler Configuration
        self.scheduler_interval_seconds: int = self._get_int_env(
            "SCHEDULER_INTERVAL_SECONDS", "60"
        )
        self.reminder_repeat_interval_hours: int = self._get_int_env(
            "REMINDER_REPEAT_INTERVAL_HOURS", "1"
        )

        # Timezone Configuration
        self.default_timezone_offset: str = self._get_env(
            "DEFAULT_TIMEZONE_OFFSET", "+00:00"
        )

        # Clock times for the time-of-day slots
        self.slot_times: dict[str, str] = {
            "Morning": self._get_env("MORNING_TIME", "08:00"),
            "Afternoon": self._get_env("AFTERNOON_TIME", "13:00"),
            "Evening": self._get_env("EVENING_TIME", "18:00"),
            "Bedtime": self._get_env("BEDTIME_TIME", "22:00"),
        }

    def _get_env(self, key: str, default: Optional[str] = None) -> str:
        """Get environment variable with optional default value.

        Args:
            key: Environment variable name
            default: Default value if variable is not set

        Returns:
            Environment variable value or default
        """
        return os.getenv(key, default)

    def _get_int_env(self, key: str, default: str) -> int:
        """Get integer environment variable.

        Args:
            key: Environment variable name
            default: Default value if variable is not set

        Returns:
            Parsed integer value

        Raises:
            ValueError: If the value is not an integer
        """
        value = self._get_env(key, default)
        try:
            return int(value)
        except ValueError as e:
            raise ValueError(
                f"Environment variable '{key}' must be an integer, got '{value}'"
            ) from e

    def __repr__(self) -> str:
        """Return string representation of settings."""
        return (
            f"Settings("
            f"data_dir={self.data_dir}, "
            f"reports_dir={self.reports_dir}, "
            f"logs_dir={self.logs_dir}, "
            f"log_level={self.log_level}, "
            f"default_patient={self.default_patient}, "
            f"default_starting_quantity={self.default_starting_quantity}, "
            f"low_stock_threshold={self.low_stock_threshold}, "
            f"scheduler_interval_seconds={self.scheduler_interval_seconds}, "
            f"reminder_repeat_interval_hours={self.reminder_repeat_interval_hours}, "
            f"default_timezone_offset={self.default_timezone_offset}"
            f")"
        )

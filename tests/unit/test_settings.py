"""Unit tests for configuration settings."""

from pathlib import Path

import pytest

from medtracker.config.settings import Settings


def test_defaults(monkeypatch):
    for key in (
        "DATA_DIR",
        "LOG_LEVEL",
        "DEFAULT_STARTING_QUANTITY",
        "LOW_STOCK_THRESHOLD",
        "MORNING_TIME",
        "DEFAULT_TIMEZONE_OFFSET",
    ):
        monkeypatch.delenv(key, raising=False)

    settings = Settings()

    assert settings.data_dir == Path("data/patients")
    assert settings.log_level == "INFO"
    assert settings.default_starting_quantity == 30
    assert settings.low_stock_threshold == 5
    assert settings.default_timezone_offset == "+00:00"
    assert settings.slot_times["Morning"] == "08:00"
    assert settings.slot_times["Bedtime"] == "22:00"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "records"))
    monkeypatch.setenv("DEFAULT_STARTING_QUANTITY", "60")
    monkeypatch.setenv("EVENING_TIME", "19:30")
    monkeypatch.setenv("REMINDER_REPEAT_INTERVAL_HOURS", "2")

    settings = Settings()

    assert settings.data_dir == tmp_path / "records"
    assert settings.default_starting_quantity == 60
    assert settings.slot_times["Evening"] == "19:30"
    assert settings.reminder_repeat_interval_hours == 2


def test_invalid_integer_names_variable(monkeypatch):
    monkeypatch.setenv("LOW_STOCK_THRESHOLD", "few")

    with pytest.raises(ValueError, match="LOW_STOCK_THRESHOLD"):
        Settings()


def test_repr_lists_key_settings(monkeypatch):
    monkeypatch.setenv("DEFAULT_PATIENT", "grandma")

    assert "default_patient=grandma" in repr(Settings())

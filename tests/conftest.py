"""Shared fixtures for tests."""

import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from medtracker.data.storage import DataManager
from medtracker.services.intake_tracker import IntakeTracker
from medtracker.services.notification_manager import NotificationManager
from medtracker.services.report import ReportGenerator
from medtracker.services.schedule_manager import ScheduleManager

SLOT_TIMES = {
    "Morning": "08:00",
    "Afternoon": "13:00",
    "Evening": "18:00",
    "Bedtime": "22:00",
}


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data.

    Yields:
        Path: Path to temporary directory
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def data_manager(temp_data_dir):
    """Create DataManager with temp directory."""
    return DataManager(data_dir=str(temp_data_dir))


@pytest.fixture
def schedule_manager(data_manager):
    """Create ScheduleManager with fixed slot times and starting quantity."""
    return ScheduleManager(data_manager, slot_times=SLOT_TIMES, default_quantity=30)


@pytest.fixture
def intake_tracker(data_manager):
    return IntakeTracker(data_manager)


@pytest.fixture
def notification_manager(data_manager):
    return NotificationManager(data_manager)


@pytest.fixture
def report_generator(data_manager):
    return ReportGenerator(data_manager)


@pytest.fixture
def mock_notifier():
    """Create mock Notifier.

    Returns:
        MagicMock: Notifier whose ``notify`` coroutine records calls
    """
    notifier = MagicMock()
    notifier.notify = AsyncMock()
    return notifier

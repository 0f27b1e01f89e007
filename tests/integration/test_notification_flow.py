"""Integration tests for notification flow."""

from datetime import date

import pytest
from freezegun import freeze_time

from medtracker.services.scheduler import ReminderScheduler


@pytest.fixture
def scheduler(data_manager, mock_notifier):
    """Create ReminderScheduler for testing.

    Repeats after one hour; low-stock alerts at 5 doses or fewer.
    """
    return ReminderScheduler(
        data_manager,
        mock_notifier,
        interval_seconds=1,
        repeat_interval_hours=1,
        low_stock_threshold=5,
    )


def reminder_calls(mock_notifier):
    return [c for c in mock_notifier.notify.call_args_list if c.args[1] == "Medication reminder"]


def refill_calls(mock_notifier):
    return [c for c in mock_notifier.notify.call_args_list if c.args[1] == "Refill needed"]


# TC-NOTIF-INT-001: Complete Reminder Flow
@pytest.mark.asyncio
@freeze_time("2024-01-01 08:30:00")
async def test_complete_reminder_flow(scheduler, schedule_manager, mock_notifier):
    """Test complete flow from scheduling to sending reminder."""
    # Given: Patient with a morning medication already due
    await schedule_manager.add_medication("Mary", "Aspirin", "1 pill", "Morning")

    # When: Scheduler runs at 08:30
    sent = await scheduler.check_and_send_reminders()

    # Then: One reminder is delivered
    assert sent == 1
    patient_name, title, message = mock_notifier.notify.call_args.args
    assert patient_name == "Mary"
    assert title == "Medication reminder"
    assert message == "Time to take your medication:\n* Aspirin 1 pill at Morning"


# TC-NOTIF-INT-002: Multiple Medications Grouped
@pytest.mark.asyncio
@freeze_time("2024-01-01 19:00:00")
async def test_multiple_medications_grouped(scheduler, schedule_manager, mock_notifier):
    """Due medications of one patient arrive in a single reminder."""
    await schedule_manager.add_medication("Mary", "Vitamin D", "5ml", "Evening")
    await schedule_manager.add_medication("Mary", "Aspirin", "1 pill", "Morning")
    await schedule_manager.add_medication("Mary", "Melatonin", "3mg", "Bedtime")
    await schedule_manager.add_medication("Mary", "Ibuprofen", "200mg", "As needed")

    await scheduler.check_and_send_reminders()

    assert mock_notifier.notify.call_count == 1
    message = mock_notifier.notify.call_args.args[2]
    assert message.splitlines() == [
        "Time to take your medication:",
        "* Aspirin 1 pill at Morning",
        "* Vitamin D 5ml at Evening",
    ]


# TC-NOTIF-INT-003: Not Yet Due
@pytest.mark.asyncio
@freeze_time("2024-01-01 07:59:00")
async def test_no_reminder_before_time(scheduler, schedule_manager, mock_notifier):
    await schedule_manager.add_medication("Mary", "Aspirin", "1 pill", "Morning")

    assert await scheduler.check_and_send_reminders() == 0
    mock_notifier.notify.assert_not_called()


# TC-NOTIF-INT-004: Patient Timezone
@pytest.mark.asyncio
@freeze_time("2024-01-01 06:00:00")
async def test_reminder_uses_patient_timezone(scheduler, schedule_manager, mock_notifier):
    """06:00 UTC is 09:00 for a patient at +03:00."""
    await schedule_manager.add_medication(
        "Mary", "Aspirin", "1 pill", "Morning", timezone_offset="+03:00"
    )
    await schedule_manager.add_medication(
        "Bob", "Aspirin", "1 pill", "Morning", timezone_offset="-05:00"
    )

    await scheduler.check_and_send_reminders()

    assert [c.args[0] for c in mock_notifier.notify.call_args_list] == ["Mary"]


# TC-NOTIF-INT-005: Repeat Interval
@pytest.mark.asyncio
async def test_reminder_repeats_after_interval(scheduler, schedule_manager, mock_notifier):
    """A dose still unrecorded is reminded again once the interval passes."""
    await schedule_manager.add_medication("Mary", "Aspirin", "1 pill", "Morning")

    with freeze_time("2024-01-01 08:00:00") as frozen:
        await scheduler.check_and_send_reminders()
        assert len(reminder_calls(mock_notifier)) == 1

        # Within the interval: nothing new
        frozen.move_to("2024-01-01 08:45:00")
        await scheduler.check_and_send_reminders()
        assert len(reminder_calls(mock_notifier)) == 1

        # Interval passed: reminded again
        frozen.move_to("2024-01-01 09:00:00")
        await scheduler.check_and_send_reminders()
        assert len(reminder_calls(mock_notifier)) == 2


@pytest.mark.asyncio
async def test_no_repeat_when_disabled(data_manager, schedule_manager, mock_notifier):
    scheduler = ReminderScheduler(
        data_manager, mock_notifier, repeat_interval_hours=0, low_stock_threshold=-1
    )
    await schedule_manager.add_medication("Mary", "Aspirin", "1 pill", "Morning")

    with freeze_time("2024-01-01 08:00:00") as frozen:
        await scheduler.check_and_send_reminders()
        frozen.move_to("2024-01-01 20:00:00")
        await scheduler.check_and_send_reminders()

        # Next day starts over
        frozen.move_to("2024-01-02 08:00:00")
        await scheduler.check_and_send_reminders()

    assert mock_notifier.notify.call_count == 2


# TC-NOTIF-INT-006: Recording Stops Reminders
@pytest.mark.asyncio
@pytest.mark.parametrize("taken", [True, False])
async def test_recorded_dose_stops_reminders(
    scheduler, schedule_manager, intake_tracker, mock_notifier, taken
):
    """Taken or explicitly missed, a recorded dose is not reminded again."""
    await schedule_manager.add_medication("Mary", "Aspirin", "1 pill", "Morning")

    with freeze_time("2024-01-01 08:00:00") as frozen:
        await scheduler.check_and_send_reminders()
        await intake_tracker.mark_taken("Mary", "Aspirin", date(2024, 1, 1), taken=taken)

        frozen.move_to("2024-01-01 12:00:00")
        await scheduler.check_and_send_reminders()

    assert len(reminder_calls(mock_notifier)) == 1


# TC-NOTIF-INT-007: Low Stock Alert
@pytest.mark.asyncio
async def test_low_stock_alert_once_per_day(scheduler, schedule_manager, mock_notifier):
    await schedule_manager.add_medication("Mary", "Aspirin", "1 pill", "Morning", count=3)
    await schedule_manager.add_medication("Mary", "Vitamin D", "5ml", "Evening", count=20)

    with freeze_time("2024-01-01 07:00:00") as frozen:
        await scheduler.check_and_send_reminders()
        frozen.move_to("2024-01-01 07:30:00")
        await scheduler.check_and_send_reminders()

        assert len(refill_calls(mock_notifier)) == 1
        message = refill_calls(mock_notifier)[0].args[2]
        assert message == "Running low, please refill:\n* Aspirin: 3 of 3 doses left"

        frozen.move_to("2024-01-02 07:00:00")
        await scheduler.check_and_send_reminders()

    assert len(refill_calls(mock_notifier)) == 2
    assert reminder_calls(mock_notifier) == []


@pytest.mark.asyncio
@freeze_time("2024-01-01 07:00:00")
async def test_refill_clears_low_stock(scheduler, schedule_manager, mock_notifier):
    await schedule_manager.add_medication("Mary", "Aspirin", "1 pill", "Morning", count=3)
    await schedule_manager.refill_medication("Mary", "Aspirin", 30)

    await scheduler.check_and_send_reminders()

    mock_notifier.notify.assert_not_called()


# TC-NOTIF-INT-008: Failure Isolation
@pytest.mark.asyncio
@freeze_time("2024-01-01 08:30:00")
async def test_failing_patient_does_not_block_others(scheduler, schedule_manager, mock_notifier):
    await schedule_manager.add_medication("Alice", "Aspirin", "1 pill", "Morning")
    await schedule_manager.add_medication("Bob", "Aspirin", "1 pill", "Morning")

    async def notify(patient_name, title, message):
        if patient_name == "Alice":
            raise RuntimeError("terminal unavailable")

    mock_notifier.notify.side_effect = notify

    sent = await scheduler.check_and_send_reminders()

    assert sent == 1
    assert [c.args[0] for c in mock_notifier.notify.call_args_list] == ["Alice", "Bob"]


@pytest.mark.asyncio
@freeze_time("2024-01-01 08:30:00")
async def test_unreadable_file_does_not_block_others(
    scheduler, schedule_manager, temp_data_dir, mock_notifier
):
    await schedule_manager.add_medication("Bob", "Aspirin", "1 pill", "Morning")
    (temp_data_dir / "alice.json").write_bytes(b'{"patient_name": "\xff\xfe"}')

    sent = await scheduler.check_and_send_reminders()

    assert sent == 1
    assert mock_notifier.notify.call_args.args[0] == "Bob"


@pytest.mark.asyncio
async def test_no_patients(scheduler, mock_notifier):
    assert await scheduler.check_and_send_reminders() == 0
    mock_notifier.notify.assert_not_called()


# TC-NOTIF-INT-009: Scheduler Lifecycle
@pytest.mark.asyncio
async def test_start_and_stop(scheduler):
    await scheduler.start()
    assert scheduler.running

    await scheduler.stop()
    assert not scheduler.running

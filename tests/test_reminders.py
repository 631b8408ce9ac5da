"""
Care Reminder Calculator Tests
==============================
Due-state of watering / fertilizing from a plant's care instructions and logs.
"""

import time
from datetime import datetime, timedelta, timezone

import pytest

from ivy.core.reminders import NO_SCHEDULE, compute_reminder, compute_reminders, find_instruction
from ivy.core.schemas import CareAction, CareInstruction, FrequencyRange, GardenPlant, Severity

NOW = datetime(2026, 10, 19, 15, 30)
MIDNIGHT = datetime(2026, 10, 19)


def watering(max_days: int = 7, min_days: int = 3) -> list[CareInstruction]:
    return [
        CareInstruction(topic="Sunlight", details="Bright"),
        CareInstruction(topic="Watering", details="Weekly", frequency_days=FrequencyRange(min=min_days, max=max_days)),
    ]


class TestScheduleLookup:
    def test_topic_match_is_case_insensitive_substring(self):
        instructions = [CareInstruction(topic="Summer WATERING schedule", details="", frequency_days=FrequencyRange(1, 2))]

        assert find_instruction(instructions, CareAction.WATERING) is instructions[0]

    def test_first_matching_instruction_wins(self):
        instructions = [
            CareInstruction(topic="Watering", details="a"),
            CareInstruction(topic="Watering (winter)", details="b", frequency_days=FrequencyRange(1, 2)),
        ]

        reminder = compute_reminder(instructions, [MIDNIGHT], CareAction.WATERING, now=NOW)

        assert reminder.severity is Severity.UNAVAILABLE

    def test_no_matching_topic_is_unavailable(self):
        instructions = [CareInstruction(topic="Water", details="", frequency_days=FrequencyRange(1, 2))]

        reminder = compute_reminder(instructions, [], CareAction.WATERING, now=NOW)

        assert reminder.severity is Severity.UNAVAILABLE
        assert reminder.text == NO_SCHEDULE

    def test_missing_frequency_is_unavailable_even_with_log(self):
        instructions = [CareInstruction(topic="Fertilizing", details="Monthly")]

        reminder = compute_reminder(instructions, [MIDNIGHT], CareAction.FERTILIZING, now=NOW)

        assert reminder.severity is Severity.UNAVAILABLE
        assert reminder.days is None


class TestComputeReminder:
    def test_empty_log_is_first_time(self):
        reminder = compute_reminder(watering(), [], CareAction.WATERING, now=NOW)

        assert reminder.severity is Severity.FIRST_TIME
        assert reminder.text == "Ready for first watering!"

    def test_logged_today_at_midnight_is_due_in_max_days(self):
        reminder = compute_reminder(watering(max_days=7), [MIDNIGHT], CareAction.WATERING, now=NOW)

        assert reminder.severity is Severity.UPCOMING
        assert reminder.days == 7
        assert reminder.text == "Due in 7 day(s)"

    def test_uses_maximum_of_range(self):
        reminder = compute_reminder(watering(min_days=2, max_days=10), [MIDNIGHT], CareAction.WATERING, now=NOW)

        assert reminder.days == 10

    def test_backdated_ten_days_is_three_days_overdue(self):
        reminder = compute_reminder(watering(max_days=7), [MIDNIGHT - timedelta(days=10)], CareAction.WATERING, now=NOW)

        assert reminder.severity is Severity.OVERDUE
        assert reminder.days == -3
        assert reminder.text == "Overdue by 3 day(s)"

    def test_due_today(self):
        reminder = compute_reminder(watering(max_days=7), [MIDNIGHT - timedelta(days=7)], CareAction.WATERING, now=NOW)

        assert reminder.severity is Severity.DUE_TODAY
        assert reminder.text == "Due today!"

    def test_only_last_entry_counts(self):
        log = [MIDNIGHT - timedelta(days=30), MIDNIGHT - timedelta(days=2)]

        reminder = compute_reminder(watering(max_days=7), log, CareAction.WATERING, now=NOW)

        assert reminder.days == 5

    def test_time_of_now_does_not_matter(self):
        early = compute_reminder(watering(), [MIDNIGHT], CareAction.WATERING, now=MIDNIGHT + timedelta(minutes=1))
        late = compute_reminder(watering(), [MIDNIGHT], CareAction.WATERING, now=MIDNIGHT + timedelta(hours=23))

        assert early.days == late.days == 7


class TestTimeOfDayAsymmetry:
    """The due date keeps the log entry's time of day while today is truncated to midnight."""

    def test_logged_later_today_reports_one_extra_day(self):
        reminder = compute_reminder(watering(max_days=7), [MIDNIGHT + timedelta(hours=10)], CareAction.WATERING, now=NOW)

        assert reminder.days == 8

    def test_backdated_entry_with_time_of_day_is_one_day_less_overdue(self):
        last = MIDNIGHT - timedelta(days=10) + timedelta(hours=10)

        reminder = compute_reminder(watering(max_days=7), [last], CareAction.WATERING, now=NOW)

        assert reminder.severity is Severity.OVERDUE
        assert reminder.days == -2

    def test_due_earlier_today_still_counts_as_due_today(self):
        # next due yesterday 20:00, four hours before today's midnight
        last = MIDNIGHT - timedelta(days=8) + timedelta(hours=20)

        reminder = compute_reminder(watering(max_days=7), [last], CareAction.WATERING, now=NOW)

        assert reminder.severity is Severity.DUE_TODAY


@pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
class TestTimezoneAwareEntries:
    @pytest.fixture(autouse=True)
    def utc_local_time(self, monkeypatch):
        monkeypatch.setenv("TZ", "UTC")
        time.tzset()
        yield
        monkeypatch.undo()
        time.tzset()

    def test_aware_entries_are_compared_in_local_time(self):
        last = datetime(2026, 10, 12, 0, 0, tzinfo=timezone.utc)

        reminder = compute_reminder(watering(max_days=7), [last], CareAction.WATERING, now=NOW)

        assert reminder.severity is Severity.DUE_TODAY

    def test_aware_now_is_accepted(self):
        now = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)

        reminder = compute_reminder(watering(max_days=7), [MIDNIGHT], CareAction.WATERING, now=now)

        assert reminder.days == 7


class TestComputeReminders:
    def test_actions_are_independent(self):
        plant = GardenPlant(
            id=1,
            name="Fern",
            image="data:image/png;base64,AA==",
            summary="",
            care_instructions=watering(max_days=7)
            + [CareInstruction(topic="Fertilizing", details="", frequency_days=FrequencyRange(14, 30))],
            watering_log=[MIDNIGHT - timedelta(days=10)],
        )

        reminders = compute_reminders(plant, now=NOW)

        assert reminders[CareAction.WATERING].severity is Severity.OVERDUE
        assert reminders[CareAction.FERTILIZING].severity is Severity.FIRST_TIME
        assert reminders[CareAction.FERTILIZING].text == "Ready for first fertilizing!"

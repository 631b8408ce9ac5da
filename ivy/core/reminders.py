from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Sequence

from ivy.core.schemas import CareAction, CareInstruction, GardenPlant, Reminder, Severity

NO_SCHEDULE = "No schedule available"

_DAY_SECONDS = 24 * 60 * 60


def find_instruction(instructions: Sequence[CareInstruction], action: CareAction) -> CareInstruction | None:
    keyword = action.value
    for inst in instructions:
        if keyword in inst.topic.lower():
            return inst
    return None


def _local(ts: datetime) -> datetime:
    # aware → local wall clock; naive entries are already local
    if ts.tzinfo is not None:
        return ts.astimezone().replace(tzinfo=None)
    return ts


def compute_reminder(
    instructions: Sequence[CareInstruction],
    log: Sequence[datetime],
    action: CareAction,
    now: datetime | None = None,
) -> Reminder:
    """
    Due-state of one recurring care action.

    The next due date is the last logged event plus the *maximum* of the
    instruction's frequency range. ``today`` is ``now`` at midnight while the
    due date keeps the time-of-day of the last event, so an event logged late
    in the day reports one extra day.
    """
    instruction = find_instruction(instructions, action)
    if instruction is None or instruction.frequency_days is None:
        return Reminder(text=NO_SCHEDULE, severity=Severity.UNAVAILABLE)

    if not log:
        return Reminder(text=f"Ready for first {action.value}!", severity=Severity.FIRST_TIME)

    last = _local(log[-1])
    next_due = last + timedelta(days=instruction.frequency_days.max)

    today = _local(now or datetime.now()).replace(hour=0, minute=0, second=0, microsecond=0)
    diff_days = math.ceil((next_due - today).total_seconds() / _DAY_SECONDS)

    if diff_days < 0:
        return Reminder(text=f"Overdue by {abs(diff_days)} day(s)", severity=Severity.OVERDUE, days=diff_days)
    if diff_days == 0:
        return Reminder(text="Due today!", severity=Severity.DUE_TODAY, days=0)
    return Reminder(text=f"Due in {diff_days} day(s)", severity=Severity.UPCOMING, days=diff_days)


def compute_reminders(plant: GardenPlant, now: datetime | None = None) -> dict[CareAction, Reminder]:
    return {
        action: compute_reminder(plant.care_instructions, plant.log_for(action), action, now=now)
        for action in CareAction
    }

"""Due date and due time resolution."""

from __future__ import annotations

from datetime import date, time
from typing import Optional

from pharmtasks.models.constants import DEFAULT_DUE_TIMES, START_OF_MONTH_DUE_WORKDAYS
from pharmtasks.models.frequency import FrequencyKind, FrequencyRule
from pharmtasks.models.task import MasterTaskDefinition
from pharmtasks.recurrence.appearance import validate_rule
from pharmtasks.recurrence.calendar_math import (
    add_workdays,
    last_saturday_of_month,
    next_working_weekday,
    previous_working_weekday_in_month,
    previous_working_weekday_in_week,
    week_saturday,
)
from pharmtasks.recurrence.errors import UnsupportedFrequencyError
from pharmtasks.recurrence.holidays import HolidayChecker


def week_end_cutoff(d: date, holidays: HolidayChecker) -> date:
    """Saturday of d's week, or the nearest earlier working weekday if it is a holiday."""
    saturday = week_saturday(d)
    if not holidays.is_holiday(saturday):
        return saturday
    return previous_working_weekday_in_week(saturday, holidays) or saturday


def month_end_cutoff(year: int, month: int, holidays: HolidayChecker) -> date:
    """Last Saturday of the month, holiday-shifted.

    A holiday Saturday moves back to the nearest earlier working weekday in
    the month. Only when no such day exists does it move forward to the next
    working weekday.
    """
    saturday = last_saturday_of_month(year, month)
    if not holidays.is_holiday(saturday):
        return saturday
    earlier = previous_working_weekday_in_month(saturday, holidays)
    if earlier is not None:
        return earlier
    return next_working_weekday(saturday, holidays)


def resolve_due_date(
    rule: FrequencyRule,
    appearance: date,
    holidays: HolidayChecker,
    *,
    task_due_date: Optional[date] = None,
) -> date:
    """Civil due date of the occurrence that appeared on `appearance`."""
    kind = validate_rule(rule)

    if kind == FrequencyKind.ONCE_OFF:
        if task_due_date is None:
            raise UnsupportedFrequencyError("Once-off frequency requires a due date", raw=rule.raw)
        return task_due_date

    if kind in (FrequencyKind.EVERY_DAY, FrequencyKind.WEEKDAY):
        return appearance

    if kind == FrequencyKind.ONCE_WEEKLY:
        return max(appearance, week_end_cutoff(appearance, holidays))

    if kind == FrequencyKind.START_OF_MONTH:
        return add_workdays(appearance, START_OF_MONTH_DUE_WORKDAYS, holidays)

    if kind in (FrequencyKind.ONCE_MONTHLY, FrequencyKind.END_OF_MONTH):
        return max(appearance, month_end_cutoff(appearance.year, appearance.month, holidays))

    raise UnsupportedFrequencyError(f"No due date rule for {kind.value}", raw=rule.raw)


def resolve_due_time(task: MasterTaskDefinition) -> time:
    """Task override if set, else the default for the task's timing category."""
    if task.due_time is not None:
        return task.due_time
    return DEFAULT_DUE_TIMES[task.timing]

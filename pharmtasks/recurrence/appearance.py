"""Frequency evaluation: on which civil dates does a rule produce an occurrence.

Weekly rules are anchored to the ISO week (Monday start) of the date being
evaluated, monthly rules to its calendar month. Each period has at most one
appearance date per rule.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Dict, Optional

from pharmtasks.models.constants import END_OF_MONTH_MIN_WORKDAYS
from pharmtasks.models.frequency import FrequencyKind, FrequencyRule, Weekday
from pharmtasks.recurrence.calendar_math import (
    MONDAY,
    SUNDAY,
    count_workdays_between,
    first_monday_after,
    last_day_of_month,
    next_working_weekday,
    next_working_weekday_in_week,
    previous_working_weekday_in_week,
    week_monday,
)
from pharmtasks.recurrence.errors import UnsupportedFrequencyError
from pharmtasks.recurrence.holidays import HolidayChecker

logger = logging.getLogger(__name__)


def validate_rule(rule: FrequencyRule) -> FrequencyKind:
    """Return the rule's kind, or raise UnsupportedFrequencyError."""
    if rule.kind is None:
        raise UnsupportedFrequencyError(f"Unsupported frequency '{rule.raw}'", raw=rule.raw)
    if rule.kind == FrequencyKind.WEEKDAY and rule.day is None:
        raise UnsupportedFrequencyError("Weekday frequency without a Monday-Saturday target day", raw=rule.raw)
    if rule.month is not None and not 1 <= rule.month <= 12:
        raise UnsupportedFrequencyError(f"Month filter {rule.month} out of range", raw=rule.raw)
    return rule.kind


# Period anchors -------------------------------------------------------------

def once_weekly_appearance(reference: date, holidays: HolidayChecker) -> date:
    """Monday of the week, or the first working weekday after a holiday Monday."""
    monday = week_monday(reference)
    if not holidays.is_holiday(monday):
        return monday
    return next_working_weekday_in_week(monday, holidays) or monday


def weekday_appearance(day: Weekday, reference: date, holidays: HolidayChecker) -> date:
    """Natural day in the week, holiday-shifted.

    Tue-Sat shift backward to the nearest earlier working weekday of the same
    week; Monday (or a day with nothing earlier) shifts forward within the week.
    """
    natural = week_monday(reference) + timedelta(days=day.offset)
    if not holidays.is_holiday(natural):
        return natural
    if day.offset != MONDAY:
        earlier = previous_working_weekday_in_week(natural, holidays)
        if earlier is not None:
            return earlier
    return next_working_weekday_in_week(natural, holidays) or natural


def first_business_day(year: int, month: int, holidays: HolidayChecker) -> date:
    """Effective first business day used by start-of-month and once-monthly rules."""
    candidate = date(year, month, 1)
    if holidays.is_weekend(candidate):
        candidate = first_monday_after(candidate)
    if holidays.is_holiday(candidate):
        candidate = next_working_weekday(candidate, holidays)
    return candidate


def end_of_month_appearance(year: int, month: int, holidays: HolidayChecker) -> date:
    """Latest Monday leaving enough workdays before month end, holiday-shifted."""
    last = last_day_of_month(year, month)
    first_monday = date(year, month, 1)
    if first_monday.weekday() != MONDAY:
        first_monday = first_monday_after(first_monday)
    mondays = []
    cur = first_monday
    while cur <= last:
        mondays.append(cur)
        cur += timedelta(days=7)

    chosen = first_monday
    for monday in reversed(mondays):
        if count_workdays_between(monday, last, holidays) >= END_OF_MONTH_MIN_WORKDAYS:
            chosen = monday
            break
    if holidays.is_holiday(chosen):
        chosen = next_working_weekday(chosen, holidays)
    return chosen


# Dispatch -------------------------------------------------------------------

AppearanceFn = Callable[[FrequencyRule, date, HolidayChecker, Optional[date]], Optional[date]]


def _once_off(rule, reference, holidays, due_date):
    if due_date is None:
        logger.debug("Once-off frequency without a due date never appears")
        return None
    return due_date


def _every_day(rule, reference, holidays, due_date):
    if reference.weekday() == SUNDAY or holidays.is_holiday(reference):
        return None
    return reference


def _once_weekly(rule, reference, holidays, due_date):
    return once_weekly_appearance(reference, holidays)


def _weekday(rule, reference, holidays, due_date):
    return weekday_appearance(rule.day, reference, holidays)


def _month_filtered(anchor: Callable[[int, int, HolidayChecker], date]) -> AppearanceFn:
    def resolve(rule, reference, holidays, due_date):
        if rule.month is not None and reference.month != rule.month:
            return None
        return anchor(reference.year, reference.month, holidays)
    return resolve


_APPEARANCE: Dict[FrequencyKind, AppearanceFn] = {
    FrequencyKind.ONCE_OFF: _once_off,
    FrequencyKind.EVERY_DAY: _every_day,
    FrequencyKind.ONCE_WEEKLY: _once_weekly,
    FrequencyKind.WEEKDAY: _weekday,
    FrequencyKind.ONCE_MONTHLY: _month_filtered(first_business_day),
    FrequencyKind.START_OF_MONTH: _month_filtered(first_business_day),
    FrequencyKind.END_OF_MONTH: _month_filtered(end_of_month_appearance),
}


def appearance_date(
    rule: FrequencyRule,
    reference: date,
    holidays: HolidayChecker,
    *,
    due_date: Optional[date] = None,
) -> Optional[date]:
    """Appearance date of the period (week/month) containing `reference`.

    For once-off rules this is the admin due date; for every-day rules it is
    `reference` itself when that day is a trading day. None means the rule has
    no appearance in that period.
    """
    kind = validate_rule(rule)
    return _APPEARANCE[kind](rule, reference, holidays, due_date)


def appears(
    rule: FrequencyRule,
    on_date: date,
    holidays: HolidayChecker,
    *,
    due_date: Optional[date] = None,
) -> bool:
    """True if an occurrence of `rule` appears on `on_date`.

    Once-off tasks appear on every day from their due date onward; completion
    is tracked by the caller.
    """
    anchor = appearance_date(rule, on_date, holidays, due_date=due_date)
    if anchor is None:
        return False
    if rule.kind == FrequencyKind.ONCE_OFF:
        return on_date >= anchor
    return on_date == anchor

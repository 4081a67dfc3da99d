"""Carry and lock resolution.

Carry: how long an occurrence stays the live instance after it appears.
Lock: the instant after which an unfinished occurrence is irreversibly missed.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from pharmtasks.models.constants import LOCK_TIME
from pharmtasks.models.frequency import FrequencyKind, FrequencyRule
from pharmtasks.recurrence.appearance import validate_rule
from pharmtasks.recurrence.due import month_end_cutoff, week_end_cutoff
from pharmtasks.recurrence.holidays import HolidayChecker
from pharmtasks.recurrence.time_source import TimeSource


def carry_cutoff(
    rule: FrequencyRule,
    appearance: date,
    due_date: date,
    holidays: HolidayChecker,
) -> Optional[date]:
    """Last civil date the occurrence stays live; None means until done."""
    kind = validate_rule(rule)

    if kind == FrequencyKind.ONCE_OFF:
        return None
    if kind == FrequencyKind.EVERY_DAY:
        return appearance
    if kind in (FrequencyKind.ONCE_WEEKLY, FrequencyKind.WEEKDAY):
        return max(due_date, week_end_cutoff(appearance, holidays))
    if kind == FrequencyKind.START_OF_MONTH:
        return max(due_date, month_end_cutoff(appearance.year, appearance.month, holidays))
    # once-monthly, end-of-month: not past the due date
    return due_date


def carries(
    rule: FrequencyRule,
    appearance: date,
    current: date,
    holidays: HolidayChecker,
    *,
    due_date: date,
) -> bool:
    """True if the occurrence that appeared on `appearance` is still live on `current`."""
    if current < appearance:
        return False
    cutoff = carry_cutoff(rule, appearance, due_date, holidays)
    return cutoff is None or current <= cutoff


def resolve_lock_date(
    rule: FrequencyRule,
    appearance: date,
    due_date: date,
    holidays: HolidayChecker,
) -> Optional[date]:
    """Civil date whose 23:59 locks the occurrence; None for never."""
    kind = validate_rule(rule)

    if kind == FrequencyKind.ONCE_OFF:
        return None
    if kind in (FrequencyKind.WEEKDAY, FrequencyKind.START_OF_MONTH):
        return carry_cutoff(rule, appearance, due_date, holidays)
    return due_date


def resolve_lock_instant(
    rule: FrequencyRule,
    appearance: date,
    due_date: date,
    due_time: time,
    holidays: HolidayChecker,
    time_source: TimeSource,
) -> Optional[datetime]:
    lock_date = resolve_lock_date(rule, appearance, due_date, holidays)
    if lock_date is None:
        return None
    lock_at = time_source.to_instant(max(lock_date, due_date), LOCK_TIME)
    # A due-time override later than 23:59 must not lock before it is due
    return max(lock_at, time_source.to_instant(due_date, due_time))

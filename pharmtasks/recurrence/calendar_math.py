"""Civil-date arithmetic shared by the recurrence resolvers.

"Working weekday" here means Monday-Friday and not a holiday. Every holiday
shift and workday count uses that definition; only the EveryDay rule treats
Saturday as a trading day.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterable, Optional

from pharmtasks.recurrence.holidays import HolidayChecker

MONDAY = 0
SATURDAY = 5
SUNDAY = 6

# Upper bound for open-ended forward searches
_MAX_SCAN_DAYS = 366


def daterange(start: date, end_exclusive: date) -> Iterable[date]:
    cur = start
    while cur < end_exclusive:
        yield cur
        cur = cur + timedelta(days=1)


def week_monday(d: date) -> date:
    """Monday of the ISO week containing d."""
    return d - timedelta(days=d.weekday())


def week_saturday(d: date) -> date:
    return week_monday(d) + timedelta(days=SATURDAY)


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def last_saturday_of_month(year: int, month: int) -> date:
    last = last_day_of_month(year, month)
    return last - timedelta(days=(last.weekday() - SATURDAY) % 7)


def is_working_weekday(d: date, holidays: HolidayChecker) -> bool:
    return not holidays.is_weekend(d) and not holidays.is_holiday(d)


def next_working_weekday(d: date, holidays: HolidayChecker) -> date:
    """First working weekday strictly after d."""
    cur = d + timedelta(days=1)
    for _ in range(_MAX_SCAN_DAYS):
        if is_working_weekday(cur, holidays):
            return cur
        cur += timedelta(days=1)
    raise ValueError(f"No working weekday within {_MAX_SCAN_DAYS} days after {d.isoformat()}")


def next_working_weekday_in_week(d: date, holidays: HolidayChecker) -> Optional[date]:
    """First working weekday strictly after d and no later than the week's Saturday."""
    end = week_saturday(d)
    cur = d + timedelta(days=1)
    while cur <= end:
        if is_working_weekday(cur, holidays):
            return cur
        cur += timedelta(days=1)
    return None


def previous_working_weekday_in_week(d: date, holidays: HolidayChecker) -> Optional[date]:
    """Nearest working weekday strictly before d, no earlier than the week's Monday."""
    start = week_monday(d)
    cur = d - timedelta(days=1)
    while cur >= start:
        if is_working_weekday(cur, holidays):
            return cur
        cur -= timedelta(days=1)
    return None


def previous_working_weekday_in_month(d: date, holidays: HolidayChecker) -> Optional[date]:
    """Nearest working weekday strictly before d within d's month."""
    cur = d - timedelta(days=1)
    while cur.month == d.month:
        if is_working_weekday(cur, holidays):
            return cur
        cur -= timedelta(days=1)
    return None


def first_monday_after(d: date) -> date:
    """First Monday strictly after d."""
    return d + timedelta(days=(MONDAY - d.weekday() - 1) % 7 + 1)


def add_workdays(start: date, workdays: int, holidays: HolidayChecker) -> date:
    """Advance `workdays` working weekdays from start (start itself not counted).

    If the result is a holiday it is pushed to the next working weekday.
    """
    cur = start
    added = 0
    while added < workdays:
        cur = cur + timedelta(days=1)
        if is_working_weekday(cur, holidays):
            added += 1
    if holidays.is_holiday(cur):
        cur = next_working_weekday(cur, holidays)
    return cur


def count_workdays_between(start: date, end: date, holidays: HolidayChecker) -> int:
    """Working weekdays in [start, end]."""
    return sum(1 for d in daterange(start, end + timedelta(days=1))
               if is_working_weekday(d, holidays))

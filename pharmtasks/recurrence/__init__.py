"""Task recurrence & status engine for pharmtasks."""

from pharmtasks.recurrence.appearance import appearance_date, appears
from pharmtasks.recurrence.carry import carries, carry_cutoff, resolve_lock_date, resolve_lock_instant
from pharmtasks.recurrence.due import resolve_due_date, resolve_due_time
from pharmtasks.recurrence.engine import RecurrenceEngine, is_published_on
from pharmtasks.recurrence.errors import ClockError, NoOccurrenceError, UnsupportedFrequencyError
from pharmtasks.recurrence.holidays import HolidayCalendar, HolidayChecker
from pharmtasks.recurrence.status import compute_status
from pharmtasks.recurrence.time_source import FrozenTimeSource, TimeSource

__all__ = [
    "appearance_date",
    "appears",
    "carries",
    "carry_cutoff",
    "resolve_lock_date",
    "resolve_lock_instant",
    "resolve_due_date",
    "resolve_due_time",
    "RecurrenceEngine",
    "is_published_on",
    "ClockError",
    "NoOccurrenceError",
    "UnsupportedFrequencyError",
    "HolidayCalendar",
    "HolidayChecker",
    "compute_status",
    "FrozenTimeSource",
    "TimeSource",
]

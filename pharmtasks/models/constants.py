"""Constants for pharmtasks.

This module centralizes the fixed times and windows used by the recurrence engine.
"""

from datetime import time

from pharmtasks.models.task import TimingCategory


# Default due time per timing category (civil time, operating timezone)
DEFAULT_DUE_TIMES = {
    TimingCategory.OPENING: time(9, 30),
    TimingCategory.ANYTIME: time(16, 30),
    TimingCategory.BEFORE_CUTOFF: time(16, 55),
    TimingCategory.CLOSING: time(17, 0),
}

# Unfinished occurrences lock at this civil time on their lock date
LOCK_TIME = time(23, 59)

# Workdays between a start-of-month appearance and its due date
START_OF_MONTH_DUE_WORKDAYS = 5

# An end-of-month appearance needs at least this many workdays left in the month
END_OF_MONTH_MIN_WORKDAYS = 5

# How far back to look for the appearance that a carried occurrence came from
CARRY_LOOKBACK_DAYS = 42

DEFAULT_BUSINESS_TIMEZONE = "Australia/Sydney"

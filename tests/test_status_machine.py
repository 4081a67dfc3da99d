"""Tests for the occurrence status machine."""

import pytest
from datetime import date, datetime, time, timezone

from pharmtasks.models.occurrence import TaskStatus
from pharmtasks.recurrence.errors import ClockError
from pharmtasks.recurrence.status import compute_status, transition_reason
from pharmtasks.recurrence.time_source import FrozenTimeSource

ZONE = "Australia/Sydney"


@pytest.fixture
def clock():
    return FrozenTimeSource(datetime(2025, 6, 2, 8, 0), ZONE)


def _status(clock, now, *, completed=False, due=(date(2025, 6, 2), time(16, 30)), lock=(date(2025, 6, 2), time(23, 59))):
    due_at = clock.to_instant(*due)
    lock_at = clock.to_instant(*lock) if lock else None
    return compute_status(
        due_at=due_at,
        lock_at=lock_at,
        completed=completed,
        now=clock.to_instant(*now) if isinstance(now, tuple) else now,
        time_source=clock,
    )


class TestStatusProgression:
    """not_due -> due_today -> overdue -> missed."""

    def test_not_due_before_due_date(self, clock):
        assert _status(clock, (date(2025, 6, 1), time(12, 0))) == TaskStatus.NOT_DUE

    def test_due_today_before_due_time(self, clock):
        assert _status(clock, (date(2025, 6, 2), time(8, 0))) == TaskStatus.DUE_TODAY

    def test_overdue_at_due_time(self, clock):
        assert _status(clock, (date(2025, 6, 2), time(16, 30))) == TaskStatus.OVERDUE

    def test_overdue_before_lock(self, clock):
        assert _status(clock, (date(2025, 6, 2), time(23, 58))) == TaskStatus.OVERDUE

    def test_missed_at_lock(self, clock):
        assert _status(clock, (date(2025, 6, 2), time(23, 59))) == TaskStatus.MISSED

    def test_no_lock_stays_overdue(self, clock):
        assert _status(clock, (date(2025, 7, 1), time(9, 0)), lock=None) == TaskStatus.OVERDUE


class TestStatusPrecedence:
    """Completion beats lock, lock beats due."""

    def test_done_even_after_lock(self, clock):
        assert _status(clock, (date(2025, 6, 3), time(9, 0)), completed=True) == TaskStatus.DONE

    def test_lock_checked_before_due(self, clock):
        """Inconsistent data (lock before due) still reports missed once locked."""
        status = _status(
            clock,
            (date(2025, 6, 2), time(12, 0)),
            due=(date(2025, 6, 2), time(16, 30)),
            lock=(date(2025, 6, 2), time(10, 0)),
        )
        assert status == TaskStatus.MISSED


class TestClockHandling:
    """Instants from other zones are converted; naive ones are rejected."""

    def test_utc_now_is_converted(self, clock):
        # 16:30 AEST on 2 June is 06:30 UTC
        assert _status(clock, datetime(2025, 6, 2, 6, 29, tzinfo=timezone.utc)) == TaskStatus.DUE_TODAY
        assert _status(clock, datetime(2025, 6, 2, 6, 31, tzinfo=timezone.utc)) == TaskStatus.OVERDUE

    def test_civil_date_uses_business_zone(self, clock):
        # 20:00 UTC on 1 June is already 06:00 on 2 June in Sydney
        assert _status(clock, datetime(2025, 6, 1, 20, 0, tzinfo=timezone.utc)) == TaskStatus.DUE_TODAY

    def test_naive_now_is_a_clock_error(self, clock):
        with pytest.raises(ClockError):
            _status(clock, datetime(2025, 6, 2, 12, 0))

    def test_completed_needs_no_clock(self, clock):
        assert _status(clock, datetime(2025, 6, 2, 12, 0), completed=True) == TaskStatus.DONE


class TestTransitionReason:
    def test_reasons(self):
        assert transition_reason(TaskStatus.OVERDUE, TaskStatus.MISSED) == "Lock cutoff passed"
        assert transition_reason(TaskStatus.DUE_TODAY, TaskStatus.OVERDUE) == "Past due time"
        assert transition_reason(TaskStatus.NOT_DUE, TaskStatus.DUE_TODAY) == "Due today"
        assert transition_reason(TaskStatus.DONE, TaskStatus.DONE) == "No change"

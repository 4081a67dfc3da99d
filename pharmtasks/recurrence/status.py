"""Status machine for task occurrences.

    not_due -> due_today -> overdue -> missed (terminal)
    done is reachable from any non-terminal state; the caller may undo it, after
    which the status is simply recomputed.

Checks run in a fixed order: completion, lock, due instant, due date. The lock
check runs before the due check, so an occurrence past its lock instant is
missed even if its due data is inconsistent.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pharmtasks.models.occurrence import TaskOccurrence, TaskStatus
from pharmtasks.recurrence.time_source import TimeSource


def compute_status(
    *,
    due_at: datetime,
    lock_at: Optional[datetime],
    completed: bool,
    now: datetime,
    time_source: TimeSource,
) -> TaskStatus:
    """Display status at `now`. All datetimes must be timezone-aware."""
    if completed:
        return TaskStatus.DONE

    # Raises ClockError on a naive "now"
    local_now = time_source.localize(now)

    if lock_at is not None and local_now >= lock_at:
        return TaskStatus.MISSED
    if local_now >= due_at:
        return TaskStatus.OVERDUE
    if local_now.date() == time_source.civil_date_of(due_at):
        return TaskStatus.DUE_TODAY
    return TaskStatus.NOT_DUE


def occurrence_status(
    occurrence: TaskOccurrence,
    *,
    completed: bool,
    now: datetime,
    time_source: TimeSource,
) -> TaskStatus:
    return compute_status(
        due_at=time_source.to_instant(occurrence.due_date, occurrence.due_time),
        lock_at=occurrence.lock_instant,
        completed=completed,
        now=now,
        time_source=time_source,
    )


def transition_reason(old: TaskStatus, new: TaskStatus) -> str:
    """Short human-readable reason for a status change."""
    if old == new:
        return "No change"
    if new == TaskStatus.MISSED:
        return "Lock cutoff passed"
    if new == TaskStatus.OVERDUE:
        return "Past due time"
    if new == TaskStatus.DUE_TODAY:
        return "Due today"
    if new == TaskStatus.DONE:
        return "Completed"
    return "Not yet due"

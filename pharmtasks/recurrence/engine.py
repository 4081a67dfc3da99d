"""Recurrence engine: the single entry point for callers.

Every method is a pure function of its arguments plus the injected holiday
calendar and time source. Nothing is cached or stored between calls.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from pharmtasks.models.constants import CARRY_LOOKBACK_DAYS
from pharmtasks.models.frequency import FrequencyKind, FrequencyRule
from pharmtasks.models.occurrence import (
    CarriedOccurrence,
    GenerationResult,
    InstanceSnapshot,
    StatusChange,
    TaskOccurrence,
    TaskStatus,
)
from pharmtasks.models.task import MasterTaskDefinition, PublishStatus
from pharmtasks.recurrence.appearance import appearance_date, appears
from pharmtasks.recurrence.carry import carries, carry_cutoff, resolve_lock_instant
from pharmtasks.recurrence.due import resolve_due_date, resolve_due_time
from pharmtasks.recurrence.errors import NoOccurrenceError, UnsupportedFrequencyError
from pharmtasks.recurrence.holidays import HolidayChecker
from pharmtasks.recurrence.status import occurrence_status, transition_reason
from pharmtasks.recurrence.time_source import TimeSource

logger = logging.getLogger(__name__)


def is_published_on(task: MasterTaskDefinition, on_date: date) -> bool:
    """Publish status, publish delay and validity window gate."""
    if task.publish_status != PublishStatus.ACTIVE:
        return False
    if task.publish_delay and on_date < task.publish_delay:
        return False
    if task.start_date and on_date < task.start_date:
        return False
    if task.end_date and on_date > task.end_date:
        return False
    return True


class RecurrenceEngine:
    """Answers when a task appears, when it is due, how long it carries,
    when it locks, and what status it holds."""

    def __init__(self, holidays: HolidayChecker, time_source: TimeSource):
        self.holidays = holidays
        self.time_source = time_source

    # Appearance -------------------------------------------------------------

    def _rule_appears(self, task: MasterTaskDefinition, rule: FrequencyRule, on_date: date) -> bool:
        try:
            return appears(rule, on_date, self.holidays, due_date=task.due_date)
        except UnsupportedFrequencyError as e:
            logger.warning(f"Task {task.id}: skipping frequency {rule.label()}: {str(e)}")
            return False

    def matching_rule(self, task: MasterTaskDefinition, on_date: date) -> Optional[FrequencyRule]:
        """First rule (in task order) that makes the task appear on `on_date`."""
        if not is_published_on(task, on_date):
            return None
        for rule in task.frequencies:
            if self._rule_appears(task, rule, on_date):
                return rule
        return None

    def is_due(self, task: MasterTaskDefinition, on_date: date) -> bool:
        """True if an occurrence of the task appears on `on_date`."""
        return self.matching_rule(task, on_date) is not None

    # Resolution -------------------------------------------------------------

    def _build(self, task: MasterTaskDefinition, rule: FrequencyRule, appeared: date) -> TaskOccurrence:
        # Never due before it appears
        due_date = max(appeared, resolve_due_date(rule, appeared, self.holidays, task_due_date=task.due_date))
        due_time = resolve_due_time(task)
        return TaskOccurrence(
            task_id=task.id,
            rule=rule,
            appearance_date=appeared,
            due_date=due_date,
            due_time=due_time,
            lock_instant=resolve_lock_instant(rule, appeared, due_date, due_time, self.holidays, self.time_source),
            carry_until=carry_cutoff(rule, appeared, due_date, self.holidays),
        )

    def resolve_occurrence(self, task: MasterTaskDefinition, appearance: date) -> TaskOccurrence:
        """Occurrence of `task` that appears on `appearance`.

        Once-off tasks have a single occurrence anchored at their due date, so
        any date on which they appear resolves to that same occurrence.
        """
        rule = self.matching_rule(task, appearance)
        if rule is None:
            raise NoOccurrenceError(f"Task {task.id} has no occurrence on {appearance.isoformat()}")
        if rule.kind == FrequencyKind.ONCE_OFF:
            appearance = task.due_date
        return self._build(task, rule, appearance)

    def active_occurrence(self, task: MasterTaskDefinition, current: date) -> Optional[CarriedOccurrence]:
        """The occurrence live on `current`, whether it appeared today or is carried.

        When several rules have a live occurrence, the most recent appearance
        wins (ties go to the earlier rule in task order).
        """
        if not is_published_on(task, current):
            return None
        best: Optional[TaskOccurrence] = None
        for rule in task.frequencies:
            occurrence = self._live_for_rule(task, rule, current)
            if occurrence is not None and (best is None or occurrence.appearance_date > best.appearance_date):
                best = occurrence
        if best is None:
            return None
        return CarriedOccurrence(occurrence=best, on_date=current, is_carry=current > best.appearance_date)

    def _live_for_rule(
        self, task: MasterTaskDefinition, rule: FrequencyRule, current: date
    ) -> Optional[TaskOccurrence]:
        try:
            if rule.kind == FrequencyKind.ONCE_OFF:
                anchor = appearance_date(rule, current, self.holidays, due_date=task.due_date)
                if anchor is None or current < anchor:
                    return None
                return self._build(task, rule, anchor)

            for back in range(CARRY_LOOKBACK_DAYS + 1):
                candidate = current - timedelta(days=back)
                if not is_published_on(task, candidate):
                    continue
                if not appears(rule, candidate, self.holidays, due_date=task.due_date):
                    continue
                occurrence = self._build(task, rule, candidate)
                if carries(rule, candidate, current, self.holidays, due_date=occurrence.due_date):
                    return occurrence
                # A newer appearance would have been found first
                return None
        except UnsupportedFrequencyError as e:
            logger.warning(f"Task {task.id}: skipping frequency {rule.label()}: {str(e)}")
        return None

    def occurrences_for_date(self, tasks: Iterable[MasterTaskDefinition], on_date: date) -> GenerationResult:
        """Checklist for one day: occurrences appearing today and ones carried in."""
        result = GenerationResult(date=on_date)
        for task in tasks:
            live = self.active_occurrence(task, on_date)
            if live is None:
                continue
            if live.is_carry:
                result.carried_occurrences.append(live)
            else:
                result.new_occurrences.append(live)
        return result

    # Status -----------------------------------------------------------------

    def current_status(
        self,
        occurrence: TaskOccurrence,
        completed: bool,
        now: Optional[datetime] = None,
    ) -> TaskStatus:
        """Display status of `occurrence` at `now` (defaults to the time source)."""
        if now is None:
            now = self.time_source.now()
        return occurrence_status(occurrence, completed=completed, now=now, time_source=self.time_source)

    def refresh_statuses(
        self,
        snapshots: Iterable[InstanceSnapshot],
        now: Optional[datetime] = None,
    ) -> List[StatusChange]:
        """Recompute statuses of persisted instances, returning only the changes.

        Done and locked instances are left untouched.
        """
        if now is None:
            now = self.time_source.now()
        changes: List[StatusChange] = []
        for snap in snapshots:
            if snap.status == TaskStatus.DONE or snap.locked:
                continue
            new_status = self.current_status(snap.occurrence, completed=False, now=now)
            if new_status == snap.status:
                continue
            changes.append(
                StatusChange(
                    instance_id=snap.instance_id,
                    old_status=snap.status,
                    new_status=new_status,
                    locked=new_status == TaskStatus.MISSED,
                    reason=transition_reason(snap.status, new_status),
                )
            )
        return changes

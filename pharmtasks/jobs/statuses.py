"""Status refresh job and instance completion."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from pharmtasks.database.models import TaskInstanceDB, to_utc_naive
from pharmtasks.database.task_instance_repository import TaskInstanceRepository
from pharmtasks.models.occurrence import StatusChange, TaskStatus
from pharmtasks.recurrence.engine import RecurrenceEngine

logger = logging.getLogger(__name__)


class InstanceNotFoundError(LookupError):
    """No task instance with the given id."""


class InstanceLockedError(RuntimeError):
    """The instance passed its lock cutoff and can no longer change."""


def update_statuses(
    db: Session,
    engine: RecurrenceEngine,
    now: Optional[datetime] = None,
) -> List[StatusChange]:
    """Recompute every open instance and persist the ones that changed.

    Instances that become missed are locked in the same write.
    """
    repo = TaskInstanceRepository(db)
    snapshots = repo.open_snapshots()
    changes = engine.refresh_statuses(snapshots, now=now)
    if not changes:
        logger.debug(f"Status refresh: {len(snapshots)} open instances, no changes")
        return changes

    for change in changes:
        row = repo.get(change.instance_id)
        if row is None:
            logger.warning(f"Instance {change.instance_id} disappeared during status refresh")
            continue
        repo.set_status(row, change.new_status, locked=change.locked, commit=False)
    repo.commit()

    locked = sum(1 for change in changes if change.locked)
    logger.info(f"Status refresh: {len(changes)} of {len(snapshots)} instances changed, {locked} locked")
    return changes


def _get_or_raise(repo: TaskInstanceRepository, instance_id: str) -> TaskInstanceDB:
    row = repo.get(instance_id)
    if row is None:
        raise InstanceNotFoundError(f"Task instance {instance_id} not found")
    return row


def complete_instance(
    db: Session,
    engine: RecurrenceEngine,
    instance_id: str,
    now: Optional[datetime] = None,
) -> TaskInstanceDB:
    """Mark an instance done.

    Raises InstanceLockedError if the instance is locked, or has passed its
    lock instant even though the refresh job has not yet caught up.
    """
    repo = TaskInstanceRepository(db)
    row = _get_or_raise(repo, instance_id)
    if row.task_status == TaskStatus.DONE:
        return row
    if now is None:
        now = engine.time_source.now()

    if not row.locked:
        current = engine.current_status(row.to_occurrence(), completed=False, now=now)
        if current == TaskStatus.MISSED:
            repo.set_status(row, TaskStatus.MISSED, locked=True)
    if row.locked:
        raise InstanceLockedError(f"Task instance {instance_id} is locked")

    logger.info(f"Completed instance {instance_id} (task {row.master_task_id})")
    return repo.set_status(row, TaskStatus.DONE, completed_at=to_utc_naive(engine.time_source.localize(now)))


def undo_instance(
    db: Session,
    engine: RecurrenceEngine,
    instance_id: str,
    now: Optional[datetime] = None,
) -> TaskInstanceDB:
    """Revert a completion; the status is recomputed as of `now`."""
    repo = TaskInstanceRepository(db)
    row = _get_or_raise(repo, instance_id)
    if row.task_status != TaskStatus.DONE:
        return row
    if now is None:
        now = engine.time_source.now()

    status = engine.current_status(row.to_occurrence(), completed=False, now=now)
    logger.info(f"Undid completion of instance {instance_id}: now {status.value}")
    return repo.set_status(row, status, locked=status == TaskStatus.MISSED)

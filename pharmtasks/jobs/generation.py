"""Instance generation job.

For each active master task, materialize the occurrence that appears on the
target date. Occurrences carried in from earlier days keep the row created on
the day they appeared. Re-running for the same date is a no-op.
"""

import logging
import datetime as dt
from datetime import date, timedelta
from typing import List

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from pharmtasks.database.master_task_repository import MasterTaskRepository
from pharmtasks.database.task_instance_repository import TaskInstanceRepository
from pharmtasks.models.occurrence import TaskStatus
from pharmtasks.recurrence.engine import RecurrenceEngine

logger = logging.getLogger(__name__)


class GenerationSummary(BaseModel):
    """Outcome of one generation run."""

    date: dt.date
    created: int = 0
    existing: int = 0
    carried: int = 0
    created_ids: List[str] = Field(default_factory=list)
    holidays_degraded: bool = False


def generate_instances(db: Session, engine: RecurrenceEngine, target_date: date) -> GenerationSummary:
    """Create missing instances for occurrences appearing on `target_date`."""
    task_repo = MasterTaskRepository(db)
    instance_repo = TaskInstanceRepository(db)

    summary = GenerationSummary(
        date=target_date,
        holidays_degraded=bool(getattr(engine.holidays, "degraded", False)),
    )
    if summary.holidays_degraded:
        logger.warning(f"Generating instances for {target_date.isoformat()} without holiday data")

    tasks = task_repo.list_active()
    result = engine.occurrences_for_date(tasks, target_date)
    summary.carried = len(result.carried_occurrences)

    # Carried occurrences normally have a row already; one is created if the
    # job did not run on their appearance date.
    for live in result.new_occurrences + result.carried_occurrences:
        occurrence = live.occurrence
        status = engine.current_status(occurrence, completed=False)
        row, created = instance_repo.create_if_missing(
            occurrence,
            status,
            locked=status == TaskStatus.MISSED,
        )
        if created:
            summary.created += 1
            summary.created_ids.append(row.id)
        elif not live.is_carry:
            summary.existing += 1

    logger.info(
        f"Generated instances for {target_date.isoformat()}: created={summary.created} "
        f"existing={summary.existing} carried={summary.carried}"
    )
    return summary


def generate_range(
    db: Session,
    engine: RecurrenceEngine,
    end_date: date,
    lookback_days: int = 0,
) -> List[GenerationSummary]:
    """Run generation for each date in [end_date - lookback_days, end_date]."""
    start = end_date - timedelta(days=max(lookback_days, 0))
    summaries = []
    cur = start
    while cur <= end_date:
        summaries.append(generate_instances(db, engine, cur))
        cur += timedelta(days=1)
    return summaries

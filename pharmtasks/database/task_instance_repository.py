"""Repository for materialized task instances."""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pharmtasks.database.models import TaskInstanceDB, enum_to_value
from pharmtasks.models.occurrence import InstanceSnapshot, TaskOccurrence, TaskStatus

logger = logging.getLogger(__name__)


class TaskInstanceRepository:
    """Repository for TaskInstance database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, instance_id: str) -> Optional[TaskInstanceDB]:
        return self.db.query(TaskInstanceDB).filter(TaskInstanceDB.id == instance_id).first()

    def get_for_date(self, master_task_id: str, instance_date: date) -> Optional[TaskInstanceDB]:
        return (
            self.db.query(TaskInstanceDB)
            .filter(
                TaskInstanceDB.master_task_id == master_task_id,
                TaskInstanceDB.instance_date == instance_date,
            )
            .first()
        )

    def create_if_missing(
        self,
        occurrence: TaskOccurrence,
        status: TaskStatus,
        locked: bool = False,
    ) -> Tuple[TaskInstanceDB, bool]:
        """Insert the instance unless one exists for (task, appearance date).

        Returns (row, created).
        """
        existing = self.get_for_date(occurrence.task_id, occurrence.appearance_date)
        if existing is not None:
            return existing, False

        row = TaskInstanceDB.from_occurrence(occurrence, status, locked)
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Created instance {row.id} for {occurrence.key}")
            return row, True
        except IntegrityError:
            # Another generator won the race for this (task, date)
            self.db.rollback()
            existing = self.get_for_date(occurrence.task_id, occurrence.appearance_date)
            if existing is None:
                raise
            return existing, False
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create instance for {occurrence.key}: {type(e).__name__}: {str(e)}")
            raise

    def list_open(self) -> List[TaskInstanceDB]:
        """Instances whose status can still change (not done, not locked)."""
        return (
            self.db.query(TaskInstanceDB)
            .filter(
                TaskInstanceDB.status != TaskStatus.DONE.value,
                TaskInstanceDB.locked.is_(False),
            )
            .order_by(TaskInstanceDB.instance_date, TaskInstanceDB.id)
            .all()
        )

    def open_snapshots(self) -> List[InstanceSnapshot]:
        return [
            InstanceSnapshot(
                instance_id=row.id,
                occurrence=row.to_occurrence(),
                status=row.task_status,
                locked=bool(row.locked),
            )
            for row in self.list_open()
        ]

    def set_status(
        self,
        row: TaskInstanceDB,
        status: TaskStatus,
        *,
        locked: Optional[bool] = None,
        completed_at: Optional[datetime] = None,
        commit: bool = True,
    ) -> TaskInstanceDB:
        """Update status (and optionally lock / completion time) of one instance."""
        row.status = enum_to_value(status)
        if locked is not None:
            row.locked = locked
        row.completed_at = completed_at if status == TaskStatus.DONE else None
        row.updated_at = datetime.utcnow()
        if not commit:
            return row
        try:
            self.db.commit()
            self.db.refresh(row)
            return row
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update instance {row.id}: {type(e).__name__}: {str(e)}")
            raise

    def commit(self) -> None:
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to commit instance updates: {type(e).__name__}: {str(e)}")
            raise

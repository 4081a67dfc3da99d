"""Repository for master task definitions."""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from pharmtasks.database.models import MasterTaskDB
from pharmtasks.models.task import MasterTaskDefinition, PublishStatus

logger = logging.getLogger(__name__)


class MasterTaskRepository:
    """Repository for MasterTask database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, task: MasterTaskDefinition) -> MasterTaskDefinition:
        problems = task.validate_for_authoring()
        if problems:
            # Saved anyway: the engine skips the offending rules
            logger.warning(f"Master task {task.id} has configuration problems: {'; '.join(problems)}")
        try:
            row = MasterTaskDB.from_pydantic(task)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Created master task {task.id}: {task.title[:50]}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create master task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, task_id: str) -> Optional[MasterTaskDefinition]:
        row = self.db.query(MasterTaskDB).filter(MasterTaskDB.id == task_id).first()
        return row.to_pydantic() if row else None

    def list_active(self) -> List[MasterTaskDefinition]:
        """Active master tasks, oldest first.

        Stored statuses are matched case-insensitively, as in to_pydantic.
        Publish delay and validity windows are left to the engine, which
        evaluates them per date.
        """
        rows = (
            self.db.query(MasterTaskDB)
            .filter(func.lower(MasterTaskDB.publish_status) == PublishStatus.ACTIVE.value)
            .order_by(MasterTaskDB.created_at, MasterTaskDB.id)
            .all()
        )
        return [row.to_pydantic() for row in rows]

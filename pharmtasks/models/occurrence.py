"""Occurrence models produced by the recurrence engine."""

import datetime as dt
from datetime import date, datetime, time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from pharmtasks.models.frequency import FrequencyRule


class TaskStatus(str, Enum):
    """Display status of an occurrence."""
    NOT_DUE = "not_due"
    DUE_TODAY = "due_today"
    OVERDUE = "overdue"
    MISSED = "missed"  # Terminal: lock instant passed without completion
    DONE = "done"  # Terminal unless the caller undoes the completion


class TaskOccurrence(BaseModel):
    """One computed occurrence of a master task.

    Computed fresh on every query; the engine never stores these.
    """

    task_id: str = Field(..., description="Master task identifier")
    rule: FrequencyRule = Field(..., description="Rule that produced this occurrence")
    appearance_date: date = Field(..., description="Civil date the occurrence first appears")
    due_date: date = Field(..., description="Civil due date")
    due_time: time = Field(..., description="Civil due time")
    lock_instant: Optional[datetime] = Field(None, description="Aware instant after which it is missed")
    carry_until: Optional[date] = Field(
        None, description="Last civil date the occurrence stays live (None = until done)"
    )

    model_config = {"frozen": True}

    @property
    def key(self) -> str:
        """Stable identity: one occurrence per task, rule and appearance date."""
        return f"{self.task_id}:{self.rule.label()}:{self.appearance_date.isoformat()}"


class CarriedOccurrence(BaseModel):
    """An occurrence as seen on a particular day of the checklist."""

    occurrence: TaskOccurrence
    on_date: date
    is_carry: bool = Field(..., description="True when on_date is after the appearance date")


class GenerationResult(BaseModel):
    """Occurrences live on one date, split into new and carried ones."""

    date: dt.date
    new_occurrences: List[CarriedOccurrence] = Field(default_factory=list)
    carried_occurrences: List[CarriedOccurrence] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.new_occurrences) + len(self.carried_occurrences)


class InstanceSnapshot(BaseModel):
    """Persisted state of an occurrence, as held by the caller."""

    instance_id: str
    occurrence: TaskOccurrence
    status: TaskStatus = TaskStatus.NOT_DUE
    locked: bool = False


class StatusChange(BaseModel):
    """Result of refreshing one persisted instance."""

    instance_id: str
    old_status: TaskStatus
    new_status: TaskStatus
    locked: bool
    reason: str

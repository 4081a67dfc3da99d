"""FastAPI trigger surface for pharmtasks."""

import datetime as dt
import logging
from datetime import date, datetime, time
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from pharmtasks.config import GENERATION_LOOKBACK_DAYS
from pharmtasks.database.database import get_db
from pharmtasks.database.master_task_repository import MasterTaskRepository
from pharmtasks.database.models import TaskInstanceDB, from_utc_naive
from pharmtasks.database.task_instance_repository import TaskInstanceRepository
from pharmtasks.jobs import (
    GenerationSummary,
    InstanceLockedError,
    InstanceNotFoundError,
    build_recurrence_engine,
    complete_instance,
    generate_range,
    undo_instance,
    update_statuses,
)
from pharmtasks.models.occurrence import CarriedOccurrence, StatusChange, TaskStatus
from pharmtasks.recurrence.engine import RecurrenceEngine
from pharmtasks.recurrence.errors import ClockError
from pharmtasks.recurrence.time_source import TimeSource, default_time_source

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="pharmtasks API",
    description="Recurring task checklist and status engine for pharmacy portals",
    version="0.1.0"
)


def get_time_source() -> TimeSource:
    """Clock in the configured business timezone (dependency; overridden in tests)."""
    try:
        return default_time_source()
    except ClockError as e:
        raise HTTPException(status_code=500, detail=str(e))


def get_engine(
    db: Session = Depends(get_db),
    time_source: TimeSource = Depends(get_time_source),
) -> RecurrenceEngine:
    return build_recurrence_engine(db, time_source)


# Response models
class HolidayCheckResponse(BaseModel):
    """Response for a holiday lookup."""
    date: dt.date
    is_holiday: bool
    is_weekend: bool
    name: Optional[str] = None
    region: str
    degraded: bool = Field(False, description="True when holiday data could not be loaded")


class ChecklistItem(BaseModel):
    """One task on a day's checklist."""
    task_id: str
    title: str
    frequency: str
    appearance_date: date
    due_date: date
    due_time: time
    lock_at: Optional[datetime]
    carried: bool
    status: TaskStatus
    instance_id: Optional[str] = None


class ChecklistResponse(BaseModel):
    """Response for a day's checklist."""
    date: dt.date
    items: List[ChecklistItem]


class GenerateResponse(BaseModel):
    """Response for the generation job."""
    runs: List[GenerationSummary]
    created_count: int


class UpdateStatusesResponse(BaseModel):
    """Response for the status refresh job."""
    changed_count: int
    changes: List[StatusChange]


class InstanceResponse(BaseModel):
    """A persisted task instance."""
    id: str
    master_task_id: str
    instance_date: date
    frequency: str
    due_date: date
    due_time: time
    lock_at: Optional[datetime]
    status: TaskStatus
    locked: bool
    completed_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: TaskInstanceDB) -> "InstanceResponse":
        return cls(
            id=row.id,
            master_task_id=row.master_task_id,
            instance_date=row.instance_date,
            frequency=row.frequency,
            due_date=row.due_date,
            due_time=row.due_time,
            lock_at=from_utc_naive(row.lock_at),
            status=row.task_status,
            locked=bool(row.locked),
            completed_at=from_utc_naive(row.completed_at),
        )


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/holidays/check", response_model=HolidayCheckResponse)
def check_holiday(
    date: date = Query(..., description="Civil date to check (YYYY-MM-DD)"),
    engine: RecurrenceEngine = Depends(get_engine),
):
    """Is the date a public holiday (or weekend) for the configured region."""
    holidays = engine.holidays
    return HolidayCheckResponse(
        date=date,
        is_holiday=holidays.is_holiday(date),
        is_weekend=holidays.is_weekend(date),
        name=holidays.holiday_name(date),
        region=holidays.region,
        degraded=holidays.degraded,
    )


def _checklist_item(
    live: CarriedOccurrence,
    title: str,
    row: Optional[TaskInstanceDB],
    engine: RecurrenceEngine,
) -> ChecklistItem:
    occurrence = live.occurrence
    if row is not None and (row.locked or row.task_status == TaskStatus.DONE):
        status = row.task_status
    else:
        status = engine.current_status(occurrence, completed=False)
    return ChecklistItem(
        task_id=occurrence.task_id,
        title=title,
        frequency=occurrence.rule.label(),
        appearance_date=occurrence.appearance_date,
        due_date=occurrence.due_date,
        due_time=occurrence.due_time,
        lock_at=occurrence.lock_instant,
        carried=live.is_carry,
        status=status,
        instance_id=row.id if row else None,
    )


@app.get("/checklist", response_model=ChecklistResponse)
def checklist(
    date: Optional[date] = Query(None, description="Civil date (defaults to today)"),
    db: Session = Depends(get_db),
    engine: RecurrenceEngine = Depends(get_engine),
):
    """Tasks live on a date: those appearing that day and those carried in."""
    on_date = date or engine.time_source.today()
    tasks = MasterTaskRepository(db).list_active()
    titles = {task.id: task.title for task in tasks}
    instance_repo = TaskInstanceRepository(db)

    result = engine.occurrences_for_date(tasks, on_date)
    items = []
    for live in result.new_occurrences + result.carried_occurrences:
        occurrence = live.occurrence
        row = instance_repo.get_for_date(occurrence.task_id, occurrence.appearance_date)
        items.append(_checklist_item(live, titles[occurrence.task_id], row, engine))
    return ChecklistResponse(date=on_date, items=items)


@app.post("/jobs/generate-instances", response_model=GenerateResponse)
def run_generate_instances(
    date: Optional[date] = Query(None, description="Target date (defaults to today, with lookback)"),
    db: Session = Depends(get_db),
    engine: RecurrenceEngine = Depends(get_engine),
):
    """Materialize task instances for a date."""
    if date is None:
        end_date, lookback = engine.time_source.today(), GENERATION_LOOKBACK_DAYS
    else:
        end_date, lookback = date, 0
    try:
        runs = generate_range(db, engine, end_date, lookback)
    except ClockError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Instance generation failed: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to generate instances: {str(e)}")
    return GenerateResponse(runs=runs, created_count=sum(run.created for run in runs))


@app.post("/jobs/update-statuses", response_model=UpdateStatusesResponse)
def run_update_statuses(
    db: Session = Depends(get_db),
    engine: RecurrenceEngine = Depends(get_engine),
):
    """Recompute statuses of open instances; missed ones are locked."""
    try:
        changes = update_statuses(db, engine)
    except ClockError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Status refresh failed: {type(e).__name__}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to update statuses: {str(e)}")
    return UpdateStatusesResponse(changed_count=len(changes), changes=changes)


@app.post("/instances/{instance_id}/complete", response_model=InstanceResponse)
def complete(
    instance_id: str,
    db: Session = Depends(get_db),
    engine: RecurrenceEngine = Depends(get_engine),
):
    """Mark an instance done."""
    try:
        row = complete_instance(db, engine, instance_id)
    except InstanceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InstanceLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return InstanceResponse.from_row(row)


@app.post("/instances/{instance_id}/undo", response_model=InstanceResponse)
def undo(
    instance_id: str,
    db: Session = Depends(get_db),
    engine: RecurrenceEngine = Depends(get_engine),
):
    """Revert a completion."""
    try:
        row = undo_instance(db, engine, instance_id)
    except InstanceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return InstanceResponse.from_row(row)

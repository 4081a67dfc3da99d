"""Wiring for the scheduled jobs: holidays from the database, clock from config."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from pharmtasks.config import HOLIDAY_REGION
from pharmtasks.database.holiday_repository import HolidayRepository
from pharmtasks.recurrence.engine import RecurrenceEngine
from pharmtasks.recurrence.holidays import HolidayCalendar
from pharmtasks.recurrence.time_source import TimeSource, default_time_source

logger = logging.getLogger(__name__)


def load_holiday_calendar(db: Session, region: Optional[str] = None) -> HolidayCalendar:
    """Resolve the holiday set once per job run (fails open)."""
    region = region or HOLIDAY_REGION
    calendar = HolidayCalendar.load(HolidayRepository(db).list_entries, region=region)
    logger.debug(f"Loaded {calendar!r}")
    return calendar


def build_recurrence_engine(
    db: Session,
    time_source: Optional[TimeSource] = None,
    region: Optional[str] = None,
) -> RecurrenceEngine:
    return RecurrenceEngine(
        holidays=load_holiday_calendar(db, region),
        time_source=time_source or default_time_source(),
    )

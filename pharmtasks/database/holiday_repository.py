"""Repository for public holiday reference data."""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from pharmtasks.database.models import PublicHolidayDB
from pharmtasks.models.holiday import HolidayEntry

logger = logging.getLogger(__name__)


class HolidayRepository:
    """Repository for PublicHoliday database operations."""

    def __init__(self, db: Session):
        self.db = db

    def add(self, entry: HolidayEntry) -> HolidayEntry:
        try:
            row = PublicHolidayDB.from_pydantic(entry)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Added holiday {entry.date.isoformat()} ({entry.region}): {entry.name}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to add holiday {entry.date.isoformat()}: {type(e).__name__}: {str(e)}")
            raise

    def list_entries(self, start: Optional[date] = None, end: Optional[date] = None) -> List[HolidayEntry]:
        """All holiday entries (any region), optionally within [start, end]."""
        query = self.db.query(PublicHolidayDB)
        if start is not None:
            query = query.filter(PublicHolidayDB.holiday_date >= start)
        if end is not None:
            query = query.filter(PublicHolidayDB.holiday_date <= end)
        rows = query.order_by(PublicHolidayDB.holiday_date).all()
        return [row.to_pydantic() for row in rows]

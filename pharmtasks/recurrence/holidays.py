"""Holiday calendar for the recurrence engine.

The engine only needs "is this civil date a non-working day" and "is it a
weekend". Callers resolve the holiday set once (from the database, a file, a
cache) and hand the engine an immutable HolidayCalendar.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, Optional, Protocol, runtime_checkable

from pharmtasks.models.holiday import DEFAULT_REGION, HolidayEntry

logger = logging.getLogger(__name__)

# Saturday=5, Sunday=6
WEEKEND_DAYS = frozenset({5, 6})


@runtime_checkable
class HolidayChecker(Protocol):
    """Capability the engine needs from a holiday source."""

    def is_holiday(self, d: date) -> bool:
        ...

    def is_weekend(self, d: date) -> bool:
        ...


class HolidayCalendar:
    """Immutable set of holiday dates for one region.

    Entries for the calendar's region apply, as do national entries (a region
    of "National" or empty). `degraded` is True when the holiday source failed
    and the calendar fell back to "no holidays".
    """

    def __init__(
        self,
        entries: Iterable[HolidayEntry] = (),
        *,
        region: str = DEFAULT_REGION,
        degraded: bool = False,
    ):
        self.region = region
        self.degraded = degraded
        names: dict[date, str] = {}
        for entry in entries:
            if not _applies(entry.region, region):
                continue
            names.setdefault(entry.date, entry.name)
        self._names = names
        self._dates = frozenset(names)

    @classmethod
    def from_dates(cls, dates: Iterable[date], *, region: str = DEFAULT_REGION) -> "HolidayCalendar":
        return cls((HolidayEntry(date=d, region=region) for d in dates), region=region)

    @classmethod
    def empty(cls, *, region: str = DEFAULT_REGION, degraded: bool = False) -> "HolidayCalendar":
        return cls((), region=region, degraded=degraded)

    @classmethod
    def load(
        cls,
        loader: Callable[[], Iterable[HolidayEntry]],
        *,
        region: str = DEFAULT_REGION,
    ) -> "HolidayCalendar":
        """Build a calendar from a loader, failing open.

        If the loader raises, generation proceeds as if there were no holidays;
        the returned calendar is flagged `degraded` so callers can surface it.
        """
        try:
            entries = list(loader())
        except Exception as e:
            logger.warning(
                f"Holiday calendar unavailable for region {region}; "
                f"continuing without holidays: {type(e).__name__}: {str(e)}"
            )
            return cls.empty(region=region, degraded=True)
        return cls(entries, region=region)

    def is_holiday(self, d: date) -> bool:
        return d in self._dates

    def is_weekend(self, d: date) -> bool:
        return d.weekday() in WEEKEND_DAYS

    def holiday_name(self, d: date) -> Optional[str]:
        return self._names.get(d)

    def holidays_between(self, start: date, end: date) -> list[date]:
        """Holiday dates within [start, end], sorted."""
        return sorted(d for d in self._dates if start <= d <= end)

    def __len__(self) -> int:
        return len(self._dates)

    def __repr__(self) -> str:
        flag = ", degraded" if self.degraded else ""
        return f"HolidayCalendar(region={self.region!r}, holidays={len(self)}{flag})"


def _applies(entry_region: Optional[str], region: str) -> bool:
    if not entry_region:
        return True
    entry_region = entry_region.strip().lower()
    return entry_region in (DEFAULT_REGION.lower(), region.strip().lower())

"""Time source abstraction for the recurrence engine.

All engine decisions are made on civil dates in the business timezone. This
module is the one place where absolute instants and civil wall-clock values are
converted into each other.

    source = TimeSource("Australia/Sydney")
    today = source.today()

    # Testing: freeze "now"
    source = FrozenTimeSource(datetime(2024, 6, 3, 9, 0), "Australia/Sydney")
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pharmtasks.recurrence.errors import ClockError


def load_zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone name, raising ClockError if it is unknown."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ClockError(f"Unknown business timezone '{name}': {e}") from e


class TimeSource:
    """Supplies "now" in the business timezone."""

    def __init__(self, zone_name: str):
        self.zone_name = zone_name
        self.zone = load_zone(zone_name)

    def _utc_now(self) -> datetime:
        return datetime.now(timezone.utc)

    def now(self) -> datetime:
        """Current instant, expressed in the business timezone."""
        return self.localize(self._utc_now())

    def civil_now(self) -> Tuple[date, time]:
        current = self.now()
        return current.date(), current.time().replace(tzinfo=None)

    def today(self) -> date:
        return self.now().date()

    def localize(self, instant: datetime) -> datetime:
        """Convert an aware instant to the business timezone.

        Naive datetimes are rejected: guessing UTC (or local) would make every
        due/lock comparison meaningless.
        """
        if instant.tzinfo is None or instant.utcoffset() is None:
            raise ClockError(f"Naive datetime {instant.isoformat()} has no timezone")
        return instant.astimezone(self.zone)

    def to_instant(self, civil_date: date, civil_time: time) -> datetime:
        """Civil date + wall-clock time -> aware instant (DST-correct)."""
        return datetime.combine(civil_date, civil_time, tzinfo=self.zone)

    def civil_date_of(self, instant: datetime) -> date:
        return self.localize(instant).date()


class FrozenTimeSource(TimeSource):
    """TimeSource pinned to a fixed instant (for tests and replays).

    A naive `frozen` value is read as civil time in the business timezone.
    """

    def __init__(self, frozen: datetime, zone_name: str):
        super().__init__(zone_name)
        if frozen.tzinfo is None:
            frozen = frozen.replace(tzinfo=self.zone)
        self._frozen = frozen

    def _utc_now(self) -> datetime:
        return self._frozen.astimezone(timezone.utc)

    def set(self, frozen: datetime) -> None:
        if frozen.tzinfo is None:
            frozen = frozen.replace(tzinfo=self.zone)
        self._frozen = frozen


def default_time_source(zone_name: Optional[str] = None) -> TimeSource:
    """TimeSource for the configured business timezone."""
    if zone_name is None:
        from pharmtasks.config import BUSINESS_TIMEZONE
        zone_name = BUSINESS_TIMEZONE
    return TimeSource(zone_name)

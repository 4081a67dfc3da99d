"""Frequency rule models for pharmtasks.

A master task carries one or more FrequencyRule values. The portal database
stores frequencies as flat strings (e.g. "every_mon", "start_of_month_jan"), so
this module also owns the mapping from those strings to structured rules.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class FrequencyKind(str, Enum):
    ONCE_OFF = "once_off"
    EVERY_DAY = "every_day"
    ONCE_WEEKLY = "once_weekly"
    WEEKDAY = "weekday"
    ONCE_MONTHLY = "once_monthly"
    START_OF_MONTH = "start_of_month"
    END_OF_MONTH = "end_of_month"


class Weekday(str, Enum):
    """Days a Weekday rule may target (Sunday is never a target)."""

    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"
    FRI = "fri"
    SAT = "sat"

    @property
    def offset(self) -> int:
        # Python weekday: Monday=0 ... Saturday=5
        return _WEEKDAY_INDEX[self]


_WEEKDAY_INDEX: dict[Weekday, int] = {
    Weekday.MON: 0,
    Weekday.TUE: 1,
    Weekday.WED: 2,
    Weekday.THU: 3,
    Weekday.FRI: 4,
    Weekday.SAT: 5,
}

_MONTH_ABBR = ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]


class FrequencyRule(BaseModel):
    """One recurrence rule.

    `kind` is None for a rule that could not be understood (unknown legacy
    string); `raw` keeps the original text so it can be logged.
    """

    kind: Optional[FrequencyKind] = None
    day: Optional[Weekday] = Field(None, description="Target day for weekday rules")
    month: Optional[int] = Field(None, description="Month filter (1-12) for start/end of month rules")
    raw: Optional[str] = Field(None, description="Source string this rule was parsed from")

    model_config = {"frozen": True}

    @field_validator("day", mode="before")
    @classmethod
    def _coerce_day(cls, v):
        if isinstance(v, str):
            key = v.strip().lower()[:3]
            try:
                return Weekday(key)
            except ValueError:
                # Left for the evaluator to reject (e.g. "sun")
                return None
        return v

    @property
    def supported(self) -> bool:
        return self.kind is not None

    def label(self) -> str:
        """Stable text form, used in instance keys and log lines."""
        if self.kind is None:
            return f"unsupported:{self.raw}"
        if self.kind == FrequencyKind.WEEKDAY:
            return f"every_{self.day.value}" if self.day else "weekday:?"
        if self.kind in (FrequencyKind.START_OF_MONTH, FrequencyKind.END_OF_MONTH):
            if self.month is None:
                return f"{self.kind.value.replace('_month', '_every_month')}"
            if 1 <= self.month <= 12:
                return f"{self.kind.value}_{_MONTH_ABBR[self.month - 1]}"
            return f"{self.kind.value}_{self.month}"
        return self.kind.value

    # Constructors ---------------------------------------------------------

    @classmethod
    def once_off(cls) -> "FrequencyRule":
        return cls(kind=FrequencyKind.ONCE_OFF)

    @classmethod
    def every_day(cls) -> "FrequencyRule":
        return cls(kind=FrequencyKind.EVERY_DAY)

    @classmethod
    def once_weekly(cls) -> "FrequencyRule":
        return cls(kind=FrequencyKind.ONCE_WEEKLY)

    @classmethod
    def weekday(cls, day: Weekday) -> "FrequencyRule":
        return cls(kind=FrequencyKind.WEEKDAY, day=day)

    @classmethod
    def once_monthly(cls) -> "FrequencyRule":
        return cls(kind=FrequencyKind.ONCE_MONTHLY)

    @classmethod
    def start_of_month(cls, month: Optional[int] = None) -> "FrequencyRule":
        return cls(kind=FrequencyKind.START_OF_MONTH, month=month)

    @classmethod
    def end_of_month(cls, month: Optional[int] = None) -> "FrequencyRule":
        return cls(kind=FrequencyKind.END_OF_MONTH, month=month)


_SIMPLE_ALIASES: dict[str, FrequencyRule] = {
    "once_off": FrequencyRule.once_off(),
    "every_day": FrequencyRule.every_day(),
    "once_weekly": FrequencyRule.once_weekly(),
    "once_monthly": FrequencyRule.once_monthly(),
    "start_of_month": FrequencyRule.start_of_month(),
    "start_of_every_month": FrequencyRule.start_of_month(),
    "end_of_month": FrequencyRule.end_of_month(),
    "end_of_every_month": FrequencyRule.end_of_month(),
}

_WEEKDAY_RE = re.compile(r"^(?:every_)?(mon|tue|wed|thu|fri|sat)(?:day|sday|nesday|rsday|urday)?$")
_MONTHLY_RE = re.compile(r"^(start|end)_of_month_([a-z]{3})$")
_CAMEL_RE = re.compile(r"(?<=[a-z])(?=[A-Z])")


def _normalize(value: str) -> str:
    """'EveryMon' -> 'every_mon', ' Start-Of-Month ' -> 'start_of_month'."""
    text = _CAMEL_RE.sub("_", value.strip())
    return text.replace("-", "_").replace(" ", "_").lower()


def parse_frequency(value: str) -> FrequencyRule:
    """Parse a stored frequency string into a rule.

    Never raises: unknown strings yield an unsupported rule (kind=None) which
    the engine treats as "never appears".
    """
    key = _normalize(value or "")
    if key in _SIMPLE_ALIASES:
        return _SIMPLE_ALIASES[key].model_copy(update={"raw": value})

    m = _WEEKDAY_RE.match(key)
    if m:
        return FrequencyRule(kind=FrequencyKind.WEEKDAY, day=Weekday(m.group(1)), raw=value)

    m = _MONTHLY_RE.match(key)
    if m and m.group(2) in _MONTH_ABBR:
        kind = FrequencyKind.START_OF_MONTH if m.group(1) == "start" else FrequencyKind.END_OF_MONTH
        return FrequencyRule(kind=kind, month=_MONTH_ABBR.index(m.group(2)) + 1, raw=value)

    logger.warning(f"Unrecognised frequency '{value}'; it will never produce an occurrence")
    return FrequencyRule(kind=None, raw=value)

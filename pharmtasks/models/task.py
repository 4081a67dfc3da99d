"""Master task definition model for pharmtasks."""

from datetime import date, time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from pharmtasks.models.frequency import FrequencyKind, FrequencyRule, parse_frequency


class TimingCategory(str, Enum):
    """When in the trading day a task is expected to be done."""
    OPENING = "opening"
    ANYTIME = "anytime"
    BEFORE_CUTOFF = "before_cutoff"
    CLOSING = "closing"


class PublishStatus(str, Enum):
    """Publication state of a master task."""
    ACTIVE = "active"
    DRAFT = "draft"
    INACTIVE = "inactive"


_TIMING_ALIASES = {
    "anytime_during_day": TimingCategory.ANYTIME,
    "before_order_cut_off": TimingCategory.BEFORE_CUTOFF,
    "before_cut_off": TimingCategory.BEFORE_CUTOFF,
}


class MasterTaskDefinition(BaseModel):
    """Canonical master task, as handed to the recurrence engine."""

    id: str = Field(..., description="Master task identifier")
    title: str = Field(..., description="Task title")
    frequencies: List[FrequencyRule] = Field(default_factory=list, description="Recurrence rules (any match)")
    timing: TimingCategory = Field(TimingCategory.ANYTIME, description="Timing category")
    due_time: Optional[time] = Field(None, description="Due time override (civil time)")
    due_date: Optional[date] = Field(None, description="Admin-set due date (once-off tasks only)")
    publish_status: PublishStatus = Field(PublishStatus.ACTIVE, description="Publication state")
    publish_delay: Optional[date] = Field(None, description="No occurrences before this date")
    start_date: Optional[date] = Field(None, description="Start of validity window (inclusive)")
    end_date: Optional[date] = Field(None, description="End of validity window (inclusive)")

    model_config = {"frozen": True}

    @field_validator("frequencies", mode="before")
    @classmethod
    def _parse_frequencies(cls, v):
        if v is None:
            return []
        if isinstance(v, (str, dict, FrequencyRule)):
            v = [v]
        out = []
        seen = set()
        for item in v:
            rule = parse_frequency(item) if isinstance(item, str) else FrequencyRule.model_validate(item)
            key = (rule.kind, rule.day, rule.month, None if rule.kind else rule.raw)
            # Deduplicate but preserve order
            if key in seen:
                continue
            seen.add(key)
            out.append(rule)
        return out

    @field_validator("timing", mode="before")
    @classmethod
    def _coerce_timing(cls, v):
        if isinstance(v, str):
            return _TIMING_ALIASES.get(v.strip().lower(), v.strip().lower())
        return v

    @model_validator(mode="after")
    def _validate_window(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self

    def has_kind(self, kind: FrequencyKind) -> bool:
        return any(rule.kind == kind for rule in self.frequencies)

    def validate_for_authoring(self) -> List[str]:
        """Return configuration problems an editor should fix before saving.

        The engine tolerates all of these at evaluation time (the affected rule
        simply never appears), so this is meant for the task-authoring surface.
        """
        problems: List[str] = []
        if not self.frequencies:
            problems.append("at least one frequency is required")
        if self.has_kind(FrequencyKind.ONCE_OFF) and self.due_date is None:
            problems.append("once-off tasks require a due date")
        for rule in self.frequencies:
            if not rule.supported:
                problems.append(f"unsupported frequency '{rule.raw}'")
            elif rule.kind == FrequencyKind.WEEKDAY and rule.day is None:
                problems.append("weekday frequency requires a day between Monday and Saturday")
            elif rule.month is not None and not 1 <= rule.month <= 12:
                problems.append(f"month filter {rule.month} is out of range")
        return problems

"""Data models for pharmtasks."""

from pharmtasks.models.frequency import FrequencyKind, FrequencyRule, Weekday, parse_frequency
from pharmtasks.models.task import MasterTaskDefinition, PublishStatus, TimingCategory
from pharmtasks.models.holiday import HolidayEntry
from pharmtasks.models.occurrence import (
    CarriedOccurrence,
    GenerationResult,
    InstanceSnapshot,
    StatusChange,
    TaskOccurrence,
    TaskStatus,
)

__all__ = [
    "FrequencyKind",
    "FrequencyRule",
    "Weekday",
    "parse_frequency",
    "MasterTaskDefinition",
    "PublishStatus",
    "TimingCategory",
    "HolidayEntry",
    "CarriedOccurrence",
    "GenerationResult",
    "InstanceSnapshot",
    "StatusChange",
    "TaskOccurrence",
    "TaskStatus",
]

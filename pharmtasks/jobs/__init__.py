"""Scheduled jobs that materialize and maintain task instances."""

from pharmtasks.jobs.generation import GenerationSummary, generate_instances, generate_range
from pharmtasks.jobs.runtime import build_recurrence_engine, load_holiday_calendar
from pharmtasks.jobs.statuses import (
    InstanceLockedError,
    InstanceNotFoundError,
    complete_instance,
    undo_instance,
    update_statuses,
)

__all__ = [
    "GenerationSummary",
    "generate_instances",
    "generate_range",
    "build_recurrence_engine",
    "load_holiday_calendar",
    "InstanceLockedError",
    "InstanceNotFoundError",
    "complete_instance",
    "undo_instance",
    "update_statuses",
]

"""SQLAlchemy database models for pharmtasks."""

from datetime import datetime, timezone
from typing import Optional, Type, TypeVar, Union
import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, JSON, String, Time, UniqueConstraint

from pharmtasks.database.database import Base
from pharmtasks.models.frequency import FrequencyRule, parse_frequency
from pharmtasks.models.holiday import DEFAULT_REGION, HolidayEntry
from pharmtasks.models.occurrence import TaskOccurrence, TaskStatus
from pharmtasks.models.task import MasterTaskDefinition, PublishStatus, TimingCategory

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string)."""
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default."""
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


def to_utc_naive(instant: Optional[datetime]) -> Optional[datetime]:
    """Aware instant -> naive UTC for storage (SQLite drops tzinfo)."""
    if instant is None:
        return None
    return instant.astimezone(timezone.utc).replace(tzinfo=None)


def from_utc_naive(stored: Optional[datetime]) -> Optional[datetime]:
    if stored is None:
        return None
    if stored.tzinfo is None:
        return stored.replace(tzinfo=timezone.utc)
    return stored


def frequency_to_text(rule: FrequencyRule) -> str:
    """Stored form of a rule; unsupported rules keep their source text."""
    if not rule.supported:
        return rule.raw or ""
    return rule.label()


class PublicHolidayDB(Base):
    """Database model for a public holiday."""

    __tablename__ = "public_holidays"
    __table_args__ = (
        UniqueConstraint("holiday_date", "region", name="uq_public_holiday_date_region"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    holiday_date = Column(Date, nullable=False, index=True)
    region = Column(String, nullable=False, default=DEFAULT_REGION)
    name = Column(String, nullable=False, default="")

    def to_pydantic(self) -> HolidayEntry:
        return HolidayEntry(date=self.holiday_date, region=self.region or DEFAULT_REGION, name=self.name or "")

    @classmethod
    def from_pydantic(cls, entry: HolidayEntry):
        return cls(holiday_date=entry.date, region=entry.region, name=entry.name)


class MasterTaskDB(Base):
    """Database model for a master task definition."""

    __tablename__ = "master_tasks"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)

    # Frequency strings, e.g. ["every_mon", "end_of_month_jun"]
    frequencies = Column(JSON, nullable=False, default=list)
    timing = Column(String, nullable=False, default=TimingCategory.ANYTIME.value)
    due_time = Column(Time, nullable=True)
    due_date = Column(Date, nullable=True)

    publish_status = Column(String, nullable=False, default=PublishStatus.ACTIVE.value, index=True)
    publish_delay = Column(Date, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self) -> MasterTaskDefinition:
        """Convert database model to Pydantic model."""
        return MasterTaskDefinition(
            id=self.id,
            title=self.title,
            frequencies=list(self.frequencies or []),
            timing=value_to_enum(self.timing, TimingCategory, TimingCategory.ANYTIME),
            due_time=self.due_time,
            due_date=self.due_date,
            # Unknown publish states never publish
            publish_status=value_to_enum(self.publish_status, PublishStatus, PublishStatus.INACTIVE),
            publish_delay=self.publish_delay,
            start_date=self.start_date,
            end_date=self.end_date,
        )

    @classmethod
    def from_pydantic(cls, task: MasterTaskDefinition):
        """Create database model from Pydantic model."""
        return cls(
            id=task.id,
            title=task.title,
            frequencies=[frequency_to_text(rule) for rule in task.frequencies],
            timing=enum_to_value(task.timing),
            due_time=task.due_time,
            due_date=task.due_date,
            publish_status=enum_to_value(task.publish_status),
            publish_delay=task.publish_delay,
            start_date=task.start_date,
            end_date=task.end_date,
        )


class TaskInstanceDB(Base):
    """Database model for one materialized occurrence of a master task."""

    __tablename__ = "task_instances"
    __table_args__ = (
        # Generation is idempotent: one instance per task per appearance date.
        UniqueConstraint("master_task_id", "instance_date", name="uq_task_instance_date"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    master_task_id = Column(String, ForeignKey("master_tasks.id", ondelete="CASCADE"), nullable=False, index=True)

    # Appearance date of the occurrence
    instance_date = Column(Date, nullable=False, index=True)
    frequency = Column(String, nullable=False)
    due_date = Column(Date, nullable=False)
    due_time = Column(Time, nullable=False)
    lock_at = Column(DateTime, nullable=True)  # UTC, naive
    carry_until = Column(Date, nullable=True)

    status = Column(String, nullable=False, default=TaskStatus.NOT_DUE.value, index=True)
    locked = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def task_status(self) -> TaskStatus:
        return value_to_enum(self.status, TaskStatus, TaskStatus.NOT_DUE)

    def to_occurrence(self) -> TaskOccurrence:
        """Rebuild the occurrence this row was generated from."""
        return TaskOccurrence(
            task_id=self.master_task_id,
            rule=parse_frequency(self.frequency),
            appearance_date=self.instance_date,
            due_date=self.due_date,
            due_time=self.due_time,
            lock_instant=from_utc_naive(self.lock_at),
            carry_until=self.carry_until,
        )

    @classmethod
    def from_occurrence(cls, occurrence: TaskOccurrence, status: TaskStatus, locked: bool = False):
        return cls(
            master_task_id=occurrence.task_id,
            instance_date=occurrence.appearance_date,
            frequency=frequency_to_text(occurrence.rule),
            due_date=occurrence.due_date,
            due_time=occurrence.due_time,
            lock_at=to_utc_naive(occurrence.lock_instant),
            carry_until=occurrence.carry_until,
            status=enum_to_value(status),
            locked=locked,
        )

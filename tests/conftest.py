"""Pytest fixtures and configuration for pharmtasks tests."""

import pytest
from datetime import date, datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from pharmtasks.database.database import Base
from pharmtasks.database.holiday_repository import HolidayRepository
from pharmtasks.database.master_task_repository import MasterTaskRepository
from pharmtasks.database.task_instance_repository import TaskInstanceRepository
from pharmtasks.models.frequency import FrequencyRule, Weekday
from pharmtasks.models.task import MasterTaskDefinition
from pharmtasks.recurrence.engine import RecurrenceEngine
from pharmtasks.recurrence.holidays import HolidayCalendar
from pharmtasks.recurrence.time_source import FrozenTimeSource


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

ZONE = "Australia/Sydney"


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    # Registers the ORM tables on Base.metadata
    from pharmtasks.database import models  # noqa: F401

    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def holiday_repository(db_session: Session):
    return HolidayRepository(db_session)


@pytest.fixture
def master_task_repository(db_session: Session):
    return MasterTaskRepository(db_session)


@pytest.fixture
def instance_repository(db_session: Session):
    return TaskInstanceRepository(db_session)


@pytest.fixture
def no_holidays():
    """Calendar with no holidays."""
    return HolidayCalendar.empty()


@pytest.fixture
def time_source():
    """Clock frozen at Monday 2 June 2025, 08:00 Sydney time."""
    return FrozenTimeSource(datetime(2025, 6, 2, 8, 0), ZONE)


@pytest.fixture
def engine(no_holidays, time_source):
    """Recurrence engine with no holidays and a frozen clock."""
    return RecurrenceEngine(no_holidays, time_source)


def make_engine(holiday_dates=(), now=datetime(2025, 6, 2, 8, 0)):
    """Engine over the given holiday dates with a clock frozen at `now`."""
    return RecurrenceEngine(HolidayCalendar.from_dates(holiday_dates), FrozenTimeSource(now, ZONE))


def make_task(*frequencies, **overrides) -> MasterTaskDefinition:
    """Master task with sensible defaults; frequencies may be rules or strings."""
    data = {
        "id": "task-1",
        "title": "Test Task",
        "frequencies": list(frequencies) or [FrequencyRule.every_day()],
    }
    data.update(overrides)
    return MasterTaskDefinition(**data)


@pytest.fixture
def weekly_task():
    """Task due once a week."""
    return make_task(FrequencyRule.once_weekly(), id="weekly-1", title="Check fridge temperatures log")


@pytest.fixture
def wednesday_task():
    """Task due every Wednesday."""
    return make_task(FrequencyRule.weekday(Weekday.WED), id="wed-1", title="Restock dispensary shelves")


@pytest.fixture
def sample_dates():
    """A few reference dates used across tests (all 2025)."""
    return {
        "monday": date(2025, 6, 2),
        "wednesday": date(2025, 6, 4),
        "saturday": date(2025, 6, 7),
        "sunday": date(2025, 6, 8),
    }


@pytest.fixture
def test_client(db_session: Session, time_source):
    """Create a FastAPI test client with overridden database and clock dependencies."""
    from pharmtasks.api.app import app, get_time_source
    from pharmtasks.database.database import get_db

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_time_source] = lambda: time_source

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()

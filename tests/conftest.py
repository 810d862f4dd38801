"""Pytest configuration and shared fixtures."""

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from worklist.config import ManagerSettings
from worklist.domain.entities import (
    AvailabilityWindow,
    DaySchedule,
    Member,
    ScheduleShift,
    Task,
)
from worklist.domain.models import Base


MONDAY = date(2025, 11, 24)  # ISO week 2025-W48


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (deselect with '-m \"not integration\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def db_session():
    """Create in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def monday():
    return MONDAY


@pytest.fixture
def settings():
    return ManagerSettings(over_capacity_threshold=0)


@pytest.fixture
def members():
    weekdays = ("Mon", "Tue", "Wed", "Thu", "Fri")
    return [
        Member(
            id="m-ana",
            name="Ana",
            role_tags=("lead",),
            skill_ids=("sk-forklift", "receiving"),
            availability=tuple(AvailabilityWindow(day, "07:00", "17:00") for day in weekdays),
        ),
        Member(
            id="m-ben",
            name="Ben",
            role_tags=("clerk",),
            skill_ids=("sk-register",),
            availability=tuple(AvailabilityWindow(day, "07:00", "17:00") for day in weekdays),
        ),
    ]


@pytest.fixture
def schedule(monday):
    return [
        DaySchedule(
            id="day-1",
            date=monday,
            shifts=(
                ScheduleShift(id="s-ana", member_id="m-ana", start="07:00", end="15:00"),
                ScheduleShift(id="s-ben", member_id="m-ben", start="07:00", end="15:00"),
            ),
        )
    ]


def make_task(task_id, duration=60, **kwargs):
    """Task with sensible defaults for tests."""
    kwargs.setdefault("code", task_id.upper())
    kwargs.setdefault("name", f"Task {task_id}")
    return Task(id=task_id, estimated_duration=duration, **kwargs)


@pytest.fixture
def task_factory():
    return make_task

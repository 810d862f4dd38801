"""Domain entities and data access layer."""

from .entities import (
    Area,
    Assignment,
    Availability,
    DaySchedule,
    ExplicitRule,
    Member,
    MemberSelector,
    PlannedShift,
    PlannerConflict,
    RoleTagSelector,
    ScheduleShift,
    SkillSelector,
    StaffingTarget,
    Task,
)
from .models import Base, StoredRecord
from .repositories import InMemoryRepository, Repository, SqlAlchemyRepository

__all__ = [
    "Area",
    "Assignment",
    "Availability",
    "DaySchedule",
    "ExplicitRule",
    "Member",
    "MemberSelector",
    "PlannedShift",
    "PlannerConflict",
    "RoleTagSelector",
    "ScheduleShift",
    "SkillSelector",
    "StaffingTarget",
    "Task",
    "Base",
    "StoredRecord",
    "InMemoryRepository",
    "Repository",
    "SqlAlchemyRepository",
]

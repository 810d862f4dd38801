"""Value records exchanged with the assignment and planning engines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Tuple


TASK_TYPES = ("standard", "upkeep", "project")
RECURRENCE_TYPES = ("daily", "weekly", "monthly", "one-time")
ASSIGNMENT_STATUSES = ("assigned", "unassigned", "over-capacity", "conflict")
SHIFT_CLASSES = ("Opening", "Mid-Shift", "Closing", "Overnight", "Weekend", "General")
PLANNED_SHIFT_SOURCES = ("planner", "template", "manual", "autofill")
PLANNED_SHIFT_STATUSES = ("draft", "published", "conflict")
CONFLICT_TYPES = (
    "under-coverage",
    "over-coverage",
    "availability-violation",
    "overtime-risk",
    "break-violation",
)
SEVERITIES = ("low", "medium", "high")

# Reason codes surfaced for tasks that could not be assigned
NO_STAFF_TODAY = "no_staff_today"
NO_SKILL = "no_skill"
CAPACITY_FULL = "capacity_full"
NO_SKILL_OR_CAPACITY = "no_skill_or_capacity"
REASON_CODES = (NO_STAFF_TODAY, NO_SKILL, CAPACITY_FULL, NO_SKILL_OR_CAPACITY)


@dataclass(frozen=True)
class AvailabilityWindow:
    """A weekday window a member can be scheduled in."""

    day: str
    start: str
    end: str


@dataclass(frozen=True)
class Member:
    """Staff member with skills, tags and working limits."""

    id: str
    name: str
    title: str = ""
    role_tags: Tuple[str, ...] = ()
    skill_ids: Tuple[str, ...] = ()
    fixed_commitments_minutes: int = 0
    max_daily_minutes: Optional[int] = None
    max_weekly_minutes: Optional[int] = None
    shift_class_preference: Tuple[str, ...] = ()
    availability: Tuple[AvailabilityWindow, ...] = ()

    def __repr__(self) -> str:
        return f"<Member(id={self.id!r}, name={self.name!r}, tags={list(self.role_tags)})>"


@dataclass(frozen=True)
class Task:
    """A unit of operational work with timing and staffing requirements."""

    id: str
    code: str
    name: str
    estimated_duration: int
    description: str = ""
    area_id: Optional[str] = None
    skill_ids: Tuple[str, ...] = ()
    task_type: str = "standard"
    priority_weight: int = 50
    allow_multi_assign: bool = True
    earliest_start: Optional[str] = None
    due_by: str = "17:00"
    recurrence_type: str = "daily"
    recurrence_detail: Optional[str] = None
    is_must_run: bool = False
    min_coverage: int = 0

    @property
    def is_upkeep(self) -> bool:
        return self.task_type == "upkeep"

    @property
    def display_name(self) -> str:
        if self.code:
            return f"{self.code}: {self.name}"
        return self.name

    def __repr__(self) -> str:
        return f"<Task(id={self.id!r}, code={self.code!r}, type={self.task_type!r})>"


class Selector(ABC):
    """Rule-level reference to the members a task may go to."""

    kind: str = ""

    @property
    @abstractmethod
    def value(self) -> str:
        """The member id, skill id or role tag this selector names."""

    @abstractmethod
    def resolve_candidates(self, members: Iterable[Member]) -> Set[str]:
        """Return the ids of the members this selector designates."""

    def describe(self) -> str:
        return f"{self.kind}:{self.value}"


@dataclass(frozen=True)
class MemberSelector(Selector):
    member_id: str
    kind = "member"

    @property
    def value(self) -> str:
        return self.member_id

    def resolve_candidates(self, members: Iterable[Member]) -> Set[str]:
        return {m.id for m in members if m.id == self.member_id}


@dataclass(frozen=True)
class SkillSelector(Selector):
    skill_id: str
    kind = "skill"

    @property
    def value(self) -> str:
        return self.skill_id

    def resolve_candidates(self, members: Iterable[Member]) -> Set[str]:
        return {m.id for m in members if self.skill_id in m.skill_ids}


@dataclass(frozen=True)
class RoleTagSelector(Selector):
    tag: str
    kind = "role_tag"

    @property
    def value(self) -> str:
        return self.tag

    def resolve_candidates(self, members: Iterable[Member]) -> Set[str]:
        wanted = self.tag.lower()
        return {m.id for m in members if wanted in (t.lower() for t in m.role_tags)}


SELECTOR_TYPES = {
    MemberSelector.kind: MemberSelector,
    SkillSelector.kind: SkillSelector,
    RoleTagSelector.kind: RoleTagSelector,
}


@dataclass(frozen=True)
class ExplicitRule:
    """Binds a task to preferred members via ordered selectors."""

    id: str
    task_id: str
    primary_selector: Selector
    fallback_selectors: Tuple[Selector, ...] = ()
    exclude_days: Tuple[str, ...] = ()
    reason_template: str = "Assigned automatically by rule."
    earliest_start: Optional[str] = None

    @property
    def selectors(self) -> Tuple[Selector, ...]:
        return (self.primary_selector,) + tuple(self.fallback_selectors)


@dataclass(frozen=True)
class ScheduleShift:
    """A member's on-duty interval on a schedule day."""

    id: str
    member_id: str
    start: str
    end: str
    shift_class: Optional[str] = None
    source: Optional[str] = None


@dataclass(frozen=True)
class DaySchedule:
    """All imported shifts for one calendar date."""

    id: str
    date: date
    shifts: Tuple[ScheduleShift, ...] = ()


@dataclass(frozen=True)
class Assignment:
    """Binding of a task to a member on a date."""

    id: str
    task_id: str
    member_id: str
    date: date
    start_time: str
    end_time: str
    duration: int
    reason: str = ""
    locked: bool = False
    status: str = "assigned"

    def __repr__(self) -> str:
        return (
            f"<Assignment(id={self.id!r}, task={self.task_id!r}, member={self.member_id!r}, "
            f"date={self.date}, locked={self.locked})>"
        )


@dataclass
class DailyWorkload:
    """Running load of one member on one date.

    ``total_duration`` only counts non-upkeep work; upkeep accumulates in
    ``upkeep_duration``.
    """

    date: date
    member_id: str
    capacity: int
    total_duration: int = 0
    upkeep_duration: int = 0
    assignments: List[Assignment] = field(default_factory=list)

    @property
    def remaining(self) -> int:
        return self.capacity - self.total_duration


@dataclass(frozen=True)
class UnassignedTask:
    task: Task
    reasons: Tuple[str, ...]

    @property
    def reason(self) -> str:
        return ", ".join(self.reasons)


@dataclass(frozen=True)
class OverCapacityMember:
    member_id: str
    name: str
    date: date
    over_capacity: int


@dataclass(frozen=True)
class OrderSet:
    """A named task ordering active globally or on one weekday."""

    id: str
    name: str
    scope: str = "global"
    weekday: Optional[str] = None


@dataclass(frozen=True)
class OrderSetItem:
    id: str
    order_set_id: str
    task_id: str
    position: int


@dataclass(frozen=True)
class Area:
    id: str
    name: str
    group_name: Optional[str] = None
    position: int = 0


@dataclass(frozen=True)
class StaffingTarget:
    """Required headcount for an area during a weekday window."""

    id: str
    day: str
    area_id: str
    start: str
    end: str
    required_count: int


@dataclass(frozen=True)
class Availability:
    id: str
    member_id: str
    day: str
    start: str
    end: str


@dataclass(frozen=True)
class PlannedShift:
    """A shift placed on the planning grid."""

    id: str
    member_id: str
    day: str
    date: date
    start: str
    end: str
    area_id: Optional[str] = None
    source: str = "planner"
    status: str = "draft"
    reason: Optional[str] = None
    confidence: Optional[float] = None


@dataclass(frozen=True)
class PlannerConflict:
    """A coverage, availability or workload problem in a set of planned shifts."""

    id: str
    type: str
    day: str
    severity: str
    details: str
    date: Optional[date] = None
    area_id: Optional[str] = None
    timeslot: Optional[str] = None
    member_id: Optional[str] = None
    suggested_fix: Tuple[str, ...] = ()


# Collection names used by repositories, mirroring the stored tables
COLLECTIONS: Dict[str, type] = {
    "members": Member,
    "tasks": Task,
    "explicit_rules": ExplicitRule,
    "weekly_schedule": DaySchedule,
    "assignments": Assignment,
    "areas": Area,
    "order_sets": OrderSet,
    "order_set_items": OrderSetItem,
    "staffing_targets": StaffingTarget,
    "availability": Availability,
    "planned_shifts": PlannedShift,
}

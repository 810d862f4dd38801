"""Daily task-to-member assignment engine."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

from worklist.config import ManagerSettings
from worklist.domain.entities import (
    NO_SKILL_OR_CAPACITY,
    NO_STAFF_TODAY,
    Assignment,
    DailyWorkload,
    DaySchedule,
    ExplicitRule,
    Member,
    OrderSetItem,
    OverCapacityMember,
    Task,
    UnassignedTask,
)
from worklist.services.capacity import CapacityTracker, shifts_for_date
from worklist.services.constraints import task_rejection
from worklist.services.prioritizer import order_tasks
from worklist.services.selectors import (
    DEFAULT_COVERAGE_REASON,
    DEFAULT_REASON,
    RuleMatch,
    active_rule,
    resolve_rule,
    valid_rules,
)
from worklist.services.tiebreak import TieBreaker
from worklist.services.timeplan import minutes_to_time, time_to_minutes, weekday_names


logger = logging.getLogger(__name__)

ASSIGNMENT_NAMESPACE = uuid.UUID("6f1c2a0e-7d39-4b8e-9a51-3c0f2b7d4e11")


@dataclass
class AssignmentResult:
    assignments: List[Assignment] = field(default_factory=list)
    daily_workloads: List[DailyWorkload] = field(default_factory=list)
    unassigned_tasks: List[UnassignedTask] = field(default_factory=list)
    over_capacity_members: List[OverCapacityMember] = field(default_factory=list)


def assignment_id(target_date: date, task_id: str, member_id: str, slot: int = 0) -> str:
    """Deterministic id so reruns over identical input produce identical output."""
    return str(uuid.uuid5(ASSIGNMENT_NAMESPACE, f"{target_date.isoformat()}:{task_id}:{member_id}:{slot}"))


def _locked_for(assignments: Sequence[Assignment], target_date: date) -> List[Assignment]:
    return [a for a in assignments if a.locked and a.date == target_date]


def _start_time(task: Task, rule: Optional[ExplicitRule], settings: ManagerSettings) -> str:
    if rule is not None and rule.earliest_start:
        return rule.earliest_start
    return task.earliest_start or settings.assignment_start_time


def generate_assignments(
    members: Sequence[Member],
    tasks: Sequence[Task],
    explicit_rules: Sequence[ExplicitRule],
    schedule: Sequence[DaySchedule],
    locked_assignments: Sequence[Assignment],
    settings: ManagerSettings,
    target_date: date,
    order_hints: Mapping[str, int] | Sequence[OrderSetItem] | None = None,
) -> AssignmentResult:
    """
    Assign the tasks due on ``target_date`` to members on shift.

    Tasks are processed in priority order. Each one goes to the eligible
    member(s) with the lowest non-upkeep load, narrowed by the task's
    explicit rule when one resolves. Infeasible tasks are reported with
    reason codes rather than raised.

    Args:
        members: All members
        tasks: All tasks (recurrence is filtered here)
        explicit_rules: Assignment rules; invalid ones are logged and skipped
        schedule: Schedule days; only shifts dated ``target_date`` are used
        locked_assignments: Existing assignments; locked ones for the date are kept verbatim
        settings: Manager settings (threshold, seed, default start time)
        target_date: Day to generate
        order_hints: Task positions from the active order set

    Returns:
        AssignmentResult with assignments, workloads, unassigned tasks and
        over-capacity members
    """
    logger.info("Assignment engine started for %s", target_date)

    weekday_full, weekday_short = weekday_names(target_date)
    shifts = shifts_for_date(schedule, target_date)
    locked = _locked_for(locked_assignments, target_date)

    if not shifts:
        logger.warning("No scheduled members for %s; nothing assigned", target_date)
        held = {a.task_id for a in locked}
        return AssignmentResult(
            assignments=list(locked),
            unassigned_tasks=[
                UnassignedTask(task=t, reasons=(NO_STAFF_TODAY,)) for t in tasks if t.id not in held
            ],
        )

    tie_breaker = TieBreaker(settings.tie_break_seed, target_date, randomize=settings.randomize_ties)
    rules = valid_rules(explicit_rules, tasks)
    tasks_by_id = {t.id: t for t in tasks}
    members_by_id = {m.id: m for m in members}
    tracker = CapacityTracker(members, shifts, target_date, settings)

    # Locked assignments occupy their tasks and pre-load workloads
    assignments: List[Assignment] = []
    for prior in locked:
        if prior.task_id not in tasks_by_id or prior.member_id not in members_by_id:
            logger.warning("Locked assignment %s references a missing task or member; kept as stored", prior.id)
        assignments.append(prior)
        tracker.record(prior, tasks_by_id.get(prior.task_id))
    assigned_task_ids = {a.task_id for a in assignments}

    ordered = [
        t
        for t in order_tasks(tasks, rules, weekday_short, settings.assignment_start_time, order_hints)
        if t.id not in assigned_task_ids
    ]

    unassigned: Dict[str, Dict[str, None]] = {}
    on_shift = [m for m in members if tracker.is_available(m.id)]

    for task in ordered:
        reasons = unassigned.setdefault(task.id, {})

        eligible: List[Member] = []
        for member in on_shift:
            rejection = task_rejection(member, task, tracker)
            if rejection is None:
                eligible.append(member)
            else:
                reasons[rejection] = None

        if not eligible:
            if not reasons:
                reasons[NO_SKILL_OR_CAPACITY] = None
            logger.debug("Task %s unassigned: %s", task.code, ", ".join(reasons))
            continue

        match = resolve_rule(task, weekday_short, rules, members, [m.id for m in eligible])
        if match is not None:
            eligible = [m for m in eligible if m.id in match.member_ids]

        candidates = tie_breaker.order(
            eligible,
            rank=lambda m: (tracker.load(m.id),),
            key=lambda m: m.id,
        )

        needed = max(task.min_coverage or 0, 1)
        multi = task.allow_multi_assign or needed > 1
        rule = match.rule if match is not None else active_rule(task, weekday_short, rules)
        start = _start_time(task, rule, settings)

        made = 0
        for member in candidates:
            if made >= needed:
                break
            if not tracker.fits(member.id, task):
                continue
            assignment = _make_assignment(task, member, target_date, start, match, multi, made)
            assignments.append(assignment)
            tracker.record(assignment, task)
            made += 1

        if made:
            assigned_task_ids.add(task.id)
            unassigned.pop(task.id, None)

    over_capacity = [
        OverCapacityMember(
            member_id=w.member_id,
            name=members_by_id[w.member_id].name,
            date=target_date,
            over_capacity=w.total_duration - w.capacity,
        )
        for w in tracker.over_capacity()
    ]

    unassigned_tasks = [
        UnassignedTask(task=tasks_by_id[task_id], reasons=tuple(reasons))
        for task_id, reasons in unassigned.items()
    ]

    logger.info(
        "Assignment engine finished for %s (%s): %d assignments, %d unassigned, %d over capacity",
        target_date,
        weekday_full,
        len(assignments),
        len(unassigned_tasks),
        len(over_capacity),
    )
    return AssignmentResult(
        assignments=assignments,
        daily_workloads=tracker.snapshot(),
        unassigned_tasks=unassigned_tasks,
        over_capacity_members=over_capacity,
    )


def _make_assignment(
    task: Task,
    member: Member,
    target_date: date,
    start: str,
    match: Optional[RuleMatch],
    multi: bool,
    slot: int,
) -> Assignment:
    if match is not None:
        reason = match.reason_for(task, member)
    else:
        reason = DEFAULT_COVERAGE_REASON if multi and slot > 0 else DEFAULT_REASON
    duration = task.estimated_duration
    return Assignment(
        id=assignment_id(target_date, task.id, member.id, slot),
        task_id=task.id,
        member_id=member.id,
        date=target_date,
        start_time=start,
        end_time=minutes_to_time(time_to_minutes(start) + duration),
        duration=duration,
        reason=reason,
        locked=False,
        status="assigned",
    )

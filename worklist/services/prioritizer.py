"""Daily task filtering and priority ordering."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from worklist.domain.entities import ExplicitRule, OrderSet, OrderSetItem, Task

from .timeplan import is_clock_time, same_weekday, time_to_minutes


MUST_RUN_BONUS = 30
DUE_SOON_BONUS = 15
DUE_SOON_WINDOW_MINUTES = 180
POSITION_BONUS_BASE = 100
CODE_BONUS_CAP = 10

# Due-by classes, lower sorts first
DUE_TIMED = 0
DUE_EOD = 1
DUE_CONTINUOUS = 2

_CODE_NUMBER = re.compile(r"^[A-Za-z]?(\d+)")


def due_rank(task: Task) -> int:
    if task.is_upkeep:
        return DUE_CONTINUOUS
    if is_clock_time(task.due_by):
        return DUE_TIMED
    if task.due_by == "EOD":
        return DUE_EOD
    return DUE_CONTINUOUS


def code_bonus(code: str | None) -> int:
    """Small nudge for low-numbered codes such as ``T1``; zero from 10 upward."""
    match = _CODE_NUMBER.match(code or "")
    if not match:
        return 0
    return max(0, CODE_BONUS_CAP - int(match.group(1)))


def priority_score(task: Task, position: Optional[int], start_time: str) -> int:
    """
    Composite priority score, higher is more urgent.

    Args:
        task: Task to score
        position: Position in the active ordering, or None if not listed
        start_time: Default assignment start (``HH:MM``)
    """
    position_bonus = max(0, POSITION_BONUS_BASE - position) if position is not None else 0
    due_soon = (
        due_rank(task) == DUE_TIMED
        and time_to_minutes(task.due_by) <= time_to_minutes(start_time) + DUE_SOON_WINDOW_MINUTES
    )
    return (
        position_bonus
        + (task.priority_weight or 0)
        + (MUST_RUN_BONUS if task.is_must_run else 0)
        + (DUE_SOON_BONUS if due_soon else 0)
        + code_bonus(task.code)
    )


def applies_on(task: Task, weekday: str) -> bool:
    """Recurrence filter for the automatic pool."""
    if task.recurrence_type == "daily":
        return True
    if task.recurrence_type == "weekly":
        return bool(task.recurrence_detail) and same_weekday(task.recurrence_detail, weekday)
    return False


def excluded_task_ids(rules: Iterable[ExplicitRule], weekday: str) -> set[str]:
    return {
        rule.task_id
        for rule in rules
        if any(same_weekday(day, weekday) for day in rule.exclude_days)
    }


def active_order_hints(
    order_sets: Sequence[OrderSet],
    items: Sequence[OrderSetItem],
    weekday: str,
) -> Dict[str, int]:
    """
    Task positions from the order set active on ``weekday``.

    The first set that is global, or scoped to this weekday, wins.
    """
    active = next(
        (
            s
            for s in order_sets
            if s.scope == "global" or (s.scope == "weekday" and s.weekday and same_weekday(s.weekday, weekday))
        ),
        None,
    )
    if active is None:
        return {}
    return {item.task_id: item.position for item in items if item.order_set_id == active.id}


def _hint_map(order_hints: Mapping[str, int] | Sequence[OrderSetItem] | None) -> Dict[str, int]:
    if not order_hints:
        return {}
    if isinstance(order_hints, Mapping):
        return dict(order_hints)
    return {item.task_id: item.position for item in order_hints}


def order_tasks(
    tasks: Sequence[Task],
    rules: Sequence[ExplicitRule],
    weekday: str,
    start_time: str,
    order_hints: Mapping[str, int] | Sequence[OrderSetItem] | None = None,
) -> List[Task]:
    """
    Filter tasks applicable on ``weekday`` and sort them by priority.

    Sort keys: must-run first, due class (timed, EOD, continuous) with
    earlier due times first, score descending, then code, name and id.
    """
    positions = _hint_map(order_hints)
    excluded = excluded_task_ids(rules, weekday)

    ranked: List[Tuple[tuple, Task]] = []
    for task in tasks:
        if task.id in excluded or not applies_on(task, weekday):
            continue
        rank = due_rank(task)
        due_minutes = time_to_minutes(task.due_by) if rank == DUE_TIMED else 0
        score = priority_score(task, positions.get(task.id), start_time)
        key = (
            0 if task.is_must_run else 1,
            rank,
            due_minutes,
            -score,
            task.code or "",
            task.name or "",
            task.id,
        )
        ranked.append((key, task))

    ranked.sort(key=lambda pair: pair[0])
    return [task for _, task in ranked]

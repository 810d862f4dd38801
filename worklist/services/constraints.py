"""Eligibility predicates for task assignment and shift planning."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from worklist.domain.entities import (
    CAPACITY_FULL,
    NO_SKILL,
    Availability,
    AvailabilityWindow,
    Member,
    PlannedShift,
    Task,
)

from .capacity import CapacityTracker
from .timeplan import calculate_duration, contains, normalize_weekday, overlaps


def task_rejection(member: Member, task: Task, tracker: CapacityTracker) -> Optional[str]:
    """
    Check whether a member can take a task today.

    Args:
        member: Candidate member (already known to be on shift)
        task: Task to assign
        tracker: Today's capacity ledger

    Returns:
        None if eligible, otherwise the reason code (``no_skill`` or ``capacity_full``)
    """
    # 1. Every required skill
    if any(skill not in member.skill_ids for skill in task.skill_ids):
        return NO_SKILL

    # 2. Soft capacity ceiling (upkeep is never gated)
    if not tracker.fits(member.id, task):
        return CAPACITY_FULL

    return None


def availability_windows(
    members: Iterable[Member],
    availability: Iterable[Availability] = (),
) -> Dict[str, Dict[str, List[AvailabilityWindow]]]:
    """Index availability by member and short weekday name.

    Windows embedded on members and standalone availability records are merged.
    """
    index: Dict[str, Dict[str, List[AvailabilityWindow]]] = defaultdict(lambda: defaultdict(list))
    for member in members:
        for window in member.availability:
            index[member.id][normalize_weekday(window.day)].append(window)
    for record in availability:
        index[record.member_id][normalize_weekday(record.day)].append(
            AvailabilityWindow(day=record.day, start=record.start, end=record.end)
        )
    return index


def covering_window(
    windows: Sequence[AvailabilityWindow], start: str, end: str
) -> Optional[AvailabilityWindow]:
    for window in windows:
        if contains(window.start, window.end, start, end):
            return window
    return None


def can_take_shift(
    member: Member,
    shift_date: date,
    day: str,
    start: str,
    end: str,
    shifts_by_member_date: Dict[Tuple[str, date], List[PlannedShift]],
    windows: Dict[str, Dict[str, List[AvailabilityWindow]]],
    daily_minutes: Dict[Tuple[str, date], int],
    weekly_minutes: Dict[Tuple[str, str], int],
    week_id: str,
) -> bool:
    """
    Check whether a member can be given a new planned shift.

    Args:
        member: Member to check
        shift_date: Date of the shift
        day: Weekday of the shift
        start: Shift start (``HH:MM``)
        end: Shift end (``HH:MM``)
        shifts_by_member_date: Shifts already planned, keyed by (member id, date)
        windows: Availability index from ``availability_windows``
        daily_minutes: Planned minutes keyed by (member id, date)
        weekly_minutes: Planned minutes keyed by (member id, ISO week)
        week_id: ISO week of ``shift_date``

    Returns:
        True if member can take the shift, False otherwise
    """
    # 1. No overlapping shift that day
    for existing in shifts_by_member_date.get((member.id, shift_date), []):
        if overlaps(existing.start, existing.end, start, end):
            return False

    # 2. Availability window for the weekday must contain the shift
    day_windows = windows.get(member.id, {}).get(normalize_weekday(day), [])
    if covering_window(day_windows, start, end) is None:
        return False

    # 3. Daily and weekly maxima
    minutes = calculate_duration(start, end)
    if member.max_daily_minutes is not None:
        if daily_minutes.get((member.id, shift_date), 0) + minutes > member.max_daily_minutes:
            return False
    if member.max_weekly_minutes is not None:
        if weekly_minutes.get((member.id, week_id), 0) + minutes > member.max_weekly_minutes:
            return False

    return True

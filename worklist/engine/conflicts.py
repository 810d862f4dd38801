"""Conflict detection over a set of planned shifts."""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from worklist.config import ManagerSettings
from worklist.domain.entities import (
    Availability,
    Member,
    PlannedShift,
    PlannerConflict,
    StaffingTarget,
)
from worklist.services.constraints import availability_windows, covering_window
from worklist.services.timeplan import (
    calculate_duration,
    interval,
    iso_week,
    overlaps,
    same_weekday,
    weekday_names,
)


logger = logging.getLogger(__name__)

CONFLICT_NAMESPACE = uuid.UUID("c3a9d4e2-58b1-4f07-a6d2-7e0b19f4c833")


def conflict_id(kind: str, *parts: object) -> str:
    return str(uuid.uuid5(CONFLICT_NAMESPACE, ":".join([kind] + [str(p) for p in parts])))


def calculate_planner_conflicts(
    planned_shifts: Sequence[PlannedShift],
    staffing_targets: Sequence[StaffingTarget],
    members: Sequence[Member],
    dates: Sequence[date],
    availability: Sequence[Availability] = (),
    settings: Optional[ManagerSettings] = None,
) -> List[PlannerConflict]:
    """
    Recompute every conflict for ``dates`` from scratch.

    Args:
        planned_shifts: Shifts to check (any source or status)
        staffing_targets: Coverage targets per weekday/area/window
        members: Members, with their limits and embedded availability
        dates: Dates to check
        availability: Extra availability records merged with member windows
        settings: Provides ``min_break_minutes``; defaults apply when None

    Returns:
        Conflicts ordered by date, then by kind of check
    """
    settings = settings or ManagerSettings()
    members_by_id = {m.id: m for m in members}
    windows = availability_windows(members, availability)
    wanted = sorted(set(dates))
    wanted_set = set(wanted)
    wanted_weeks = {iso_week(d) for d in wanted}

    conflicts: List[PlannerConflict] = []
    for day in wanted:
        conflicts.extend(_coverage_conflicts(planned_shifts, staffing_targets, day))

    in_range = sorted(
        (s for s in planned_shifts if s.date in wanted_set),
        key=lambda s: (s.date, s.member_id, interval(s.start, s.end), s.id),
    )
    for shift in in_range:
        conflict = _availability_conflict(shift, windows)
        if conflict is not None:
            conflicts.append(conflict)

    conflicts.extend(_overtime_conflicts(planned_shifts, members_by_id, wanted_set, wanted_weeks))
    conflicts.extend(_break_conflicts(in_range, settings.min_break_minutes))

    logger.debug("Found %d planner conflicts over %d dates", len(conflicts), len(wanted))
    return conflicts


def _coverage_conflicts(
    shifts: Sequence[PlannedShift], targets: Sequence[StaffingTarget], day: date
) -> List[PlannerConflict]:
    _, weekday = weekday_names(day)
    found: List[PlannerConflict] = []
    for target in targets:
        if not same_weekday(target.day, weekday):
            continue
        covered = sum(
            1
            for s in shifts
            if s.date == day and s.area_id == target.area_id and overlaps(s.start, s.end, target.start, target.end)
        )
        timeslot = f"{target.start}-{target.end}"
        if covered < target.required_count:
            found.append(
                PlannerConflict(
                    id=conflict_id("under-coverage", day, target.id),
                    type="under-coverage",
                    day=weekday,
                    date=day,
                    area_id=target.area_id,
                    timeslot=timeslot,
                    severity="medium",
                    details=f"{covered} of {target.required_count} required staff scheduled for {timeslot}.",
                    suggested_fix=("Run auto-fill or add a shift for this area.",),
                )
            )
        elif covered > target.required_count:
            found.append(
                PlannerConflict(
                    id=conflict_id("over-coverage", day, target.id),
                    type="over-coverage",
                    day=weekday,
                    date=day,
                    area_id=target.area_id,
                    timeslot=timeslot,
                    severity="low",
                    details=f"{covered} staff scheduled for {timeslot}; {target.required_count} required.",
                    suggested_fix=("Move a shift to an under-covered area.",),
                )
            )
    return found


def _availability_conflict(shift: PlannedShift, windows) -> Optional[PlannerConflict]:
    weekday = weekday_names(shift.date)[1]
    day_windows = windows.get(shift.member_id, {}).get(weekday, [])
    timeslot = f"{shift.start}-{shift.end}"

    if not day_windows:
        details = f"No availability on {weekday} for shift {timeslot}."
    elif covering_window(day_windows, shift.start, shift.end) is None:
        stated = ", ".join(f"{w.start}-{w.end}" for w in day_windows)
        details = f"Shift {timeslot} falls outside availability {stated}."
    else:
        return None

    return PlannerConflict(
        id=conflict_id("availability-violation", shift.id),
        type="availability-violation",
        day=weekday,
        date=shift.date,
        area_id=shift.area_id,
        timeslot=timeslot,
        member_id=shift.member_id,
        severity="high",
        details=details,
        suggested_fix=("Reassign the shift or update the member's availability.",),
    )


def _overtime_conflicts(
    shifts: Sequence[PlannedShift],
    members_by_id: Dict[str, Member],
    wanted_dates: set,
    wanted_weeks: set,
) -> List[PlannerConflict]:
    daily: Dict[Tuple[str, date], int] = defaultdict(int)
    weekly: Dict[Tuple[str, str], int] = defaultdict(int)
    for shift in shifts:
        minutes = calculate_duration(shift.start, shift.end)
        daily[(shift.member_id, shift.date)] += minutes
        weekly[(shift.member_id, iso_week(shift.date))] += minutes

    found: List[PlannerConflict] = []
    for (member_id, day), minutes in sorted(daily.items()):
        member = members_by_id.get(member_id)
        if member is None or member.max_daily_minutes is None or day not in wanted_dates:
            continue
        if minutes > member.max_daily_minutes:
            found.append(
                PlannerConflict(
                    id=conflict_id("overtime-risk", member_id, day),
                    type="overtime-risk",
                    day=weekday_names(day)[1],
                    date=day,
                    member_id=member_id,
                    severity="medium",
                    details=f"{member.name} planned {minutes} min on {day}; daily max is {member.max_daily_minutes}.",
                    suggested_fix=("Shorten or move one of the member's shifts.",),
                )
            )

    for (member_id, week), minutes in sorted(weekly.items()):
        member = members_by_id.get(member_id)
        if member is None or member.max_weekly_minutes is None or week not in wanted_weeks:
            continue
        if minutes > member.max_weekly_minutes:
            found.append(
                PlannerConflict(
                    id=conflict_id("overtime-risk", member_id, week),
                    type="overtime-risk",
                    day=week,
                    member_id=member_id,
                    severity="medium",
                    details=f"{member.name} planned {minutes} min in {week}; weekly max is {member.max_weekly_minutes}.",
                    suggested_fix=("Move a shift to a member with fewer planned hours.",),
                )
            )
    return found


def _break_conflicts(shifts: Sequence[PlannedShift], min_break_minutes: int) -> List[PlannerConflict]:
    """Back-to-back or overlapping shifts for the same member on one date.

    ``shifts`` must be sorted by date, member and start.
    """
    found: List[PlannerConflict] = []
    previous: Optional[PlannedShift] = None
    for shift in shifts:
        if previous is None or (previous.member_id, previous.date) != (shift.member_id, shift.date):
            previous = shift
            continue
        _, prev_end = interval(previous.start, previous.end)
        start, _ = interval(shift.start, shift.end)
        gap = start - prev_end
        if gap < 0:
            severity, details = "medium", f"Shifts {previous.start}-{previous.end} and {shift.start}-{shift.end} overlap."
        elif gap < min_break_minutes:
            severity, details = "low", f"Only {gap} min between shifts; minimum break is {min_break_minutes}."
        else:
            severity = None
        if severity is not None:
            found.append(
                PlannerConflict(
                    id=conflict_id("break-violation", previous.id, shift.id),
                    type="break-violation",
                    day=weekday_names(shift.date)[1],
                    date=shift.date,
                    area_id=shift.area_id,
                    timeslot=f"{shift.start}-{shift.end}",
                    member_id=shift.member_id,
                    severity=severity,
                    details=details,
                    suggested_fix=("Leave a longer gap between the member's shifts.",),
                )
            )
        if interval(shift.start, shift.end)[1] > prev_end:
            previous = shift
    return found

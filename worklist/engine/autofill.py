"""Shift auto-fill: close staffing gaps against coverage targets."""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Sequence, Tuple

from worklist.config import ManagerSettings
from worklist.domain.entities import (
    Area,
    Availability,
    Member,
    PlannedShift,
    PlannerConflict,
    StaffingTarget,
)
from worklist.services.constraints import availability_windows, can_take_shift
from worklist.services.scoring import calculate_member_score
from worklist.services.tiebreak import TieBreaker
from worklist.services.timeplan import (
    calculate_duration,
    iso_week,
    overlaps,
    same_weekday,
    shift_class_for,
    time_to_minutes,
    weekday_names,
)

from .conflicts import calculate_planner_conflicts


logger = logging.getLogger(__name__)

PLANNED_SHIFT_NAMESPACE = uuid.UUID("0b5e8f7a-2c44-4f1d-8e6b-91d3a7c5f202")


@dataclass
class AutoFillResult:
    generated_planned_shifts: List[PlannedShift] = field(default_factory=list)
    conflicts: List[PlannerConflict] = field(default_factory=list)


def targets_for_day(targets: Sequence[StaffingTarget], weekday: str) -> List[StaffingTarget]:
    """Targets active on ``weekday`` in ascending start-time order."""
    active = [t for t in targets if same_weekday(t.day, weekday)]
    return sorted(active, key=lambda t: (time_to_minutes(t.start), t.area_id, t.id))


def count_coverage(shifts: Sequence[PlannedShift], target: StaffingTarget, day: date) -> int:
    """Planned shifts on ``day`` in the target's area that overlap its window."""
    return sum(
        1
        for s in shifts
        if s.date == day and s.area_id == target.area_id and overlaps(s.start, s.end, target.start, target.end)
    )


def auto_fill_schedule(
    members: Sequence[Member],
    areas: Sequence[Area],
    staffing_targets: Sequence[StaffingTarget],
    availability: Sequence[Availability],
    existing_planned_shifts: Sequence[PlannedShift],
    settings: ManagerSettings,
    target_dates: Sequence[date],
) -> AutoFillResult:
    """
    Add draft shifts where planned coverage falls short of staffing targets.

    For each date and each target active that weekday (earliest start
    first), members free of overlapping shifts, available for the whole
    window and under their daily/weekly maxima are scored; the best
    ``required - covered`` of them receive new ``autofill`` shifts. Load
    trackers are updated as shifts are added so later targets see them.

    Args:
        members: All members
        areas: Areas, used for affinity scoring and reason text
        staffing_targets: Required headcount per weekday/area/window
        availability: Availability records (merged with member windows)
        existing_planned_shifts: Shifts already on the plan
        settings: Manager settings (planner weights, seeds)
        target_dates: Dates to fill

    Returns:
        AutoFillResult with the new shifts and the conflicts remaining
        across existing and new shifts
    """
    areas_by_id = {a.id: a for a in areas}
    windows = availability_windows(members, availability)
    seed = settings.planner_seed if settings.planner_seed is not None else settings.tie_break_seed

    planned: List[PlannedShift] = list(existing_planned_shifts)
    by_member_date: Dict[Tuple[str, date], List[PlannedShift]] = defaultdict(list)
    daily_minutes: Dict[Tuple[str, date], int] = defaultdict(int)
    weekly_minutes: Dict[Tuple[str, str], int] = defaultdict(int)
    for shift in planned:
        _track(shift, by_member_date, daily_minutes, weekly_minutes)

    generated: List[PlannedShift] = []
    for day in sorted(target_dates):
        _, weekday = weekday_names(day)
        week_id = iso_week(day)
        tie_breaker = TieBreaker(seed, day, randomize=settings.randomize_ties)

        for target in targets_for_day(staffing_targets, weekday):
            covered = count_coverage(planned, target, day)
            if covered >= target.required_count:
                continue
            shortfall = target.required_count - covered

            eligible = [
                m
                for m in members
                if can_take_shift(
                    m,
                    day,
                    weekday,
                    target.start,
                    target.end,
                    by_member_date,
                    windows,
                    daily_minutes,
                    weekly_minutes,
                    week_id,
                )
            ]
            area = areas_by_id.get(target.area_id)
            shift_class = shift_class_for(target.start, weekday)
            scores = {
                m.id: calculate_member_score(
                    m, area, shift_class, weekly_minutes[(m.id, week_id)], settings
                )
                for m in eligible
            }
            ranked = tie_breaker.order(eligible, rank=lambda m: (-scores[m.id],), key=lambda m: m.id)

            area_name = area.name if area is not None else target.area_id
            for member in ranked[:shortfall]:
                shift = PlannedShift(
                    id=str(uuid.uuid5(PLANNED_SHIFT_NAMESPACE, f"{day.isoformat()}:{target.id}:{member.id}")),
                    member_id=member.id,
                    day=weekday,
                    date=day,
                    start=target.start,
                    end=target.end,
                    area_id=target.area_id,
                    source="autofill",
                    status="draft",
                    reason=f"Auto-filled to cover {area_name} ({target.start}-{target.end}).",
                )
                planned.append(shift)
                generated.append(shift)
                _track(shift, by_member_date, daily_minutes, weekly_minutes)

            if len(ranked) < shortfall:
                logger.info(
                    "Target %s on %s still short by %d after auto-fill",
                    target.id,
                    day,
                    shortfall - len(ranked),
                )

    conflicts = calculate_planner_conflicts(
        planned,
        staffing_targets,
        members,
        target_dates,
        availability=availability,
        settings=settings,
    )
    logger.info("Auto-fill generated %d shifts, %d conflicts remain", len(generated), len(conflicts))
    return AutoFillResult(generated_planned_shifts=generated, conflicts=conflicts)


def _track(
    shift: PlannedShift,
    by_member_date: Dict[Tuple[str, date], List[PlannedShift]],
    daily_minutes: Dict[Tuple[str, date], int],
    weekly_minutes: Dict[Tuple[str, str], int],
) -> None:
    minutes = calculate_duration(shift.start, shift.end)
    by_member_date[(shift.member_id, shift.date)].append(shift)
    daily_minutes[(shift.member_id, shift.date)] += minutes
    weekly_minutes[(shift.member_id, iso_week(shift.date))] += minutes

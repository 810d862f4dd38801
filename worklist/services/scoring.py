"""Scoring functions for auto-fill candidates."""

from __future__ import annotations

from typing import Optional

from worklist.config import ManagerSettings
from worklist.domain.entities import Area, Member


def calculate_member_score(
    member: Member,
    area: Optional[Area],
    shift_class: str,
    weekly_minutes: int,
    settings: ManagerSettings,
) -> float:
    """
    Calculate overall score for placing a member on a staffing gap.

    Higher score = better candidate.

    Args:
        member: Member to score
        area: Area the shift covers (None if unknown)
        shift_class: Shift class derived from the target window
        weekly_minutes: Minutes already planned for the member this week
        settings: Manager settings carrying the planner weights (``base``,
            ``area_affinity``, ``shift_class_preference``,
            ``workload_penalty_per_hour``)

    Returns:
        Overall score (higher is better)
    """
    score = settings.weight("base")
    score += calculate_area_affinity(member, area, settings)
    score += calculate_preference_bonus(member, shift_class, settings)
    score -= calculate_workload_penalty(weekly_minutes, settings)
    return score


def calculate_area_affinity(member: Member, area: Optional[Area], settings: ManagerSettings) -> float:
    """Bonus when one of the member's skills names the area."""
    if area is None or not area.name:
        return 0.0
    wanted = area.name.strip().lower()
    strengths = {s.strip().lower() for s in member.skill_ids}
    return settings.weight("area_affinity") if wanted in strengths else 0.0


def calculate_preference_bonus(member: Member, shift_class: str, settings: ManagerSettings) -> float:
    if shift_class in member.shift_class_preference:
        return settings.weight("shift_class_preference")
    return 0.0


def calculate_workload_penalty(weekly_minutes: int, settings: ManagerSettings) -> float:
    """Penalty proportional to hours already planned this week."""
    return (weekly_minutes / 60.0) * settings.weight("workload_penalty_per_hour")

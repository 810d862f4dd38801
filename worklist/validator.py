from __future__ import annotations

from datetime import date
from typing import Sequence

import pandas as pd

from worklist.config import ManagerSettings
from worklist.domain.entities import (
    CONFLICT_TYPES,
    REASON_CODES,
    SEVERITIES,
    Assignment,
    Member,
    PlannedShift,
    PlannerConflict,
    Task,
)
from worklist.services.timeplan import calculate_shift_hours


def validate_generation(
    result,
    members: Sequence[Member],
    tasks: Sequence[Task],
    locked_assignments: Sequence[Assignment],
    settings: ManagerSettings,
    target_date: date,
) -> None:
    """
    Check an assignment result before it is persisted.

    Raises:
        ValueError: On unknown references, duplicate ids, an assignment
            dated off ``target_date``, an unassigned task without a known
            reason code, a locked assignment that changed or went missing,
            or an engine-made assignment pushing a member past
            ``capacity + threshold``
    """
    # Referential integrity; locked records are carried as stored
    member_ids = {m.id for m in members}
    task_ids = {t.id for t in tasks}
    generated = [a for a in result.assignments if not a.locked]
    if not {a.member_id for a in generated}.issubset(member_ids):
        raise ValueError("Assignments reference unknown member ids")
    if not {a.task_id for a in generated}.issubset(task_ids):
        raise ValueError("Assignments reference unknown task ids")

    ids = [a.id for a in result.assignments]
    if len(ids) != len(set(ids)):
        raise ValueError("Duplicate assignment ids in generated result")

    if any(a.date != target_date for a in result.assignments):
        raise ValueError(f"Assignments dated outside {target_date}")

    for item in result.unassigned_tasks:
        unknown = set(item.reasons) - set(REASON_CODES)
        if not item.reasons or unknown:
            raise ValueError(f"Task {item.task.id} unassigned without a known reason code: {item.reasons}")

    # Locked assignments carried forward verbatim
    produced = {a.id: a for a in result.assignments}
    for prior in locked_assignments:
        if not prior.locked or prior.date != target_date:
            continue
        if produced.get(prior.id) != prior:
            raise ValueError(f"Locked assignment {prior.id} was altered or dropped")

    # Soft capacity ceiling for members given new non-upkeep work
    upkeep = {t.id for t in tasks if t.is_upkeep}
    ceiling_extra = settings.over_capacity_threshold
    for workload in result.daily_workloads:
        made = [a for a in workload.assignments if not a.locked and a.task_id not in upkeep]
        if made and workload.total_duration > workload.capacity + ceiling_extra:
            raise ValueError(
                f"Member {workload.member_id} exceeds capacity on {workload.date}: "
                f"{workload.total_duration} > {workload.capacity} + {ceiling_extra}"
            )


def assignments_frame(
    assignments: Sequence[Assignment],
    members: Sequence[Member],
    tasks: Sequence[Task],
) -> pd.DataFrame:
    columns = ["date", "member", "code", "task", "start_time", "end_time", "duration", "locked", "reason"]
    if not assignments:
        return pd.DataFrame(columns=columns)
    names = {m.id: m.name for m in members}
    by_task = {t.id: t for t in tasks}
    rows = []
    for a in assignments:
        task = by_task.get(a.task_id)
        rows.append(
            {
                "date": a.date.isoformat(),
                "member": names.get(a.member_id, a.member_id),
                "code": task.code if task else "",
                "task": task.name if task else a.task_id,
                "start_time": a.start_time,
                "end_time": a.end_time,
                "duration": a.duration,
                "locked": a.locked,
                "reason": a.reason,
            }
        )
    return pd.DataFrame(rows, columns=columns).sort_values(["date", "member", "start_time", "code"])


def workloads_frame(workloads, members: Sequence[Member]) -> pd.DataFrame:
    """Capacity and load per member, with utilisation in percent."""
    columns = ["date", "member", "capacity", "total_duration", "upkeep_duration", "remaining", "utilisation"]
    if not workloads:
        return pd.DataFrame(columns=columns)
    names = {m.id: m.name for m in members}
    df = pd.DataFrame(
        [
            {
                "date": w.date.isoformat(),
                "member": names.get(w.member_id, w.member_id),
                "capacity": w.capacity,
                "total_duration": w.total_duration,
                "upkeep_duration": w.upkeep_duration,
                "remaining": w.remaining,
            }
            for w in workloads
        ]
    )
    df["utilisation"] = (df["total_duration"] / df["capacity"].where(df["capacity"] > 0)).mul(100).round(1)
    return df[columns].sort_values(["date", "member"])


def conflicts_frame(conflicts: Sequence[PlannerConflict]) -> pd.DataFrame:
    columns = ["date", "day", "type", "severity", "area_id", "timeslot", "member_id", "details"]
    rows = [
        {
            "date": c.date.isoformat() if c.date else "",
            "day": c.day,
            "type": c.type,
            "severity": c.severity,
            "area_id": c.area_id or "",
            "timeslot": c.timeslot or "",
            "member_id": c.member_id or "",
            "details": c.details,
        }
        for c in conflicts
    ]
    df = pd.DataFrame(rows, columns=columns)
    # Most severe first, then date and conflict kind
    df["severity"] = pd.Categorical(df["severity"], categories=list(reversed(SEVERITIES)), ordered=True)
    df["type"] = pd.Categorical(df["type"], categories=list(CONFLICT_TYPES), ordered=True)
    return df.sort_values(["severity", "date", "type"], kind="stable").reset_index(drop=True)


def planned_hours_frame(shifts: Sequence[PlannedShift], members: Sequence[Member]) -> pd.DataFrame:
    """Planned hours per member and date."""
    if not shifts:
        return pd.DataFrame()
    names = {m.id: m.name for m in members}
    df = pd.DataFrame(
        [
            {
                "member": names.get(s.member_id, s.member_id),
                "date": s.date.isoformat(),
                "hours": calculate_shift_hours(s.start, s.end),
            }
            for s in shifts
        ]
    )
    return df.pivot_table(index="member", columns="date", values="hours", aggfunc="sum", fill_value=0)


def summarize_assignments(result, members: Sequence[Member], tasks: Sequence[Task]) -> str:
    if not result.assignments and not result.unassigned_tasks:
        return "No assignments."

    lines = ["Assignments:"]
    assigned = assignments_frame(result.assignments, members, tasks)
    lines.append(assigned.to_string(index=False) if not assigned.empty else "(none)")
    lines.append("")

    lines.append("Workload per member (minutes):")
    workloads = workloads_frame(result.daily_workloads, members)
    lines.append(workloads.to_string(index=False) if not workloads.empty else "(none)")

    if result.unassigned_tasks:
        lines.append("")
        lines.append("Unassigned tasks:")
        for item in result.unassigned_tasks:
            lines.append(f"  {item.task.display_name}: {item.reason}")

    if result.over_capacity_members:
        lines.append("")
        lines.append("Over capacity:")
        for item in result.over_capacity_members:
            lines.append(f"  {item.name} on {item.date}: +{item.over_capacity} min")

    return "\n".join(lines)

"""Daily capacity of members and the running workload ledger."""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Sequence

from worklist.config import ManagerSettings
from worklist.domain.entities import Assignment, DailyWorkload, Member, ScheduleShift, Task

from .timeplan import calculate_duration


def shifts_for_date(schedule: Iterable, target_date: date) -> List[ScheduleShift]:
    """Collect every shift recorded for ``target_date`` across schedule days."""
    shifts: List[ScheduleShift] = []
    for day in schedule:
        if day.date == target_date:
            shifts.extend(day.shifts)
    return shifts


def member_capacity(member: Member, shifts: Sequence[ScheduleShift]) -> int:
    """
    Available work minutes for a member on a day.

    Sum of the member's shift lengths minus fixed daily commitments,
    never below zero.
    """
    total_shift_minutes = sum(
        calculate_duration(s.start, s.end) for s in shifts if s.member_id == member.id
    )
    return max(0, total_shift_minutes - (member.fixed_commitments_minutes or 0))


class CapacityTracker:
    """Per-member workloads for one date with the soft capacity ceiling."""

    def __init__(
        self,
        members: Sequence[Member],
        shifts: Sequence[ScheduleShift],
        target_date: date,
        settings: ManagerSettings,
    ):
        self.target_date = target_date
        self.threshold = settings.over_capacity_threshold
        self.on_shift = {s.member_id for s in shifts}
        self.workloads: Dict[str, DailyWorkload] = {
            m.id: DailyWorkload(date=target_date, member_id=m.id, capacity=member_capacity(m, shifts))
            for m in members
        }

    def get(self, member_id: str) -> DailyWorkload | None:
        return self.workloads.get(member_id)

    def is_available(self, member_id: str) -> bool:
        """On shift today with some capacity left after commitments."""
        workload = self.workloads.get(member_id)
        return member_id in self.on_shift and workload is not None and workload.capacity > 0

    def fits(self, member_id: str, task: Task) -> bool:
        """Whether the task stays under ``capacity + threshold``; upkeep always fits."""
        if task.is_upkeep:
            return True
        workload = self.workloads[member_id]
        return workload.total_duration + task.estimated_duration <= workload.capacity + self.threshold

    def record(self, assignment: Assignment, task: Task | None) -> None:
        """Add an assignment's duration to its member's workload."""
        workload = self.workloads.get(assignment.member_id)
        if workload is None:
            return
        if task is not None and task.is_upkeep:
            workload.upkeep_duration += assignment.duration
        else:
            workload.total_duration += assignment.duration
        workload.assignments.append(assignment)

    def load(self, member_id: str) -> int:
        return self.workloads[member_id].total_duration

    def over_capacity(self) -> Iterable[DailyWorkload]:
        for workload in self.workloads.values():
            if workload.total_duration > workload.capacity:
                yield workload

    def snapshot(self) -> List[DailyWorkload]:
        return list(self.workloads.values())

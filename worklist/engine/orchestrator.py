"""Orchestrator - loads snapshots from a repository, runs the engines and stores the results."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Dict, List, Optional, Sequence

from worklist.config import ManagerSettings
from worklist.domain.entities import Assignment, PlannedShift, PlannerConflict
from worklist.domain.repositories import Repository
from worklist.services.prioritizer import active_order_hints
from worklist.services.timeplan import planning_dates, weekday_names
from worklist.validator import validate_generation

from .assignment import AssignmentResult, generate_assignments
from .autofill import AutoFillResult, auto_fill_schedule
from .conflicts import calculate_planner_conflicts


logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Orchestrator coordinates the pure engines with a repository.

    The engines never touch storage: the orchestrator reads every
    collection they need, calls them, validates the output and writes
    generated assignments and planned shifts back.
    """

    def __init__(self, repository: Repository, settings: Optional[ManagerSettings] = None):
        """
        Initialize orchestrator.

        Args:
            repository: Data access for all collections
            settings: Manager settings (defaults when None)
        """
        self.repository = repository
        self.settings = settings or ManagerSettings()

    def generate_day(self, target_date: date, persist: bool = True) -> AssignmentResult:
        """
        Build the assignments for one date.

        Non-locked assignments already stored for the date are replaced;
        locked ones are passed to the engine and carried forward.

        Args:
            target_date: Day to generate
            persist: If True, save assignments to the repository

        Returns:
            AssignmentResult from the engine

        Raises:
            ValueError: If the engine output fails validation
        """
        repo = self.repository
        members = repo.select("members")
        tasks = repo.select("tasks")
        locked = repo.select("assignments", lambda a: a.date == target_date and a.locked)

        _, weekday = weekday_names(target_date)
        hints = active_order_hints(repo.select("order_sets"), repo.select("order_set_items"), weekday)

        result = generate_assignments(
            members,
            tasks,
            repo.select("explicit_rules"),
            repo.select("weekly_schedule", lambda d: d.date == target_date),
            locked,
            self.settings,
            target_date,
            hints,
        )
        validate_generation(result, members, tasks, locked, self.settings, target_date)

        if persist:
            self._store_assignments(target_date, result.assignments)
        return result

    def generate_range(
        self, start: date, days: Optional[int] = None, persist: bool = True
    ) -> Dict[date, AssignmentResult]:
        """Generate each date of a planning period in order."""
        days = days or self.settings.default_planning_period
        return {day: self.generate_day(day, persist=persist) for day in planning_dates(start, days)}

    def auto_fill(self, target_dates: Sequence[date], persist: bool = True) -> AutoFillResult:
        """
        Fill staffing gaps on ``target_dates`` with draft shifts.

        Args:
            target_dates: Dates to fill
            persist: If True, store the generated planned shifts

        Returns:
            AutoFillResult with the new shifts and remaining conflicts
        """
        repo = self.repository
        result = auto_fill_schedule(
            repo.select("members"),
            repo.select("areas"),
            repo.select("staffing_targets"),
            repo.select("availability"),
            repo.select("planned_shifts"),
            self.settings,
            target_dates,
        )
        if persist and result.generated_planned_shifts:
            count = repo.upsert("planned_shifts", result.generated_planned_shifts)
            logger.info("Persisted %d planned shifts", count)
        return result

    def detect_conflicts(self, dates: Sequence[date]) -> List[PlannerConflict]:
        repo = self.repository
        return calculate_planner_conflicts(
            repo.select("planned_shifts"),
            repo.select("staffing_targets"),
            repo.select("members"),
            dates,
            availability=repo.select("availability"),
            settings=self.settings,
        )

    def publish(self, dates: Sequence[date]) -> List[PlannedShift]:
        """Mark draft shifts on ``dates`` as published."""
        wanted = set(dates)
        drafts = self.repository.select("planned_shifts", lambda s: s.date in wanted and s.status == "draft")
        published = [replace(s, status="published") for s in drafts]
        self.repository.upsert("planned_shifts", published)
        logger.info("Published %d planned shifts", len(published))
        return published

    def _store_assignments(self, target_date: date, assignments: List[Assignment]) -> None:
        deleted = self.repository.delete_where(
            "assignments", lambda a: a.date == target_date and not a.locked
        )
        if deleted > 0:
            logger.info("Deleted %d existing assignments for %s", deleted, target_date)
        count = self.repository.upsert("assignments", assignments)
        logger.info("Persisted %d assignments for %s", count, target_date)


def build_day_assignments(
    repository: Repository,
    target_date: date,
    settings: Optional[ManagerSettings] = None,
    persist: bool = True,
) -> AssignmentResult:
    """
    Convenience function to build one day's assignments using the orchestrator.

    Args:
        repository: Data access for all collections
        target_date: Day to generate
        settings: Manager settings (defaults when None)
        persist: If True, save assignments to the repository

    Returns:
        AssignmentResult
    """
    orchestrator = Orchestrator(repository, settings)
    return orchestrator.generate_day(target_date, persist=persist)

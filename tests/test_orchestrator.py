"""Tests for Orchestrator - repository-backed generation and planning."""

from datetime import date

import pytest

from worklist.config import ManagerSettings
from worklist.domain.entities import (
    Area,
    Assignment,
    OrderSet,
    OrderSetItem,
    PlannedShift,
    StaffingTarget,
)
from worklist.domain.repositories import InMemoryRepository, SqlAlchemyRepository
from worklist.engine.orchestrator import Orchestrator, build_day_assignments


MONDAY = date(2025, 11, 24)


@pytest.fixture
def repo(members, schedule, task_factory):
    repo = InMemoryRepository()
    repo.upsert("members", members)
    repo.upsert("weekly_schedule", schedule)
    repo.upsert("tasks", [task_factory("a", duration=120), task_factory("b", duration=90)])
    return repo


def test_generate_day_persists_assignments(repo):
    result = Orchestrator(repo).generate_day(MONDAY)

    stored = repo.select("assignments", lambda a: a.date == MONDAY)
    assert {a.id for a in stored} == {a.id for a in result.assignments}
    assert len(stored) == 2


def test_regeneration_replaces_unlocked_and_keeps_locked(repo):
    locked = Assignment(
        id="keep", task_id="a", member_id="m-ben", date=MONDAY,
        start_time="07:00", end_time="09:00", duration=120, locked=True,
    )
    stale = Assignment(
        id="stale", task_id="b", member_id="m-ben", date=MONDAY,
        start_time="09:00", end_time="10:30", duration=90,
    )
    repo.upsert("assignments", [locked, stale])

    result = Orchestrator(repo).generate_day(MONDAY)

    stored = {a.id: a for a in repo.select("assignments")}
    assert stored["keep"] == locked
    assert "stale" not in stored
    assert locked in result.assignments
    # Ben carries the locked work, so the remaining task goes to Ana
    assert [a.member_id for a in result.assignments if a.task_id == "b"] == ["m-ana"]


def test_dry_run_does_not_persist(repo):
    Orchestrator(repo).generate_day(MONDAY, persist=False)
    assert repo.select("assignments") == []


def test_generation_is_repeatable(repo):
    first = build_day_assignments(repo, MONDAY)
    second = build_day_assignments(repo, MONDAY)
    assert first.assignments == second.assignments
    assert len(repo.select("assignments")) == len(second.assignments)


def test_order_set_applied(repo, task_factory):
    repo.upsert("tasks", [task_factory("a", duration=240, due_by="EOD"), task_factory("b", duration=240, due_by="EOD")])
    repo.upsert("order_sets", [OrderSet(id="os", name="Default")])
    repo.upsert("order_set_items", [OrderSetItem(id="i1", order_set_id="os", task_id="b", position=1)])

    result = Orchestrator(repo).generate_day(MONDAY, persist=False)
    # First task in order goes to the first member by id
    assert [a.task_id for a in result.assignments if a.member_id == "m-ana"] == ["b"]


def test_generate_range_covers_planning_period(repo):
    results = Orchestrator(repo, ManagerSettings(default_planning_period=3)).generate_range(MONDAY)
    assert list(results) == [MONDAY, date(2025, 11, 25), date(2025, 11, 26)]
    assert len(results[MONDAY].assignments) == 2
    # No shifts imported for the other days
    assert all(u.reasons == ("no_staff_today",) for u in results[date(2025, 11, 26)].unassigned_tasks)


def test_auto_fill_and_publish(repo):
    repo.upsert("areas", [Area(id="area-floor", name="Floor")])
    repo.upsert(
        "staffing_targets",
        [StaffingTarget(id="tg", day="Mon", area_id="area-floor", start="08:00", end="12:00", required_count=2)],
    )
    orchestrator = Orchestrator(repo)

    result = orchestrator.auto_fill([MONDAY])
    assert len(result.generated_planned_shifts) == 2
    assert len(repo.select("planned_shifts")) == 2
    assert orchestrator.detect_conflicts([MONDAY]) == []

    published = orchestrator.publish([MONDAY])
    assert len(published) == 2
    assert {s.status for s in repo.select("planned_shifts")} == {"published"}


@pytest.mark.integration
def test_orchestrator_with_database(db_session, members, schedule, task_factory):
    repo = SqlAlchemyRepository(db_session)
    repo.upsert("members", members)
    repo.upsert("weekly_schedule", schedule)
    repo.upsert("tasks", [task_factory("a"), task_factory("b", skill_ids=("sk-welding",))])

    result = Orchestrator(repo).generate_day(MONDAY)

    assert [a.task_id for a in repo.select("assignments")] == ["a"]
    assert [u.reason for u in result.unassigned_tasks] == ["no_skill"]


def test_conflicts_from_stored_shifts(repo):
    repo.upsert(
        "planned_shifts",
        [PlannedShift(id="p1", member_id="m-ana", day="Mon", date=MONDAY, start="06:00", end="12:00")],
    )
    conflicts = Orchestrator(repo).detect_conflicts([MONDAY])
    assert [c.type for c in conflicts] == ["availability-violation"]


def test_locked_assignment_for_deleted_task_does_not_block_day(repo):
    orphan = Assignment(
        id="orphan", task_id="t-gone", member_id="m-ben", date=MONDAY,
        start_time="07:00", end_time="08:00", duration=60, locked=True,
    )
    repo.upsert("assignments", [orphan])

    result = Orchestrator(repo).generate_day(MONDAY)

    assert orphan in result.assignments
    assert {"a", "b"} <= {a.task_id for a in result.assignments}
    assert repo.get("assignments", "orphan") == orphan

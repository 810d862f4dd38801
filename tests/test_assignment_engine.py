"""Tests for the daily assignment engine."""

from datetime import date

from worklist.config import ManagerSettings
from worklist.domain.entities import (
    CAPACITY_FULL,
    NO_SKILL,
    NO_SKILL_OR_CAPACITY,
    NO_STAFF_TODAY,
    Assignment,
    DaySchedule,
    ExplicitRule,
    Member,
    MemberSelector,
    RoleTagSelector,
    ScheduleShift,
)
from worklist.domain.records import from_record
from worklist.engine.assignment import generate_assignments
from worklist.services.selectors import DEFAULT_REASON


DAY = date(2025, 11, 24)


def _one_member_day(hours=8):
    member = Member(id="m1", name="Solo")
    end = f"{7 + hours:02d}:00"
    schedule = [DaySchedule(id="d1", date=DAY, shifts=(ScheduleShift(id="s1", member_id="m1", start="07:00", end=end),))]
    return [member], schedule


def _by_task(result):
    return {a.task_id: a for a in result.assignments}


def test_capacity_scenario_two_fit_third_full(task_factory):
    members, schedule = _one_member_day()
    tasks = [task_factory(t, duration=200, code=t.upper(), due_by="EOD") for t in ("a", "b", "c")]

    result = generate_assignments(
        members, tasks, [], schedule, [], ManagerSettings(over_capacity_threshold=0), DAY
    )

    assert sorted(a.task_id for a in result.assignments) == ["a", "b"]
    workload = result.daily_workloads[0]
    assert workload.capacity == 480
    assert workload.total_duration == 400
    assert len(result.unassigned_tasks) == 1
    assert result.unassigned_tasks[0].task.id == "c"
    assert result.unassigned_tasks[0].reasons == (CAPACITY_FULL,)
    assert result.over_capacity_members == []


def test_no_staff_today_marks_everything_unassigned(members, task_factory):
    tasks = [task_factory("a"), task_factory("b")]
    result = generate_assignments(members, tasks, [], [], [], ManagerSettings(), DAY)

    assert result.assignments == []
    assert result.daily_workloads == []
    assert [u.task.id for u in result.unassigned_tasks] == ["a", "b"]
    assert all(u.reasons == (NO_STAFF_TODAY,) for u in result.unassigned_tasks)


def test_no_staff_today_still_carries_locked(members, task_factory):
    tasks = [task_factory("a"), task_factory("b")]
    locked = Assignment(
        id="keep", task_id="a", member_id="m-ana", date=DAY,
        start_time="07:00", end_time="08:00", duration=60, locked=True,
    )
    result = generate_assignments(members, tasks, [], [], [locked], ManagerSettings(), DAY)

    assert result.assignments == [locked]
    assert [u.task.id for u in result.unassigned_tasks] == ["b"]


def test_locked_assignment_preserved_and_counted(members, schedule, task_factory):
    tasks = [task_factory("a", duration=400), task_factory("b", duration=100)]
    locked = Assignment(
        id="keep", task_id="a", member_id="m-ben", date=DAY,
        start_time="09:00", end_time="15:40", duration=400, reason="Manager pick", locked=True,
    )
    result = generate_assignments(members, tasks, [], schedule, [locked], ManagerSettings(), DAY)

    assert locked in result.assignments
    assert [a for a in result.assignments if a.task_id == "a"] == [locked]
    # Ben already carries 400 minutes, so the new task goes to Ana
    assert _by_task(result)["b"].member_id == "m-ana"


def test_locked_for_other_dates_ignored(members, schedule, task_factory):
    other = Assignment(
        id="old", task_id="a", member_id="m-ben", date=date(2025, 11, 23),
        start_time="07:00", end_time="08:00", duration=60, locked=True,
    )
    result = generate_assignments(members, [task_factory("a")], [], schedule, [other], ManagerSettings(), DAY)
    assert other not in result.assignments
    assert "a" in _by_task(result)


def test_lowest_load_then_member_id(members, schedule, task_factory):
    tasks = [
        task_factory("a", duration=120, code="A", due_by="09:00"),
        task_factory("b", duration=60, code="B", due_by="10:00"),
        task_factory("c", duration=30, code="C", due_by="11:00"),
    ]
    result = generate_assignments(members, tasks, [], schedule, [], ManagerSettings(), DAY)
    by_task = _by_task(result)

    # Equal loads tie-break on member id: m-ana < m-ben
    assert by_task["a"].member_id == "m-ana"
    assert by_task["b"].member_id == "m-ben"
    assert by_task["c"].member_id == "m-ben"
    assert by_task["a"].reason == DEFAULT_REASON


def test_skill_filter_and_reason_codes(members, schedule, task_factory):
    tasks = [
        task_factory("a", skill_ids=("sk-forklift",)),
        task_factory("b", skill_ids=("sk-welding",)),
    ]
    result = generate_assignments(members, tasks, [], schedule, [], ManagerSettings(), DAY)

    assert _by_task(result)["a"].member_id == "m-ana"
    unassigned = {u.task.id: u for u in result.unassigned_tasks}
    assert unassigned["b"].reasons == (NO_SKILL,)


def test_mixed_rejections_report_both_codes(members, schedule, task_factory):
    task = task_factory("a", duration=600, skill_ids=("sk-register",))
    result = generate_assignments(
        members, [task], [], schedule, [], ManagerSettings(over_capacity_threshold=0), DAY
    )
    assert result.unassigned_tasks[0].reasons == (NO_SKILL, CAPACITY_FULL)
    assert result.unassigned_tasks[0].reason == "no_skill, capacity_full"


def test_no_candidates_on_shift_reports_generic_code(task_factory):
    busy = Member(id="m1", name="Busy", fixed_commitments_minutes=480)
    schedule = [DaySchedule(id="d1", date=DAY, shifts=(ScheduleShift(id="s1", member_id="m1", start="07:00", end="15:00"),))]
    result = generate_assignments([busy], [task_factory("a")], [], schedule, [], ManagerSettings(), DAY)
    assert result.unassigned_tasks[0].reasons == (NO_SKILL_OR_CAPACITY,)


def test_rule_narrows_candidates_and_sets_reason(members, schedule, task_factory):
    task = task_factory("a", code="T1", name="Open registers")
    rule = ExplicitRule(
        id="r1",
        task_id="a",
        primary_selector=MemberSelector("m-ben"),
        reason_template="{member} opens registers.",
        earliest_start="06:30",
    )
    result = generate_assignments(members, [task], [rule], schedule, [], ManagerSettings(), DAY)

    assignment = _by_task(result)["a"]
    assert assignment.member_id == "m-ben"
    assert assignment.reason == "Ben opens registers."
    assert assignment.start_time == "06:30"
    assert assignment.end_time == "07:30"


def test_rule_excluded_day_skips_task(members, schedule, task_factory):
    task = task_factory("a")
    rule = ExplicitRule(id="r1", task_id="a", primary_selector=RoleTagSelector("lead"), exclude_days=("Monday",))
    result = generate_assignments(members, [task], [rule], schedule, [], ManagerSettings(), DAY)
    assert result.assignments == []
    assert result.unassigned_tasks == []


def test_invalid_rule_does_not_block_other_tasks(members, schedule, task_factory):
    bad = ExplicitRule(id="r-bad", task_id="ghost", primary_selector=MemberSelector("m-ben"))
    result = generate_assignments(members, [task_factory("a")], [bad], schedule, [], ManagerSettings(), DAY)
    assert "a" in _by_task(result)


def test_must_run_served_before_lower_priority(task_factory):
    members, schedule = _one_member_day(hours=2)
    filler = task_factory("a", duration=120, code="A", priority_weight=100, due_by="08:00")
    must = task_factory("b", duration=120, code="B", priority_weight=1, due_by="EOD", is_must_run=True)

    result = generate_assignments(
        members, [filler, must], [], schedule, [], ManagerSettings(over_capacity_threshold=0), DAY
    )
    assert [a.task_id for a in result.assignments] == ["b"]
    assert [u.task.id for u in result.unassigned_tasks] == ["a"]


def test_upkeep_not_counted_against_capacity(task_factory):
    members, schedule = _one_member_day(hours=1)
    upkeep = task_factory("u", duration=480, task_type="upkeep")
    work = task_factory("w", duration=60)

    result = generate_assignments(
        members, [upkeep, work], [], schedule, [], ManagerSettings(over_capacity_threshold=0), DAY
    )
    assert {a.task_id for a in result.assignments} == {"u", "w"}
    workload = result.daily_workloads[0]
    assert workload.total_duration == 60
    assert workload.upkeep_duration == 480


def test_min_coverage_assigns_several_members(members, schedule, task_factory):
    task = task_factory("a", duration=90, min_coverage=2)
    result = generate_assignments(members, [task], [], schedule, [], ManagerSettings(), DAY)

    assert sorted(a.member_id for a in result.assignments) == ["m-ana", "m-ben"]
    assert all(a.duration == 90 for a in result.assignments)
    assert len({a.id for a in result.assignments}) == 2


def test_over_capacity_reported_within_threshold(task_factory):
    members, schedule = _one_member_day(hours=1)
    task = task_factory("a", duration=80)
    result = generate_assignments(
        members, [task], [], schedule, [], ManagerSettings(over_capacity_threshold=30), DAY
    )
    assert len(result.over_capacity_members) == 1
    assert result.over_capacity_members[0].over_capacity == 20


def test_weekly_recurrence_only_on_its_day(members, schedule, task_factory):
    weekly = task_factory("a", recurrence_type="weekly", recurrence_detail="Tuesday")
    result = generate_assignments(members, [weekly], [], schedule, [], ManagerSettings(), DAY)
    assert result.assignments == []
    assert result.unassigned_tasks == []


def test_identical_inputs_give_identical_output(members, schedule, task_factory):
    tasks = [task_factory(t, duration=45 + i * 10) for i, t in enumerate("abcdef")]
    settings = ManagerSettings(randomize_ties=True, tie_break_seed=7)

    first = generate_assignments(members, tasks, [], schedule, [], settings, DAY)
    second = generate_assignments(members, tasks, [], schedule, [], settings, DAY)
    assert first.assignments == second.assignments
    assert first.unassigned_tasks == second.unassigned_tasks


def test_inputs_are_not_mutated(members, schedule, task_factory):
    tasks = [task_factory("a"), task_factory("b")]
    snapshot = (list(members), list(tasks), list(schedule))
    generate_assignments(members, tasks, [], schedule, [], ManagerSettings(), DAY)
    assert (members, tasks, schedule) == snapshot


def test_start_time_falls_back_to_settings(members, schedule, task_factory):
    task = from_record("tasks", {"id": "a", "name": "Sweep", "estimated_duration": 60})
    explicit = task_factory("b", earliest_start="11:00")
    settings = ManagerSettings(assignment_start_time="09:30")
    result = generate_assignments(members, [task, explicit], [], schedule, [], settings, DAY)

    by_task = _by_task(result)
    assert (by_task["a"].start_time, by_task["a"].end_time) == ("09:30", "10:30")
    assert by_task["b"].start_time == "11:00"

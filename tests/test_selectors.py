"""Tests for selectors and explicit rule resolution."""

import logging

import pytest

from worklist.domain.entities import ExplicitRule, MemberSelector, RoleTagSelector, SkillSelector
from worklist.exceptions import ConfigurationError
from worklist.services.selectors import (
    active_rule,
    check_rule,
    render_reason,
    resolve_rule,
    selector_labels,
    valid_rules,
)


def test_selectors_resolve_candidates(members):
    assert MemberSelector("m-ben").resolve_candidates(members) == {"m-ben"}
    assert MemberSelector("m-nobody").resolve_candidates(members) == set()
    assert SkillSelector("sk-forklift").resolve_candidates(members) == {"m-ana"}
    assert RoleTagSelector("LEAD").resolve_candidates(members) == {"m-ana"}


def test_selector_describe():
    assert SkillSelector("sk-forklift").describe() == "skill:sk-forklift"
    assert RoleTagSelector("lead").kind == "role_tag"


def test_primary_selector_wins_when_eligible(members, task_factory):
    task = task_factory("a")
    rule = ExplicitRule(
        id="r1",
        task_id="a",
        primary_selector=MemberSelector("m-ben"),
        fallback_selectors=(RoleTagSelector("lead"),),
        reason_template="{member} owns {code}.",
    )
    match = resolve_rule(task, "Mon", [rule], members, ["m-ana", "m-ben"])
    assert match.member_ids == frozenset({"m-ben"})
    assert match.reason_for(task, members[1]) == "Ben owns A."


def test_fallback_used_when_primary_not_eligible(members, task_factory):
    task = task_factory("a")
    rule = ExplicitRule(
        id="r1",
        task_id="a",
        primary_selector=MemberSelector("m-ben"),
        fallback_selectors=(RoleTagSelector("lead"),),
    )
    match = resolve_rule(task, "Mon", [rule], members, ["m-ana"])
    assert match.selector == RoleTagSelector("lead")
    assert match.member_ids == frozenset({"m-ana"})


def test_no_match_returns_none(members, task_factory):
    task = task_factory("a")
    rule = ExplicitRule(id="r1", task_id="a", primary_selector=SkillSelector("sk-none"))
    assert resolve_rule(task, "Mon", [rule], members, ["m-ana", "m-ben"]) is None


def test_excluded_day_disables_rule(members, task_factory):
    task = task_factory("a")
    rule = ExplicitRule(
        id="r1", task_id="a", primary_selector=MemberSelector("m-ben"), exclude_days=("Mon",)
    )
    assert active_rule(task, "Monday", [rule]) is None
    assert resolve_rule(task, "Monday", [rule], members, ["m-ana", "m-ben"]) is None


def test_render_reason_keeps_unknown_placeholders(members, task_factory):
    task = task_factory("a", name="Unload truck")
    assert render_reason("{member} -> {task} {shift}", task, members[0]) == "Ana -> Unload truck {shift}"
    assert render_reason("odd {brace", task, members[0]) == "odd {brace"


def test_rule_with_unknown_task_is_skipped(task_factory, caplog):
    good = ExplicitRule(id="r1", task_id="a", primary_selector=RoleTagSelector("lead"))
    bad = ExplicitRule(id="r2", task_id="missing", primary_selector=RoleTagSelector("lead"))

    with pytest.raises(ConfigurationError):
        check_rule(bad, {"a"})

    with caplog.at_level(logging.WARNING):
        kept = valid_rules([good, bad], [task_factory("a")])
    assert kept == [good]
    assert "r2" in caplog.text


def test_selector_labels_use_member_names(members):
    rule = ExplicitRule(
        id="r1",
        task_id="a",
        primary_selector=MemberSelector("m-ana"),
        fallback_selectors=(SkillSelector("sk-register"),),
    )
    labels = selector_labels(rule, {m.id: m for m in members})
    assert labels == ["Ana", "skill:sk-register"]

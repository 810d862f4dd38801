"""Explicit rule resolution: selectors to candidate members."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Collection, Dict, List, Optional, Sequence

from worklist.domain.entities import ExplicitRule, Member, Selector, Task
from worklist.exceptions import ConfigurationError

from .timeplan import same_weekday


logger = logging.getLogger(__name__)

DEFAULT_REASON = "Assigned by skill and workload balance."
DEFAULT_COVERAGE_REASON = "Assigned by skill and workload balance (coverage)."


@dataclass(frozen=True)
class RuleMatch:
    """The rule and selector that narrowed a task's candidate pool."""

    rule: ExplicitRule
    selector: Selector
    member_ids: frozenset

    def reason_for(self, task: Task, member: Member) -> str:
        return render_reason(self.rule.reason_template, task, member)


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render_reason(template: str, task: Task, member: Member) -> str:
    """Fill ``{member}``, ``{task}`` and ``{code}`` in a rule's reason template."""
    values = _KeepMissing(member=member.name, task=task.name, code=task.code)
    try:
        return template.format_map(values)
    except (ValueError, IndexError):
        # Stray braces in a hand-written template
        return template


def check_rule(rule: ExplicitRule, task_ids: Collection[str]) -> None:
    """Raise ConfigurationError if the rule cannot be applied."""
    if rule.task_id not in task_ids:
        raise ConfigurationError(f"Rule {rule.id} references unknown task {rule.task_id!r}")
    for selector in rule.selectors:
        if not isinstance(selector, Selector):
            raise ConfigurationError(f"Rule {rule.id} has an invalid selector: {selector!r}")


def valid_rules(rules: Sequence[ExplicitRule], tasks: Sequence[Task]) -> List[ExplicitRule]:
    """Drop rules that fail validation, logging each one."""
    task_ids = {t.id for t in tasks}
    kept: List[ExplicitRule] = []
    for rule in rules:
        try:
            check_rule(rule, task_ids)
        except ConfigurationError as exc:
            logger.warning("Skipping rule: %s", exc)
            continue
        kept.append(rule)
    return kept


def active_rule(task: Task, weekday: str, rules: Sequence[ExplicitRule]) -> Optional[ExplicitRule]:
    """First rule bound to the task that does not exclude ``weekday``."""
    for rule in rules:
        if rule.task_id != task.id:
            continue
        if any(same_weekday(day, weekday) for day in rule.exclude_days):
            continue
        return rule
    return None


def resolve_rule(
    task: Task,
    weekday: str,
    rules: Sequence[ExplicitRule],
    members: Sequence[Member],
    eligible_ids: Collection[str],
) -> Optional[RuleMatch]:
    """
    Resolve the task's active rule against the eligible member pool.

    Selectors are tried in order (primary, then fallbacks); the first one
    designating at least one eligible member wins.

    Args:
        task: Task being assigned
        weekday: Weekday of the target date (any spelling)
        rules: Validated explicit rules
        members: Full member list
        eligible_ids: Members that passed skill and capacity checks

    Returns:
        RuleMatch, or None when no rule applies or every selector comes up empty
    """
    rule = active_rule(task, weekday, rules)
    if rule is None:
        return None

    eligible = set(eligible_ids)
    for selector in rule.selectors:
        pool = selector.resolve_candidates(members) & eligible
        if pool:
            logger.debug("Task %s: rule %s matched via %s", task.code, rule.id, selector.describe())
            return RuleMatch(rule=rule, selector=selector, member_ids=frozenset(pool))

    logger.debug("Task %s: rule %s found no eligible member", task.code, rule.id)
    return None


def selector_labels(rule: ExplicitRule, members_by_id: Dict[str, Member]) -> List[str]:
    """Human-readable selector names for summaries."""
    labels = []
    for selector in rule.selectors:
        if selector.kind == "member" and selector.value in members_by_id:
            labels.append(members_by_id[selector.value].name)
        else:
            labels.append(selector.describe())
    return labels

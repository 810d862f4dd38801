"""Conversion between entities and plain JSON-compatible records."""

from __future__ import annotations

import uuid
from dataclasses import fields, is_dataclass
from datetime import date
from typing import Any, Callable, Dict, Mapping

from worklist.exceptions import ConfigurationError
from worklist.services.timeplan import normalize_weekday

from .entities import (
    ASSIGNMENT_STATUSES,
    PLANNED_SHIFT_SOURCES,
    PLANNED_SHIFT_STATUSES,
    RECURRENCE_TYPES,
    SELECTOR_TYPES,
    SHIFT_CLASSES,
    TASK_TYPES,
    Area,
    Assignment,
    Availability,
    AvailabilityWindow,
    DaySchedule,
    ExplicitRule,
    Member,
    OrderSet,
    OrderSetItem,
    PlannedShift,
    ScheduleShift,
    Selector,
    StaffingTarget,
    Task,
)


# Selector modes written by older exports
_SELECTOR_ALIASES = {"tag": "role_tag", "role": "role_tag", "employee": "member"}


def to_record(entity: Any) -> Dict[str, Any]:
    """Flatten an entity into a JSON-compatible dict."""
    return _plain(entity)


def _plain(value: Any) -> Any:
    if isinstance(value, Selector):
        return {"kind": value.kind, "value": value.value}
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


def from_record(collection: str, data: Mapping[str, Any]) -> Any:
    """
    Build the entity stored in ``collection`` from a plain record.

    Missing ids are generated; legacy field spellings from older exports
    are accepted.

    Args:
        collection: Collection name (see ``COLLECTIONS``)
        data: Record as read from JSON/YAML or the database

    Returns:
        The frozen entity

    Raises:
        ConfigurationError: Unknown collection, unknown selector kind, a
            record missing required fields or an enumerated field outside
            its allowed values
    """
    try:
        decoder = _DECODERS[collection]
    except KeyError:
        raise ConfigurationError(f"Unknown collection: {collection!r}") from None

    record = dict(data)
    record.setdefault("id", str(uuid.uuid4()))
    try:
        return decoder(record)
    except ConfigurationError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid {collection} record {record.get('id')!r}: {exc}") from exc


def decode_selector(data: Mapping[str, Any] | Selector) -> Selector:
    if isinstance(data, Selector):
        return data
    kind = str(data.get("kind") or data.get("mode") or "").lower()
    kind = _SELECTOR_ALIASES.get(kind, kind)
    try:
        selector_cls = SELECTOR_TYPES[kind]
    except KeyError:
        raise ConfigurationError(f"Unknown selector kind: {kind!r}") from None
    return selector_cls(str(data.get("value", "")))


def _date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _strings(value: Any) -> tuple:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _known(cls: type, record: Mapping[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in record.items() if k in names}


def _check_choice(record: Mapping[str, Any], key: str, choices: tuple) -> None:
    value = record.get(key)
    if value not in choices:
        raise ConfigurationError(f"{key} must be one of {', '.join(choices)}; got {value!r}")


def _check_weekday(value: Any) -> None:
    try:
        normalize_weekday(str(value))
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from None


def _member(record: Dict[str, Any]) -> Member:
    # Legacy exports carry free-text strengths instead of skill ids
    if not record.get("skill_ids") and record.get("strengths"):
        record["skill_ids"] = record["strengths"]
    for key in ("role_tags", "skill_ids", "shift_class_preference"):
        record[key] = _strings(record.get(key))
    for shift_class in record["shift_class_preference"]:
        if shift_class not in SHIFT_CLASSES:
            raise ConfigurationError(f"Unknown shift class: {shift_class!r}")
    record["availability"] = tuple(
        w if isinstance(w, AvailabilityWindow) else AvailabilityWindow(day=w["day"], start=w["start"], end=w["end"])
        for w in record.get("availability") or ()
    )
    for window in record["availability"]:
        _check_weekday(window.day)
    record["fixed_commitments_minutes"] = int(record.get("fixed_commitments_minutes") or 0)
    return Member(**_known(Member, record))


def _task(record: Dict[str, Any]) -> Task:
    if not record.get("skill_ids") and record.get("skill_required"):
        record["skill_ids"] = record["skill_required"]
    record["skill_ids"] = _strings(record.get("skill_ids"))
    record["estimated_duration"] = int(record.get("estimated_duration") or 30)
    for key, default in (
        ("priority_weight", 50),
        ("due_by", "17:00"),
        ("recurrence_type", "daily"),
        ("task_type", "standard"),
    ):
        if not record.get(key):
            record[key] = default
    if record.get("allow_multi_assign") is None:
        record["allow_multi_assign"] = True
    _check_choice(record, "task_type", TASK_TYPES)
    _check_choice(record, "recurrence_type", RECURRENCE_TYPES)
    record.setdefault("code", "")
    return Task(**_known(Task, record))


def _rule(record: Dict[str, Any]) -> ExplicitRule:
    if "exclude_day" in record and "exclude_days" not in record:
        record["exclude_days"] = record["exclude_day"]
    record["exclude_days"] = _strings(record.get("exclude_days"))
    record["primary_selector"] = decode_selector(record["primary_selector"])
    record["fallback_selectors"] = tuple(decode_selector(s) for s in record.get("fallback_selectors") or ())
    if not record.get("reason_template"):
        record.pop("reason_template", None)
    return ExplicitRule(**_known(ExplicitRule, record))


def _day_schedule(record: Dict[str, Any]) -> DaySchedule:
    shifts = []
    for shift in record.get("shifts") or ():
        if isinstance(shift, ScheduleShift):
            shifts.append(shift)
            continue
        shift = dict(shift)
        shift.setdefault("id", str(uuid.uuid4()))
        shifts.append(ScheduleShift(**_known(ScheduleShift, shift)))
    return DaySchedule(id=record["id"], date=_date(record["date"]), shifts=tuple(shifts))


def _assignment(record: Dict[str, Any]) -> Assignment:
    record["date"] = _date(record["date"])
    record["locked"] = bool(record.get("locked", False))
    record.setdefault("status", "assigned")
    _check_choice(record, "status", ASSIGNMENT_STATUSES)
    return Assignment(**_known(Assignment, record))


def _planned_shift(record: Dict[str, Any]) -> PlannedShift:
    record["date"] = _date(record["date"])
    _check_weekday(record["day"])
    record.setdefault("source", "planner")
    record.setdefault("status", "draft")
    _check_choice(record, "source", PLANNED_SHIFT_SOURCES)
    _check_choice(record, "status", PLANNED_SHIFT_STATUSES)
    return PlannedShift(**_known(PlannedShift, record))


def _availability(record: Dict[str, Any]) -> Availability:
    _check_weekday(record["day"])
    return Availability(**_known(Availability, record))


def _plain_entity(cls: type) -> Callable[[Dict[str, Any]], Any]:
    def decode(record: Dict[str, Any]) -> Any:
        return cls(**_known(cls, record))
    return decode


_DECODERS: Dict[str, Callable[[Dict[str, Any]], Any]] = {
    "members": _member,
    "tasks": _task,
    "explicit_rules": _rule,
    "weekly_schedule": _day_schedule,
    "assignments": _assignment,
    "planned_shifts": _planned_shift,
    "areas": _plain_entity(Area),
    "order_sets": _plain_entity(OrderSet),
    "order_set_items": _plain_entity(OrderSetItem),
    "staffing_targets": _plain_entity(StaffingTarget),
    "availability": _availability,
}

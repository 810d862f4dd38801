"""Manager settings: defaults and loading from YAML or JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .exceptions import ConfigurationError


DEFAULT_PLANNER_WEIGHTS: Dict[str, float] = {
    "base": 100.0,
    "area_affinity": 50.0,
    "shift_class_preference": 30.0,
    "workload_penalty_per_hour": 1.0,
}

# camelCase keys written by the web client
_ALIASES = {
    "overCapacityThreshold": "over_capacity_threshold",
    "tieBreakSeed": "tie_break_seed",
    "assignmentStartTime": "assignment_start_time",
    "floorSlaTime": "floor_sla_time",
    "plannerSeed": "planner_seed",
    "defaultPlanningPeriod": "default_planning_period",
    "defaultSlotDuration": "default_slot_duration",
}


@dataclass(frozen=True)
class ManagerSettings:
    over_capacity_threshold: int = 30
    tie_break_seed: int = 12345
    assignment_start_time: str = "07:00"
    floor_sla_time: int = 240
    planner_seed: Optional[int] = None
    default_planning_period: int = 7
    default_slot_duration: int = 60
    randomize_ties: bool = False
    min_break_minutes: int = 30
    planner_weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_PLANNER_WEIGHTS))

    def weight(self, name: str) -> float:
        return float(self.planner_weights.get(name, DEFAULT_PLANNER_WEIGHTS.get(name, 0.0)))


def settings_from_mapping(data: Mapping[str, Any] | None) -> ManagerSettings:
    """Build settings from a plain mapping, accepting camelCase keys."""
    if not data:
        return ManagerSettings()

    known = {f.name for f in fields(ManagerSettings)}
    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        name = _ALIASES.get(key, key)
        if name == "id":
            continue
        if name not in known:
            raise ConfigurationError(f"Unknown settings key: {key!r}")
        kwargs[name] = value

    if "planner_weights" in kwargs:
        weights = dict(DEFAULT_PLANNER_WEIGHTS)
        weights.update({str(k): float(v) for k, v in (kwargs["planner_weights"] or {}).items()})
        kwargs["planner_weights"] = weights

    settings = replace(ManagerSettings(), **kwargs)
    _validate(settings)
    return settings


def _validate(settings: ManagerSettings) -> None:
    if settings.over_capacity_threshold < 0:
        raise ConfigurationError("over_capacity_threshold must be >= 0")
    if settings.default_planning_period <= 0:
        raise ConfigurationError("default_planning_period must be positive")
    parts = str(settings.assignment_start_time).split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ConfigurationError(
            f"assignment_start_time must be HH:MM, got {settings.assignment_start_time!r}"
        )


def load_config(path: str | Path) -> ManagerSettings:
    """
    Load manager settings from a YAML or JSON file.

    The file may hold the settings at the top level or under a
    ``manager_settings`` key.

    Args:
        path: Path to a ``.yaml``/``.yml`` or ``.json`` file

    Returns:
        ManagerSettings with defaults for any missing key

    Raises:
        ConfigurationError: If the file holds unknown keys or invalid values
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")
    if "manager_settings" in data:
        data = data["manager_settings"] or {}
    return settings_from_mapping(data)

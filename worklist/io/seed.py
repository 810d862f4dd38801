"""Load a YAML or JSON seed file into a repository."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from worklist.domain.entities import COLLECTIONS
from worklist.domain.records import from_record
from worklist.domain.repositories import Repository
from worklist.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

# Top-level keys used by web client exports
_KEY_ALIASES = {
    "weeklySchedule": "weekly_schedule",
    "explicitRules": "explicit_rules",
    "orderSets": "order_sets",
    "orderSetItems": "order_set_items",
    "staffingTargets": "staffing_targets",
    "plannedShifts": "planned_shifts",
    "managerSettings": "manager_settings",
}


def read_seed(path: str | Path) -> Dict[str, Any]:
    """Read a seed file into a mapping of collection name to records."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Seed file {path} must contain a mapping of collections")
    return {_KEY_ALIASES.get(key, key): value for key, value in data.items()}


def load_seed(repository: Repository, path: str | Path) -> Dict[str, int]:
    """
    Decode every collection in a seed file and upsert it.

    ``manager_settings`` is left to ``worklist.config.load_config``; other
    unknown keys are skipped with a warning.

    Args:
        repository: Target repository
        path: Path to a ``.yaml``/``.yml`` or ``.json`` seed file

    Returns:
        Number of records written per collection

    Raises:
        ConfigurationError: If a record cannot be decoded
    """
    data = read_seed(path)
    counts: Dict[str, int] = {}
    for collection, records in data.items():
        if collection == "manager_settings":
            continue
        if collection not in COLLECTIONS:
            logger.warning("Skipping unknown collection %r in %s", collection, path)
            continue
        entities: List[Any] = [from_record(collection, record) for record in records or []]
        counts[collection] = repository.upsert(collection, entities)
    logger.info("Loaded seed %s: %s", path, counts)
    return counts

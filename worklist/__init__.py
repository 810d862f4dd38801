"""Worklist package: daily task assignment and shift planning.

Modules:
- config: manager settings (YAML or JSON)
- domain: entities, record codec, SQLAlchemy store and repositories
- services: time helpers, rule resolver, prioritizer, capacity tracker,
  eligibility predicates, candidate scoring and tie-breaking
- engine: daily assignment engine, shift auto-fill planner, conflict
  detector and the orchestrator that wires them to a repository
- validator: post-generation validations and pandas summaries
- io: seed loading and CSV export
- cli: command-line interface entrypoints
"""

__all__ = [
    "config",
    "domain",
    "services",
    "engine",
    "validator",
    "io",
    "cli",
]

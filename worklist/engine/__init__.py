"""Assignment engine, shift auto-fill planner and conflict detector."""

from .assignment import AssignmentResult, generate_assignments
from .autofill import AutoFillResult, auto_fill_schedule
from .conflicts import calculate_planner_conflicts
from .orchestrator import Orchestrator, build_day_assignments

__all__ = [
    "AssignmentResult",
    "generate_assignments",
    "AutoFillResult",
    "auto_fill_schedule",
    "calculate_planner_conflicts",
    "Orchestrator",
    "build_day_assignments",
]

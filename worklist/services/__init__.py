"""Services for assignment and planning logic."""

from .capacity import CapacityTracker, member_capacity
from .constraints import can_take_shift, task_rejection
from .prioritizer import order_tasks, priority_score
from .scoring import calculate_member_score
from .selectors import resolve_rule
from .timeplan import calculate_duration, shift_class_for

__all__ = [
    "CapacityTracker",
    "member_capacity",
    "can_take_shift",
    "task_rejection",
    "order_tasks",
    "priority_score",
    "calculate_member_score",
    "resolve_rule",
    "calculate_duration",
    "shift_class_for",
]

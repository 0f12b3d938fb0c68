"""Plan model, builder and evaluator.

The evaluator is a pure function of (plan shape, status snapshot): it answers
which tasks may be dispatched next and whether the plan as a whole has
finished. Persisting statuses and running tasks belong to the caller.
"""

from task_planner.plan.builder import PlanBuilder, parallel, serial
from task_planner.plan.errors import (
    DuplicateTaskName,
    InvalidPlanDocument,
    InvalidStatus,
    PlannerError,
    UnknownTaskName,
)
from task_planner.plan.evaluator import eligible, status
from task_planner.plan.models import Group, GroupKind, Plan, Slot, SlotRole, Status, Task

__all__ = [
    "DuplicateTaskName",
    "Group",
    "GroupKind",
    "InvalidPlanDocument",
    "InvalidStatus",
    "Plan",
    "PlanBuilder",
    "PlannerError",
    "Slot",
    "SlotRole",
    "Status",
    "Task",
    "UnknownTaskName",
    "eligible",
    "parallel",
    "serial",
    "status",
]

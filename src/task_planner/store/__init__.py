"""Status store adapters."""

from task_planner.store.base import StatusStore
from task_planner.store.memory import InMemoryStatusStore
from task_planner.store.sqlite import SQLiteStatusStore

__all__ = ["InMemoryStatusStore", "SQLiteStatusStore", "StatusStore"]

"""In-process status store guarded by a lock."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping

from task_planner.plan.models import Status
from task_planner.store.base import parse_updates

logger = logging.getLogger(__name__)


class InMemoryStatusStore:
    """Status store for tests and single-process callers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._plans: dict[str, dict[str, Status]] = {}

    def register(self, plan_id: str, task_names: Iterable[str]) -> int:
        names = list(dict.fromkeys(task_names))
        with self._lock:
            current = self._plans.get(plan_id, {})
            added = sum(1 for name in names if name not in current)
            self._plans[plan_id] = {
                name: current.get(name, Status.UNSTARTED) for name in names
            }
        return added

    def apply_and_read(
        self,
        plan_id: str,
        updates: Mapping[str, Status | str],
    ) -> dict[str, Status]:
        parsed = parse_updates(updates)
        with self._lock:
            states = self._plans.setdefault(plan_id, {})
            for name, value in parsed.items():
                if name not in states:
                    logger.debug("Ignoring update for unregistered task %s in plan %s", name, plan_id)
                    continue
                states[name] = value
            return dict(states)

    def read(self, plan_id: str) -> dict[str, Status]:
        with self._lock:
            return dict(self._plans.get(plan_id, {}))

    def reset(self, plan_id: str) -> int:
        with self._lock:
            states = self._plans.get(plan_id, {})
            for name in states:
                states[name] = Status.UNSTARTED
            return len(states)

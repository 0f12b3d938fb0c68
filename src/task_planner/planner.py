"""Planner service: one plan bound to one injected status store."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from task_planner.plan.evaluator import eligible, status
from task_planner.plan.models import Plan, Status
from task_planner.storage.sqlmodel_models import DEFAULT_PLAN_ID
from task_planner.store.base import StatusStore

logger = logging.getLogger(__name__)


class Planner:
    """Pull-based loop facade: report outcomes, then ask what's next or whether it's done."""

    def __init__(self, plan: Plan, store: StatusStore, *, plan_id: str = DEFAULT_PLAN_ID) -> None:
        self.plan = plan
        self.store = store
        self.plan_id = plan_id

    def register(self) -> int:
        """Register the plan's tasks with the store, keeping known statuses."""

        added = self.store.register(self.plan_id, self.plan.task_names)
        logger.info(
            "Registered plan %s: tasks=%d new=%d",
            self.plan_id,
            len(self.plan.task_names),
            added,
        )
        return added

    def next(self, updates: Mapping[str, Status | str] | None = None) -> list[str]:
        """Apply a batch of status updates, then return the eligible task names."""

        snapshot = self._apply(updates)
        names = eligible(self.plan, snapshot)
        logger.debug("Plan %s eligible: %s", self.plan_id, names)
        return names

    def state(self, updates: Mapping[str, Status | str] | None = None) -> Status:
        """Apply a batch of status updates, then return the rolled-up plan status."""

        snapshot = self._apply(updates)
        result = status(self.plan, snapshot)
        logger.debug("Plan %s status: %s", self.plan_id, result.value)
        return result

    def snapshot(self) -> dict[str, Status]:
        return self._known(self.store.read(self.plan_id))

    def reset(self) -> int:
        count = self.store.reset(self.plan_id)
        logger.info("Reset %d task(s) of plan %s", count, self.plan_id)
        return count

    def _apply(self, updates: Mapping[str, Status | str] | None) -> dict[str, Status]:
        if updates:
            logger.info(
                "Plan %s updates: %s",
                self.plan_id,
                ", ".join(f"{name}={Status.parse(value).value}" for name, value in updates.items()),
            )
        return self._known(self.store.apply_and_read(self.plan_id, updates or {}))

    def _known(self, snapshot: dict[str, Status]) -> dict[str, Status]:
        # Stale rows from an earlier shape of the plan.
        names = set(self.plan.task_names)
        return {name: value for name, value in snapshot.items() if name in names}

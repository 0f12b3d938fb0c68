"""Status store contract consumed by the planner service."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol

from task_planner.plan.models import Status


class StatusStore(Protocol):
    """Per-plan mapping from task name to status.

    ``apply_and_read`` must merge the updates and read the resulting snapshot
    as one atomic unit with respect to concurrent callers.
    """

    def register(self, plan_id: str, task_names: Iterable[str]) -> int:
        """Ensure every task has a row, drop rows of tasks no longer in the plan.

        Returns the number of newly registered tasks.
        """

    def apply_and_read(
        self,
        plan_id: str,
        updates: Mapping[str, Status | str],
    ) -> dict[str, Status]:
        """Merge updates for registered tasks and return the full snapshot."""

    def read(self, plan_id: str) -> dict[str, Status]:
        """Return the current snapshot without modifying it."""

    def reset(self, plan_id: str) -> int:
        """Set every registered task back to unstarted; returns affected count."""


def parse_updates(updates: Mapping[str, Status | str]) -> dict[str, Status]:
    """Validate every update value before any of them is applied."""

    return {name: Status.parse(value) for name, value in updates.items()}

"""Errors raised while building or evaluating plans."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class PlannerError(Exception):
    """Base planner error."""

    message: str
    code: str = "planner_error"

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class DuplicateTaskName(PlannerError):
    """Two tasks share one name within a single plan."""

    name: str = ""
    code: str = "duplicate_task_name"


@dataclass(slots=True)
class InvalidStatus(PlannerError):
    """Status value outside unstarted/pending/success/failed."""

    value: object = None
    code: str = "invalid_status"


@dataclass(slots=True)
class UnknownTaskName(PlannerError):
    """Snapshot refers to a task that the plan does not contain."""

    names: tuple[str, ...] = ()
    code: str = "unknown_task_name"


@dataclass(slots=True)
class InvalidPlanDocument(PlannerError):
    """Plan document does not follow the serial/parallel literal format."""

    path: str | None = None
    code: str = "invalid_plan_document"

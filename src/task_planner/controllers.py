"""Controllers for planner CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from task_planner.config import Settings
from task_planner.plan.document import load_plan
from task_planner.plan.models import Plan
from task_planner.plan.render import count_by_status, render_plan
from task_planner.planner import Planner
from task_planner.store.sqlite import SQLiteStatusStore


@dataclass(slots=True)
class PlanCommand:
    """CLI inputs shared by every plan command."""

    plan_path: Path
    db_path: Path | None
    plan_id: str | None


@dataclass(slots=True)
class PlanUpdateCommand(PlanCommand):
    """CLI inputs for commands that apply status updates before evaluating."""

    assignments: tuple[str, ...] = ()


class PlannerCliController:
    """Coordinates plan registration, evaluation and inspection."""

    def init(self, command: PlanCommand) -> list[str]:
        settings, plan = _load(command)
        with _planner(settings, plan) as planner:
            added = planner.register()
            state = planner.state()
        return [
            "Plan registered: "
            f"plan_id={settings.plan_id} tasks={len(plan.task_names)} "
            f"new={added} status={state.value}",
        ]

    def next(self, command: PlanUpdateCommand) -> list[str]:
        settings, plan = _load(command)
        updates = parse_assignments(command.assignments)
        with _planner(settings, plan) as planner:
            planner.register()
            return planner.next(updates)

    def state(self, command: PlanUpdateCommand) -> list[str]:
        settings, plan = _load(command)
        updates = parse_assignments(command.assignments)
        with _planner(settings, plan) as planner:
            planner.register()
            return [planner.state(updates).value]

    def show(self, command: PlanCommand) -> list[str]:
        settings, plan = _load(command)
        with _planner(settings, plan) as planner:
            planner.register()
            snapshot = planner.snapshot()
        counts = count_by_status(plan, snapshot)
        return [
            *render_plan(plan, snapshot),
            "Tasks: " + " ".join(f"{name}={count}" for name, count in counts.items()),
        ]

    def reset(self, command: PlanCommand) -> list[str]:
        settings, plan = _load(command)
        with _planner(settings, plan) as planner:
            planner.register()
            count = planner.reset()
        return [f"Plan reset: plan_id={settings.plan_id} tasks={count}"]


def parse_assignments(values: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated ``NAME=STATUS`` options, later values win."""

    updates: dict[str, str] = {}
    for value in values:
        name, separator, state = value.partition("=")
        name = name.strip()
        if not separator or not name:
            raise ValueError(f"Invalid status update {value!r}. Expected format 'NAME=STATUS'.")
        updates[name] = state.strip()
    return updates


def _load(command: PlanCommand) -> tuple[Settings, Plan]:
    settings = Settings.from_env(db_path=command.db_path, plan_id=command.plan_id)
    settings.validate()
    return settings, load_plan(command.plan_path)


@contextmanager
def _planner(settings: Settings, plan: Plan) -> Iterator[Planner]:
    store = SQLiteStatusStore(
        settings.db_path,
        sqlite_busy_timeout_ms=settings.sqlite_busy_timeout_ms,
    )
    try:
        store.init_schema()
        yield Planner(plan, store, plan_id=settings.plan_id)
    finally:
        store.close()

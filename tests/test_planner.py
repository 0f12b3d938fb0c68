from __future__ import annotations

from pathlib import Path

import allure
import pytest

from task_planner.plan import InvalidStatus, serial
from task_planner.plan.models import Plan, Status
from task_planner.planner import Planner
from task_planner.store import InMemoryStatusStore, SQLiteStatusStore

pytestmark = [
    allure.epic("Status Store"),
    allure.feature("Planner Service"),
]


def _release_plan() -> Plan:
    with serial() as builder:
        builder.task("build")
        with builder.parallel() as checks:
            checks.task("lint")
            checks.task("unit")
        with builder.failure() as on_failure:
            on_failure.task("notify")
        builder.task("publish")
    return builder.build()


def test_planner_accumulates_updates_between_calls(memory_store: InMemoryStatusStore) -> None:
    planner = Planner(_release_plan(), memory_store)
    planner.register()

    assert planner.next() == ["build"]
    assert planner.next({"build": "pending"}) == []
    assert planner.state() is Status.PENDING
    assert planner.next({"build": "success"}) == ["lint", "unit"]
    assert planner.next({"lint": "success"}) == ["unit"]
    assert planner.next({"unit": "success"}) == ["publish"]
    assert planner.state({"publish": "success"}) is Status.SUCCESS
    assert planner.next() == []


def test_planner_schedules_failure_handler(memory_store: InMemoryStatusStore) -> None:
    planner = Planner(_release_plan(), memory_store)
    planner.register()

    assert planner.next({"build": "success", "lint": "failed", "unit": "success"}) == ["notify"]
    assert planner.state({"notify": "success"}) is Status.FAILED


def test_planner_reset_starts_over(memory_store: InMemoryStatusStore) -> None:
    planner = Planner(_release_plan(), memory_store)
    planner.register()
    planner.next({"build": "success", "lint": "success"})

    assert planner.reset() == 5
    assert planner.next() == ["build"]
    assert set(planner.snapshot().values()) == {Status.UNSTARTED}


def test_invalid_update_leaves_store_untouched(memory_store: InMemoryStatusStore) -> None:
    planner = Planner(_release_plan(), memory_store)
    planner.register()

    with pytest.raises(InvalidStatus):
        planner.next({"build": "success", "lint": "done"})

    assert planner.next() == ["build"]


def test_stale_store_rows_do_not_reach_the_evaluator(memory_store: InMemoryStatusStore) -> None:
    memory_store.register("default", ["build", "retired"])
    memory_store.apply_and_read("default", {"build": "success", "retired": "failed"})
    planner = Planner(_release_plan(), memory_store)

    assert planner.next() == ["lint", "unit"]
    assert planner.snapshot() == {"build": Status.SUCCESS}


def test_planners_with_separate_plan_ids_share_one_store(
    memory_store: InMemoryStatusStore,
) -> None:
    first = Planner(_release_plan(), memory_store, plan_id="first")
    second = Planner(_release_plan(), memory_store, plan_id="second")
    first.register()
    second.register()

    assert first.next({"build": "failed"}) == ["notify"]

    assert first.state() is Status.FAILED
    assert second.next() == ["build"]
    assert second.state() is Status.UNSTARTED


def test_planner_over_sqlite_store_resumes_from_disk(tmp_path: Path) -> None:
    db_path = tmp_path / "planner.db"
    store = SQLiteStatusStore(db_path)
    store.init_schema()
    planner = Planner(_release_plan(), store, plan_id="release")
    assert planner.register() == 5
    planner.next({"build": "success", "lint": "success"})
    store.close()

    reopened = SQLiteStatusStore(db_path)
    reopened.init_schema()
    try:
        resumed = Planner(_release_plan(), reopened, plan_id="release")
        assert resumed.register() == 0
        assert resumed.next() == ["unit"]
        assert resumed.state({"unit": "success", "publish": "success"}) is Status.SUCCESS
    finally:
        reopened.close()

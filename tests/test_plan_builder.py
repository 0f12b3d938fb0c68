from __future__ import annotations

import dataclasses

import allure
import pytest

from task_planner.plan import DuplicateTaskName, parallel, serial
from task_planner.plan.models import Group, GroupKind, SlotRole, Status, Task

pytestmark = [
    allure.epic("Plan Engine"),
    allure.feature("Builder"),
]


def test_builder_keeps_declaration_order_and_kinds() -> None:
    with serial() as builder:
        builder.task("A")
        with builder.parallel() as fan_out:
            fan_out.task("B")
            with fan_out.serial() as chain:
                chain.task("C")
                chain.task("D")
        builder.task("E")
    plan = builder.build()

    assert plan.root.kind is GroupKind.SERIAL
    assert plan.task_names == ("A", "B", "C", "D", "E")
    first, nested, last = plan.root.slots
    assert first.role is SlotRole.MAIN
    assert first.node == Task(name="A")
    assert isinstance(nested.node, Group)
    assert nested.node.kind is GroupKind.PARALLEL
    assert [slot.node for slot in nested.node.slots][0] == Task(name="B")
    assert last.node == Task(name="E")


def test_top_level_parallel_builds_parallel_root() -> None:
    with parallel() as builder:
        builder.task("A")
        builder.task("B")

    plan = builder.build()

    assert plan.root.kind is GroupKind.PARALLEL
    assert plan.eligible() == ["A", "B"]


def test_duplicate_task_name_is_rejected_anywhere_in_the_plan() -> None:
    builder = serial()
    builder.task("A")

    with pytest.raises(DuplicateTaskName, match="'A' is already defined") as error:
        with builder.parallel() as nested:
            nested.task("B")
            with nested.failure() as on_failure:
                on_failure.task("A")

    assert error.value.name == "A"
    assert error.value.code == "duplicate_task_name"


def test_try_body_with_single_task_is_attached_as_task() -> None:
    builder = serial()
    builder.task("A")
    with builder.try_() as attempt:
        attempt.task("B")

    slot = builder.build().root.slots[1]

    assert slot.role is SlotRole.TRY
    assert slot.node == Task(name="B")


def test_handler_body_with_several_tasks_is_an_implicit_serial_group() -> None:
    builder = parallel()
    builder.task("A")
    with builder.success() as on_success:
        on_success.task("B")
        on_success.task("C")

    plan = builder.build()
    handler = plan.root.handler(SlotRole.SUCCESS)

    assert handler is not None
    assert isinstance(handler.node, Group)
    assert handler.node.kind is GroupKind.SERIAL
    assert plan.eligible({"A": "success"}) == ["B"]


def test_redefining_a_handler_overwrites_the_previous_one() -> None:
    builder = serial()
    builder.task("A")
    with builder.failure() as first:
        first.task("cleanup")
    builder.task("B")
    with builder.failure() as second:
        second.task("notify")

    plan = builder.build()

    roles = [slot.role for slot in plan.root.slots]
    assert roles == [SlotRole.MAIN, SlotRole.FAILURE, SlotRole.MAIN]
    assert plan.root.handler(SlotRole.FAILURE).node == Task(name="notify")
    assert plan.task_names == ("A", "notify", "B")
    assert plan.eligible({"A": "failed"}) == ["notify"]


def test_body_raising_inside_with_block_is_not_attached() -> None:
    builder = serial()
    builder.task("A")

    with pytest.raises(RuntimeError):
        with builder.parallel() as nested:
            nested.task("B")
            raise RuntimeError("abort")

    builder.task("B")
    plan = builder.build()
    assert plan.task_names == ("A", "B")
    assert len(plan.root.slots) == 2


def test_redefined_handler_may_reuse_the_discarded_names() -> None:
    builder = serial()
    builder.task("A")
    with builder.failure() as first:
        first.task("C")
    with builder.failure() as second:
        second.task("C")
        second.task("D")

    plan = builder.build()

    assert plan.task_names == ("A", "C", "D")
    assert plan.eligible({"A": "failed"}) == ["C"]


def test_raising_handler_redefinition_keeps_the_previous_handler() -> None:
    builder = serial()
    builder.task("A")
    with builder.failure() as first:
        first.task("cleanup")

    with pytest.raises(RuntimeError):
        with builder.failure() as second:
            second.task("notify")
            raise RuntimeError("abort")

    with pytest.raises(DuplicateTaskName):
        builder.task("cleanup")
    builder.task("notify")
    plan = builder.build()
    assert plan.task_names == ("A", "cleanup", "notify")
    assert plan.root.handler(SlotRole.FAILURE).node == Task(name="cleanup")


def test_built_plan_is_immutable() -> None:
    builder = serial()
    builder.task("A")
    plan = builder.build()

    with pytest.raises(dataclasses.FrozenInstanceError):
        plan.root = Group(kind=GroupKind.PARALLEL)  # type: ignore[misc]
    with pytest.raises(dataclasses.FrozenInstanceError):
        plan.root.slots[0].node.name = "B"  # type: ignore[misc]


def test_building_again_after_more_tasks_leaves_earlier_plan_untouched() -> None:
    builder = serial()
    builder.task("A")
    before = builder.build()
    builder.task("B")
    after = builder.build()

    assert before.task_names == ("A",)
    assert after.task_names == ("A", "B")
    assert before.status({"A": Status.SUCCESS}) is Status.SUCCESS
    assert after.status({"A": Status.SUCCESS}) is Status.UNSTARTED


def test_empty_plan_has_nothing_to_run_and_succeeds() -> None:
    plan = serial().build()

    assert plan.eligible() == []
    assert plan.status() is Status.SUCCESS

"""Explicit builder that assembles the plan tree.

Nested scopes are context managers::

    with serial() as plan:
        plan.task("fetch")
        with plan.parallel() as fan_out:
            fan_out.task("resize")
            fan_out.task("thumbnail")
        with plan.failure() as on_failure:
            on_failure.task("notify")
    built = plan.build()

``try`` and ``finally`` are Python keywords, hence ``try_()`` and ``finally_()``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from task_planner.plan.errors import DuplicateTaskName
from task_planner.plan.models import (
    Group,
    GroupKind,
    Node,
    Plan,
    Slot,
    SlotRole,
    Task,
    iter_tasks,
)

logger = logging.getLogger(__name__)


class PlanBuilder:
    """Collects ordered slots for one group of a plan under construction."""

    def __init__(self, kind: GroupKind, *, _names: set[str] | None = None) -> None:
        self.kind = kind
        self._slots: list[Slot] = []
        # Shared by every builder of one plan.
        self._names: set[str] = set() if _names is None else _names

    def __enter__(self) -> PlanBuilder:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def task(self, name: str) -> Task:
        """Append a task to the group body."""

        if name in self._names:
            raise DuplicateTaskName(
                f"Task name {name!r} is already defined in this plan",
                name=name,
            )
        self._names.add(name)
        node = Task(name=name)
        self._slots.append(Slot(role=SlotRole.MAIN, node=node))
        return node

    @contextmanager
    def serial(self) -> Iterator[PlanBuilder]:
        """Append a nested serial group built inside the ``with`` block."""

        with self._scope(GroupKind.SERIAL) as child:
            yield child
        self._slots.append(Slot(role=SlotRole.MAIN, node=child.to_group()))

    @contextmanager
    def parallel(self) -> Iterator[PlanBuilder]:
        """Append a nested parallel group built inside the ``with`` block."""

        with self._scope(GroupKind.PARALLEL) as child:
            yield child
        self._slots.append(Slot(role=SlotRole.MAIN, node=child.to_group()))

    @contextmanager
    def try_(self) -> Iterator[PlanBuilder]:
        """Append a body whose failure does not fail this group."""

        with self._scope(GroupKind.SERIAL) as child:
            yield child
        self._slots.append(Slot(role=SlotRole.TRY, node=child.to_body_node()))

    @contextmanager
    def success(self) -> Iterator[PlanBuilder]:
        """Attach the handler scheduled once the group body has succeeded."""

        with self._handler(SlotRole.SUCCESS) as child:
            yield child

    @contextmanager
    def failure(self) -> Iterator[PlanBuilder]:
        """Attach the handler scheduled once the group body has failed."""

        with self._handler(SlotRole.FAILURE) as child:
            yield child

    @contextmanager
    def finally_(self) -> Iterator[PlanBuilder]:
        """Attach the handler scheduled after the body and any success/failure handler."""

        with self._handler(SlotRole.FINALLY) as child:
            yield child

    def to_group(self) -> Group:
        return Group(kind=self.kind, slots=tuple(self._slots))

    def to_body_node(self) -> Node:
        """Single-node bodies attach as-is, anything else as the group itself."""

        if len(self._slots) == 1 and self._slots[0].role is SlotRole.MAIN:
            return self._slots[0].node
        return self.to_group()

    def build(self) -> Plan:
        """Freeze the collected slots into a plan rooted at this group."""

        root = self.to_group()
        plan = Plan(root=root, task_names=tuple(task.name for task in iter_tasks(root)))
        logger.debug(
            "Built %s plan with %d task(s): %s",
            self.kind.value,
            len(plan.task_names),
            ", ".join(plan.task_names),
        )
        return plan

    @contextmanager
    def _scope(
        self,
        kind: GroupKind,
        *,
        released: frozenset[str] = frozenset(),
    ) -> Iterator[PlanBuilder]:
        """Child builder sharing the plan's names; a raising body leaves them as they were."""

        before = set(self._names)
        self._names.difference_update(released)
        try:
            yield PlanBuilder(kind, _names=self._names)
        except BaseException:
            self._names.clear()
            self._names.update(before)
            raise

    @contextmanager
    def _handler(self, role: SlotRole) -> Iterator[PlanBuilder]:
        index = next(
            (position for position, slot in enumerate(self._slots) if slot.role is role),
            None,
        )
        released = frozenset(
            () if index is None else (task.name for task in iter_tasks(self._slots[index].node)),
        )
        with self._scope(GroupKind.SERIAL, released=released) as child:
            yield child
        slot = Slot(role=role, node=child.to_body_node())
        if index is None:
            self._slots.append(slot)
            return
        logger.debug("Redefining %s handler of %s group", role.value, self.kind.value)
        self._slots[index] = slot


def serial() -> PlanBuilder:
    """Start a plan whose root group runs its body in order."""

    return PlanBuilder(GroupKind.SERIAL)


def parallel() -> PlanBuilder:
    """Start a plan whose root group runs its body concurrently."""

    return PlanBuilder(GroupKind.PARALLEL)

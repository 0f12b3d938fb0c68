"""Immutable plan tree: tasks, groups and role-tagged slots."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum

from task_planner.plan.errors import InvalidStatus


class Status(str, Enum):
    """Execution status of a task or a rolled-up group."""

    UNSTARTED = "unstarted"
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (Status.SUCCESS, Status.FAILED)

    @classmethod
    def parse(cls, value: Status | str) -> Status:
        """Coerce a raw status value, rejecting anything outside the four states."""

        if isinstance(value, Status):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidStatus(
            f"Invalid status {value!r}; expected one of "
            f"{', '.join(status.value for status in cls)}",
            value=value,
        )


class GroupKind(str, Enum):
    """Scheduling discipline of a group's main and try slots."""

    SERIAL = "serial"
    PARALLEL = "parallel"


class SlotRole(str, Enum):
    """Role of a node attached to a group."""

    MAIN = "main"
    TRY = "try"
    SUCCESS = "success"
    FAILURE = "failure"
    FINALLY = "finally"

    @property
    def is_handler(self) -> bool:
        return self in HANDLER_ROLES


HANDLER_ROLES = frozenset({SlotRole.SUCCESS, SlotRole.FAILURE, SlotRole.FINALLY})


@dataclass(frozen=True, slots=True)
class Task:
    """Leaf node identified by a plan-wide unique name."""

    name: str


@dataclass(frozen=True, slots=True)
class Slot:
    """Attachment of a node to its parent group under one role."""

    role: SlotRole
    node: Node


@dataclass(frozen=True, slots=True)
class Group:
    """Composite node with ordered slots.

    Handler roles appear at most once; main and try slots keep declaration
    order, which is the dependency order for serial groups.
    """

    kind: GroupKind
    slots: tuple[Slot, ...] = ()

    @property
    def body(self) -> tuple[Slot, ...]:
        """Main and try slots in declaration order."""

        return tuple(slot for slot in self.slots if not slot.role.is_handler)

    def handler(self, role: SlotRole) -> Slot | None:
        for slot in self.slots:
            if slot.role is role:
                return slot
        return None


Node = Task | Group


@dataclass(frozen=True, slots=True)
class Plan:
    """Root group of a composed plan plus its task names in declaration order."""

    root: Group
    task_names: tuple[str, ...]

    def eligible(self, snapshot: Mapping[str, Status | str] | None = None) -> list[str]:
        from task_planner.plan.evaluator import eligible

        return eligible(self, snapshot or {})

    def status(self, snapshot: Mapping[str, Status | str] | None = None) -> Status:
        from task_planner.plan.evaluator import status

        return status(self, snapshot or {})


def iter_tasks(node: Node) -> Iterator[Task]:
    """Yield every task below ``node`` depth-first in slot order."""

    if isinstance(node, Task):
        yield node
        return
    for slot in node.slots:
        yield from iter_tasks(slot.node)

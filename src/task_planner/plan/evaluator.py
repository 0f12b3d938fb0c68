"""Eligibility and status rollup over a plan tree.

Both operations are pure functions of (plan, snapshot): they never touch the
status store and never mutate the plan, so repeated polling with the same
snapshot yields the same answer.
"""

from __future__ import annotations

from collections.abc import Mapping

from task_planner.plan.errors import UnknownTaskName
from task_planner.plan.models import Group, GroupKind, Node, Plan, Slot, SlotRole, Status, Task

Snapshot = Mapping[str, Status]


def eligible(plan: Plan, snapshot: Mapping[str, Status | str]) -> list[str]:
    """Task names ready to dispatch, depth-first in declaration order."""

    names = Rollup(normalize_snapshot(plan, snapshot)).eligible(plan.root)
    return list(dict.fromkeys(names))


def status(plan: Plan, snapshot: Mapping[str, Status | str]) -> Status:
    """Rolled-up status of the whole plan."""

    return Rollup(normalize_snapshot(plan, snapshot)).status(plan.root)


def normalize_snapshot(plan: Plan, snapshot: Mapping[str, Status | str]) -> dict[str, Status]:
    """Validate snapshot names against the plan and coerce raw status values."""

    known = set(plan.task_names)
    unknown = tuple(name for name in snapshot if name not in known)
    if unknown:
        raise UnknownTaskName(
            f"Snapshot refers to tasks absent from the plan: {', '.join(unknown)}",
            names=unknown,
        )
    return {name: Status.parse(value) for name, value in snapshot.items()}


class Rollup:
    """Evaluates nodes of one plan against one snapshot.

    Every node's status is computed once and memoized by node identity, so a
    walk over the tree stays linear in its size however deep groups nest.
    Create a new instance per snapshot.
    """

    def __init__(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot
        self._statuses: dict[int, Status] = {}

    def status(self, node: Node) -> Status:
        key = id(node)
        cached = self._statuses.get(key)
        if cached is None:
            cached = self._statuses[key] = self._node_status(node)
        return cached

    def eligible(self, node: Node) -> list[str]:
        match node:
            case Task(name=name):
                return [name] if self.status(node) is Status.UNSTARTED else []
            case Group():
                return self._group_eligible(node)
        raise TypeError(f"Unsupported plan node: {node!r}")

    def tentative(self, group: Group) -> Status:
        """Outcome of the main and try slots before any handler is applied.

        Never ``pending``: a pending body slot only shows up as ``unstarted``
        here, pending dominance is applied by ``status``.
        """

        body = group.body
        if group.kind is GroupKind.SERIAL:
            for slot in body:
                slot_status = self.status(slot.node)
                if slot_status is Status.SUCCESS:
                    continue
                if slot_status is Status.FAILED:
                    if slot.role is SlotRole.TRY:
                        continue
                    return Status.FAILED
                return Status.UNSTARTED
            return Status.SUCCESS

        statuses = [(slot, self.status(slot.node)) for slot in body]
        if any(not slot_status.is_terminal for _, slot_status in statuses):
            return Status.UNSTARTED
        if any(
            slot_status is Status.FAILED and slot.role is not SlotRole.TRY
            for slot, slot_status in statuses
        ):
            return Status.FAILED
        return Status.SUCCESS

    def _node_status(self, node: Node) -> Status:
        match node:
            case Task(name=name):
                return self.snapshot.get(name, Status.UNSTARTED)
            case Group():
                return self._group_status(node)
        raise TypeError(f"Unsupported plan node: {node!r}")

    def _group_status(self, group: Group) -> Status:
        if any(self.status(slot.node) is Status.PENDING for slot in group.slots):
            return Status.PENDING

        tentative = self.tentative(group)
        if tentative is Status.UNSTARTED:
            return Status.UNSTARTED

        on_finally = group.handler(SlotRole.FINALLY)
        if on_finally is not None:
            # Not final until the finally slot has run.
            if not self._handler_resolved(group, tentative):
                return Status.UNSTARTED
            return self._terminal_or_unstarted(on_finally)

        # A failure handler never reverses a recorded failure.
        if tentative is Status.SUCCESS:
            on_success = group.handler(SlotRole.SUCCESS)
            if on_success is not None:
                return self._terminal_or_unstarted(on_success)
        return tentative

    def _group_eligible(self, group: Group) -> list[str]:
        names: list[str] = []
        if group.kind is GroupKind.SERIAL:
            for slot in group.body:
                slot_status = self.status(slot.node)
                if slot_status is Status.SUCCESS:
                    continue
                if slot_status is Status.FAILED:
                    if slot.role is SlotRole.TRY:
                        continue
                    break
                names.extend(self.eligible(slot.node))
                break
        else:
            for slot in group.body:
                if not self.status(slot.node).is_terminal:
                    names.extend(self.eligible(slot.node))

        tentative = self.tentative(group)
        for slot in group.slots:
            if slot.role.is_handler and self._handler_open(group, slot, tentative):
                names.extend(self.eligible(slot.node))
        return names

    def _handler_open(self, group: Group, slot: Slot, tentative: Status) -> bool:
        """Whether a handler slot is gated open and still has work left."""

        if self.status(slot.node).is_terminal:
            return False
        if slot.role is SlotRole.SUCCESS:
            return tentative is Status.SUCCESS
        if slot.role is SlotRole.FAILURE:
            return tentative is Status.FAILED
        return self._handler_resolved(group, tentative)

    def _handler_resolved(self, group: Group, tentative: Status) -> bool:
        """Body is terminal and the applicable success/failure handler, if any, is too."""

        if not tentative.is_terminal:
            return False
        role = SlotRole.SUCCESS if tentative is Status.SUCCESS else SlotRole.FAILURE
        handler = group.handler(role)
        return handler is None or self.status(handler.node).is_terminal

    def _terminal_or_unstarted(self, slot: Slot) -> Status:
        slot_status = self.status(slot.node)
        return slot_status if slot_status.is_terminal else Status.UNSTARTED


def node_status(node: Node, snapshot: Snapshot) -> Status:
    """Status of a single node, without snapshot validation."""

    return Rollup(snapshot).status(node)


def node_eligible(node: Node, snapshot: Snapshot) -> list[str]:
    """Eligible task names below a single node, without snapshot validation."""

    return Rollup(snapshot).eligible(node)

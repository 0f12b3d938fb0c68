"""Text rendering of a plan tree annotated with a status snapshot."""

from __future__ import annotations

from task_planner.plan.evaluator import Rollup, Snapshot
from task_planner.plan.models import Node, Plan, SlotRole, Status, Task

_INDENT = "  "


def render_plan(plan: Plan, snapshot: Snapshot) -> list[str]:
    """Indented tree lines: groups with kind and rolled-up status, tasks with status."""

    lines: list[str] = []
    _render_node(plan.root, SlotRole.MAIN, Rollup(snapshot), depth=0, lines=lines)
    return lines


def _render_node(
    node: Node,
    role: SlotRole,
    rollup: Rollup,
    *,
    depth: int,
    lines: list[str],
) -> None:
    prefix = _INDENT * depth
    label = "" if role is SlotRole.MAIN else f"{role.value}: "
    state = rollup.status(node).value
    if isinstance(node, Task):
        lines.append(f"{prefix}- {label}{node.name} [{state}]")
        return
    lines.append(f"{prefix}{label}{node.kind.value} [{state}]")
    for slot in node.slots:
        _render_node(slot.node, slot.role, rollup, depth=depth + 1, lines=lines)


def count_by_status(plan: Plan, snapshot: Snapshot) -> dict[str, int]:
    """Number of tasks per status, every status present."""

    counts = dict.fromkeys((status.value for status in Status), 0)
    for name in plan.task_names:
        counts[snapshot.get(name, Status.UNSTARTED).value] += 1
    return counts

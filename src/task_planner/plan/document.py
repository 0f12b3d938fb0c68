"""Declarative JSON form of a plan.

A document is an object with a single ``serial`` or ``parallel`` key whose value
is a list of items. An item is either a task name or a one-key object naming a
nested group (``serial``/``parallel``), a ``try`` body or a handler
(``success``/``failure``/``finally``)::

    {"serial": ["A", {"parallel": ["B", "C"]}, {"failure": ["notify"]}]}
"""

from __future__ import annotations

import json
from collections.abc import Callable
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any

from task_planner.plan.builder import PlanBuilder
from task_planner.plan.errors import InvalidPlanDocument
from task_planner.plan.models import GroupKind, Plan

ROOT_KEYS = ("serial", "parallel")

_SCOPES: dict[str, Callable[[PlanBuilder], AbstractContextManager[PlanBuilder]]] = {
    "serial": PlanBuilder.serial,
    "parallel": PlanBuilder.parallel,
    "try": PlanBuilder.try_,
    "success": PlanBuilder.success,
    "failure": PlanBuilder.failure,
    "finally": PlanBuilder.finally_,
}


def load_plan(path: Path) -> Plan:
    """Read and build a plan from a JSON document on disk."""

    try:
        raw = json.loads(path.read_text("utf-8"))
    except json.JSONDecodeError as error:
        raise InvalidPlanDocument(
            f"Plan document {path} is not valid JSON: {error}",
            path=str(path),
        ) from error
    try:
        return plan_from_dict(raw)
    except InvalidPlanDocument as error:
        error.path = str(path)
        raise


def plan_from_dict(raw: Any) -> Plan:
    """Build a plan from an already parsed document."""

    if not isinstance(raw, dict) or len(raw) != 1:
        raise InvalidPlanDocument("Plan document must be an object with exactly one key")
    key, items = next(iter(raw.items()))
    if key not in ROOT_KEYS:
        raise InvalidPlanDocument(
            f"Plan document root must be 'serial' or 'parallel', got {key!r}",
        )
    builder = PlanBuilder(GroupKind(key))
    _apply_items(builder, items, where=key)
    return builder.build()


def _apply_items(builder: PlanBuilder, items: Any, *, where: str) -> None:
    if not isinstance(items, list):
        raise InvalidPlanDocument(f"'{where}' must be a list of items")
    for index, item in enumerate(items):
        location = f"{where}[{index}]"
        if isinstance(item, str):
            if not item.strip():
                raise InvalidPlanDocument(f"{location}: task name must be a non-empty string")
            builder.task(item)
            continue
        if not isinstance(item, dict) or len(item) != 1:
            raise InvalidPlanDocument(
                f"{location}: expected a task name or an object with exactly one key",
            )
        key, body = next(iter(item.items()))
        scope = _SCOPES.get(key)
        if scope is None:
            raise InvalidPlanDocument(
                f"{location}: unsupported key {key!r}; expected one of {', '.join(_SCOPES)}",
            )
        with scope(builder) as child:
            _apply_items(child, body, where=f"{location}.{key}")


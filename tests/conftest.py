"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from task_planner.store.memory import InMemoryStatusStore


@pytest.fixture()
def memory_store() -> InMemoryStatusStore:
    return InMemoryStatusStore()


@pytest.fixture()
def write_plan(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Persist a plan document and return its path."""

    def _write(document: dict[str, Any], name: str = "plan.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(document), "utf-8")
        return path

    return _write

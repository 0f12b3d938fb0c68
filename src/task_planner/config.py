"""Runtime configuration for the planner CLI and status store."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from task_planner.storage.sqlmodel_models import DEFAULT_PLAN_ID

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class Settings:
    """Application settings loaded from the environment."""

    db_path: Path = Path(".task_planner.db")
    sqlite_busy_timeout_ms: int = 5_000
    plan_id: str = DEFAULT_PLAN_ID
    log_level: str = "WARNING"

    @classmethod
    def from_env(
        cls,
        db_path: Path | None = None,
        plan_id: str | None = None,
    ) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        return cls(
            db_path=db_path or Path(os.getenv("TASK_PLANNER_DB_PATH", ".task_planner.db")),
            sqlite_busy_timeout_ms=_env_int("TASK_PLANNER_SQLITE_BUSY_TIMEOUT_MS", 5_000),
            plan_id=plan_id or os.getenv("TASK_PLANNER_PLAN_ID", DEFAULT_PLAN_ID),
            log_level=os.getenv("TASK_PLANNER_LOG_LEVEL", "WARNING").strip().upper(),
        )

    def validate(self) -> None:
        """Raise configuration error for values the store cannot work with."""

        if self.sqlite_busy_timeout_ms <= 0:
            raise ValueError("TASK_PLANNER_SQLITE_BUSY_TIMEOUT_MS must be > 0.")
        if not self.plan_id.strip():
            raise ValueError("TASK_PLANNER_PLAN_ID must be a non-empty string.")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid TASK_PLANNER_LOG_LEVEL {self.log_level!r}; "
                f"expected one of {', '.join(LOG_LEVELS)}",
            )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error

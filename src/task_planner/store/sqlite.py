"""SQLModel + SQLite status store."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy import update as sa_update
from sqlmodel import Session, col, delete, select

from task_planner.plan.models import Status
from task_planner.storage.alembic_runner import upgrade_head
from task_planner.storage.common import build_sqlite_engine, utc_now
from task_planner.storage.sqlmodel_models import TaskState
from task_planner.store.base import parse_updates

logger = logging.getLogger(__name__)


class SQLiteStatusStore:
    """Status store facade backed by SQLModel + SQLite."""

    def __init__(self, db_path: Path, *, sqlite_busy_timeout_ms: int = 5000) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=sqlite_busy_timeout_ms)

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations."""

        upgrade_head(self.db_path)

    def register(self, plan_id: str, task_names: Iterable[str]) -> int:
        names = list(dict.fromkeys(task_names))
        now = _to_db_datetime(utc_now())
        with Session(self.engine) as session:
            rows = {
                row.name: row
                for row in session.exec(select(TaskState).where(TaskState.plan_id == plan_id))
            }
            added = 0
            for position, name in enumerate(names):
                row = rows.pop(name, None)
                if row is None:
                    session.add(
                        TaskState(
                            plan_id=plan_id,
                            name=name,
                            status=Status.UNSTARTED.value,
                            position=position,
                            updated_at=now,
                        ),
                    )
                    added += 1
                elif row.position != position:
                    row.position = position
                    session.add(row)
            if rows:
                logger.info(
                    "Dropping %d task(s) no longer in plan %s: %s",
                    len(rows),
                    plan_id,
                    ", ".join(sorted(rows)),
                )
                session.exec(
                    delete(TaskState).where(
                        col(TaskState.plan_id) == plan_id,
                        col(TaskState.name).in_(list(rows)),
                    ),
                )
            session.commit()
        return added

    def apply_and_read(
        self,
        plan_id: str,
        updates: Mapping[str, Status | str],
    ) -> dict[str, Status]:
        parsed = parse_updates(updates)
        now = _to_db_datetime(utc_now())
        with Session(self.engine) as session:
            for name, value in parsed.items():
                result = session.exec(
                    sa_update(TaskState)
                    .where(
                        col(TaskState.plan_id) == plan_id,
                        col(TaskState.name) == name,
                    )
                    .values(status=value.value, updated_at=now),
                )
                if result.rowcount != 1:
                    logger.debug("Ignoring update for unregistered task %s in plan %s", name, plan_id)
            snapshot = self._snapshot(session, plan_id)
            session.commit()
        return snapshot

    def read(self, plan_id: str) -> dict[str, Status]:
        with Session(self.engine) as session:
            return self._snapshot(session, plan_id)

    def reset(self, plan_id: str) -> int:
        with Session(self.engine) as session:
            result = session.exec(
                sa_update(TaskState)
                .where(col(TaskState.plan_id) == plan_id)
                .values(
                    status=Status.UNSTARTED.value,
                    updated_at=_to_db_datetime(utc_now()),
                ),
            )
            session.commit()
            return int(result.rowcount)

    def _snapshot(self, session: Session, plan_id: str) -> dict[str, Status]:
        rows = session.exec(
            select(TaskState)
            .where(TaskState.plan_id == plan_id)
            .order_by(col(TaskState.position).asc()),
        )
        return {row.name: Status(row.status) for row in rows}


def _to_db_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)

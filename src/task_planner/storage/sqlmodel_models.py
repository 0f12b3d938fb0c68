"""SQLModel ORM tables for the task status store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Index
from sqlmodel import Field, SQLModel

DEFAULT_PLAN_ID = "default"


class TaskState(SQLModel, table=True):
    __tablename__ = "task_states"  # type: ignore[bad-override]
    __table_args__ = (
        Index("ix_task_states_plan_position", "plan_id", "position"),
    )

    plan_id: str = Field(default=DEFAULT_PLAN_ID, primary_key=True)
    name: str = Field(primary_key=True)
    status: str = Field(default="unstarted", index=True)
    position: int = 0
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))

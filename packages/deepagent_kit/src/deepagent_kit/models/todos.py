"""Pydantic models for the plan (todo list)."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class TodoStatus(StrEnum):
    """Lifecycle of a todo entry. Expected order: pending, in_progress, completed."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


STATUS_RANK: dict[TodoStatus, int] = {
    TodoStatus.PENDING: 0,
    TodoStatus.IN_PROGRESS: 1,
    TodoStatus.COMPLETED: 2,
}


class TodoItem(BaseModel):
    """A single plan entry."""

    id: str = ""
    content: str = Field(min_length=1, description="What needs to be done.")
    status: TodoStatus = TodoStatus.PENDING

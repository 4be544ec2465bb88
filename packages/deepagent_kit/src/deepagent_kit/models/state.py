"""Per-execution run state."""

from __future__ import annotations

from pydantic import BaseModel, Field

from deepagent_kit.models.files import FileData
from deepagent_kit.models.todos import TodoItem


class RunState(BaseModel):
    """Ephemeral state owned by one execution (files and plan).

    Discarded with the execution unless a checkpointer persists it.
    """

    files: dict[str, FileData] = Field(default_factory=dict)
    todos: list[TodoItem] = Field(default_factory=list)

    def snapshot(self) -> RunState:
        """Return a deep, independent copy."""
        return self.model_copy(deep=True)

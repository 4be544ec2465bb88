"""Todo list middleware: the ``write_todos`` plan tool."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from deepagent_kit.errors import ToolArgumentError
from deepagent_kit.middleware.base import Middleware
from deepagent_kit.models.todos import STATUS_RANK, TodoItem, TodoStatus
from deepagent_kit.models.tool_calls import ToolResult
from deepagent_kit.tools.registry import ToolRegistry, registered_tool

if TYPE_CHECKING:
    from collections.abc import Sequence

    from deepagent_kit.models.tool_calls import ToolCall
    from deepagent_kit.tools.registry import RegisteredTool, ToolRuntime

logger = logging.getLogger(__name__)

WRITE_TODOS_TOOL = "write_todos"

WRITE_TODOS_DESCRIPTION = """Creates or replaces the structured task list for the current work.

Use it for complex, multi-step tasks. Every call replaces the whole list, so
always send every item. Statuses: pending, in_progress, completed. Mark an
item completed as soon as it is done, and keep one item in_progress at a time.
Skip it for simple requests that take only a few steps."""

TODO_SYSTEM_PROMPT = """## `write_todos`

Use the `write_todos` tool to plan and track complex objectives. Revise the
list as you learn more, and mark items completed as soon as they are done.
Call `write_todos` at most once per turn."""


class WriteTodosArgs(BaseModel):
    todos: list[TodoItem] = Field(description="The complete, updated todo list.")


@dataclass(frozen=True)
class TodoRegression:
    """A status that moved backwards between two plans."""

    id: str
    previous: TodoStatus
    current: TodoStatus


def assign_todo_ids(todos: Sequence[TodoItem]) -> list[TodoItem]:
    """Fill missing ids by position (1-based) and reject duplicates."""
    assigned: list[TodoItem] = []
    seen: set[str] = set()
    for position, item in enumerate(todos, start=1):
        todo_id = item.id.strip() or str(position)
        if todo_id in seen:
            raise ToolArgumentError(WRITE_TODOS_TOOL, f"duplicate todo id '{todo_id}'")
        seen.add(todo_id)
        assigned.append(item.model_copy(update={"id": todo_id}))
    return assigned


def find_regressions(
    previous: Sequence[TodoItem], current: Sequence[TodoItem]
) -> list[TodoRegression]:
    """Report items whose status moved backwards, e.g. completed -> pending."""
    before = {item.id: item.status for item in previous}
    regressions = []
    for item in current:
        old = before.get(item.id)
        if old is not None and STATUS_RANK[item.status] < STATUS_RANK[old]:
            regressions.append(TodoRegression(id=item.id, previous=old, current=item.status))
    return regressions


def write_todos(runtime: ToolRuntime, todos: list[TodoItem]) -> str:
    new_plan = assign_todo_ids(todos)
    for regression in find_regressions(runtime.state.todos, new_plan):
        logger.warning(
            "Todo %s moved from %s back to %s",
            regression.id,
            regression.previous,
            regression.current,
        )
    runtime.state.todos = new_plan
    payload = json.dumps([item.model_dump(mode="json") for item in new_plan])
    return f"Updated todo list to {payload}"


class TodoListMiddleware(Middleware):
    """Keeps the plan in ``RunState.todos``; each call replaces it wholesale."""

    name = "todos"

    def __init__(self, *, system_prompt: str | None = None) -> None:
        registry = ToolRegistry()
        registered_tool(
            registry,
            name=WRITE_TODOS_TOOL,
            args_model=WriteTodosArgs,
            description=WRITE_TODOS_DESCRIPTION,
            category="planning",
        )(write_todos)
        self._tools = registry.entries()
        self._system_prompt = system_prompt if system_prompt is not None else TODO_SYSTEM_PROMPT

    def tools(self) -> list[RegisteredTool]:
        return list(self._tools)

    def system_prompt(self) -> str | None:
        return self._system_prompt

    def before_tool_call(self, call: ToolCall, runtime: ToolRuntime) -> ToolCall | ToolResult:
        if call.name != WRITE_TODOS_TOOL:
            return call
        issued = sum(1 for item in runtime.turn_calls if item.name == WRITE_TODOS_TOOL)
        if issued > 1:
            return ToolResult.error(
                call,
                "Error: The `write_todos` tool should never be called multiple times in "
                "parallel. Call it once per turn with the complete list.",
            )
        return call

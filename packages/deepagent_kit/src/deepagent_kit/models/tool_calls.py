"""Tool call and tool result models exchanged with the driving loop."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

ToolStatus = Literal["success", "error"]


class ToolCall(BaseModel, frozen=True):
    """A tool invocation as issued by the model, identified by ``id``."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel, frozen=True):
    """Outcome of one tool call. Errors are results too, never exceptions."""

    tool_call_id: str
    name: str
    content: str
    status: ToolStatus = "success"

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    @classmethod
    def error(cls, call: ToolCall, message: str) -> ToolResult:
        return cls(tool_call_id=call.id, name=call.name, content=message, status="error")

    @classmethod
    def success(cls, call: ToolCall, content: str) -> ToolResult:
        return cls(tool_call_id=call.id, name=call.name, content=content)

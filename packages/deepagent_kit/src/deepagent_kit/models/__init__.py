"""Pydantic models for files, plans, interrupts, run state and settings."""

from deepagent_kit.models.files import EditResult, FileData, GrepMatch, WriteResult
from deepagent_kit.models.interrupts import (
    ALL_DECISIONS,
    ActionRequest,
    Decision,
    DecisionResponse,
    GateStatus,
    InterruptConfig,
    InterruptState,
)
from deepagent_kit.models.settings import Settings, load_settings
from deepagent_kit.models.state import RunState
from deepagent_kit.models.todos import TodoItem, TodoStatus
from deepagent_kit.models.tool_calls import ToolCall, ToolResult

__all__ = [
    "ALL_DECISIONS",
    "ActionRequest",
    "Decision",
    "DecisionResponse",
    "EditResult",
    "FileData",
    "GateStatus",
    "GrepMatch",
    "InterruptConfig",
    "InterruptState",
    "RunState",
    "Settings",
    "TodoItem",
    "TodoStatus",
    "ToolCall",
    "ToolResult",
    "WriteResult",
    "load_settings",
]

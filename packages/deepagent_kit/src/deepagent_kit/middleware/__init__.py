"""Middleware contributing tools, prompt sections and tool-call hooks."""

from deepagent_kit.middleware.base import Middleware, MiddlewarePipeline, ToolsMiddleware
from deepagent_kit.middleware.filesystem import (
    FILESYSTEM_TOOL_NAMES,
    LARGE_RESULTS_DIR,
    FilesystemMiddleware,
    build_filesystem_tools,
)
from deepagent_kit.middleware.planning import TodoListMiddleware, find_regressions
from deepagent_kit.middleware.subagents import TASK_TOOL, SubAgentMiddleware
from deepagent_kit.middleware.telemetry import ToolTelemetry, ToolTelemetryMiddleware

__all__ = [
    "FILESYSTEM_TOOL_NAMES",
    "LARGE_RESULTS_DIR",
    "TASK_TOOL",
    "FilesystemMiddleware",
    "Middleware",
    "MiddlewarePipeline",
    "SubAgentMiddleware",
    "TodoListMiddleware",
    "ToolTelemetry",
    "ToolTelemetryMiddleware",
    "ToolsMiddleware",
    "build_filesystem_tools",
    "find_regressions",
]

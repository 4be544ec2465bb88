"""Tool telemetry tracking for agent executions.

Provides ToolTelemetry for recording tool usage and ToolTelemetryMiddleware
for collecting it from the middleware pipeline.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from deepagent_kit.middleware.base import Middleware
from deepagent_kit.models.tool_calls import ToolResult

if TYPE_CHECKING:
    from deepagent_kit.models.tool_calls import ToolCall
    from deepagent_kit.tools.registry import ToolRuntime

logger = logging.getLogger(__name__)


@dataclass
class ToolTelemetry:
    """Track tool usage for a single execution."""

    active_tool: str | None = None
    tool_calls: list[dict[str, Any]] = field(default_factory=list)
    allow_tools: bool = True
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def reset(self) -> None:
        """Clear tracked tool usage."""
        self.active_tool = None
        self.tool_calls.clear()

    def record_call(self, call_id: str, name: str, arguments: dict[str, Any]) -> None:
        """Record a tool invocation."""
        with self._lock:
            self.active_tool = name
            self.tool_calls.append({"id": call_id, "name": name, "arguments": arguments})

    def record_result(self, call_id: str, result: ToolResult, duration_ms: float) -> None:
        """Attach status and duration to the entry recorded for ``call_id``."""
        with self._lock:
            self.active_tool = None
            for entry in reversed(self.tool_calls):
                if entry["id"] == call_id:
                    entry["status"] = result.status
                    entry["duration_ms"] = round(duration_ms, 2)
                    return

    def set_allow_tools(self, allow: bool) -> None:
        """Enable or disable tool calls for this telemetry session."""
        self.allow_tools = allow


class ToolTelemetryMiddleware(Middleware):
    """Middleware recording every tool call and optionally blocking all of them."""

    name = "telemetry"

    def __init__(self, telemetry: ToolTelemetry | None = None) -> None:
        self.telemetry = telemetry or ToolTelemetry()
        self._started: dict[str, float] = {}

    def before_tool_call(self, call: ToolCall, runtime: ToolRuntime) -> ToolCall | ToolResult:
        if not self.telemetry.allow_tools:
            return ToolResult.error(call, "Tool calls are disabled by user confirmation settings.")
        self.telemetry.record_call(call.id, call.name, dict(call.arguments))
        self._started[call.id] = time.perf_counter()
        return call

    def after_tool_call(
        self, call: ToolCall, result: ToolResult, runtime: ToolRuntime
    ) -> ToolResult:
        started = self._started.pop(call.id, None)
        if started is not None:
            duration_ms = (time.perf_counter() - started) * 1000
            self.telemetry.record_result(call.id, result, duration_ms)
            logger.debug(
                "Tool %s finished with %s in %.1fms", call.name, result.status, duration_ms
            )
        return result

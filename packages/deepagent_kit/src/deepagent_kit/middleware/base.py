"""Middleware contract and the pipeline that dispatches tool calls through it."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from deepagent_kit.errors import DeepAgentError
from deepagent_kit.models.tool_calls import ToolCall, ToolResult
from deepagent_kit.tools.registry import RegisteredTool, ToolRegistry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from deepagent_kit.tools.registry import ToolRuntime

logger = logging.getLogger(__name__)


class Middleware:
    """Contributes tools and prompt text, and wraps every tool call.

    ``before_tool_call`` may rewrite the call or return a ``ToolResult`` to
    short-circuit execution. ``after_tool_call`` may replace the result.
    """

    name = "middleware"

    def tools(self) -> list[RegisteredTool]:
        return []

    def system_prompt(self) -> str | None:
        return None

    def before_tool_call(self, call: ToolCall, runtime: ToolRuntime) -> ToolCall | ToolResult:
        return call

    def after_tool_call(
        self, call: ToolCall, result: ToolResult, runtime: ToolRuntime
    ) -> ToolResult:
        return result


class MiddlewarePipeline:
    """Ordered middleware stack: before hooks run in order, after hooks in reverse."""

    def __init__(
        self, middleware: Sequence[Middleware], tool_names: Sequence[str] | None = None
    ) -> None:
        self.middleware = list(middleware)
        registry = ToolRegistry()
        for item in self.middleware:
            for entry in item.tools():
                registry.register(entry.definition, entry.handler)
        self.registry = registry.select(tool_names)

    def system_prompt(self, base: str = "") -> str:
        sections = [base.strip()] if base.strip() else []
        for item in self.middleware:
            section = item.system_prompt()
            if section:
                sections.append(section.strip())
        return "\n\n".join(sections)

    def execute(self, call: ToolCall, runtime: ToolRuntime) -> ToolResult:
        """Run one call through every hook and the tool handler. Never raises for tool errors."""
        runtime = replace(runtime, tool_call_id=call.id)
        current = call
        result: ToolResult | None = None
        for item in self.middleware:
            outcome = item.before_tool_call(current, runtime)
            if isinstance(outcome, ToolResult):
                result = outcome
                break
            current = outcome
        if result is None:
            result = self._dispatch(current, runtime)
        for item in reversed(self.middleware):
            result = item.after_tool_call(current, result, runtime)
        return result

    def _dispatch(self, call: ToolCall, runtime: ToolRuntime) -> ToolResult:
        entry = self.registry.get(call.name)
        if entry is None:
            available = ", ".join(self.registry.names()) or "none"
            message = f"Error: Unknown tool '{call.name}'. Available tools: {available}"
            return ToolResult.error(call, message)
        try:
            arguments = entry.definition.validate_arguments(call.arguments)
            kwargs = {field: getattr(arguments, field) for field in type(arguments).model_fields}
            output = entry.handler(runtime, **kwargs)
        except DeepAgentError as exc:
            logger.info("Tool %s returned an error: %s", call.name, exc)
            return ToolResult.error(call, str(exc))
        except Exception as exc:
            logger.exception("Tool %s failed unexpectedly", call.name)
            return ToolResult.error(call, f"Error: Tool '{call.name}' failed: {exc}")
        if isinstance(output, ToolResult):
            return output
        return ToolResult.success(call, str(output))


class ToolsMiddleware(Middleware):
    """Contributes caller-supplied tools with no hooks of its own."""

    name = "tools"

    def __init__(self, tools: Sequence[RegisteredTool], system_prompt: str | None = None) -> None:
        self._tools = list(tools)
        self._system_prompt = system_prompt

    def tools(self) -> list[RegisteredTool]:
        return list(self._tools)

    def system_prompt(self) -> str | None:
        return self._system_prompt

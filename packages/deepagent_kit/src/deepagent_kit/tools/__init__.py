"""Tools package for the deep agent middleware.

Contents:
- ToolRegistry: registry for tool definitions and handlers
- @registered_tool: decorator registering a handler under a pydantic argument model
- truncation helpers that keep tool output within model context limits

Filesystem, planning and task tools are contributed by the middleware in
``deepagent_kit.middleware``; this package stays free of backend imports.
"""

from deepagent_kit.tools.registry import (
    RegisteredTool,
    ToolDefinition,
    ToolDetailLevel,
    ToolRegistry,
    ToolRuntime,
    registered_tool,
)

__all__ = [
    "RegisteredTool",
    "ToolDefinition",
    "ToolDetailLevel",
    "ToolRegistry",
    "ToolRuntime",
    "registered_tool",
]

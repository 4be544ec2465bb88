"""Sub-agent middleware: the ``task`` tool."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from deepagent_kit.middleware.base import Middleware
from deepagent_kit.models.tool_calls import ToolResult
from deepagent_kit.subagents.dispatcher import SubagentDispatcher, format_subagent_result
from deepagent_kit.tools.registry import ToolRegistry, registered_tool

if TYPE_CHECKING:
    from collections.abc import Iterable

    from deepagent_kit.agents.loop import AgentLoop
    from deepagent_kit.runtime import DeepAgent
    from deepagent_kit.subagents.models import SubagentSpec
    from deepagent_kit.tools.registry import RegisteredTool, ToolRuntime

logger = logging.getLogger(__name__)

TASK_TOOL = "task"

TASK_DESCRIPTION_TEMPLATE = """Launch an ephemeral sub-agent to handle a complex, multi-step task \
in an isolated context.

Available agent types and the tools they have access to:
{agents}

- Give the sub-agent a complete, self-contained description: it cannot see this conversation.
- The sub-agent returns a single final message, which is not visible to the user; summarize it.
- Launch several sub-agents in one turn when their tasks are independent."""

TASK_SYSTEM_PROMPT = """## `task` (sub-agent spawner)

Use the `task` tool to delegate complex, independent pieces of work to a
sub-agent with a fresh context. Each sub-agent returns one final result."""


class TaskArgs(BaseModel):
    subagent_type: str = Field(min_length=1, description="Name of the sub-agent to run.")
    description: str = Field(min_length=1, description="Complete task for the sub-agent.")


class SubAgentMiddleware(Middleware):
    """Adds the ``task`` tool, which dispatches to registered sub-agents."""

    name = "subagents"

    def __init__(
        self,
        subagents: Iterable[SubagentSpec] = (),
        *,
        general_purpose_agent: bool = True,
        loop: AgentLoop | None = None,
        dispatcher: SubagentDispatcher | None = None,
        system_prompt: str | None = None,
    ) -> None:
        self.dispatcher = dispatcher or SubagentDispatcher(
            subagents, general_purpose_agent=general_purpose_agent, loop=loop
        )
        self._system_prompt = TASK_SYSTEM_PROMPT if system_prompt is None else system_prompt
        registry = ToolRegistry()
        registered_tool(
            registry,
            name=TASK_TOOL,
            args_model=TaskArgs,
            description=TASK_DESCRIPTION_TEMPLATE.format(agents=self.dispatcher.describe()),
            category="subagents",
        )(self.task)
        self._tools = registry.entries()

    def tools(self) -> list[RegisteredTool]:
        return list(self._tools)

    def system_prompt(self) -> str | None:
        return self._system_prompt

    def task(self, runtime: ToolRuntime, subagent_type: str, description: str) -> ToolResult:
        parent: DeepAgent = runtime.extras["agent"]
        result = self.dispatcher.dispatch(subagent_type, description, parent)
        status = "error" if result.error else "success"
        logger.info(
            "Sub-agent %s finished with %s after %d steps", subagent_type, status, result.steps
        )
        return ToolResult(
            tool_call_id=runtime.tool_call_id,
            name=TASK_TOOL,
            content=format_subagent_result(result),
            status=status,
        )

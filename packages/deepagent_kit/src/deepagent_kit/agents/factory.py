"""Assemble a deep agent from settings, middleware and sub-agent definitions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from deepagent_kit.agents.loop import StrandsAgentLoop
from deepagent_kit.backends.factory import build_backend_factory, build_store
from deepagent_kit.checkpoint import build_checkpointer
from deepagent_kit.interrupts import policy_from_tool_names
from deepagent_kit.middleware.base import ToolsMiddleware
from deepagent_kit.middleware.filesystem import FilesystemMiddleware
from deepagent_kit.middleware.planning import TodoListMiddleware
from deepagent_kit.middleware.subagents import SubAgentMiddleware
from deepagent_kit.middleware.telemetry import ToolTelemetry, ToolTelemetryMiddleware
from deepagent_kit.models.settings import load_settings
from deepagent_kit.runtime import DeepAgent
from deepagent_kit.subagents.loader import SubagentLoader

if TYPE_CHECKING:
    from collections.abc import Sequence

    from deepagent_kit.agents.loop import AgentLoop
    from deepagent_kit.backends.protocol import BackendFactory
    from deepagent_kit.backends.store import KeyValueStore
    from deepagent_kit.checkpoint import Checkpointer
    from deepagent_kit.interrupts import DecisionProvider, InterruptPolicy
    from deepagent_kit.middleware.base import Middleware
    from deepagent_kit.models.settings import Settings
    from deepagent_kit.subagents.models import SubagentSpec
    from deepagent_kit.tools.registry import RegisteredTool

logger = logging.getLogger(__name__)


def _merge_subagents(
    explicit: Sequence[SubagentSpec], directories: Sequence[str]
) -> list[SubagentSpec]:
    """Explicit specs win over discovered ones with the same name."""
    if not directories:
        return list(explicit)
    catalog = SubagentLoader(directories).load()
    for warning in catalog.diagnostics.warnings:
        logger.debug("Sub-agent discovery: %s", warning)
    merged = dict(catalog.specs)
    for spec in explicit:
        merged[spec.name] = spec
    return list(merged.values())


def create_deep_agent(
    *,
    instructions: str = "",
    model: Any = None,
    tools: Sequence[RegisteredTool] = (),
    subagents: Sequence[SubagentSpec] = (),
    middleware: Sequence[Middleware] = (),
    settings: Settings | None = None,
    backend_factory: BackendFactory | None = None,
    store: KeyValueStore | None = None,
    checkpointer: Checkpointer | None = None,
    interrupt_on: InterruptPolicy | None = None,
    decision_provider: DecisionProvider | None = None,
    loop: AgentLoop | None = None,
    telemetry: ToolTelemetry | None = None,
    general_purpose_agent: bool = True,
    thread_id: str | None = None,
) -> DeepAgent:
    """Create a deep agent with the default middleware stack.

    The stack is, in order: optional tool telemetry, the todo list, the
    filesystem tools, the ``task`` tool, caller tools, then ``middleware``.
    Anything not passed explicitly is built from ``settings`` (loaded from
    the environment when omitted).

    Args:
        instructions: Prompt placed ahead of the middleware prompt sections.
        model: Model object or id handed to the agent loop.
        tools: Extra tools, exposed alongside the built-in ones.
        subagents: Sub-agent specs; merged over those found in ``subagent_dirs``.
        middleware: Additional middleware, run after the default stack.
        settings: Runtime settings.
        backend_factory: Builds the file backend for each execution.
        store: Key-value store shared by the agent and its sub-agents.
        checkpointer: Persists run and interrupt state per thread.
        interrupt_on: Per-tool review policy; ``DEEPAGENT_INTERRUPT_ON`` adds to it.
        decision_provider: Resolves reviews inline instead of pausing.
        loop: Agent loop; defaults to a Strands loop.
        telemetry: When given, every tool call is recorded into it.
        general_purpose_agent: Whether to offer the built-in general-purpose sub-agent.
        thread_id: Thread to create or resume.
    """
    settings = settings or load_settings()
    store = store if store is not None else build_store(settings)
    checkpointer = checkpointer or build_checkpointer(settings)
    backend_factory = backend_factory or build_backend_factory(settings)
    loop = loop or StrandsAgentLoop(model or settings.model_id or None)

    policy = dict(policy_from_tool_names(settings.interrupt_tools))
    policy.update(interrupt_on or {})

    stack: list[Middleware] = []
    if telemetry is not None:
        stack.append(ToolTelemetryMiddleware(telemetry))
    stack.extend(
        [
            TodoListMiddleware(),
            FilesystemMiddleware(),
            SubAgentMiddleware(
                _merge_subagents(subagents, settings.subagent_dirs),
                general_purpose_agent=general_purpose_agent,
                loop=loop,
            ),
        ]
    )
    if tools:
        stack.append(ToolsMiddleware(tools))
    stack.extend(middleware)

    agent = DeepAgent(
        middleware=stack,
        backend_factory=backend_factory,
        settings=settings,
        instructions=instructions,
        model=model or settings.model_id or None,
        store=store,
        checkpointer=checkpointer,
        interrupt_on=policy,
        decision_provider=decision_provider,
        loop=loop,
        thread_id=thread_id,
    )
    logger.info(
        "Created deep agent %s with %d tools (backend %s)",
        agent.thread_id,
        len(agent.tools),
        settings.backend,
    )
    return agent

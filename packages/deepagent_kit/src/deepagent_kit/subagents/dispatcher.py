"""Sub-agent dispatch: run a nested, isolated execution and return one answer."""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING

from deepagent_kit.agents.loop import LoopRequest, LoopStatus
from deepagent_kit.checkpoint import InMemoryCheckpointer
from deepagent_kit.errors import ConfigurationError, StepBudgetExceeded, UnknownSubagentError
from deepagent_kit.models.state import RunState
from deepagent_kit.subagents.models import (
    GENERAL_PURPOSE,
    GENERAL_PURPOSE_DESCRIPTION,
    SubagentResult,
    SubagentSpec,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from deepagent_kit.agents.loop import AgentLoop
    from deepagent_kit.runtime import DeepAgent

logger = logging.getLogger(__name__)


def general_purpose_spec() -> SubagentSpec:
    """Built-in agent that inherits the parent's tools, prompt and model."""
    return SubagentSpec(
        name=GENERAL_PURPOSE,
        description=GENERAL_PURPOSE_DESCRIPTION,
        source="builtin",
    )


class SubagentDispatcher:
    """Registry of sub-agent specs and the logic that runs them.

    Each dispatch builds a child ``DeepAgent`` with its own run state (empty,
    or a snapshot of the parent's files), the parent's key-value store and
    backend factory, and ``depth + 1``. Only writes that land in shared
    backends are visible to the parent afterwards.
    """

    def __init__(
        self,
        specs: Iterable[SubagentSpec] = (),
        *,
        general_purpose_agent: bool = True,
        loop: AgentLoop | None = None,
    ) -> None:
        self._specs: dict[str, SubagentSpec] = {}
        for spec in specs:
            if spec.name in self._specs:
                msg = f"Duplicate sub-agent name '{spec.name}'"
                raise ConfigurationError(msg)
            self._specs[spec.name] = spec
        if general_purpose_agent and GENERAL_PURPOSE not in self._specs:
            self._specs = {GENERAL_PURPOSE: general_purpose_spec(), **self._specs}
        self._loop = loop

    def names(self) -> list[str]:
        return list(self._specs)

    def get(self, name: str) -> SubagentSpec | None:
        return self._specs.get(name)

    def describe(self) -> str:
        """One ``- name: description`` line per available sub-agent."""
        return "\n".join(f"- {spec.name}: {spec.description}" for spec in self._specs.values())

    def build_child(self, spec: SubagentSpec, parent: DeepAgent) -> DeepAgent:
        from deepagent_kit.runtime import DeepAgent  # noqa: PLC0415

        if spec.file_sharing == "snapshot":
            state = parent.state.snapshot()
        else:
            state = RunState()
        extra = list(spec.middleware or ())
        middleware = [*parent.pipeline.middleware, *extra]
        tools = spec.tools if spec.tools is not None else parent.tool_names
        if spec.tools is None and tools is not None:
            tools = [*tools, *(entry.name for item in extra for entry in item.tools())]
        policy = spec.interrupt_on if spec.interrupt_on is not None else parent.gate.policy
        return DeepAgent(
            name=spec.name,
            middleware=middleware,
            backend_factory=parent.backend_factory,
            settings=parent.settings,
            instructions=spec.system_prompt or parent.instructions,
            model=spec.model if spec.model is not None else parent.model,
            store=parent.store,
            checkpointer=InMemoryCheckpointer(),
            interrupt_on=policy,
            decision_provider=parent.decision_provider,
            loop=self._loop or parent.loop,
            tools=tools,
            thread_id=f"{parent.thread_id}/{spec.name}-{secrets.token_hex(3)}",
            state=state,
            depth=parent.depth + 1,
        )

    def dispatch(self, name: str, description: str, parent: DeepAgent) -> SubagentResult:
        """Run sub-agent ``name`` on ``description``; raises ``UnknownSubagentError``."""
        spec = self._specs.get(name)
        if spec is None:
            raise UnknownSubagentError(name, self.names())
        max_depth = parent.settings.max_subagent_depth
        if parent.depth >= max_depth:
            message = f"Error: Sub-agent nesting limit of {max_depth} reached; work directly."
            return SubagentResult(agent=name, prompt=description, output="", error=message)
        child = self.build_child(spec, parent)
        if child.loop is None:
            msg = f"No agent loop configured to run sub-agent '{name}'"
            raise ConfigurationError(msg)
        budget = spec.max_steps or parent.settings.subagent_max_steps
        logger.info("Dispatching sub-agent %s at depth %d (budget %d)", name, child.depth, budget)
        request = LoopRequest(
            agent=child, instructions=description, max_steps=budget, model=child.model
        )
        try:
            outcome = child.loop.run(request)
        except StepBudgetExceeded as exc:
            logger.info("Sub-agent %s exhausted its budget after %d steps", name, exc.steps)
            return SubagentResult(
                agent=name,
                prompt=description,
                output=exc.partial_output,
                steps=exc.steps,
                budget_exhausted=True,
            )
        if outcome.status == LoopStatus.PAUSED or child.pending:
            pending = ", ".join(f"{item.name} ({item.tool_call_id})" for item in child.pending)
            waiting_on = f" on {pending}" if pending else ""
            return SubagentResult(
                agent=name,
                prompt=description,
                output=outcome.output,
                steps=outcome.steps,
                error=(
                    f"Error: Sub-agent '{name}' paused awaiting a decision"
                    f"{waiting_on} and no decision provider is configured."
                ),
            )
        return SubagentResult(
            agent=name,
            prompt=description,
            output=outcome.output,
            steps=outcome.steps,
            budget_exhausted=outcome.budget_exhausted,
        )


def format_subagent_result(result: SubagentResult) -> str:
    """Render a dispatch result as the single text returned to the parent."""
    if result.error:
        return result.error
    output = result.output or "(sub-agent returned no output)"
    if result.budget_exhausted:
        output = (
            f"{output}\n\n[Sub-agent stopped after {result.steps} steps: step budget exhausted; "
            "the answer may be incomplete.]"
        )
    return output

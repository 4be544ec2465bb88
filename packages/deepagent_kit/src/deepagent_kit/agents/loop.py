"""Agent loop contract and the Strands-backed implementation.

The middleware stack never drives a model itself. A loop receives the
assembled ``DeepAgent`` (tools, prompt, execution entry points) and runs the
model until it answers, pauses or exhausts its step budget.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

from deepagent_kit.hooks import InterruptGateHook, ModelTurnHook, StepBudgetHook
from deepagent_kit.models.interrupts import ActionRequest
from deepagent_kit.models.tool_calls import ToolCall

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from deepagent_kit.models.interrupts import DecisionResponse
    from deepagent_kit.models.tool_calls import ToolResult
    from deepagent_kit.runtime import DeepAgent
    from deepagent_kit.tools.registry import RegisteredTool

logger = logging.getLogger(__name__)


class LoopStatus(StrEnum):
    COMPLETED = "completed"
    BUDGET_EXHAUSTED = "budget_exhausted"
    PAUSED = "paused"


@dataclass(frozen=True)
class LoopRequest:
    """One execution request: drive ``agent`` on ``instructions``."""

    agent: DeepAgent
    instructions: str
    max_steps: int | None = None
    model: Any = None


@dataclass(frozen=True)
class LoopResult:
    """Final text of an execution and how it ended."""

    output: str
    steps: int = 0
    status: LoopStatus = LoopStatus.COMPLETED

    @property
    def budget_exhausted(self) -> bool:
        return self.status == LoopStatus.BUDGET_EXHAUSTED


class AgentLoop(Protocol):
    """Drives a model over the agent's tools. May raise ``StepBudgetExceeded``."""

    def run(self, request: LoopRequest) -> LoopResult: ...


def build_strands_tool(agent: DeepAgent, entry: RegisteredTool) -> Any:
    """Expose a stack tool to Strands; execution goes through ``DeepAgent.execute``."""
    from strands.tools.tools import PythonAgentTool  # noqa: PLC0415

    definition = entry.definition
    tool_spec = {
        "name": definition.name,
        "description": definition.description,
        "inputSchema": {"json": definition.input_schema},
    }

    def invoke(tool_use: dict[str, Any], **_kwargs: Any) -> dict[str, Any]:
        call = ToolCall(
            id=str(tool_use.get("toolUseId", "")),
            name=definition.name,
            arguments=dict(tool_use.get("input") or {}),
        )
        result = agent.execute(call)
        return {
            "toolUseId": call.id,
            "status": result.status,
            "content": [{"text": result.content}],
        }

    return PythonAgentTool(definition.name, tool_spec, invoke)


@dataclass
class _StrandsRun:
    strands_agent: Any
    gate_hook: InterruptGateHook
    budget: StepBudgetHook
    interrupt_ids: dict[str, str] = field(default_factory=dict)


def continuation_prompt(instructions: str, results: Sequence[ToolResult]) -> str:
    """Prompt a fresh model run after reviewed calls were executed outside it."""
    lines = [
        instructions,
        "",
        "Tool calls held for review earlier in this task have been resolved:",
        *(f"- {result.name} ({result.tool_call_id}): {result.content}" for result in results),
        "",
        "Continue the task from here without repeating those calls.",
    ]
    return "\n".join(lines)


class StrandsAgentLoop:
    """Run a ``strands.Agent`` over the deep agent's tools, prompt and interrupt policy.

    When a gated call has no inline decision provider the Strands agent stops
    with an interrupt. The pending calls are then held by the deep agent's
    gate and checkpointed. ``resume`` answers the interrupt on the live Strands
    agent when this loop still holds it; otherwise the reviewed calls run
    through ``DeepAgent.resume`` and a new Strands agent continues the task.
    """

    def __init__(
        self,
        model: Any = None,
        *,
        agent_builder: Callable[..., Any] | None = None,
    ) -> None:
        self.model = model
        self._agent_builder = agent_builder
        self._paused: dict[str, _StrandsRun] = {}

    def _build_agent(self, **kwargs: Any) -> Any:
        if self._agent_builder is not None:
            return self._agent_builder(**kwargs)
        from strands import Agent  # noqa: PLC0415

        return Agent(**kwargs)

    def _start(self, request: LoopRequest) -> _StrandsRun:
        agent = request.agent
        gate_hook = InterruptGateHook(agent.gate, decision_provider=agent.decision_provider)
        budget = StepBudgetHook(request.max_steps)
        model = request.model or self.model or agent.model
        strands_agent = self._build_agent(
            model=model or None,
            tools=[build_strands_tool(agent, entry) for entry in agent.tools],
            system_prompt=agent.system_prompt,
            hooks=[gate_hook, budget, ModelTurnHook(agent)],
            callback_handler=None,
        )
        return _StrandsRun(strands_agent=strands_agent, gate_hook=gate_hook, budget=budget)

    def run(self, request: LoopRequest) -> LoopResult:
        run = self._start(request)
        return self._finish(request, run, run.strands_agent(request.instructions))

    def resume(self, request: LoopRequest, decisions: Sequence[DecisionResponse]) -> LoopResult:
        """Continue a paused run of ``request.agent`` with one decision per pending call."""
        agent = request.agent
        run = self._paused.pop(agent.thread_id, None)
        if run is None:
            turn = agent.resume(decisions)
            logger.info(
                "Continuing %s in a new agent after %d reviewed calls",
                agent.thread_id,
                len(turn.results),
            )
            run = self._start(request)
            prompt = continuation_prompt(request.instructions, turn.results)
            return self._finish(request, run, run.strands_agent(prompt))
        by_id = agent.gate.accept(decisions)
        agent.gate.finish()
        agent.save_checkpoint()
        responses = [
            {
                "interruptResponse": {
                    "interruptId": run.interrupt_ids[call_id],
                    "response": decision.model_dump(mode="json"),
                }
            }
            for call_id, decision in by_id.items()
        ]
        return self._finish(request, run, run.strands_agent(responses))

    def _finish(self, request: LoopRequest, run: _StrandsRun, result: Any) -> LoopResult:
        agent = request.agent
        output = str(result).strip()
        steps = run.budget.steps
        if getattr(result, "stop_reason", "end_turn") == "interrupt":
            interrupts = [
                item
                for item in getattr(result, "interrupts", None) or []
                if item.name == run.gate_hook.interrupt_name
            ]
            requests = [ActionRequest.model_validate(item.reason) for item in interrupts]
            run.interrupt_ids = {
                action.tool_call_id: item.id
                for action, item in zip(requests, interrupts, strict=True)
            }
            agent.hold_for_review(requests, request.instructions)
            self._paused[agent.thread_id] = run
            logger.info("Agent paused for review after %d steps", steps)
            return LoopResult(output=output, steps=steps, status=LoopStatus.PAUSED)
        if run.budget.exhausted:
            return LoopResult(output=output, steps=steps, status=LoopStatus.BUDGET_EXHAUSTED)
        return LoopResult(output=output, steps=steps)

"""DeepAgent: the facade a model loop talks to.

It owns one execution's run state, backend, middleware pipeline and
interrupt gate, and persists them through a checkpointer after every turn
so a paused turn can be resumed by another instance with the same thread id.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from contextvars import copy_context
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from deepagent_kit.backends.protocol import BackendContext
from deepagent_kit.checkpoint import Checkpoint, InMemoryCheckpointer
from deepagent_kit.errors import ConfigurationError, InterruptStateError
from deepagent_kit.interrupts import InterruptGate
from deepagent_kit.middleware.base import MiddlewarePipeline
from deepagent_kit.models.interrupts import DecisionResponse, GateStatus
from deepagent_kit.models.settings import Settings
from deepagent_kit.models.state import RunState
from deepagent_kit.models.tool_calls import ToolCall, ToolResult
from deepagent_kit.telemetry.logging_utils import run_context
from deepagent_kit.tools.registry import ToolRuntime
from deepagent_kit.utils import new_thread_id, utc_timestamp

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from deepagent_kit.agents.loop import AgentLoop, LoopResult
    from deepagent_kit.backends.protocol import BackendFactory, BackendProtocol
    from deepagent_kit.backends.store import KeyValueStore
    from deepagent_kit.checkpoint import Checkpointer
    from deepagent_kit.interrupts import DecisionProvider, InterruptPolicy
    from deepagent_kit.middleware.base import Middleware
    from deepagent_kit.models.interrupts import ActionRequest
    from deepagent_kit.tools.registry import RegisteredTool, ToolDetailLevel

logger = logging.getLogger(__name__)

MAX_PARALLEL_TOOL_CALLS = 8

BASE_AGENT_PROMPT = (
    "In order to complete the objective that the user asks of you, "
    "you have access to a number of standard tools."
)


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one batch of tool calls.

    ``interrupts`` is non-empty when the batch was held for review; in that
    case ``results`` is empty and nothing executed.
    """

    results: list[ToolResult] = field(default_factory=list)
    interrupts: list[ActionRequest] = field(default_factory=list)

    @property
    def paused(self) -> bool:
        return bool(self.interrupts)


def _as_tool_call(call: ToolCall | Mapping[str, Any]) -> ToolCall:
    if isinstance(call, ToolCall):
        return call
    return ToolCall.model_validate(dict(call))


def _as_decision(item: DecisionResponse | Mapping[str, Any]) -> DecisionResponse:
    if isinstance(item, DecisionResponse):
        return item
    return DecisionResponse.model_validate(dict(item))


class DeepAgent:
    """One execution of the middleware stack, addressable by ``thread_id``."""

    def __init__(
        self,
        *,
        middleware: Sequence[Middleware],
        backend_factory: BackendFactory,
        settings: Settings | None = None,
        instructions: str = "",
        name: str = "main",
        model: Any = None,
        store: KeyValueStore | None = None,
        checkpointer: Checkpointer | None = None,
        interrupt_on: InterruptPolicy | None = None,
        decision_provider: DecisionProvider | None = None,
        loop: AgentLoop | None = None,
        tools: Sequence[str] | None = None,
        thread_id: str | None = None,
        state: RunState | None = None,
        depth: int = 0,
    ) -> None:
        self.name = name
        self.settings = settings or Settings()
        self.instructions = instructions
        self.model = model
        self.store = store
        self.checkpointer = checkpointer or InMemoryCheckpointer()
        self.decision_provider = decision_provider
        self.loop = loop
        self.depth = depth
        self.tool_names = list(tools) if tools is not None else None
        self.thread_id = thread_id or new_thread_id()
        self.backend_factory = backend_factory
        self.model_turn: tuple[ToolCall, ...] = ()

        saved = self.checkpointer.load(self.thread_id)
        if saved is not None:
            logger.info(
                "Restored thread %s (gate %s, %d files)",
                self.thread_id,
                saved.interrupt.status,
                len(saved.state.files),
            )
            self.state = saved.state
            self.gate = InterruptGate(interrupt_on, saved.interrupt)
        else:
            self.state = state if state is not None else RunState()
            self.gate = InterruptGate(interrupt_on)

        self.pipeline = MiddlewarePipeline(middleware, tool_names=tools)
        self.backend: BackendProtocol = backend_factory(
            BackendContext(
                state=self.state,
                store=store,
                checkpointer=self.checkpointer,
                settings=self.settings,
            )
        )

    @property
    def tools(self) -> list[RegisteredTool]:
        return self.pipeline.registry.entries()

    @property
    def system_prompt(self) -> str:
        base = self.instructions.strip() or BASE_AGENT_PROMPT
        return self.pipeline.system_prompt(base)

    @property
    def status(self) -> GateStatus:
        return self.gate.status

    @property
    def pending(self) -> list[ActionRequest]:
        return self.gate.pending

    def tool_specs(self, detail_level: ToolDetailLevel = "full") -> list[dict[str, Any]]:
        """Describe every tool (name, description, JSON schema) for the model."""
        return self.pipeline.registry.list(detail_level)

    def _runtime(self, calls: Sequence[ToolCall]) -> ToolRuntime:
        return ToolRuntime(
            state=self.state,
            backend=self.backend,
            settings=self.settings,
            store=self.store,
            thread_id=self.thread_id,
            depth=self.depth,
            turn_calls=tuple(calls),
            extras={"agent": self},
        )

    def begin_model_turn(self, calls: Sequence[ToolCall]) -> None:
        """Record the calls a model issued together; ``execute`` treats them as one turn."""
        self.model_turn = tuple(calls)

    def execute(self, call: ToolCall | Mapping[str, Any]) -> ToolResult:
        """Run a single call through the pipeline without consulting the gate."""
        tool_call = _as_tool_call(call)
        turn = self.model_turn
        if not any(item.id == tool_call.id for item in turn):
            turn = (tool_call,)
        with run_context(self.thread_id, self.depth):
            result = self.pipeline.execute(tool_call, self._runtime(turn))
        self.save_checkpoint()
        return result

    def run_turn(
        self, calls: Sequence[ToolCall | Mapping[str, Any]], *, parallel: bool = False
    ) -> TurnResult:
        """Execute one batch of tool calls, or hold it if any call is gated."""
        batch = [_as_tool_call(call) for call in calls]
        with run_context(self.thread_id, self.depth):
            requests = self.gate.pause(batch)
            if not requests:
                results = self._execute_batch(batch, {}, parallel=parallel)
                self.save_checkpoint()
                return TurnResult(results=results)
            self.save_checkpoint()
        if self.decision_provider is None:
            return TurnResult(interrupts=requests)
        decisions = list(self.decision_provider(requests))
        return self.resume(decisions, parallel=parallel)

    def resume(
        self,
        decisions: Sequence[DecisionResponse | Mapping[str, Any]],
        *,
        parallel: bool = False,
    ) -> TurnResult:
        """Release the held batch with exactly one decision per pending call."""
        responses = [_as_decision(item) for item in decisions]
        with run_context(self.thread_id, self.depth):
            by_id = self.gate.accept(responses)
            batch = self.gate.held_batch
            results = self._execute_batch(batch, by_id, parallel=parallel)
            self.gate.finish()
            self.save_checkpoint()
        return TurnResult(results=results)

    def _execute_batch(
        self,
        batch: list[ToolCall],
        decisions: dict[str, DecisionResponse],
        *,
        parallel: bool,
    ) -> list[ToolResult]:
        runtime = self._runtime(batch)

        def run_one(call: ToolCall) -> ToolResult:
            outcome = InterruptGate.apply(call, decisions.get(call.id))
            if isinstance(outcome, ToolResult):
                logger.info("Rejected %s (%s)", call.name, call.id)
                return outcome
            return self.pipeline.execute(outcome, runtime)

        if parallel and len(batch) > 1:
            if self.backend.thread_safe:
                workers = min(len(batch), MAX_PARALLEL_TOOL_CALLS)
                with ThreadPoolExecutor(max_workers=workers) as executor:
                    futures = [executor.submit(copy_context().run, run_one, call) for call in batch]
                    return [future.result() for future in futures]
            logger.debug("Backend is not thread-safe; running %d calls sequentially", len(batch))
        return [run_one(call) for call in batch]

    def save_checkpoint(self) -> None:
        self.checkpointer.save(
            Checkpoint(
                thread_id=self.thread_id,
                state=self.state,
                interrupt=self.gate.state,
                updated_at=utc_timestamp(),
            )
        )

    def invoke(self, instructions: str, *, max_steps: int | None = None) -> LoopResult:
        """Drive the configured agent loop on ``instructions``."""
        from deepagent_kit.agents.loop import LoopRequest  # noqa: PLC0415

        if self.loop is None:
            msg = "DeepAgent.invoke requires an agent loop"
            raise ConfigurationError(msg)
        request = LoopRequest(
            agent=self, instructions=instructions, max_steps=max_steps, model=self.model
        )
        with run_context(self.thread_id, self.depth):
            return self.loop.run(request)

    def hold_for_review(self, requests: Sequence[ActionRequest], instructions: str) -> None:
        """Pause an agent-loop run on ``requests`` and checkpoint it for ``resume_invoke``."""
        batch = [
            ToolCall(id=request.tool_call_id, name=request.name, arguments=request.arguments)
            for request in requests
        ]
        with run_context(self.thread_id, self.depth):
            self.gate.hold(requests, batch, instructions=instructions)
            self.save_checkpoint()

    def resume_invoke(
        self,
        decisions: Sequence[DecisionResponse | Mapping[str, Any]],
        *,
        max_steps: int | None = None,
    ) -> LoopResult:
        """Continue a paused agent-loop run once every pending call has a decision.

        Works on a fresh instance restored from the checkpointer as well as on
        the instance that paused.
        """
        from deepagent_kit.agents.loop import LoopRequest  # noqa: PLC0415

        resume = getattr(self.loop, "resume", None)
        if resume is None:
            msg = "DeepAgent.resume_invoke requires an agent loop that can resume"
            raise ConfigurationError(msg)
        instructions = self.gate.state.instructions
        if self.gate.status is not GateStatus.PAUSED or instructions is None:
            msg = f"Thread {self.thread_id} has no paused agent run to resume"
            raise InterruptStateError(msg)
        request = LoopRequest(
            agent=self, instructions=instructions, max_steps=max_steps, model=self.model
        )
        with run_context(self.thread_id, self.depth):
            return resume(request, [_as_decision(item) for item in decisions])

"""Interrupt gate: pause configured tool calls for an external decision.

A turn containing any gated call is held as a whole. The gate moves
running -> paused when it holds a batch, paused -> resumed once a complete
set of decisions is accepted, and back to running after the batch ran.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING

from deepagent_kit.errors import ConfigurationError, InterruptStateError
from deepagent_kit.models.interrupts import (
    ALL_DECISIONS,
    ActionRequest,
    Decision,
    DecisionResponse,
    GateStatus,
    InterruptConfig,
    InterruptState,
)
from deepagent_kit.models.tool_calls import ToolCall, ToolResult

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

PolicyValue = bool | Sequence[Decision | str] | InterruptConfig
InterruptPolicy = Mapping[str, PolicyValue]
DecisionProvider = Callable[[list[ActionRequest]], Sequence[DecisionResponse]]


def _to_config(tool_name: str, value: PolicyValue) -> InterruptConfig | None:
    if isinstance(value, InterruptConfig):
        config = value
    elif isinstance(value, bool):
        return InterruptConfig() if value else None
    elif isinstance(value, str) or not isinstance(value, Sequence):
        msg = f"interrupt_on['{tool_name}'] must be a bool, a list of decisions or InterruptConfig"
        raise ConfigurationError(msg)
    else:
        try:
            decisions = tuple(Decision(item) for item in value)
        except ValueError as exc:
            allowed = ", ".join(ALL_DECISIONS)
            msg = f"interrupt_on['{tool_name}'] has an unknown decision; allowed: {allowed}"
            raise ConfigurationError(msg) from exc
        config = InterruptConfig(allowed_decisions=decisions)
    if not config.allowed_decisions:
        msg = f"interrupt_on['{tool_name}'] must allow at least one decision"
        raise ConfigurationError(msg)
    return config


def normalize_interrupt_policy(policy: InterruptPolicy | None) -> dict[str, InterruptConfig]:
    """Resolve shorthand policy values; tools mapped to False are dropped."""
    resolved: dict[str, InterruptConfig] = {}
    for tool_name, value in (policy or {}).items():
        config = _to_config(tool_name, value)
        if config is not None:
            resolved[tool_name] = config
    return resolved


def policy_from_tool_names(names: Iterable[str]) -> dict[str, PolicyValue]:
    """Build a policy gating every named tool with all decisions allowed."""
    return {name: True for name in names}


def check_decision(request: ActionRequest, decision: DecisionResponse) -> None:
    """Raise InterruptStateError unless ``decision`` is a valid answer to ``request``."""
    if decision.tool_call_id != request.tool_call_id:
        msg = f"Decision for '{decision.tool_call_id}' does not match '{request.tool_call_id}'"
        raise InterruptStateError(msg)
    if decision.decision not in request.allowed_decisions:
        allowed = ", ".join(request.allowed_decisions)
        msg = (
            f"Decision '{decision.decision}' is not allowed for '{request.name}' "
            f"(allowed: {allowed})"
        )
        raise InterruptStateError(msg)
    if decision.decision is Decision.EDIT and decision.arguments is None:
        msg = f"Edit decision for '{decision.tool_call_id}' needs replacement arguments"
        raise InterruptStateError(msg)


def rejection_message(call: ToolCall, reason: str | None) -> str:
    detail = reason.strip() if reason and reason.strip() else "no reason given"
    return f"Error: Tool call '{call.name}' ({call.id}) was rejected by the reviewer: {detail}"


class InterruptGate:
    """Holds gated batches and validates the decisions that release them."""

    def __init__(
        self, policy: InterruptPolicy | None = None, state: InterruptState | None = None
    ) -> None:
        self.policy = normalize_interrupt_policy(policy)
        self.state = state or InterruptState()

    @property
    def status(self) -> GateStatus:
        return self.state.status

    @property
    def pending(self) -> list[ActionRequest]:
        return list(self.state.pending)

    def config_for(self, tool_name: str) -> InterruptConfig | None:
        return self.policy.get(tool_name)

    def action_request(self, call: ToolCall) -> ActionRequest | None:
        config = self.config_for(call.name)
        if config is None:
            return None
        return ActionRequest(
            tool_call_id=call.id,
            name=call.name,
            arguments=dict(call.arguments),
            allowed_decisions=config.allowed_decisions,
            description=config.description or f"Tool execution requires approval: {call.name}",
        )

    def requests_for(self, calls: Sequence[ToolCall]) -> list[ActionRequest]:
        """Return the action requests for the gated calls of a batch, in issue order."""
        return [request for call in calls if (request := self.action_request(call)) is not None]

    def pause(self, calls: Sequence[ToolCall]) -> list[ActionRequest]:
        """Hold the whole batch if any call is gated; return the requests (empty if none)."""
        if self.state.status is not GateStatus.RUNNING:
            msg = f"Cannot start a new turn while the gate is {self.state.status}"
            raise InterruptStateError(msg)
        requests = self.requests_for(calls)
        if requests:
            self.hold(requests, calls)
        return requests

    def hold(
        self,
        requests: Sequence[ActionRequest],
        batch: Sequence[ToolCall],
        *,
        instructions: str | None = None,
    ) -> None:
        """Enter the paused state for ``batch`` awaiting decisions on ``requests``."""
        if self.state.status is GateStatus.PAUSED:
            msg = "The gate is already paused"
            raise InterruptStateError(msg)
        self.state = InterruptState(
            status=GateStatus.PAUSED,
            pending=list(requests),
            batch=list(batch),
            instructions=instructions,
        )
        logger.info(
            "Paused %d calls for review of %s",
            len(batch),
            ", ".join(request.name for request in requests),
        )

    def accept(self, decisions: Sequence[DecisionResponse]) -> dict[str, DecisionResponse]:
        """Validate one decision per pending request and move to resumed."""
        if self.state.status is not GateStatus.PAUSED:
            msg = f"Nothing to resume: the gate is {self.state.status}"
            raise InterruptStateError(msg)
        pending = {request.tool_call_id: request for request in self.state.pending}
        by_id: dict[str, DecisionResponse] = {}
        for decision in decisions:
            request = pending.get(decision.tool_call_id)
            if request is None:
                msg = f"Decision for unknown tool call '{decision.tool_call_id}'"
                raise InterruptStateError(msg)
            if decision.tool_call_id in by_id:
                msg = f"More than one decision for tool call '{decision.tool_call_id}'"
                raise InterruptStateError(msg)
            check_decision(request, decision)
            by_id[decision.tool_call_id] = decision
        missing = [call_id for call_id in pending if call_id not in by_id]
        if missing:
            msg = f"Missing decisions for tool calls: {', '.join(missing)}"
            raise InterruptStateError(msg)
        self.state = self.state.model_copy(update={"status": GateStatus.RESUMED})
        return by_id

    @property
    def held_batch(self) -> list[ToolCall]:
        return list(self.state.batch)

    @staticmethod
    def apply(call: ToolCall, decision: DecisionResponse | None) -> ToolCall | ToolResult:
        """Resolve one held call: ungated and approved calls pass through unchanged."""
        if decision is None or decision.decision is Decision.APPROVE:
            return call
        if decision.decision is Decision.EDIT:
            return call.model_copy(update={"arguments": dict(decision.arguments or {})})
        return ToolResult.error(call, rejection_message(call, decision.reason))

    def finish(self) -> None:
        """Return to running once the released batch has executed."""
        self.state = InterruptState()

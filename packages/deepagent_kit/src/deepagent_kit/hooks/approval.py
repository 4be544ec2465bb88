"""Interrupt gate hook for Strands agents.

Provides InterruptGateHook, which applies the deep agent's interrupt policy
to tool calls issued by a Strands event loop.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from strands.hooks import (
    BeforeToolCallEvent,
    HookProvider,
    HookRegistry,
)

from deepagent_kit.errors import InterruptStateError
from deepagent_kit.interrupts import InterruptGate, check_decision
from deepagent_kit.models.interrupts import Decision, DecisionResponse
from deepagent_kit.models.tool_calls import ToolCall, ToolResult

if TYPE_CHECKING:
    from deepagent_kit.interrupts import DecisionProvider
    from deepagent_kit.models.interrupts import ActionRequest

logger = logging.getLogger(__name__)

_APPROVALS = {"y", "yes", "allow", "approve"}


def _tool_call_from_event(event: BeforeToolCallEvent) -> ToolCall:
    tool_use = event.tool_use
    return ToolCall(
        id=str(tool_use.get("toolUseId", "")),
        name=str(tool_use.get("name", "")),
        arguments=dict(tool_use.get("input") or {}),
    )


def decision_from_response(request: ActionRequest, response: Any) -> DecisionResponse:
    """Coerce an interrupt response (plain string or mapping) into a decision."""
    if isinstance(response, DecisionResponse):
        return response
    if isinstance(response, Mapping):
        return DecisionResponse.model_validate({"tool_call_id": request.tool_call_id, **response})
    text = str(response).strip()
    if text.lower() in _APPROVALS:
        return DecisionResponse(tool_call_id=request.tool_call_id, decision=Decision.APPROVE)
    return DecisionResponse(
        tool_call_id=request.tool_call_id, decision=Decision.REJECT, reason=text or None
    )


class InterruptGateHook(HookProvider):
    """Interrupt gated tool calls and apply the approve/edit/reject decision.

    With a ``decision_provider`` the decision is resolved inline; otherwise a
    Strands interrupt is raised and the response arrives when the caller
    resumes the agent.
    """

    def __init__(
        self,
        gate: InterruptGate,
        decision_provider: DecisionProvider | None = None,
        namespace: str = "deepagent",
    ) -> None:
        self._gate = gate
        self._decision_provider = decision_provider
        self._namespace = namespace

    @property
    def interrupt_name(self) -> str:
        return f"{self._namespace}-approval"

    def register_hooks(self, registry: HookRegistry, **_kwargs: Any) -> None:
        """Register interrupt hook for tool calls."""
        registry.add_callback(BeforeToolCallEvent, self.review)

    def review(self, event: BeforeToolCallEvent) -> None:
        """Gate configured tools and rewrite or cancel the call per the decision."""
        call = _tool_call_from_event(event)
        request = self._gate.action_request(call)
        if request is None:
            return
        try:
            decision = self._decide(event, request)
            check_decision(request, decision)
        except (InterruptStateError, ValidationError) as exc:
            logger.warning("Invalid decision for %s: %s", call.name, exc)
            event.cancel_tool = f"Error: {exc}"
            return
        outcome = InterruptGate.apply(call, decision)
        if isinstance(outcome, ToolResult):
            event.cancel_tool = outcome.content
        elif outcome.arguments != call.arguments:
            event.tool_use["input"] = dict(outcome.arguments)

    def _decide(self, event: BeforeToolCallEvent, request: ActionRequest) -> DecisionResponse:
        if self._decision_provider is not None:
            responses = list(self._decision_provider([request]))
            if len(responses) != 1:
                msg = f"Expected exactly one decision for '{request.tool_call_id}'"
                raise InterruptStateError(msg)
            return responses[0]
        response = event.interrupt(self.interrupt_name, reason=request.model_dump(mode="json"))
        return decision_from_response(request, response)

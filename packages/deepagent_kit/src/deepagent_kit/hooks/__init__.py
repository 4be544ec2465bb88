"""Hooks package bridging the middleware stack into Strands agents.

Provides hook providers for extending agent behavior:
- InterruptGateHook: pauses gated tools for approve / edit / reject decisions
- StepBudgetHook: caps the number of tool calls a nested agent may make
- ModelTurnHook: groups the tool calls of one model response into a turn

Hooks follow the Strands HookProvider pattern: register callbacks
that respond to lifecycle events (BeforeInvocation, BeforeToolCall, etc.).
"""

from deepagent_kit.hooks.approval import InterruptGateHook, decision_from_response
from deepagent_kit.hooks.budget import StepBudgetHook
from deepagent_kit.hooks.turns import ModelTurnHook

__all__ = [
    "InterruptGateHook",
    "ModelTurnHook",
    "StepBudgetHook",
    "decision_from_response",
]

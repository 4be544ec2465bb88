"""Model turn tracking for Strands agents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from strands.hooks import (
    AfterInvocationEvent,
    HookProvider,
    HookRegistry,
    MessageAddedEvent,
)

from deepagent_kit.models.tool_calls import ToolCall

if TYPE_CHECKING:
    from deepagent_kit.runtime import DeepAgent


class ModelTurnHook(HookProvider):
    """Tell the deep agent which tool calls the model issued together.

    Strands executes each tool use separately, so without this every call
    would look like a turn of its own to the middleware.
    """

    def __init__(self, agent: DeepAgent) -> None:
        self._agent = agent

    def register_hooks(self, registry: HookRegistry, **_kwargs: Any) -> None:
        registry.add_callback(MessageAddedEvent, self.observe)
        registry.add_callback(AfterInvocationEvent, self._clear)

    def observe(self, event: MessageAddedEvent) -> None:
        message = event.message
        if message.get("role") != "assistant":
            return
        calls = tuple(
            ToolCall(
                id=str(block["toolUse"].get("toolUseId", "")),
                name=str(block["toolUse"].get("name", "")),
                arguments=dict(block["toolUse"].get("input") or {}),
            )
            for block in message.get("content", [])
            if "toolUse" in block
        )
        self._agent.begin_model_turn(calls)

    def _clear(self, _event: AfterInvocationEvent) -> None:
        self._agent.begin_model_turn(())

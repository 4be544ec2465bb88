"""Step budget enforcement for Strands agents."""

from __future__ import annotations

import logging
from typing import Any

from strands.hooks import BeforeToolCallEvent, HookProvider, HookRegistry

logger = logging.getLogger(__name__)


class StepBudgetHook(HookProvider):
    """Cancel tool calls past ``max_steps`` and ask the event loop to stop.

    Exhaustion is recorded rather than raised so the caller can still return
    the partial answer. Counts carry over when a paused agent is resumed.
    """

    def __init__(self, max_steps: int | None) -> None:
        self.max_steps = max_steps
        self.steps = 0
        self.exhausted = False

    def register_hooks(self, registry: HookRegistry, **_kwargs: Any) -> None:
        """Register budget callbacks."""
        registry.add_callback(BeforeToolCallEvent, self.count)

    def count(self, event: BeforeToolCallEvent) -> None:
        """Count one step per tool call and cancel calls beyond the budget."""
        if event.cancel_tool:
            return
        self.steps += 1
        if self.max_steps is None or self.steps <= self.max_steps:
            return
        if not self.exhausted:
            logger.info("Step budget of %d exhausted", self.max_steps)
        self.exhausted = True
        event.cancel_tool = (
            f"Step budget of {self.max_steps} tool calls exhausted. "
            "Stop calling tools and answer with what you have."
        )
        request_state = event.invocation_state.setdefault("request_state", {})
        request_state["stop_event_loop"] = True

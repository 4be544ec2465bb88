"""Serializable models for the interrupt gate.

Paused state must survive process boundaries, so every model here
round-trips through JSON via pydantic.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from deepagent_kit.models.tool_calls import ToolCall


class Decision(StrEnum):
    """Decision an external reviewer can take on a paused tool call."""

    APPROVE = "approve"
    EDIT = "edit"
    REJECT = "reject"


ALL_DECISIONS: tuple[Decision, ...] = (Decision.APPROVE, Decision.EDIT, Decision.REJECT)


class GateStatus(StrEnum):
    """Gate state machine: running -> paused -> resumed -> running."""

    RUNNING = "running"
    PAUSED = "paused"
    RESUMED = "resumed"


class InterruptConfig(BaseModel, frozen=True):
    """Per-tool interrupt policy."""

    allowed_decisions: tuple[Decision, ...] = ALL_DECISIONS
    description: str = ""


class ActionRequest(BaseModel, frozen=True):
    """A paused tool call surfaced to the external reviewer."""

    tool_call_id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    allowed_decisions: tuple[Decision, ...] = ALL_DECISIONS
    description: str = ""


class DecisionResponse(BaseModel, frozen=True):
    """Decision delivered for a paused tool call."""

    tool_call_id: str
    decision: Decision
    arguments: dict[str, Any] | None = None
    reason: str | None = None


class InterruptState(BaseModel):
    """Gate state persisted in checkpoints.

    ``instructions`` is set when the paused batch came from an agent-loop run,
    so the run can be continued after the decisions arrive.
    """

    status: GateStatus = GateStatus.RUNNING
    pending: list[ActionRequest] = Field(default_factory=list)
    batch: list[ToolCall] = Field(default_factory=list)
    instructions: str | None = None

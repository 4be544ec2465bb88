"""Sub-agent models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from deepagent_kit.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from deepagent_kit.interrupts import InterruptPolicy
    from deepagent_kit.middleware.base import Middleware

FileSharing = Literal["isolated", "snapshot"]
GENERAL_PURPOSE = "general-purpose"

GENERAL_PURPOSE_DESCRIPTION = (
    "General-purpose agent for researching complex questions, searching for files and "
    "content, and executing multi-step tasks. It has the same tools as the main agent."
)


@dataclass(frozen=True)
class SubagentSpec:
    """Definition of a nested agent the ``task`` tool can dispatch to.

    ``tools`` and ``model`` fall back to the parent's when left as None;
    ``middleware`` is appended to the parent's stack. ``file_sharing="snapshot"``
    seeds the child with a copy of the parent's ephemeral files instead of an
    empty state.
    """

    name: str
    description: str
    system_prompt: str = ""
    tools: Sequence[str] | None = None
    model: Any = None
    middleware: Sequence[Middleware] | None = None
    interrupt_on: InterruptPolicy | None = None
    file_sharing: FileSharing = "isolated"
    max_steps: int | None = None
    source: str = "inline"

    def __post_init__(self) -> None:
        if not self.name.strip():
            msg = "SubagentSpec.name must be non-empty"
            raise ConfigurationError(msg)
        if not self.description.strip():
            msg = f"Sub-agent '{self.name}' needs a description"
            raise ConfigurationError(msg)
        if self.file_sharing not in ("isolated", "snapshot"):
            msg = f"Sub-agent '{self.name}' has invalid file_sharing '{self.file_sharing}'"
            raise ConfigurationError(msg)
        if self.max_steps is not None and self.max_steps < 1:
            msg = f"Sub-agent '{self.name}' max_steps must be >= 1"
            raise ConfigurationError(msg)
        if self.tools is not None and not isinstance(self.tools, tuple):
            object.__setattr__(self, "tools", tuple(self.tools))
        if isinstance(self.interrupt_on, Mapping):
            object.__setattr__(self, "interrupt_on", dict(self.interrupt_on))


@dataclass(frozen=True)
class SubagentResult:
    """Result payload returned from one dispatch."""

    agent: str
    prompt: str
    output: str
    steps: int = 0
    budget_exhausted: bool = False
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

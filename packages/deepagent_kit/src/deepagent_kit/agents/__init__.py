"""Agent loops driving a model over a deep agent's tools.

``create_deep_agent`` lives in ``deepagent_kit.agents.factory`` and is
re-exported from the package root.
"""

from deepagent_kit.agents.loop import (
    AgentLoop,
    LoopRequest,
    LoopResult,
    LoopStatus,
    StrandsAgentLoop,
    build_strands_tool,
)

__all__ = [
    "AgentLoop",
    "LoopRequest",
    "LoopResult",
    "LoopStatus",
    "StrandsAgentLoop",
    "build_strands_tool",
]

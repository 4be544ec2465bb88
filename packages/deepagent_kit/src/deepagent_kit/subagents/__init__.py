"""Sub-agent specs, discovery and dispatch."""

from deepagent_kit.subagents.loader import SubagentCatalog, SubagentDiagnostics, SubagentLoader
from deepagent_kit.subagents.models import GENERAL_PURPOSE, SubagentResult, SubagentSpec

__all__ = [
    "GENERAL_PURPOSE",
    "SubagentCatalog",
    "SubagentDiagnostics",
    "SubagentLoader",
    "SubagentResult",
    "SubagentSpec",
]

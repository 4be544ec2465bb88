"""Telemetry package for run observability.

Log records emitted while a turn runs carry the thread id and the nesting
depth of the agent that emitted them.
"""

from deepagent_kit.telemetry.logging_utils import (
    RunContextFilter,
    current_agent_depth,
    current_thread_id,
    install_run_log_filter,
    run_context,
)

__all__ = [
    "RunContextFilter",
    "current_agent_depth",
    "current_thread_id",
    "install_run_log_filter",
    "run_context",
]

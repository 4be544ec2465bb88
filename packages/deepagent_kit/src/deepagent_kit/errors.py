"""Exception hierarchy for the deep agent middleware.

Operation-level errors are converted into error tool results by the
pipeline, so their messages are written for the model to act on.
Only ConfigurationError is expected to escape to the caller.
"""

from __future__ import annotations


class DeepAgentError(Exception):
    """Base exception for all middleware errors."""


class PathNotFoundError(DeepAgentError):
    """A file path does not exist in the active backend."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Error: File '{path}' not found")


class InvalidPathError(DeepAgentError):
    """A path failed validation (traversal, drive letters, empty)."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Error: Invalid path '{path}': {reason}")


class NoMatchError(DeepAgentError):
    """Edit target does not occur in the file."""

    def __init__(self, path: str, old_string: str) -> None:
        self.path = path
        self.old_string = old_string
        if old_string:
            message = f"Error: String not found in file '{path}': '{old_string}'"
        else:
            message = f"Error: Cannot edit '{path}' with an empty match string"
        super().__init__(message)


class AmbiguousMatchError(DeepAgentError):
    """Edit target occurs more than once while uniqueness is required."""

    def __init__(self, path: str, occurrences: int) -> None:
        self.path = path
        self.occurrences = occurrences
        super().__init__(
            f"Error: String appears {occurrences} times in file '{path}', expected exactly 1. "
            "Use replace_all=True to replace all instances, or provide a more specific "
            "string with surrounding context."
        )


class InvalidPatternError(DeepAgentError):
    """A grep regular expression failed to compile."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f"Error: Invalid regex pattern '{pattern}': {reason}")


class BackendIOError(DeepAgentError):
    """Host-level failure in the real-directory backend. Never retried."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Error: I/O failure for '{path}': {reason}")


class UnknownSubagentError(DeepAgentError):
    """Task dispatch named a sub-agent that is not registered."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        allowed = ", ".join(f"`{item}`" for item in available) or "none"
        super().__init__(
            f"Error: invoked agent of type {name}, the only allowed types are {allowed}"
        )


class StepBudgetExceeded(DeepAgentError):
    """A nested execution ran out of steps. Recoverable: carries the partial answer."""

    def __init__(self, steps: int, partial_output: str = "") -> None:
        self.steps = steps
        self.partial_output = partial_output
        super().__init__(f"Step budget exhausted after {steps} steps")


class ToolArgumentError(DeepAgentError):
    """Tool arguments failed schema validation before dispatch."""

    def __init__(self, tool_name: str, details: str) -> None:
        self.tool_name = tool_name
        self.details = details
        super().__init__(f"Error: Invalid arguments for tool '{tool_name}': {details}")


class InterruptStateError(DeepAgentError):
    """Resume was called with decisions that do not fit the paused state."""


class ConfigurationError(DeepAgentError, ValueError):
    """Invalid stack configuration, raised eagerly at construction."""

from deepagent_kit.agents import AgentLoop, LoopRequest, LoopResult, LoopStatus, StrandsAgentLoop
from deepagent_kit.agents.factory import create_deep_agent
from deepagent_kit.backends import (
    BackendContext,
    BackendProtocol,
    CompositeBackend,
    FilesystemBackend,
    InMemoryStore,
    JSONFileStore,
    StateBackend,
    StoreBackend,
    build_backend_factory,
    build_store,
)
from deepagent_kit.checkpoint import (
    Checkpoint,
    Checkpointer,
    FileCheckpointer,
    InMemoryCheckpointer,
    build_checkpointer,
)
from deepagent_kit.errors import (
    AmbiguousMatchError,
    BackendIOError,
    ConfigurationError,
    DeepAgentError,
    InterruptStateError,
    InvalidPathError,
    InvalidPatternError,
    NoMatchError,
    PathNotFoundError,
    StepBudgetExceeded,
    ToolArgumentError,
    UnknownSubagentError,
)
from deepagent_kit.middleware import (
    FilesystemMiddleware,
    Middleware,
    SubAgentMiddleware,
    TodoListMiddleware,
    ToolTelemetry,
    ToolTelemetryMiddleware,
)
from deepagent_kit.models import (
    ActionRequest,
    Decision,
    DecisionResponse,
    FileData,
    InterruptConfig,
    RunState,
    Settings,
    TodoItem,
    ToolCall,
    ToolResult,
    load_settings,
)
from deepagent_kit.runtime import DeepAgent, TurnResult
from deepagent_kit.subagents import SubagentLoader, SubagentResult, SubagentSpec
from deepagent_kit.telemetry import install_run_log_filter

__all__ = [
    "ActionRequest",
    "AgentLoop",
    "AmbiguousMatchError",
    "BackendContext",
    "BackendIOError",
    "BackendProtocol",
    "Checkpoint",
    "Checkpointer",
    "CompositeBackend",
    "ConfigurationError",
    "Decision",
    "DecisionResponse",
    "DeepAgent",
    "DeepAgentError",
    "FileCheckpointer",
    "FileData",
    "FilesystemBackend",
    "FilesystemMiddleware",
    "InMemoryCheckpointer",
    "InMemoryStore",
    "InterruptConfig",
    "InterruptStateError",
    "InvalidPathError",
    "InvalidPatternError",
    "JSONFileStore",
    "LoopRequest",
    "LoopResult",
    "LoopStatus",
    "Middleware",
    "NoMatchError",
    "PathNotFoundError",
    "RunState",
    "Settings",
    "StateBackend",
    "StepBudgetExceeded",
    "StoreBackend",
    "StrandsAgentLoop",
    "SubAgentMiddleware",
    "SubagentLoader",
    "SubagentResult",
    "SubagentSpec",
    "TodoItem",
    "TodoListMiddleware",
    "ToolArgumentError",
    "ToolCall",
    "ToolResult",
    "ToolTelemetry",
    "ToolTelemetryMiddleware",
    "TurnResult",
    "build_backend_factory",
    "build_checkpointer",
    "build_store",
    "create_deep_agent",
    "install_run_log_filter",
    "load_settings",
]

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ValidationError

from deepagent_kit.errors import ConfigurationError, ToolArgumentError

if TYPE_CHECKING:
    from deepagent_kit.backends.protocol import BackendProtocol
    from deepagent_kit.backends.store import KeyValueStore
    from deepagent_kit.models.settings import Settings
    from deepagent_kit.models.state import RunState
    from deepagent_kit.models.tool_calls import ToolCall, ToolResult

ToolDetailLevel = Literal["name", "summary", "full"]
ToolHandler = Callable[..., "str | ToolResult"]

_SUMMARY_LEVELS = frozenset({"summary", "full"})


def _dedupe_tags(tags: Iterable[str] | str | None) -> tuple[str, ...]:
    if not tags:
        return ()
    raw = [tags] if isinstance(tags, str) else list(tags)
    cleaned = (str(tag).strip() for tag in raw)
    return tuple(dict.fromkeys(tag for tag in cleaned if tag))


def _describe_errors(exc: ValidationError) -> str:
    """Flatten pydantic errors into ``field: message`` pairs the model can act on."""
    return "; ".join(
        f"{'.'.join(map(str, error['loc'])) or 'arguments'}: {error['msg']}"
        for error in exc.errors()
    )


@dataclass
class ToolRuntime:
    """Per-call context handed to tool handlers and middleware hooks."""

    state: RunState
    backend: BackendProtocol
    settings: Settings
    store: KeyValueStore | None = None
    thread_id: str = ""
    depth: int = 0
    tool_call_id: str = ""
    turn_calls: tuple[ToolCall, ...] = ()
    extras: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolDefinition:
    """Name, prompt text and argument model of one tool offered to the model."""

    name: str
    description: str
    args_model: type[BaseModel]
    category: str = "general"
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for label, value in (("name", self.name), ("description", self.description)):
            if not value.strip():
                msg = f"Tool {label} must not be blank"
                raise ValueError(msg)
        object.__setattr__(self, "category", self.category.strip() or "general")
        object.__setattr__(self, "tags", _dedupe_tags(self.tags))

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.args_model.model_json_schema()

    def validate_arguments(self, arguments: Mapping[str, Any]) -> BaseModel:
        """Parse model-supplied arguments, raising ``ToolArgumentError`` with every bad field."""
        try:
            return self.args_model.model_validate(dict(arguments))
        except ValidationError as exc:
            raise ToolArgumentError(self.name, _describe_errors(exc)) from exc

    def to_dict(self, detail_level: ToolDetailLevel = "full") -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name}
        if detail_level in _SUMMARY_LEVELS:
            payload["description"] = self.description
            payload["category"] = self.category
            payload["tags"] = list(self.tags)
        if detail_level == "full":
            payload["input_schema"] = self.input_schema
        return payload


@dataclass(frozen=True)
class RegisteredTool:
    """A definition bound to ``handler(runtime, **arguments)``."""

    definition: ToolDefinition
    handler: ToolHandler

    @property
    def name(self) -> str:
        return self.definition.name


class ToolRegistry:
    """Ordered collection of tools keyed by unique name."""

    def __init__(self, tools: Iterable[RegisteredTool] = ()) -> None:
        self._entries: dict[str, RegisteredTool] = {}
        for entry in tools:
            self.register(entry.definition, entry.handler)

    def register(self, definition: ToolDefinition, handler: ToolHandler) -> RegisteredTool:
        if definition.name in self._entries:
            msg = f"Tool '{definition.name}' is already registered"
            raise ConfigurationError(msg)
        entry = RegisteredTool(definition=definition, handler=handler)
        self._entries[definition.name] = entry
        return entry

    def get(self, name: str) -> RegisteredTool | None:
        return self._entries.get(name)

    def names(self) -> list[str]:
        return list(self._entries)

    def entries(self) -> list[RegisteredTool]:
        return list(self._entries.values())

    def list(self, detail_level: ToolDetailLevel = "full") -> list[dict[str, Any]]:
        """Describe every tool, in registration order, at ``detail_level``."""
        return [entry.definition.to_dict(detail_level) for entry in self._entries.values()]

    def select(self, names: Iterable[str] | None) -> ToolRegistry:
        """Return a registry restricted to ``names`` in the given order."""
        if names is None:
            return ToolRegistry(self._entries.values())
        wanted = list(names)
        unknown = [name for name in wanted if name not in self._entries]
        if unknown:
            msg = f"Unknown tools: {', '.join(unknown)}. Available: {', '.join(self._entries)}"
            raise ConfigurationError(msg)
        return ToolRegistry(self._entries[name] for name in wanted)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def registered_tool(
    registry: ToolRegistry,
    *,
    args_model: type[BaseModel],
    name: str | None = None,
    description: str | None = None,
    category: str = "general",
    tags: Iterable[str] | str | None = None,
) -> Callable[[ToolHandler], ToolHandler]:
    """Register the decorated ``handler(runtime, **arguments)`` and return it unchanged.

    The tool name defaults to the function name and the description to its
    docstring; a tool with neither description nor docstring is rejected.
    """

    def decorator(func: ToolHandler) -> ToolHandler:
        text = description or inspect.getdoc(func) or ""
        if not text.strip():
            msg = f"Tool {name or func.__name__!r} needs a description or a docstring"
            raise ValueError(msg)
        registry.register(
            ToolDefinition(
                name=name or func.__name__,
                description=text.strip(),
                args_model=args_model,
                category=category,
                tags=_dedupe_tags(tags),
            ),
            func,
        )
        return func

    return decorator

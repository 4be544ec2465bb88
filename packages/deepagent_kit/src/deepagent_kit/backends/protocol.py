"""Storage backend contract and factory types."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from deepagent_kit.backends.store import KeyValueStore
    from deepagent_kit.checkpoint import Checkpointer
    from deepagent_kit.models.files import EditResult, GrepMatch, WriteResult
    from deepagent_kit.models.settings import Settings
    from deepagent_kit.models.state import RunState


@runtime_checkable
class BackendProtocol(Protocol):
    """File-like operations over virtual, absolute, ``/``-separated paths.

    Failures are raised as ``DeepAgentError`` subclasses: ``PathNotFoundError``,
    ``NoMatchError``, ``AmbiguousMatchError``, ``InvalidPathError``,
    ``InvalidPatternError`` and ``BackendIOError``.
    """

    thread_safe: bool

    def ls(self, path: str = "/", *, recursive: bool = False) -> list[str]:
        """List entries under a directory, sorted; directories end with ``/``."""
        ...

    def read(self, file_path: str, offset: int = 0, limit: int | None = None) -> list[str]:
        """Return lines ``offset`` (0-based) up to ``offset + limit``."""
        ...

    def write(self, file_path: str, content: str) -> WriteResult:
        """Create or wholly overwrite a file."""
        ...

    def edit(
        self, file_path: str, old_string: str, new_string: str, *, replace_all: bool = False
    ) -> EditResult:
        """Replace an exact substring, unique unless ``replace_all``."""
        ...

    def exists(self, path: str) -> bool:
        """Return whether a file exists at ``path``."""
        ...

    def glob(self, pattern: str, path: str = "/") -> list[str]:
        """Return file paths matching a shell-style glob, sorted."""
        ...

    def grep(
        self, pattern: str, path: str = "/", glob: str | None = None, *, regex: bool = False
    ) -> list[GrepMatch]:
        """Return matching lines under ``path`` sorted by path and line number."""
        ...


@dataclass
class BackendContext:
    """Everything a backend factory may need for one execution."""

    state: RunState
    store: KeyValueStore | None = None
    checkpointer: Checkpointer | None = None
    settings: Settings | None = None


BackendFactory = Callable[[BackendContext], BackendProtocol]

"""Durable keyed storage: key-value stores and the backend built on them."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from urllib.parse import quote, unquote

from deepagent_kit.backends.base import BaseBackend
from deepagent_kit.errors import BackendIOError
from deepagent_kit.models.files import FileData
from deepagent_kit.utils import atomic_write_text

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

Namespace = tuple[str, ...]


@runtime_checkable
class KeyValueStore(Protocol):
    """Persistent store addressed by namespace tuple and key, external to a run."""

    def get(self, namespace: Namespace, key: str) -> dict[str, Any] | None:
        """Return the stored value or None."""
        ...

    def put(self, namespace: Namespace, key: str, value: dict[str, Any]) -> None:
        """Insert or replace a value."""
        ...

    def keys(self, namespace: Namespace) -> list[str]:
        """Return every key in a namespace."""
        ...


class InMemoryStore:
    """Process-wide store; outlives executions but not the process."""

    def __init__(self) -> None:
        self._data: dict[Namespace, dict[str, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, namespace: Namespace, key: str) -> dict[str, Any] | None:
        with self._lock:
            value = self._data.get(tuple(namespace), {}).get(key)
            return json.loads(json.dumps(value)) if value is not None else None

    def put(self, namespace: Namespace, key: str, value: dict[str, Any]) -> None:
        with self._lock:
            self._data.setdefault(tuple(namespace), {})[key] = json.loads(json.dumps(value))

    def keys(self, namespace: Namespace) -> list[str]:
        with self._lock:
            return sorted(self._data.get(tuple(namespace), {}))


class JSONFileStore:
    """Store writing one JSON document per key under ``base_dir``; survives restarts."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)
        self._lock = threading.Lock()

    def _namespace_dir(self, namespace: Namespace) -> Path:
        return self.base_dir.joinpath(*(quote(part, safe="") for part in namespace))

    def _key_path(self, namespace: Namespace, key: str) -> Path:
        return self._namespace_dir(namespace) / f"{quote(key, safe='')}.json"

    def get(self, namespace: Namespace, key: str) -> dict[str, Any] | None:
        path = self._key_path(namespace, key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise BackendIOError(key, str(exc)) from exc

    def put(self, namespace: Namespace, key: str, value: dict[str, Any]) -> None:
        path = self._key_path(namespace, key)
        with self._lock:
            try:
                atomic_write_text(path, json.dumps(value, indent=2))
            except OSError as exc:
                raise BackendIOError(key, str(exc)) from exc

    def keys(self, namespace: Namespace) -> list[str]:
        directory = self._namespace_dir(namespace)
        if not directory.exists():
            return []
        return sorted(unquote(path.stem) for path in directory.glob("*.json"))


class StoreBackend(BaseBackend):
    """Files persisted in a key-value store, retrievable by later runs."""

    thread_safe = True

    def __init__(
        self,
        store: KeyValueStore,
        namespace: Sequence[str] = ("filesystem",),
        *,
        max_line_length: int | None = None,
    ) -> None:
        super().__init__(max_line_length=max_line_length)
        self.store = store
        self.namespace: Namespace = tuple(namespace)

    def _get(self, path: str) -> FileData | None:
        value = self.store.get(self.namespace, path)
        if value is None:
            return None
        return FileData.model_validate(value)

    def _put(self, path: str, data: FileData) -> None:
        logger.debug("Persisting %s in namespace %s", path, "/".join(self.namespace))
        self.store.put(self.namespace, path, data.model_dump())

    def _paths(self) -> list[str]:
        return self.store.keys(self.namespace)

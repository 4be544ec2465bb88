"""Pluggable storage backends for the virtual file system."""

from deepagent_kit.backends.base import BaseBackend
from deepagent_kit.backends.composite import CompositeBackend
from deepagent_kit.backends.factory import build_backend_factory, build_store, shared_memory_store
from deepagent_kit.backends.filesystem import FilesystemBackend
from deepagent_kit.backends.protocol import BackendContext, BackendFactory, BackendProtocol
from deepagent_kit.backends.state import StateBackend
from deepagent_kit.backends.store import (
    InMemoryStore,
    JSONFileStore,
    KeyValueStore,
    StoreBackend,
)

__all__ = [
    "BackendContext",
    "BackendFactory",
    "BackendProtocol",
    "BaseBackend",
    "CompositeBackend",
    "FilesystemBackend",
    "InMemoryStore",
    "JSONFileStore",
    "KeyValueStore",
    "StateBackend",
    "StoreBackend",
    "build_backend_factory",
    "build_store",
    "shared_memory_store",
]

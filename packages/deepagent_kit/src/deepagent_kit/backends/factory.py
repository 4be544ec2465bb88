"""Build backends and stores from settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from deepagent_kit.backends.composite import CompositeBackend
from deepagent_kit.backends.filesystem import FilesystemBackend
from deepagent_kit.backends.state import StateBackend
from deepagent_kit.backends.store import InMemoryStore, JSONFileStore, StoreBackend
from deepagent_kit.errors import ConfigurationError

if TYPE_CHECKING:
    from deepagent_kit.backends.protocol import BackendContext, BackendFactory, BackendProtocol
    from deepagent_kit.backends.store import KeyValueStore
    from deepagent_kit.models.settings import Settings

logger = logging.getLogger(__name__)

_process_store = InMemoryStore()


def shared_memory_store() -> InMemoryStore:
    """The store every execution in this process shares when no ``store_dir`` is set."""
    return _process_store


def build_store(settings: Settings) -> KeyValueStore:
    """Return a JSON-on-disk store when ``store_dir`` is set, else the process-wide one."""
    if settings.store_dir:
        logger.info("Using JSON file store at %s", settings.store_dir)
        return JSONFileStore(settings.store_dir)
    return shared_memory_store()


def _require_store(context: BackendContext) -> KeyValueStore:
    if context.store is None:
        msg = "A key-value store is required for the store and composite backends"
        raise ConfigurationError(msg)
    return context.store


def build_backend_factory(settings: Settings) -> BackendFactory:
    """Return a factory creating the configured backend for each execution."""
    line_length = settings.max_line_length

    def state_backend(context: BackendContext) -> BackendProtocol:
        return StateBackend(context.state, max_line_length=line_length)

    def store_backend(context: BackendContext) -> BackendProtocol:
        return StoreBackend(_require_store(context), max_line_length=line_length)

    def filesystem_backend(_context: BackendContext) -> BackendProtocol:
        return FilesystemBackend(settings.filesystem_root, max_line_length=line_length)

    def composite_backend(context: BackendContext) -> BackendProtocol:
        memories = StoreBackend(
            _require_store(context), namespace=("memories",), max_line_length=line_length
        )
        return CompositeBackend(
            default=StateBackend(context.state, max_line_length=line_length),
            routes={settings.memories_prefix: memories},
        )

    factories: dict[str, BackendFactory] = {
        "state": state_backend,
        "store": store_backend,
        "filesystem": filesystem_backend,
        "composite": composite_backend,
    }
    factory = factories.get(settings.backend)
    if factory is None:
        msg = f"Unknown backend '{settings.backend}'. Available: {', '.join(sorted(factories))}"
        raise ConfigurationError(msg)
    return factory

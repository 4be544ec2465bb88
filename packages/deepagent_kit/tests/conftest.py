from __future__ import annotations

import pytest

from deepagent_kit.backends import factory as backend_factory
from deepagent_kit.backends.store import InMemoryStore

_ENV_VARS = (
    "DEEPAGENT_MODEL_ID",
    "DEEPAGENT_BACKEND",
    "DEEPAGENT_FILESYSTEM_ROOT",
    "DEEPAGENT_STORE_DIR",
    "DEEPAGENT_MEMORIES_PREFIX",
    "DEEPAGENT_CHECKPOINT_DIR",
    "DEEPAGENT_MAX_LINE_LENGTH",
    "DEEPAGENT_READ_LIMIT",
    "DEEPAGENT_EVICT_TOKEN_LIMIT",
    "DEEPAGENT_SUBAGENT_MAX_STEPS",
    "DEEPAGENT_MAX_SUBAGENT_DEPTH",
    "DEEPAGENT_SUBAGENT_DIRS",
    "DEEPAGENT_INTERRUPT_ON",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DEEPAGENT_BACKEND", "composite")


@pytest.fixture(autouse=True)
def _fresh_process_store(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(backend_factory, "_process_store", InMemoryStore())

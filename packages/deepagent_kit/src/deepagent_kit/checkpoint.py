"""Checkpointers persisting run state and paused interrupt state per thread."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from deepagent_kit.errors import BackendIOError
from deepagent_kit.models.interrupts import InterruptState
from deepagent_kit.models.state import RunState
from deepagent_kit.utils import atomic_write_text, sanitize_tool_call_id, utc_timestamp

if TYPE_CHECKING:
    from deepagent_kit.models.settings import Settings

logger = logging.getLogger(__name__)


class Checkpoint(BaseModel):
    """Everything needed to resume a thread in another process."""

    thread_id: str
    state: RunState = Field(default_factory=RunState)
    interrupt: InterruptState = Field(default_factory=InterruptState)
    updated_at: str = Field(default_factory=utc_timestamp)


@runtime_checkable
class Checkpointer(Protocol):
    def load(self, thread_id: str) -> Checkpoint | None:
        """Return the latest checkpoint for a thread, if any."""
        ...

    def save(self, checkpoint: Checkpoint) -> None:
        """Persist a checkpoint, replacing the previous one for its thread."""
        ...


class InMemoryCheckpointer:
    """Checkpoints kept for the life of the process."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self, thread_id: str) -> Checkpoint | None:
        with self._lock:
            raw = self._data.get(thread_id)
        if raw is None:
            return None
        return Checkpoint.model_validate_json(raw)

    def save(self, checkpoint: Checkpoint) -> None:
        # Stored serialized so later mutation of live state never leaks in.
        with self._lock:
            self._data[checkpoint.thread_id] = checkpoint.model_dump_json()


class FileCheckpointer:
    """One JSON document per thread under ``base_dir``."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)
        self._lock = threading.Lock()

    def _path(self, thread_id: str) -> Path:
        return self.base_dir / f"{sanitize_tool_call_id(thread_id)}.json"

    def load(self, thread_id: str) -> Checkpoint | None:
        path = self._path(thread_id)
        if not path.exists():
            return None
        try:
            return Checkpoint.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise BackendIOError(str(path), str(exc)) from exc
        except ValidationError as exc:
            logger.warning("Checkpoint %s is unreadable: %s", path, exc)
            raise BackendIOError(str(path), "checkpoint is corrupt") from exc

    def save(self, checkpoint: Checkpoint) -> None:
        path = self._path(checkpoint.thread_id)
        payload = json.dumps(checkpoint.model_dump(mode="json"), indent=2)
        with self._lock:
            try:
                atomic_write_text(path, payload)
            except OSError as exc:
                raise BackendIOError(str(path), str(exc)) from exc
        logger.debug(
            "Saved checkpoint for %s (%s)", checkpoint.thread_id, checkpoint.interrupt.status
        )


def build_checkpointer(settings: Settings) -> Checkpointer:
    """Return a file checkpointer when ``checkpoint_dir`` is set, else an in-memory one."""
    if settings.checkpoint_dir:
        return FileCheckpointer(settings.checkpoint_dir)
    return InMemoryCheckpointer()

"""Backend mapping virtual paths onto a real directory tree."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from deepagent_kit.backends.base import BaseBackend
from deepagent_kit.errors import BackendIOError, InvalidPathError
from deepagent_kit.models.files import FileData
from deepagent_kit.utils import atomic_write_text

logger = logging.getLogger(__name__)


def _iso_mtime(path: Path) -> str:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=UTC).isoformat()


class FilesystemBackend(BaseBackend):
    """Files map one-to-one onto ``root_dir``; virtual ``/`` is the root.

    Host errors surface as ``BackendIOError`` and are never retried.
    """

    thread_safe = True

    def __init__(
        self,
        root_dir: str | Path,
        virtual_mode: bool = True,
        *,
        max_line_length: int | None = None,
    ) -> None:
        super().__init__(max_line_length=max_line_length)
        self.root_dir = Path(root_dir).resolve()
        self.virtual_mode = virtual_mode

    def _resolve(self, path: str) -> Path:
        # Outside virtual mode, host paths already under the root are accepted as-is.
        host = Path(path)
        if not self.virtual_mode and host.is_absolute() and host.is_relative_to(self.root_dir):
            return host.resolve()
        target = (self.root_dir / path.lstrip("/")).resolve()
        if target != self.root_dir and not target.is_relative_to(self.root_dir):
            raise InvalidPathError(path, f"path escapes root directory {self.root_dir}")
        return target

    def _get(self, path: str) -> FileData | None:
        target = self._resolve(path)
        if not target.is_file():
            return None
        try:
            with target.open("r", encoding="utf-8", newline="") as handle:
                text = handle.read()
            modified = _iso_mtime(target)
        except (OSError, UnicodeDecodeError) as exc:
            raise BackendIOError(path, str(exc)) from exc
        return FileData(content=text.split("\n"), created_at=modified, modified_at=modified)

    def _put(self, path: str, data: FileData) -> None:
        target = self._resolve(path)
        try:
            atomic_write_text(target, data.text())
        except OSError as exc:
            logger.warning("Write to %s failed: %s", target, exc)
            raise BackendIOError(path, str(exc)) from exc

    def _paths(self) -> list[str]:
        if not self.root_dir.exists():
            return []
        try:
            return [
                "/" + candidate.relative_to(self.root_dir).as_posix()
                for candidate in self.root_dir.rglob("*")
                if candidate.is_file()
            ]
        except OSError as exc:
            raise BackendIOError("/", str(exc)) from exc

"""Shared implementation of the backend contract over three storage primitives."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

from deepagent_kit.backends.utils import (
    apply_edit,
    build_file_filter,
    compile_line_matcher,
    directory_prefix,
    grep_lines,
    match_glob,
    normalize_path,
)
from deepagent_kit.errors import BackendIOError, PathNotFoundError
from deepagent_kit.models.files import EditResult, FileData, GrepMatch, WriteResult
from deepagent_kit.tools.truncation import truncate_line

logger = logging.getLogger(__name__)


class BaseBackend(ABC):
    """Implements list/read/write/edit/glob/grep on top of ``_get``/``_put``/``_paths``.

    Write and edit hold a lock across the read-modify-write cycle, so writes
    to the same path are serialized within one backend instance.
    """

    thread_safe = False

    def __init__(self, *, max_line_length: int | None = None) -> None:
        self.max_line_length = max_line_length
        self._lock = threading.RLock()

    @abstractmethod
    def _get(self, path: str) -> FileData | None:
        """Load a file by normalized path."""

    @abstractmethod
    def _put(self, path: str, data: FileData) -> None:
        """Store a file by normalized path."""

    @abstractmethod
    def _paths(self) -> list[str]:
        """Return every stored file path."""

    def ls(self, path: str = "/", *, recursive: bool = False) -> list[str]:
        prefix = directory_prefix(path)
        entries: set[str] = set()
        for file_path in self._paths():
            if not file_path.startswith(prefix):
                continue
            if recursive:
                entries.add(file_path)
                continue
            head, sep, _rest = file_path[len(prefix) :].partition("/")
            entries.add(f"{prefix}{head}/" if sep else file_path)
        return sorted(entries)

    def read(self, file_path: str, offset: int = 0, limit: int | None = None) -> list[str]:
        if offset < 0 or (limit is not None and limit < 0):
            msg = f"offset and limit must be non-negative (offset={offset}, limit={limit})"
            raise ValueError(msg)
        path = normalize_path(file_path)
        data = self._get(path)
        if data is None:
            raise PathNotFoundError(path)
        end = None if limit is None else offset + limit
        return [truncate_line(line, self.max_line_length) for line in data.content[offset:end]]

    def write(self, file_path: str, content: str) -> WriteResult:
        path = normalize_path(file_path)
        with self._lock:
            existing = self._get(path)
            created_at = existing.created_at if existing is not None else None
            self._put(path, FileData.from_text(content, created_at=created_at))
        return WriteResult(path=path, created=existing is None)

    def edit(
        self, file_path: str, old_string: str, new_string: str, *, replace_all: bool = False
    ) -> EditResult:
        path = normalize_path(file_path)
        with self._lock:
            existing = self._get(path)
            if existing is None:
                raise PathNotFoundError(path)
            updated, occurrences = apply_edit(
                path, existing.text(), old_string, new_string, replace_all=replace_all
            )
            self._put(path, FileData.from_text(updated, created_at=existing.created_at))
        return EditResult(path=path, occurrences=occurrences, content=updated)

    def exists(self, path: str) -> bool:
        return self._get(normalize_path(path)) is not None

    def glob(self, pattern: str, path: str = "/") -> list[str]:
        return match_glob(self._paths(), pattern, base=path)

    def grep(
        self, pattern: str, path: str = "/", glob: str | None = None, *, regex: bool = False
    ) -> list[GrepMatch]:
        matcher = compile_line_matcher(pattern, regex=regex)
        accept = build_file_filter(glob, path)
        matches: list[GrepMatch] = []
        for file_path in sorted(self._paths()):
            if not accept(file_path):
                continue
            try:
                data = self._get(file_path)
            except BackendIOError as exc:
                # Binary or unreadable files are not searchable; read_file still reports them.
                logger.debug("grep skipped %s: %s", file_path, exc)
                continue
            if data is not None:
                matches.extend(grep_lines(file_path, data.content, matcher))
        return matches

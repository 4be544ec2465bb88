"""Router delegating each path to the backend owning its longest matching prefix."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from deepagent_kit.backends.utils import (
    build_file_filter,
    directory_prefix,
    glob_to_regex,
    normalize_path,
)
from deepagent_kit.errors import (
    AmbiguousMatchError,
    BackendIOError,
    ConfigurationError,
    InvalidPathError,
    NoMatchError,
    PathNotFoundError,
)
from deepagent_kit.models.files import EditResult, GrepMatch, WriteResult

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from deepagent_kit.backends.protocol import BackendProtocol

logger = logging.getLogger(__name__)


def normalize_route_prefix(prefix: str) -> str:
    """Return ``prefix`` with exactly one leading and one trailing slash."""
    stripped = prefix.strip().strip("/")
    if not stripped:
        msg = f"Route prefix {prefix!r} is empty; routes must name a directory such as /memories/"
        raise ConfigurationError(msg)
    try:
        return directory_prefix("/" + stripped)
    except InvalidPathError as exc:
        raise ConfigurationError(f"Invalid route prefix {prefix!r}: {exc.reason}") from exc


class CompositeBackend:
    """Routes operations by longest path prefix; unmatched paths go to ``default``.

    The routed backend sees the path with its prefix replaced by ``/``, and every
    path it returns is re-prefixed, so callers only ever see outer paths.
    """

    def __init__(self, default: BackendProtocol, routes: Mapping[str, BackendProtocol]) -> None:
        normalized: dict[str, BackendProtocol] = {}
        for prefix, backend in routes.items():
            key = normalize_route_prefix(prefix)
            if key in normalized:
                msg = f"Route prefix {prefix!r} duplicates {key!r} after normalization"
                raise ConfigurationError(msg)
            normalized[key] = backend
        self.default = default
        self.routes = dict(sorted(normalized.items(), key=lambda item: len(item[0]), reverse=True))

    @property
    def thread_safe(self) -> bool:
        return all(backend.thread_safe for backend in self._backends())

    def _backends(self) -> Iterator[BackendProtocol]:
        yield self.default
        yield from self.routes.values()

    def _route(self, path: str) -> tuple[BackendProtocol, str, str]:
        """Return ``(backend, prefix, inner_path)``; the default backend has prefix ``""``."""
        normalized = normalize_path(path)
        for prefix, backend in self.routes.items():
            if normalized == prefix.rstrip("/") or normalized.startswith(prefix):
                inner = "/" + normalized[len(prefix) :]
                return backend, prefix, inner
        return self.default, "", normalized

    @staticmethod
    def _outer(prefix: str, inner: str) -> str:
        if not prefix:
            return inner
        return prefix.rstrip("/") + inner

    def _reraise(self, exc: Exception, outer: str) -> Exception:
        if isinstance(exc, PathNotFoundError):
            return PathNotFoundError(outer)
        if isinstance(exc, NoMatchError):
            return NoMatchError(outer, exc.old_string)
        if isinstance(exc, AmbiguousMatchError):
            return AmbiguousMatchError(outer, exc.occurrences)
        if isinstance(exc, BackendIOError):
            return BackendIOError(outer, exc.reason)
        return exc

    def ls(self, path: str = "/", *, recursive: bool = False) -> list[str]:
        prefix_dir = directory_prefix(path)
        backend, prefix, inner = self._route(path)
        entries = {self._outer(prefix, item) for item in backend.ls(inner, recursive=recursive)}
        if prefix:
            return sorted(entries)
        # Routes nested under the listed directory show up as directories or their files.
        for route_prefix, route_backend in self.routes.items():
            if not route_prefix.startswith(prefix_dir) or route_prefix == prefix_dir:
                continue
            if recursive:
                entries.update(
                    self._outer(route_prefix, item)
                    for item in route_backend.ls("/", recursive=True)
                )
                continue
            head = route_prefix[len(prefix_dir) :].split("/", 1)[0]
            entries.add(f"{prefix_dir}{head}/")
        return sorted(entries)

    def read(self, file_path: str, offset: int = 0, limit: int | None = None) -> list[str]:
        backend, prefix, inner = self._route(file_path)
        try:
            return backend.read(inner, offset=offset, limit=limit)
        except (PathNotFoundError, BackendIOError) as exc:
            raise self._reraise(exc, self._outer(prefix, inner)) from exc

    def write(self, file_path: str, content: str) -> WriteResult:
        backend, prefix, inner = self._route(file_path)
        try:
            result = backend.write(inner, content)
        except BackendIOError as exc:
            raise self._reraise(exc, self._outer(prefix, inner)) from exc
        return WriteResult(path=self._outer(prefix, result.path), created=result.created)

    def edit(
        self, file_path: str, old_string: str, new_string: str, *, replace_all: bool = False
    ) -> EditResult:
        backend, prefix, inner = self._route(file_path)
        try:
            result = backend.edit(inner, old_string, new_string, replace_all=replace_all)
        except (PathNotFoundError, NoMatchError, AmbiguousMatchError, BackendIOError) as exc:
            raise self._reraise(exc, self._outer(prefix, inner)) from exc
        return EditResult(
            path=self._outer(prefix, result.path),
            occurrences=result.occurrences,
            content=result.content,
        )

    def exists(self, path: str) -> bool:
        backend, _prefix, inner = self._route(path)
        return backend.exists(inner)

    def _all_files(self) -> list[str]:
        files: set[str] = set()
        for item in self.default.ls("/", recursive=True):
            owner, _prefix, _inner = self._route(item)
            # Files the default holds under a routed prefix are shadowed by the route.
            if owner is self.default:
                files.add(item)
        for prefix, backend in self.routes.items():
            files.update(self._outer(prefix, item) for item in backend.ls("/", recursive=True))
        return sorted(files)

    def glob(self, pattern: str, path: str = "/") -> list[str]:
        full_pattern = pattern if pattern.startswith("/") else directory_prefix(path) + pattern
        regex = glob_to_regex(full_pattern)
        return [item for item in self._all_files() if regex.match(item)]

    def grep(
        self, pattern: str, path: str = "/", glob: str | None = None, *, regex: bool = False
    ) -> list[GrepMatch]:
        accept = build_file_filter(glob, path)
        matches: list[GrepMatch] = []
        for prefix, backend in [("", self.default), *self.routes.items()]:
            for match in backend.grep(pattern, "/", None, regex=regex):
                outer = self._outer(prefix, match.path)
                owner, _route_prefix, _inner = self._route(outer)
                if owner is not backend or not accept(outer):
                    continue
                matches.append(
                    GrepMatch(path=outer, line_number=match.line_number, line=match.line)
                )
        matches.sort(key=lambda match: (match.path, match.line_number))
        logger.debug("grep %r under %s matched %d lines", pattern, path, len(matches))
        return matches

"""Path, glob, edit and grep helpers shared by the storage backends."""

from __future__ import annotations

import posixpath
import re
from typing import TYPE_CHECKING

from deepagent_kit.errors import (
    AmbiguousMatchError,
    InvalidPathError,
    InvalidPatternError,
    NoMatchError,
)
from deepagent_kit.models.files import GrepMatch

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

_DRIVE_LETTER = re.compile(r"^[a-zA-Z]:")


def normalize_path(path: str) -> str:
    """Validate a virtual path and return it in canonical ``/a/b`` form."""
    if not path or not path.strip():
        raise InvalidPathError(path, "path must be non-empty")
    raw = path.strip().replace("\\", "/")
    if _DRIVE_LETTER.match(raw):
        raise InvalidPathError(path, "drive letters are not supported; use paths starting with /")
    if raw.startswith("~") or ".." in raw.split("/"):
        raise InvalidPathError(path, "path traversal is not allowed")
    return posixpath.normpath("/" + raw.lstrip("/"))


def directory_prefix(path: str) -> str:
    """Return the normalized path with exactly one trailing slash."""
    normalized = normalize_path(path)
    return normalized if normalized.endswith("/") else f"{normalized}/"


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a shell glob into a regex. ``*``/``?`` stay within one segment, ``**`` spans."""
    parts: list[str] = []
    idx = 0
    length = len(pattern)
    while idx < length:
        char = pattern[idx]
        if char == "*":
            if pattern.startswith("**", idx):
                idx += 2
                if idx < length and pattern[idx] == "/":
                    idx += 1
                    parts.append("(?:.*/)?")
                else:
                    parts.append(".*")
                continue
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "[":
            end = pattern.find("]", idx + 2)
            if end == -1:
                parts.append(re.escape(char))
            else:
                body = pattern[idx + 1 : end].replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                parts.append(f"[{body}]")
                idx = end + 1
                continue
        else:
            parts.append(re.escape(char))
        idx += 1
    return re.compile("".join(parts) + r"\Z")


def match_glob(paths: Iterable[str], pattern: str, base: str = "/") -> list[str]:
    """Filter paths by a glob; relative patterns are anchored at ``base``."""
    if pattern.startswith("/"):
        full_pattern = pattern
    else:
        full_pattern = directory_prefix(base) + pattern
    regex = glob_to_regex(full_pattern)
    return sorted({path for path in paths if regex.match(path)})


def apply_edit(
    path: str, content: str, old_string: str, new_string: str, *, replace_all: bool
) -> tuple[str, int]:
    """Replace ``old_string`` in ``content``; returns the new text and the count replaced."""
    if not old_string:
        raise NoMatchError(path, old_string)
    occurrences = content.count(old_string)
    if occurrences == 0:
        raise NoMatchError(path, old_string)
    if occurrences > 1 and not replace_all:
        raise AmbiguousMatchError(path, occurrences)
    if replace_all:
        return content.replace(old_string, new_string), occurrences
    return content.replace(old_string, new_string, 1), 1


def compile_line_matcher(pattern: str, *, regex: bool) -> Callable[[str], bool]:
    """Build a predicate for grep: literal substring, or ``re.search`` when ``regex``."""
    if not regex:
        return lambda line: pattern in line
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        raise InvalidPatternError(pattern, str(exc)) from exc
    return lambda line: compiled.search(line) is not None


def build_file_filter(glob: str | None, base: str) -> Callable[[str], bool]:
    """Predicate limiting grep to files under ``base`` whose name matches ``glob``."""
    normalized = normalize_path(base)
    prefix = directory_prefix(base)
    name_regex = glob_to_regex(glob) if glob else None

    def accept(path: str) -> bool:
        if path != normalized and not path.startswith(prefix):
            return False
        if name_regex is None:
            return True
        relative = path[len(prefix) :] if path.startswith(prefix) else posixpath.basename(path)
        return bool(name_regex.match(relative) or name_regex.match(posixpath.basename(path)))

    return accept


def grep_lines(path: str, lines: list[str], matcher: Callable[[str], bool]) -> list[GrepMatch]:
    """Return every matching line of one file with 1-based line numbers."""
    return [
        GrepMatch(path=path, line_number=number, line=line)
        for number, line in enumerate(lines, start=1)
        if matcher(line)
    ]

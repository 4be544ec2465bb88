"""Backend-agnostic filesystem tools: argument models, handlers and descriptions.

Handlers take the tool runtime plus validated arguments and return the text
shown to the model. Backend errors propagate as ``DeepAgentError`` and are
turned into error results by the middleware pipeline.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from deepagent_kit.errors import ToolArgumentError
from deepagent_kit.tools.truncation import (
    NUM_CHARS_PER_TOKEN,
    format_numbered_lines,
    truncate_listing,
)

if TYPE_CHECKING:
    from deepagent_kit.models.files import GrepMatch
    from deepagent_kit.tools.registry import ToolRuntime

logger = logging.getLogger(__name__)

EMPTY_CONTENT_WARNING = "System reminder: File exists but has empty contents"
GrepOutputMode = Literal["files_with_matches", "content", "count"]

LS_DESCRIPTION = """Lists the entries of a directory in the virtual filesystem.

Directories end with a slash. Use this to explore before reading or editing.
The path must be absolute, e.g. /notes/ or /."""

READ_FILE_DESCRIPTION = """Reads a file from the virtual filesystem.

- The file_path parameter must be an absolute path.
- By default, reads up to 100 lines starting from the beginning of the file.
- Use offset (0-based line index) and limit to page through long files.
- Results use cat -n format, with line numbers starting at 1.
- Lines longer than the configured maximum are truncated with a visible marker.
- Always read a file before editing it."""

WRITE_FILE_DESCRIPTION = """Writes a file to the virtual filesystem, replacing any existing content.

The file_path parameter must be an absolute path. Prefer edit_file for small
changes to existing files."""

EDIT_FILE_DESCRIPTION = """Performs exact string replacement in a file.

- Read the file first; old_string must match the file exactly.
- The edit fails if old_string is not unique, unless replace_all is true.
- Provide more surrounding context to make old_string unique."""

GLOB_DESCRIPTION = """Finds files matching a glob pattern such as **/*.py or /docs/*.md.

* and ? never cross directories; ** matches across directories. Relative
patterns are resolved against path. Results are sorted."""

GREP_DESCRIPTION = """Searches file contents for a literal string (or a regex when regex is true).

- glob restricts the search to matching file names, e.g. *.md.
- output_mode: files_with_matches (default) lists paths, content shows
  path:line:text, count shows matches per file."""


class LsArgs(BaseModel):
    path: str = Field(default="/", description="Absolute directory path to list.")


class ReadFileArgs(BaseModel):
    file_path: str = Field(description="Absolute path of the file to read.")
    offset: int = Field(default=0, ge=0, description="0-based line to start reading from.")
    limit: int | None = Field(
        default=None, ge=1, description="Maximum number of lines to read (default 100)."
    )


class WriteFileArgs(BaseModel):
    file_path: str = Field(description="Absolute path of the file to write.")
    content: str = Field(description="Full new content of the file.")


class EditFileArgs(BaseModel):
    file_path: str = Field(description="Absolute path of the file to edit.")
    old_string: str = Field(min_length=1, description="Exact text to replace.")
    new_string: str = Field(description="Replacement text.")
    replace_all: bool = Field(default=False, description="Replace every occurrence.")


class GlobArgs(BaseModel):
    pattern: str = Field(min_length=1, description="Glob pattern to match.")
    path: str = Field(default="/", description="Directory relative patterns are anchored at.")


class GrepArgs(BaseModel):
    pattern: str = Field(min_length=1, description="Text (or regex) to search for.")
    path: str = Field(default="/", description="Directory to search under.")
    glob: str | None = Field(default=None, description="Only search files matching this glob.")
    output_mode: GrepOutputMode = "files_with_matches"
    regex: bool = Field(default=False, description="Treat pattern as a regular expression.")


def _listing_budget(runtime: ToolRuntime) -> int:
    return runtime.settings.tool_token_limit_before_evict * NUM_CHARS_PER_TOKEN


def ls_tool(runtime: ToolRuntime, path: str = "/") -> str:
    entries = runtime.backend.ls(path)
    if not entries:
        return f"No files found in {path}"
    return truncate_listing(entries, _listing_budget(runtime))


def read_file_tool(
    runtime: ToolRuntime, file_path: str, offset: int = 0, limit: int | None = None
) -> str:
    limit = limit or runtime.settings.default_read_limit
    lines = runtime.backend.read(file_path, offset=offset, limit=limit)
    if not lines:
        if offset == 0:
            return EMPTY_CONTENT_WARNING
        detail = f"line offset {offset} exceeds the length of '{file_path}'"
        raise ToolArgumentError("read_file", detail)
    if offset == 0 and lines == [""]:
        return EMPTY_CONTENT_WARNING
    return format_numbered_lines(lines, start_line=offset + 1)


def write_file_tool(runtime: ToolRuntime, file_path: str, content: str) -> str:
    result = runtime.backend.write(file_path, content)
    logger.debug("write_file %s (created=%s)", result.path, result.created)
    return f"Updated file {result.path}"


def edit_file_tool(
    runtime: ToolRuntime,
    file_path: str,
    old_string: str,
    new_string: str,
    replace_all: bool = False,
) -> str:
    result = runtime.backend.edit(file_path, old_string, new_string, replace_all=replace_all)
    count = result.occurrences
    return f"Successfully replaced {count} instance(s) of the string in '{result.path}'"


def glob_tool(runtime: ToolRuntime, pattern: str, path: str = "/") -> str:
    matches = runtime.backend.glob(pattern, path)
    if not matches:
        return f"No files found matching pattern '{pattern}'"
    return truncate_listing(matches, _listing_budget(runtime))


def format_grep_matches(matches: list[GrepMatch], output_mode: GrepOutputMode) -> list[str]:
    """Render grep matches for one of the three output modes."""
    if output_mode == "content":
        return [f"{match.path}:{match.line_number}:{match.line}" for match in matches]
    counts = Counter(match.path for match in matches)
    if output_mode == "count":
        return [f"{path}: {count}" for path, count in counts.items()]
    return list(counts)


def grep_tool(
    runtime: ToolRuntime,
    pattern: str,
    path: str = "/",
    glob: str | None = None,
    output_mode: GrepOutputMode = "files_with_matches",
    regex: bool = False,
) -> str:
    matches = runtime.backend.grep(pattern, path, glob, regex=regex)
    if not matches:
        return f"No matches found for pattern '{pattern}'"
    return truncate_listing(format_grep_matches(matches, output_mode), _listing_budget(runtime))

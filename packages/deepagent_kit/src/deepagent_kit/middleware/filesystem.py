"""Filesystem middleware: file tools, prompt guidance and large-result eviction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from deepagent_kit.errors import DeepAgentError
from deepagent_kit.middleware.base import Middleware
from deepagent_kit.models.tool_calls import ToolResult
from deepagent_kit.tools import filesystem as fs
from deepagent_kit.tools.registry import ToolRegistry, registered_tool
from deepagent_kit.tools.truncation import NUM_CHARS_PER_TOKEN, content_preview
from deepagent_kit.utils import sanitize_tool_call_id

if TYPE_CHECKING:
    from collections.abc import Iterable

    from deepagent_kit.models.tool_calls import ToolCall
    from deepagent_kit.tools.registry import RegisteredTool, ToolRuntime

logger = logging.getLogger(__name__)

FILESYSTEM_TOOL_NAMES = ("ls", "read_file", "write_file", "edit_file", "glob", "grep")
LARGE_RESULTS_DIR = "/large_tool_results"

FILESYSTEM_SYSTEM_PROMPT = """## Filesystem Tools

You have access to a filesystem which you can interact with using these tools.
All file paths must start with a /.

- ls: list files in a directory
- read_file: read a file, paging with offset and limit
- write_file: create or overwrite a file
- edit_file: replace an exact, unique string in a file
- glob: find files matching a pattern (e.g. "**/*.py")
- grep: search file contents"""

EVICTED_RESULT_TEMPLATE = """Tool result too large. The result of tool call {tool_call_id}
was saved to {file_path}.
Read it with read_file using offset and limit to page through it, e.g. offset=0, limit=100.

Preview:
{preview}"""


def build_filesystem_tools(names: Iterable[str] | None = None) -> list[RegisteredTool]:
    """Return the filesystem tools, optionally restricted to ``names``."""
    registry = ToolRegistry()
    registered_tool(
        registry, name="ls", args_model=fs.LsArgs, description=fs.LS_DESCRIPTION, category="files"
    )(fs.ls_tool)
    registered_tool(
        registry,
        name="read_file",
        args_model=fs.ReadFileArgs,
        description=fs.READ_FILE_DESCRIPTION,
        category="files",
    )(fs.read_file_tool)
    registered_tool(
        registry,
        name="write_file",
        args_model=fs.WriteFileArgs,
        description=fs.WRITE_FILE_DESCRIPTION,
        category="files",
    )(fs.write_file_tool)
    registered_tool(
        registry,
        name="edit_file",
        args_model=fs.EditFileArgs,
        description=fs.EDIT_FILE_DESCRIPTION,
        category="files",
    )(fs.edit_file_tool)
    registered_tool(
        registry,
        name="glob",
        args_model=fs.GlobArgs,
        description=fs.GLOB_DESCRIPTION,
        category="files",
    )(fs.glob_tool)
    registered_tool(
        registry,
        name="grep",
        args_model=fs.GrepArgs,
        description=fs.GREP_DESCRIPTION,
        category="files",
    )(fs.grep_tool)
    return registry.select(names).entries()


class FilesystemMiddleware(Middleware):
    """Exposes the file tools over the active backend.

    Results of other tools longer than ``tool_token_limit_before_evict`` tokens
    are written to ``/large_tool_results/<id>`` and replaced by a preview.
    """

    name = "filesystem"

    def __init__(
        self,
        *,
        tool_names: Iterable[str] | None = None,
        system_prompt: str | None = None,
        tool_token_limit_before_evict: int | None = None,
    ) -> None:
        self._tools = build_filesystem_tools(tool_names)
        self._system_prompt = FILESYSTEM_SYSTEM_PROMPT if system_prompt is None else system_prompt
        self._evict_limit = tool_token_limit_before_evict

    def tools(self) -> list[RegisteredTool]:
        return list(self._tools)

    def system_prompt(self) -> str | None:
        return self._system_prompt

    def after_tool_call(
        self, call: ToolCall, result: ToolResult, runtime: ToolRuntime
    ) -> ToolResult:
        if call.name in FILESYSTEM_TOOL_NAMES or result.is_error:
            return result
        limit = self._evict_limit
        if limit is None:
            limit = runtime.settings.tool_token_limit_before_evict
        if limit <= 0 or len(result.content) <= limit * NUM_CHARS_PER_TOKEN:
            return result
        return self._evict(call, result, runtime)

    def _evict(self, call: ToolCall, result: ToolResult, runtime: ToolRuntime) -> ToolResult:
        file_path = f"{LARGE_RESULTS_DIR}/{sanitize_tool_call_id(call.id)}"
        try:
            runtime.backend.write(file_path, result.content)
        except DeepAgentError as exc:
            logger.warning("Could not offload result of %s to %s: %s", call.name, file_path, exc)
            return result
        logger.info(
            "Offloaded %d characters from %s to %s", len(result.content), call.name, file_path
        )
        message = EVICTED_RESULT_TEMPLATE.format(
            tool_call_id=call.id,
            file_path=file_path,
            preview=content_preview(result.content),
        )
        return ToolResult(
            tool_call_id=result.tool_call_id,
            name=result.name,
            content=message,
            status=result.status,
        )

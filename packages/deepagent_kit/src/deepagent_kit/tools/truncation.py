"""Tool output truncation utilities.

Every cut is signalled in the returned text so the model never mistakes a
truncated output for a complete one.
"""

from __future__ import annotations

NUM_CHARS_PER_TOKEN = 4
LINE_NUMBER_WIDTH = 6


def truncate_line(line: str, max_length: int | None) -> str:
    """Cut a single line past ``max_length`` characters with a visible marker."""
    if max_length is None or len(line) <= max_length:
        return line
    hidden = len(line) - max_length
    return f"{line[:max_length]}... [line truncated, {hidden} more characters]"


def truncate_listing(items: list[str], max_chars: int) -> str:
    """Join items one per line, dropping the tail once ``max_chars`` is reached."""
    kept: list[str] = []
    used = 0
    for item in items:
        used += len(item) + 1
        if max_chars > 0 and used > max_chars:
            omitted = len(items) - len(kept)
            kept.append(f"... [{omitted} more results truncated; narrow the query]")
            break
        kept.append(item)
    return "\n".join(kept)


def format_numbered_lines(lines: list[str], start_line: int = 1) -> str:
    """Render lines in ``cat -n`` style with 1-based numbers."""
    return "\n".join(
        f"{number:{LINE_NUMBER_WIDTH}d}\t{line}"
        for number, line in enumerate(lines, start=start_line)
    )


def content_preview(text: str, *, head_lines: int = 5, tail_lines: int = 5) -> str:
    """Show the head and tail of a long text with the omitted line count in between."""
    lines = [line[:1000] for line in text.splitlines()]
    if len(lines) <= head_lines + tail_lines:
        return format_numbered_lines(lines)
    omitted = len(lines) - head_lines - tail_lines
    head = format_numbered_lines(lines[:head_lines])
    tail = format_numbered_lines(lines[-tail_lines:], start_line=len(lines) - tail_lines + 1)
    return f"{head}\n... [{omitted} lines truncated] ...\n{tail}"

"""Markdown frontmatter helpers for sub-agent definition files."""

from __future__ import annotations


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


def parse_frontmatter(text: str) -> tuple[dict[str, str], str]:
    """Split ``key: value`` frontmatter between ``---`` fences from the markdown body."""
    lines = text.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, text
    for idx in range(1, len(lines)):
        if lines[idx].strip() != "---":
            continue
        meta: dict[str, str] = {}
        for line in lines[1:idx]:
            if line.lstrip().startswith("#") or ":" not in line:
                continue
            key, value = line.split(":", 1)
            meta[key.strip().lower()] = _unquote(value)
        return meta, "\n".join(lines[idx + 1 :])
    return {}, text


def first_non_empty_line(text: str) -> str:
    """Return the first non-empty line of a text block."""
    for line in text.splitlines():
        if line.strip():
            return line.strip().lstrip("# ").strip()
    return ""

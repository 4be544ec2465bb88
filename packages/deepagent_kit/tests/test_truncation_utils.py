from __future__ import annotations

from deepagent_kit.tools.truncation import (
    content_preview,
    format_numbered_lines,
    truncate_line,
    truncate_listing,
)


def test_truncate_line_marks_the_cut() -> None:
    assert truncate_line("abc", 5) == "abc"
    assert truncate_line("abc", None) == "abc"
    assert truncate_line("abcdef", 4) == "abcd... [line truncated, 2 more characters]"


def test_truncate_listing_reports_omitted_items() -> None:
    items = ["/a.md", "/b.md", "/c.md"]

    assert truncate_listing(items, 0) == "/a.md\n/b.md\n/c.md"
    assert truncate_listing(items, 8) == (
        "/a.md\n... [2 more results truncated; narrow the query]"
    )


def test_numbered_lines_are_one_based() -> None:
    assert format_numbered_lines(["x", "y"], start_line=3) == "     3\tx\n     4\ty"


def test_content_preview_keeps_head_and_tail() -> None:
    text = "\n".join(f"line {idx}" for idx in range(1, 13))

    preview = content_preview(text)

    assert preview.startswith("     1\tline 1")
    assert "... [2 lines truncated] ..." in preview
    assert "     8\tline 8" in preview
    assert preview.endswith("    12\tline 12")
    assert "line 6" not in preview

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from deepagent_kit.backends import (
    CompositeBackend,
    FilesystemBackend,
    InMemoryStore,
    JSONFileStore,
    StateBackend,
    StoreBackend,
)
from deepagent_kit.errors import (
    AmbiguousMatchError,
    BackendIOError,
    ConfigurationError,
    InvalidPathError,
    InvalidPatternError,
    NoMatchError,
    PathNotFoundError,
)
from deepagent_kit.middleware import FilesystemMiddleware
from deepagent_kit.models.settings import Settings
from deepagent_kit.models.state import RunState
from deepagent_kit.models.tool_calls import ToolCall
from deepagent_kit.runtime import DeepAgent

BACKEND_KINDS = ("state", "store", "json_store", "filesystem")


def _make_backend(kind: str, tmp_path: Path):
    if kind == "state":
        return StateBackend(RunState())
    if kind == "store":
        return StoreBackend(InMemoryStore())
    if kind == "json_store":
        return StoreBackend(JSONFileStore(tmp_path / "store"))
    return FilesystemBackend(tmp_path / "root")


@pytest.mark.parametrize("kind", BACKEND_KINDS)
def test_write_then_read_round_trips_exactly(kind: str, tmp_path: Path) -> None:
    backend = _make_backend(kind, tmp_path)
    text = "alpha\nbeta\n\ngamma\n"

    result = backend.write("/docs/notes.md", text)

    assert result.path == "/docs/notes.md"
    assert result.created is True
    assert "\n".join(backend.read("/docs/notes.md")) == text
    assert backend.exists("/docs/notes.md")
    assert not backend.exists("/docs/other.md")


@pytest.mark.parametrize("kind", BACKEND_KINDS)
def test_overwrite_reports_existing_file(kind: str, tmp_path: Path) -> None:
    backend = _make_backend(kind, tmp_path)
    backend.write("/a.txt", "one")

    result = backend.write("/a.txt", "two")

    assert result.created is False
    assert backend.read("/a.txt") == ["two"]


@pytest.mark.parametrize("kind", BACKEND_KINDS)
def test_read_pages_with_offset_and_limit(kind: str, tmp_path: Path) -> None:
    backend = _make_backend(kind, tmp_path)
    backend.write("/lines.txt", "\n".join(f"line {idx}" for idx in range(10)))

    assert backend.read("/lines.txt", offset=3, limit=2) == ["line 3", "line 4"]
    assert backend.read("/lines.txt", offset=20) == []


@pytest.mark.parametrize("kind", BACKEND_KINDS)
def test_read_missing_file_raises(kind: str, tmp_path: Path) -> None:
    backend = _make_backend(kind, tmp_path)
    with pytest.raises(PathNotFoundError, match="/missing.txt"):
        backend.read("/missing.txt")


@pytest.mark.parametrize("kind", BACKEND_KINDS)
def test_edit_requires_a_unique_match(kind: str, tmp_path: Path) -> None:
    backend = _make_backend(kind, tmp_path)
    backend.write("/a.md", "todo: x\ntodo: y\ntodo: z")

    with pytest.raises(AmbiguousMatchError) as excinfo:
        backend.edit("/a.md", "todo", "done")

    assert excinfo.value.occurrences == 3
    assert "String appears 3 times in file '/a.md'" in str(excinfo.value)
    assert backend.read("/a.md") == ["todo: x", "todo: y", "todo: z"]


@pytest.mark.parametrize("kind", BACKEND_KINDS)
def test_edit_replace_all_and_single(kind: str, tmp_path: Path) -> None:
    backend = _make_backend(kind, tmp_path)
    backend.write("/a.md", "todo: x\ntodo: y")

    everything = backend.edit("/a.md", "todo", "done", replace_all=True)
    single = backend.edit("/a.md", "done: y", "done: why")

    assert everything.occurrences == 2
    assert single.occurrences == 1
    assert backend.read("/a.md") == ["done: x", "done: why"]


@pytest.mark.parametrize("kind", BACKEND_KINDS)
def test_edit_without_match_raises(kind: str, tmp_path: Path) -> None:
    backend = _make_backend(kind, tmp_path)
    backend.write("/a.md", "hello")

    with pytest.raises(NoMatchError):
        backend.edit("/a.md", "bye", "ciao")
    with pytest.raises(PathNotFoundError):
        backend.edit("/b.md", "hello", "ciao")


@pytest.mark.parametrize("kind", BACKEND_KINDS)
def test_ls_lists_direct_children_sorted(kind: str, tmp_path: Path) -> None:
    backend = _make_backend(kind, tmp_path)
    for path in ("/b.txt", "/a.txt", "/src/main.py", "/src/pkg/util.py"):
        backend.write(path, "x")

    assert backend.ls("/") == ["/a.txt", "/b.txt", "/src/"]
    assert backend.ls("/src") == ["/src/main.py", "/src/pkg/"]
    assert backend.ls("/src", recursive=True) == ["/src/main.py", "/src/pkg/util.py"]


@pytest.mark.parametrize("kind", BACKEND_KINDS)
def test_glob_is_deterministic(kind: str, tmp_path: Path) -> None:
    backend = _make_backend(kind, tmp_path)
    for path in ("/src/z.py", "/src/a.py", "/src/pkg/m.py", "/README.md"):
        backend.write(path, "x")

    assert backend.glob("**/*.py") == ["/src/a.py", "/src/pkg/m.py", "/src/z.py"]
    assert backend.glob("*.py", "/src") == ["/src/a.py", "/src/z.py"]
    assert backend.glob("/*.md") == ["/README.md"]


@pytest.mark.parametrize("kind", BACKEND_KINDS)
def test_grep_orders_by_path_then_line(kind: str, tmp_path: Path) -> None:
    backend = _make_backend(kind, tmp_path)
    backend.write("/b.md", "needle one\nhay\nneedle two")
    backend.write("/a.md", "hay\nneedle")
    backend.write("/c.txt", "needle")

    matches = backend.grep("needle", glob="*.md")

    assert [(match.path, match.line_number) for match in matches] == [
        ("/a.md", 2),
        ("/b.md", 1),
        ("/b.md", 3),
    ]


def test_grep_literal_and_regex_modes() -> None:
    backend = StateBackend(RunState())
    backend.write("/a.py", "value = f(x)\nother = 1")

    assert [match.line for match in backend.grep("f(x)")] == ["value = f(x)"]
    assert [match.line for match in backend.grep(r"\w+ = \d", regex=True)] == ["other = 1"]
    with pytest.raises(InvalidPatternError):
        backend.grep("(", regex=True)


def test_paths_are_normalized_and_validated() -> None:
    backend = StateBackend(RunState())
    backend.write("notes//today.md", "x")

    assert backend.ls("/") == ["/notes/"]
    assert backend.read("/notes/today.md") == ["x"]
    for bad in ("/../etc/passwd", "~/secrets", "C:\\temp\\x", "  "):
        with pytest.raises(InvalidPathError):
            backend.write(bad, "x")


def test_long_lines_are_truncated_on_read() -> None:
    backend = StateBackend(RunState(), max_line_length=10)
    backend.write("/wide.txt", "x" * 25)

    [line] = backend.read("/wide.txt")

    assert line.startswith("x" * 10)
    assert "15 more characters" in line


def test_state_backend_writes_into_run_state() -> None:
    state = RunState()
    StateBackend(state).write("/scratch.md", "draft")

    assert state.files["/scratch.md"].content == ["draft"]


def test_json_file_store_survives_new_instances(tmp_path: Path) -> None:
    StoreBackend(JSONFileStore(tmp_path), namespace=("memories",)).write("/prefs.md", "tea")

    reopened = StoreBackend(JSONFileStore(tmp_path), namespace=("memories",))

    assert reopened.read("/prefs.md") == ["tea"]
    assert reopened.ls("/") == ["/prefs.md"]


def test_store_namespaces_are_isolated() -> None:
    store = InMemoryStore()
    StoreBackend(store, namespace=("one",)).write("/a.md", "x")

    assert StoreBackend(store, namespace=("two",)).ls("/") == []


def test_filesystem_backend_maps_onto_root(tmp_path: Path) -> None:
    backend = FilesystemBackend(tmp_path)
    backend.write("/pkg/mod.py", "print('hi')\n")

    assert (tmp_path / "pkg" / "mod.py").read_text(encoding="utf-8") == "print('hi')\n"
    (tmp_path / "pkg" / "other.py").write_text("x = 1", encoding="utf-8")
    assert backend.ls("/pkg") == ["/pkg/mod.py", "/pkg/other.py"]


def test_filesystem_backend_blocks_escapes(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    (tmp_path / "outside.txt").write_text("secret", encoding="utf-8")
    (root / "link").symlink_to(tmp_path)
    backend = FilesystemBackend(root)

    with pytest.raises(InvalidPathError, match="escapes root"):
        backend.read("/link/outside.txt")


def test_filesystem_grep_skips_undecodable_files(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    (root / "notes.md").write_text("TODO: x", encoding="utf-8")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\nTODO")
    backend = FilesystemBackend(root)

    matches = backend.grep("TODO")

    assert [(match.path, match.line_number, match.line) for match in matches] == [
        ("/notes.md", 1, "TODO: x")
    ]
    with pytest.raises(BackendIOError, match="logo.png"):
        backend.read("/logo.png")


class CountingFilesystemBackend(FilesystemBackend):
    def __init__(self, root_dir: Path) -> None:
        super().__init__(root_dir)
        self.put_attempts = 0

    def _put(self, path: str, data: Any) -> None:
        self.put_attempts += 1
        super()._put(path, data)


def test_filesystem_host_failures_become_error_results(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    (root / "blocker").write_text("a plain file", encoding="utf-8")
    backend = CountingFilesystemBackend(root)
    agent = DeepAgent(
        middleware=[FilesystemMiddleware()],
        backend_factory=lambda context: backend,
        settings=Settings(backend="filesystem", filesystem_root=str(root)),
    )

    result = agent.execute(
        ToolCall(
            id="c1",
            name="write_file",
            arguments={"file_path": "/blocker/notes.md", "content": "x"},
        )
    )

    assert result.is_error
    assert result.content.startswith("Error: I/O failure for '/blocker/notes.md'")
    assert backend.put_attempts == 1
    assert (root / "blocker").read_text(encoding="utf-8") == "a plain file"


def _composite() -> tuple[CompositeBackend, StateBackend, StoreBackend]:
    default = StateBackend(RunState())
    memories = StoreBackend(InMemoryStore(), namespace=("memories",))
    return CompositeBackend(default, {"/memories/": memories}), default, memories


def test_composite_routes_by_prefix() -> None:
    composite, default, memories = _composite()

    composite.write("/scratch.md", "temp")
    result = composite.write("/memories/prefs.md", "tea")

    assert result.path == "/memories/prefs.md"
    assert default.ls("/") == ["/scratch.md"]
    assert memories.ls("/") == ["/prefs.md"]
    assert composite.read("/memories/prefs.md") == ["tea"]
    assert composite.ls("/") == ["/memories/", "/scratch.md"]
    assert composite.ls("/memories") == ["/memories/prefs.md"]


def test_composite_reports_outer_paths_in_errors() -> None:
    composite, _default, _memories = _composite()
    composite.write("/memories/a.md", "x x")

    with pytest.raises(PathNotFoundError, match="/memories/missing.md"):
        composite.read("/memories/missing.md")
    with pytest.raises(AmbiguousMatchError, match="/memories/a.md"):
        composite.edit("/memories/a.md", "x", "y")


def test_composite_glob_and_grep_merge_all_backends() -> None:
    composite, _default, _memories = _composite()
    composite.write("/notes.md", "needle")
    composite.write("/memories/prefs.md", "needle\nhay")
    composite.write("/memories/deep/more.md", "hay")

    assert composite.glob("**/*.md") == [
        "/memories/deep/more.md",
        "/memories/prefs.md",
        "/notes.md",
    ]
    matches = composite.grep("needle")
    assert [match.path for match in matches] == ["/memories/prefs.md", "/notes.md"]
    assert [match.path for match in composite.grep("needle", "/memories")] == [
        "/memories/prefs.md"
    ]


def test_composite_state_is_shared_across_executions() -> None:
    store = InMemoryStore()

    def build() -> CompositeBackend:
        memories = StoreBackend(store, namespace=("memories",))
        return CompositeBackend(StateBackend(RunState()), {"/memories/": memories})

    first = build()
    first.write("/memories/facts.md", "sky is blue")
    first.write("/scratch.md", "gone soon")
    second = build()

    assert second.read("/memories/facts.md") == ["sky is blue"]
    assert not second.exists("/scratch.md")


def test_composite_rejects_bad_routes() -> None:
    default = StateBackend(RunState())
    other = StateBackend(RunState())
    with pytest.raises(ConfigurationError, match="empty"):
        CompositeBackend(default, {"/": other})
    with pytest.raises(ConfigurationError, match="duplicates"):
        CompositeBackend(default, {"/memories": other, "memories/": other})


def test_composite_thread_safety_follows_its_backends() -> None:
    store_backed = StoreBackend(InMemoryStore())
    assert CompositeBackend(store_backed, {"/m/": StoreBackend(InMemoryStore())}).thread_safe
    assert not CompositeBackend(StateBackend(RunState()), {"/m/": store_backed}).thread_safe

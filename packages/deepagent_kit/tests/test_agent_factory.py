from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from deepagent_kit import create_deep_agent
from deepagent_kit.agents.loop import LoopRequest, LoopResult, StrandsAgentLoop
from deepagent_kit.backends import InMemoryStore
from deepagent_kit.middleware import Middleware, ToolTelemetry, ToolTelemetryMiddleware
from deepagent_kit.models.interrupts import GateStatus
from deepagent_kit.models.settings import Settings, load_settings
from deepagent_kit.models.tool_calls import ToolCall, ToolResult


class EchoLoop:
    def run(self, request: LoopRequest) -> LoopResult:
        return LoopResult(output=request.instructions)


class BlockDeletes(Middleware):
    name = "block-deletes"

    def before_tool_call(self, call: ToolCall, runtime: Any) -> ToolCall | ToolResult:
        if call.name == "write_file" and call.arguments.get("content") == "":
            return ToolResult.error(call, "Error: refusing to blank a file")
        return call


def test_default_stack_tools_and_prompt() -> None:
    agent = create_deep_agent(instructions="Plan first.", settings=Settings(), loop=EchoLoop())

    assert [entry.name for entry in agent.tools] == [
        "write_todos",
        "ls",
        "read_file",
        "write_file",
        "edit_file",
        "glob",
        "grep",
        "task",
    ]
    prompt = agent.system_prompt
    assert prompt.startswith("Plan first.")
    assert prompt.index("## `write_todos`") < prompt.index("## Filesystem Tools")
    assert prompt.index("## Filesystem Tools") < prompt.index("## `task`")
    task_spec = next(spec for spec in agent.tool_specs() if spec["name"] == "task")
    assert "- general-purpose:" in task_spec["description"]
    assert agent.invoke("hello").output == "hello"


def test_settings_are_loaded_from_the_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEEPAGENT_BACKEND", "state")
    monkeypatch.setenv("DEEPAGENT_INTERRUPT_ON", "write_file")
    monkeypatch.setenv("DEEPAGENT_MODEL_ID", "env-model")

    agent = create_deep_agent(loop=EchoLoop())

    assert agent.settings.backend == "state"
    assert agent.model == "env-model"
    turn = agent.run_turn([{"id": "c1", "name": "write_file", "arguments": {"file_path": "/a"}}])
    assert turn.paused
    assert agent.status == GateStatus.PAUSED


def test_default_loop_is_strands_with_the_configured_model() -> None:
    agent = create_deep_agent(model="explicit-model", settings=Settings(model_id="other"))

    assert isinstance(agent.loop, StrandsAgentLoop)
    assert agent.loop.model == "explicit-model"
    assert agent.model == "explicit-model"


def test_memories_persist_across_agents_sharing_a_store() -> None:
    store = InMemoryStore()
    settings = Settings(backend="composite")
    first = create_deep_agent(settings=settings, store=store, loop=EchoLoop())
    first.execute(
        ToolCall(
            id="c1", name="write_file", arguments={"file_path": "/memories/me.md", "content": "hi"}
        )
    )
    first.execute(
        ToolCall(
            id="c2", name="write_file", arguments={"file_path": "/draft.md", "content": "tmp"}
        )
    )

    second = create_deep_agent(settings=settings, store=store, loop=EchoLoop())

    assert second.backend.read("/memories/me.md") == ["hi"]
    assert not second.backend.exists("/draft.md")


def test_user_middleware_and_tools_are_appended() -> None:
    agent = create_deep_agent(
        settings=Settings(backend="state"), loop=EchoLoop(), middleware=[BlockDeletes()]
    )

    blocked = agent.execute(
        {"id": "c1", "name": "write_file", "arguments": {"file_path": "/a", "content": ""}}
    )

    assert blocked.is_error
    assert blocked.content == "Error: refusing to blank a file"
    assert agent.state.files == {}


def test_telemetry_records_every_call() -> None:
    telemetry = ToolTelemetry()
    agent = create_deep_agent(
        settings=Settings(backend="state"), loop=EchoLoop(), telemetry=telemetry
    )

    agent.execute({"id": "c1", "name": "ls", "arguments": {"path": "/"}})
    agent.execute({"id": "c2", "name": "read_file", "arguments": {"file_path": "/missing"}})

    assert [entry["name"] for entry in telemetry.tool_calls] == ["ls", "read_file"]
    assert [entry["status"] for entry in telemetry.tool_calls] == ["success", "error"]
    assert all(entry["duration_ms"] >= 0 for entry in telemetry.tool_calls)

    telemetry.set_allow_tools(False)
    blocked = agent.execute({"id": "c3", "name": "ls", "arguments": {}})
    assert blocked.is_error
    assert len(telemetry.tool_calls) == 2


def test_subagents_are_discovered_from_settings(tmp_path: Path) -> None:
    (tmp_path / "critic.md").write_text(
        "---\nname: critic\ndescription: Reviews drafts\n---\nBe blunt.\n", encoding="utf-8"
    )
    settings = Settings(backend="state", subagent_dirs=[str(tmp_path)])

    agent = create_deep_agent(settings=settings, loop=EchoLoop(), general_purpose_agent=False)

    task_spec = next(spec for spec in agent.tool_specs() if spec["name"] == "task")
    assert "- critic: Reviews drafts" in task_spec["description"]
    assert "general-purpose" not in task_spec["description"]


def test_load_settings_is_used_when_no_settings_given(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEEPAGENT_READ_LIMIT", "7")

    agent = create_deep_agent(loop=EchoLoop())

    assert agent.settings == load_settings()


def test_default_agents_share_memories_within_the_process() -> None:
    first = create_deep_agent(loop=EchoLoop())
    first.execute(
        ToolCall(
            id="c1",
            name="write_file",
            arguments={"file_path": "/memories/notes.md", "content": "remember me"},
        )
    )

    second = create_deep_agent(loop=EchoLoop())
    result = second.execute(
        ToolCall(id="c2", name="read_file", arguments={"file_path": "/memories/notes.md"})
    )

    assert second.store is first.store
    assert not result.is_error
    assert "remember me" in result.content


def test_telemetry_matches_results_to_calls_by_id() -> None:
    telemetry = ToolTelemetry()
    middleware = ToolTelemetryMiddleware(telemetry)
    first = ToolCall(id="c1", name="read_file", arguments={"file_path": "/a"})
    second = ToolCall(id="c2", name="read_file", arguments={"file_path": "/b"})

    middleware.before_tool_call(first, None)
    middleware.before_tool_call(second, None)
    middleware.after_tool_call(second, ToolResult.error(second, "Error: missing"), None)
    middleware.after_tool_call(first, ToolResult.success(first, "ok"), None)

    assert [(entry["id"], entry["status"]) for entry in telemetry.tool_calls] == [
        ("c1", "success"),
        ("c2", "error"),
    ]

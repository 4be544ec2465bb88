from __future__ import annotations

import json
import logging

import pytest

from deepagent_kit.backends import build_backend_factory
from deepagent_kit.middleware import TodoListMiddleware, find_regressions
from deepagent_kit.models.settings import Settings
from deepagent_kit.models.todos import TodoItem, TodoStatus
from deepagent_kit.models.tool_calls import ToolCall
from deepagent_kit.runtime import DeepAgent


def _agent() -> DeepAgent:
    settings = Settings(backend="state")
    return DeepAgent(
        middleware=[TodoListMiddleware()],
        backend_factory=build_backend_factory(settings),
        settings=settings,
    )


def _write_todos(call_id: str, todos: list[dict[str, str]]) -> ToolCall:
    return ToolCall(id=call_id, name="write_todos", arguments={"todos": todos})


def test_write_todos_replaces_plan_and_assigns_ids() -> None:
    agent = _agent()

    result = agent.execute(
        _write_todos(
            "call-1",
            [
                {"content": "Research the API", "status": "in_progress"},
                {"content": "Write the report"},
            ],
        )
    )

    assert result.status == "success"
    assert result.content.startswith("Updated todo list to ")
    payload = json.loads(result.content.removeprefix("Updated todo list to "))
    assert [item["id"] for item in payload] == ["1", "2"]
    assert [item.status for item in agent.state.todos] == [
        TodoStatus.IN_PROGRESS,
        TodoStatus.PENDING,
    ]

    agent.execute(_write_todos("call-2", [{"id": "9", "content": "Only this"}]))

    assert [(item.id, item.content) for item in agent.state.todos] == [("9", "Only this")]


def test_write_todos_rejects_duplicate_ids_and_bad_status() -> None:
    agent = _agent()

    duplicate = agent.execute(
        _write_todos("call-1", [{"id": "a", "content": "one"}, {"id": "a", "content": "two"}])
    )
    bad_status = agent.execute(
        _write_todos("call-2", [{"content": "one", "status": "blocked"}])
    )

    assert duplicate.is_error
    assert "duplicate todo id 'a'" in duplicate.content
    assert bad_status.is_error
    assert agent.state.todos == []


def test_status_regressions_are_logged_not_rejected(caplog: pytest.LogCaptureFixture) -> None:
    agent = _agent()
    agent.execute(_write_todos("call-1", [{"id": "1", "content": "x", "status": "completed"}]))

    with caplog.at_level(logging.WARNING, logger="deepagent_kit.middleware.planning"):
        result = agent.execute(
            _write_todos("call-2", [{"id": "1", "content": "x", "status": "pending"}])
        )

    assert result.status == "success"
    assert agent.state.todos[0].status == TodoStatus.PENDING
    assert "Todo 1 moved from completed back to pending" in caplog.text


def test_find_regressions_compares_by_id() -> None:
    previous = [
        TodoItem(id="1", content="a", status=TodoStatus.COMPLETED),
        TodoItem(id="2", content="b", status=TodoStatus.PENDING),
    ]
    current = [
        TodoItem(id="1", content="a", status=TodoStatus.IN_PROGRESS),
        TodoItem(id="2", content="b", status=TodoStatus.COMPLETED),
        TodoItem(id="3", content="c", status=TodoStatus.PENDING),
    ]

    [regression] = find_regressions(previous, current)

    assert regression.id == "1"
    assert regression.previous == TodoStatus.COMPLETED
    assert regression.current == TodoStatus.IN_PROGRESS


def test_write_todos_called_twice_in_one_turn_is_an_error() -> None:
    agent = _agent()

    turn = agent.run_turn(
        [
            _write_todos("call-1", [{"content": "first plan"}]),
            _write_todos("call-2", [{"content": "second plan"}]),
        ]
    )

    assert [result.is_error for result in turn.results] == [True, True]
    assert "never be called multiple times" in turn.results[0].content
    assert agent.state.todos == []

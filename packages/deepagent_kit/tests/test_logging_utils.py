from __future__ import annotations

import logging

from deepagent_kit.telemetry import (
    RunContextFilter,
    current_agent_depth,
    current_thread_id,
    install_run_log_filter,
    run_context,
)


def _record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)


def test_run_context_binds_and_restores() -> None:
    assert current_thread_id() == "-"

    with run_context("thread-1", depth=1):
        with run_context("thread-1/child", depth=2):
            assert current_thread_id() == "thread-1/child"
            assert current_agent_depth() == 2
        assert current_thread_id() == "thread-1"
        assert current_agent_depth() == 1

    assert current_thread_id() == "-"
    assert current_agent_depth() == 0


def test_filter_attaches_run_identifiers() -> None:
    record = _record()

    with run_context("thread-9", depth=1):
        assert RunContextFilter().filter(record)

    assert record.thread_id == "thread-9"
    assert record.agent_depth == 1


def test_install_run_log_filter_is_idempotent() -> None:
    logger = logging.getLogger("deepagent_kit.tests.logging")

    install_run_log_filter([logger])
    install_run_log_filter([logger])

    assert sum(isinstance(flt, RunContextFilter) for flt in logger.filters) == 1

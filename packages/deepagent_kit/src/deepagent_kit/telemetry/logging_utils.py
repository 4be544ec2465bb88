"""Logging helpers for run correlation."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

_THREAD_ID: ContextVar[str] = ContextVar("deepagent_thread_id", default="-")
_AGENT_DEPTH: ContextVar[int] = ContextVar("deepagent_agent_depth", default=0)


def current_thread_id() -> str:
    return _THREAD_ID.get()


def current_agent_depth() -> int:
    return _AGENT_DEPTH.get()


@contextmanager
def run_context(thread_id: str, depth: int = 0) -> Iterator[None]:
    """Bind ``thread_id`` and ``agent_depth`` for log records emitted inside the block."""
    thread_token = _THREAD_ID.set(thread_id)
    depth_token = _AGENT_DEPTH.set(depth)
    try:
        yield
    finally:
        _AGENT_DEPTH.reset(depth_token)
        _THREAD_ID.reset(thread_token)


class RunContextFilter(logging.Filter):
    """Attach run identifiers to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject thread_id and agent_depth into the log record."""
        record.thread_id = current_thread_id()
        record.agent_depth = current_agent_depth()
        return True


def install_run_log_filter(loggers: Iterable[logging.Logger] | None = None) -> None:
    """Install run context filters for structured logging.

    Args:
        loggers: Optional iterable of loggers to attach the filter to. Defaults to root logger.
    """
    targets = list(loggers) if loggers is not None else [logging.getLogger()]
    for logger in targets:
        if any(isinstance(flt, RunContextFilter) for flt in logger.filters):
            continue
        logger.addFilter(RunContextFilter())

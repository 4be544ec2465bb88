"""Ephemeral backend storing files in the current execution's run state."""

from __future__ import annotations

from typing import TYPE_CHECKING

from deepagent_kit.backends.base import BaseBackend

if TYPE_CHECKING:
    from deepagent_kit.models.files import FileData
    from deepagent_kit.models.state import RunState


class StateBackend(BaseBackend):
    """Files live in ``RunState.files`` and disappear with the state."""

    def __init__(self, state: RunState, *, max_line_length: int | None = None) -> None:
        super().__init__(max_line_length=max_line_length)
        self.state = state

    def _get(self, path: str) -> FileData | None:
        return self.state.files.get(path)

    def _put(self, path: str, data: FileData) -> None:
        self.state.files[path] = data

    def _paths(self) -> list[str]:
        return list(self.state.files)

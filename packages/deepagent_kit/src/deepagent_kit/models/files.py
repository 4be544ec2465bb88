"""File models shared by every storage backend."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

from deepagent_kit.utils import utc_timestamp


class FileData(BaseModel):
    """Line-addressable file content with timestamps."""

    content: list[str] = Field(default_factory=list)
    created_at: str = ""
    modified_at: str = ""

    @classmethod
    def from_text(cls, text: str, created_at: str | None = None) -> FileData:
        """Build file data from raw text, preserving creation time when replacing."""
        now = utc_timestamp()
        return cls(content=text.split("\n"), created_at=created_at or now, modified_at=now)

    def text(self) -> str:
        """Return the full content; joining lines reproduces the written text."""
        return "\n".join(self.content)


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a successful write."""

    path: str
    created: bool


@dataclass(frozen=True)
class EditResult:
    """Outcome of a successful edit."""

    path: str
    occurrences: int
    content: str


@dataclass(frozen=True)
class GrepMatch:
    """A single matching line. Line numbers are 1-based."""

    path: str
    line_number: int
    line: str

"""Pydantic models for application settings."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from deepagent_kit.errors import ConfigurationError
from deepagent_kit.utils import parse_list

BACKEND_CHOICES = ("state", "store", "filesystem", "composite")


class Settings(BaseModel, frozen=True):
    """Runtime configuration loaded from environment variables."""

    model_id: str = ""
    backend: str = "composite"
    filesystem_root: str = "."
    store_dir: str = ""
    memories_prefix: str = "/memories/"
    checkpoint_dir: str = ""
    # Read behaviour
    max_line_length: int = 5000
    default_read_limit: int = 100
    # Large tool results are offloaded to the filesystem past this many tokens (0 disables)
    tool_token_limit_before_evict: int = 20000
    # Sub-agent dispatch
    subagent_max_steps: int = 25
    max_subagent_depth: int = 2
    subagent_dirs: list[str] = Field(default_factory=list)
    interrupt_tools: list[str] = Field(default_factory=list)


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"{name} must be an integer, got '{raw}'"
        raise ConfigurationError(msg) from exc
    if value < minimum:
        msg = f"{name} must be >= {minimum}, got {value}"
        raise ConfigurationError(msg)
    return value


def load_settings() -> Settings:
    """Load settings from environment variables with defaults."""
    load_dotenv()

    backend = os.getenv("DEEPAGENT_BACKEND", "composite").strip().lower()
    if backend not in BACKEND_CHOICES:
        msg = f"DEEPAGENT_BACKEND must be one of {', '.join(BACKEND_CHOICES)}; got '{backend}'"
        raise ConfigurationError(msg)

    memories_prefix = os.getenv("DEEPAGENT_MEMORIES_PREFIX", "/memories/").strip()
    if backend == "composite" and memories_prefix in {"", "/"}:
        msg = "DEEPAGENT_MEMORIES_PREFIX must be a non-root path when DEEPAGENT_BACKEND=composite."
        raise ConfigurationError(msg)

    return Settings(
        model_id=os.getenv("DEEPAGENT_MODEL_ID", ""),
        backend=backend,
        filesystem_root=os.getenv("DEEPAGENT_FILESYSTEM_ROOT", "."),
        store_dir=os.getenv("DEEPAGENT_STORE_DIR", ""),
        memories_prefix=memories_prefix,
        checkpoint_dir=os.getenv("DEEPAGENT_CHECKPOINT_DIR", ""),
        max_line_length=_int_env("DEEPAGENT_MAX_LINE_LENGTH", 5000, minimum=1),
        default_read_limit=_int_env("DEEPAGENT_READ_LIMIT", 100, minimum=1),
        tool_token_limit_before_evict=_int_env("DEEPAGENT_EVICT_TOKEN_LIMIT", 20000),
        subagent_max_steps=_int_env("DEEPAGENT_SUBAGENT_MAX_STEPS", 25, minimum=1),
        max_subagent_depth=_int_env("DEEPAGENT_MAX_SUBAGENT_DEPTH", 2, minimum=1),
        subagent_dirs=parse_list(os.getenv("DEEPAGENT_SUBAGENT_DIRS", "")),
        interrupt_tools=parse_list(os.getenv("DEEPAGENT_INTERRUPT_ON", "")),
    )

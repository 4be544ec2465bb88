"""Load sub-agent definitions from markdown files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from deepagent_kit.markdown_utils import first_non_empty_line, parse_frontmatter
from deepagent_kit.subagents.models import SubagentSpec
from deepagent_kit.utils import parse_list

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


@dataclass
class SubagentDiagnostics:
    """Diagnostics captured during sub-agent discovery."""

    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        """Record a discovery warning."""
        logger.warning(message)
        self.warnings.append(message)


@dataclass(frozen=True)
class SubagentCatalog:
    """Catalog of discovered sub-agent specs."""

    specs: dict[str, SubagentSpec]
    diagnostics: SubagentDiagnostics


def _discover_agent_files(base: Path) -> list[Path]:
    if not base.is_dir():
        return []
    return sorted(base.glob("*.md"))


def _parse_max_steps(raw: str | None) -> int | None:
    if not raw:
        return None
    return int(raw)


def _load_specs(
    paths: Iterable[Path], source: str, diagnostics: SubagentDiagnostics
) -> dict[str, SubagentSpec]:
    specs: dict[str, SubagentSpec] = {}
    for path in paths:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            diagnostics.warn(f"Sub-agent file unreadable: {path} ({exc})")
            continue
        meta, body = parse_frontmatter(text)
        name = meta.get("name") or path.stem
        description = meta.get("description") or first_non_empty_line(body)
        system_prompt = body.strip()

        if not description:
            diagnostics.warn(f"Sub-agent missing description: {path}")
            continue
        if not system_prompt:
            diagnostics.warn(f"Sub-agent missing system prompt: {path}")
            continue
        if name in specs:
            diagnostics.warn(f"Duplicate sub-agent '{name}' ignored from {path}")
            continue

        tools = parse_list(meta.get("tools"))
        interrupt_tools = parse_list(meta.get("interrupt_on"))
        file_sharing = meta.get("file_sharing") or "isolated"
        try:
            specs[name] = SubagentSpec(
                name=name,
                description=description,
                system_prompt=system_prompt,
                tools=tools or None,
                model=meta.get("model") or None,
                interrupt_on={tool: True for tool in interrupt_tools} or None,
                file_sharing=file_sharing,  # type: ignore[arg-type]
                max_steps=_parse_max_steps(meta.get("max_steps")),
                source=source,
            )
        except ValueError as exc:
            diagnostics.warn(f"Invalid sub-agent definition {path}: {exc}")
    return specs


class SubagentLoader:
    """Discover sub-agent specs from markdown files in one or more directories.

    Later directories override earlier ones, so project definitions can
    shadow shared ones with the same name.
    """

    def __init__(self, directories: Iterable[str | Path]) -> None:
        self.directories = [Path(item) for item in directories]

    def load(self) -> SubagentCatalog:
        """Load sub-agent specs from the configured directories."""
        diagnostics = SubagentDiagnostics()
        specs: dict[str, SubagentSpec] = {}
        for directory in self.directories:
            found = _load_specs(_discover_agent_files(directory), str(directory), diagnostics)
            specs.update(found)
        if self.directories and not specs:
            diagnostics.warn("No sub-agent definitions discovered.")
        return SubagentCatalog(specs=specs, diagnostics=diagnostics)

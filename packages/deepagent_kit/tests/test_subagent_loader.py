from __future__ import annotations

from pathlib import Path

from deepagent_kit.markdown_utils import first_non_empty_line, parse_frontmatter
from deepagent_kit.subagents.loader import SubagentLoader


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_loader_parses_frontmatter_fields(tmp_path: Path) -> None:
    _write(
        tmp_path / "agents" / "researcher.md",
        "---\n"
        "name: researcher\n"
        'description: "Finds and summarizes sources"\n'
        "tools: read_file, grep\n"
        "model: bedrock.nova-micro\n"
        "interrupt_on: write_file\n"
        "file_sharing: snapshot\n"
        "max_steps: 7\n"
        "---\n"
        "You research things carefully.\n",
    )

    catalog = SubagentLoader([tmp_path / "agents"]).load()

    spec = catalog.specs["researcher"]
    assert spec.description == "Finds and summarizes sources"
    assert spec.system_prompt == "You research things carefully."
    assert spec.tools == ("read_file", "grep")
    assert spec.model == "bedrock.nova-micro"
    assert spec.interrupt_on == {"write_file": True}
    assert spec.file_sharing == "snapshot"
    assert spec.max_steps == 7
    assert spec.source == str(tmp_path / "agents")
    assert catalog.diagnostics.warnings == []


def test_later_directories_override_earlier_ones(tmp_path: Path) -> None:
    _write(
        tmp_path / "shared" / "scout.md",
        "---\nname: scout\ndescription: Shared scout\n---\nShared prompt\n",
    )
    _write(
        tmp_path / "project" / "scout.md",
        "---\nname: scout\ndescription: Project scout\ntools: []\n---\nProject prompt\n",
    )

    catalog = SubagentLoader([tmp_path / "shared", tmp_path / "project"]).load()

    spec = catalog.specs["scout"]
    assert spec.description == "Project scout"
    assert spec.system_prompt == "Project prompt"
    assert spec.tools is None


def test_name_and_description_fall_back_to_file(tmp_path: Path) -> None:
    _write(tmp_path / "critic.md", "# Reviews drafts for errors\n\nBe blunt.\n")

    spec = SubagentLoader([tmp_path]).load().specs["critic"]

    assert spec.description == "Reviews drafts for errors"
    assert "Be blunt." in spec.system_prompt


def test_invalid_definitions_become_diagnostics(tmp_path: Path) -> None:
    _write(tmp_path / "empty.md", "---\nname: empty\ndescription: Nothing here\n---\n")
    _write(
        tmp_path / "bad.md",
        "---\nname: bad\ndescription: Bad sharing\nfile_sharing: everything\n---\nPrompt\n",
    )
    _write(
        tmp_path / "steps.md",
        "---\nname: steps\ndescription: Bad steps\nmax_steps: many\n---\nPrompt\n",
    )

    catalog = SubagentLoader([tmp_path]).load()

    assert catalog.specs == {}
    warnings = "\n".join(catalog.diagnostics.warnings)
    assert "missing system prompt" in warnings
    assert "invalid file_sharing" in warnings
    assert "steps.md" in warnings
    assert "No sub-agent definitions discovered." in warnings


def test_missing_directories_are_ignored(tmp_path: Path) -> None:
    catalog = SubagentLoader([tmp_path / "nope"]).load()

    assert catalog.specs == {}


def test_parse_frontmatter_without_fences() -> None:
    meta, body = parse_frontmatter("plain text")

    assert meta == {}
    assert body == "plain text"
    assert first_non_empty_line("\n\n## Title\nbody") == "Title"

"""Shared test fixtures for skillsync test suite."""

from pathlib import Path
from typing import Callable

import pytest

from skillsync.core.context import SharedContext
from skillsync.core.workspace import Scope
from skillsync.utils.config import Config

MakeSkill = Callable[..., Path]


def _write_skill(
    root: Path,
    rel_path: str,
    name: str,
    *,
    version: str | None = "1.0.0",
    description: str = "A test skill",
    body: str = "# Instructions\n\nDo the thing.\n",
    files: dict[str, str] | None = None,
) -> Path:
    skill_dir = root / rel_path if rel_path else root
    skill_dir.mkdir(parents=True, exist_ok=True)
    lines = ["---", f"name: {name}", f"description: {description}"]
    if version is not None:
        lines.append(f"version: {version}")
    lines.append("---")
    (skill_dir / "SKILL.md").write_text("\n".join(lines) + "\n" + body)
    for relative, content in (files or {}).items():
        path = skill_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return skill_dir


@pytest.fixture
def make_skill() -> MakeSkill:
    """Write a SKILL.md (plus extra files) under a directory."""
    return _write_skill


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Config with application dir and home inside tmp_path."""
    return Config(workspace=tmp_path / "app", home=tmp_path / "home")


@pytest.fixture
def test_context(test_config: Config) -> SharedContext:
    """SharedContext with test config."""
    return SharedContext(config=test_config)


@pytest.fixture
def global_scope(test_context: SharedContext) -> Scope:
    return test_context.resolver.global_scope()


@pytest.fixture
def skill_repo(tmp_path: Path, make_skill: MakeSkill) -> Path:
    """Repository with three skills and two directories that are not skills."""
    repo = tmp_path / "repo"
    make_skill(
        repo,
        "skills/commit",
        "commit",
        description="Write commit messages",
        files={"templates/message.txt": "feat: something\n"},
    )
    make_skill(repo, "skills/review", "review", version="2.1")
    make_skill(repo, "skills/nested/deploy", "deploy", version=None)
    (repo / "docs").mkdir()
    (repo / "docs" / "README.md").write_text("# Docs\n")
    (repo / "scripts").mkdir()
    (repo / "scripts" / "build.sh").write_text("#!/bin/sh\n")
    return repo


@pytest.fixture
def repo_url(skill_repo: Path) -> str:
    return skill_repo.as_uri()

"""Skill discovery inside repository snapshots."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from skillsync.core.exceptions import ParseError, PathSafetyError
from skillsync.core.source import GitFetcher, RepositorySnapshot
from skillsync.utils.frontmatter import (
    DESCRIPTOR_FILENAME,
    SkillDescriptor,
    parse_descriptor,
)

if TYPE_CHECKING:
    from skillsync.core.registry import SkillRegistry
    from skillsync.core.workspace import Scope

logger = logging.getLogger(__name__)


def validate_skill_name(name: str) -> str:
    """
    Ensure a skill name can be used as a single directory name.

    Raises:
        PathSafetyError: If the name contains separators or is a relative marker
    """
    if (
        not name
        or name in {".", ".."}
        or name.startswith(".")
        or "/" in name
        or "\\" in name
        or "\x00" in name
    ):
        raise PathSafetyError(name, "skill name is not a valid directory name")
    return name


@dataclass
class DiscoveredSkill:
    """A skill directory found in a snapshot."""

    descriptor: SkillDescriptor
    source_dir: Path
    rel_path: str

    @property
    def name(self) -> str:
        return self.descriptor.name


class ScannedSkillInfo(BaseModel):
    """A candidate skill returned to callers of scan."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    version: str | None = None
    tags: list[str] = Field(default_factory=list)
    target_tools: list[str] = Field(default_factory=list, alias="targetTools")
    path: str = ""
    already_installed: bool = Field(default=False, alias="alreadyInstalled")
    installed_version: str | None = Field(default=None, alias="installedVersion")


def discover_skills(root: Path) -> list[DiscoveredSkill]:
    """
    Walk root for directories holding a valid SKILL.md.

    Hidden directories are skipped and skill directories are not descended
    into. The first skill of a given name (in sorted path order) wins.

    Returns:
        The skills found; empty when the tree has no SKILL.md at all

    Raises:
        ParseError: If SKILL.md files exist but none of them is valid
    """
    skills: list[DiscoveredSkill] = []
    seen: set[str] = set()
    descriptor_count = 0

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        if DESCRIPTOR_FILENAME not in filenames:
            continue

        descriptor_count += 1
        skill_dir = Path(dirpath)
        rel_path = skill_dir.relative_to(root).as_posix()
        try:
            content = (skill_dir / DESCRIPTOR_FILENAME).read_text(encoding="utf-8")
            descriptor = parse_descriptor(content, rel_path)
            validate_skill_name(descriptor.name)
        except (OSError, UnicodeDecodeError, ParseError, PathSafetyError) as e:
            logger.warning(f"Skipping '{rel_path}': {e}")
            continue

        dirnames[:] = []
        if descriptor.name in seen:
            logger.warning(
                f"Skipping duplicate skill '{descriptor.name}' at '{rel_path}'"
            )
            continue
        seen.add(descriptor.name)
        skills.append(
            DiscoveredSkill(descriptor=descriptor, source_dir=skill_dir, rel_path=rel_path)
        )

    if descriptor_count and not skills:
        raise ParseError(
            f"Found {descriptor_count} {DESCRIPTOR_FILENAME} file(s) but none is valid"
        )
    return skills


class RepositoryScanner:
    """Fetch a repository and report the skills it contains."""

    def __init__(self, fetcher: GitFetcher, registry: "SkillRegistry"):
        self.fetcher = fetcher
        self.registry = registry

    def discover(self, snapshot: RepositorySnapshot) -> list[DiscoveredSkill]:
        return discover_skills(snapshot.root)

    def annotate(
        self, skills: list[DiscoveredSkill], scope: "Scope"
    ) -> list[ScannedSkillInfo]:
        """Mark each skill with its registry state at this moment."""
        results = []
        for skill in skills:
            entry = self.registry.find(scope, skill.name)
            descriptor = skill.descriptor
            results.append(
                ScannedSkillInfo(
                    name=descriptor.name,
                    description=descriptor.description,
                    version=descriptor.version,
                    tags=descriptor.tags,
                    target_tools=descriptor.target_tools,
                    path=skill.rel_path,
                    already_installed=entry is not None,
                    installed_version=entry.metadata.version if entry else None,
                )
            )
        return results

    def scan(self, url: str, scope: "Scope") -> list[ScannedSkillInfo]:
        """
        List the skills of a repository.

        Raises:
            FetchError: If the repository cannot be retrieved
            ParseError: If descriptors exist but none is valid
        """
        with self.fetcher.fetch(url) as snapshot:
            skills = self.discover(snapshot)
            logger.info(f"Found {len(skills)} skill(s) in {url}")
            return self.annotate(skills, scope)

"""Materialize skills into tool directories.

Every install of one skill is all-or-nothing across its targets: the tree is
staged next to each target first, the stages are swapped in only when all of
them were written, and any failure restores what was there before.
"""

import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Callable, Literal

from pydantic import BaseModel, Field, computed_field

from skillsync.core.exceptions import (
    ConflictError,
    PathSafetyError,
    SkillNotFoundError,
    SkillSyncError,
)
from skillsync.core.hashing import is_tracked
from skillsync.core.manifest import ManifestStore, SkillManifest
from skillsync.core.registry import InstalledSkillEntry, SkillMetadata, SkillRegistry
from skillsync.core.scanner import DiscoveredSkill, RepositoryScanner, validate_skill_name
from skillsync.core.tools import ToolId, parse_tools
from skillsync.core.workspace import Scope

logger = logging.getLogger(__name__)


class SkillInstallResult(BaseModel):
    """Outcome for one skill of an install call."""

    name: str
    status: Literal["installed", "failed"]
    tools: list[ToolId] = Field(default_factory=list)
    error: str | None = None


class InstallSummary(BaseModel):
    """Outcome of an install call, per skill."""

    repository: str | None = None
    results: list[SkillInstallResult] = Field(default_factory=list)

    @property
    def installed(self) -> list[SkillInstallResult]:
        return [r for r in self.results if r.status == "installed"]

    @property
    def failed(self) -> list[SkillInstallResult]:
        return [r for r in self.results if r.status == "failed"]

    @computed_field
    @property
    def status(self) -> Literal["installed", "partial", "failed"]:
        if not self.failed:
            return "installed"
        if not self.installed:
            return "failed"
        return "partial"

    @computed_field
    @property
    def message(self) -> str:
        parts = []
        if self.installed:
            names = ", ".join(r.name for r in self.installed)
            parts.append(f"Installed {len(self.installed)} skill(s): {names}")
        if self.failed:
            failures = "; ".join(f"{r.name} ({r.error})" for r in self.failed)
            parts.append(f"Failed {len(self.failed)} skill(s): {failures}")
        return ". ".join(parts) or "Nothing to install"


def collect_skill_files(skill_dir: Path) -> list[Path]:
    """
    List the files of a skill directory, relative to it and sorted.

    Symlinks are allowed only when they resolve inside the skill directory;
    linked directories are skipped because their content is already walked.

    Raises:
        PathSafetyError: If a path or symlink escapes the skill directory
    """
    root = skill_dir.resolve()
    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(skill_dir):
        current = Path(dirpath)
        for dirname in list(dirnames):
            candidate = current / dirname
            if candidate.is_symlink():
                if not candidate.resolve().is_relative_to(root):
                    raise PathSafetyError(
                        candidate.relative_to(skill_dir).as_posix(),
                        "symlink points outside the skill directory",
                    )
                dirnames.remove(dirname)
        dirnames.sort()

        for filename in filenames:
            path = current / filename
            relative = path.relative_to(skill_dir)
            if ".." in relative.parts:
                raise PathSafetyError(relative.as_posix())
            if not path.resolve().is_relative_to(root):
                raise PathSafetyError(
                    relative.as_posix(), "symlink points outside the skill directory"
                )
            if is_tracked(relative):
                files.append(relative)
    return sorted(files, key=lambda p: p.as_posix())


def _sibling(target: Path, kind: str) -> Path:
    return target.parent / f".{target.name}.{kind}-{uuid.uuid4().hex[:8]}"


def _remove_path(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)


class Installer:
    """Copy skills from a snapshot into tool roots and record ownership."""

    def __init__(
        self,
        scanner: RepositoryScanner,
        registry: SkillRegistry,
        manifests: ManifestStore,
    ):
        self.scanner = scanner
        self.registry = registry
        self.manifests = manifests

    def install(
        self,
        url: str,
        skill_names: list[str],
        target_tools: list[ToolId | str],
        scope: Scope,
        source_id: str | None = None,
    ) -> InstallSummary:
        """
        Install the named skills of a repository into every target tool.

        Args:
            url: Repository URL
            skill_names: Skills to install; re-validated against a fresh scan
            target_tools: Tools to install into
            scope: Skill roots to install under
            source_id: Marketplace source the install came from

        Returns:
            Per-skill outcome

        Raises:
            ValueError: If no skills or no tools are given
            UnknownToolError: If a tool identifier is not recognized
            FetchError: If the repository cannot be retrieved
            SkillNotFoundError: If a name is not in the repository
            ConflictError: If a name is registered from another repository, or an
                unregistered directory already occupies a target
        """
        tools = parse_tools(target_tools)
        if not tools:
            raise ValueError("At least one target tool is required")
        names = list(dict.fromkeys(skill_names))
        if not names:
            raise ValueError("At least one skill name is required")

        with self.scanner.fetcher.fetch(url) as snapshot:
            available = {s.name: s for s in self.scanner.discover(snapshot)}
            for name in names:
                if name not in available:
                    raise SkillNotFoundError(name, where=url)
                existing = self.registry.find(scope, name)
                if existing is None:
                    for tool in tools:
                        target = scope.skill_dir(tool, name)
                        if target.exists() or target.is_symlink():
                            raise ConflictError(name, None, url)
                elif existing.metadata.repository not in (None, url):
                    raise ConflictError(name, existing.metadata.repository, url)

            summary = InstallSummary(repository=url)
            for name in names:
                skill = available[name]
                try:
                    self._install_skill(skill, tools, scope, url, source_id)
                except (SkillSyncError, OSError) as e:
                    logger.error(f"Failed to install '{name}': {e}")
                    summary.results.append(
                        SkillInstallResult(name=name, status="failed", error=str(e))
                    )
                else:
                    summary.results.append(
                        SkillInstallResult(name=name, status="installed", tools=tools)
                    )

        logger.info(summary.message)
        return summary

    def _install_skill(
        self,
        skill: DiscoveredSkill,
        tools: list[ToolId],
        scope: Scope,
        url: str,
        source_id: str | None,
    ) -> InstalledSkillEntry:
        descriptor = skill.descriptor
        validate_skill_name(descriptor.name)
        files = collect_skill_files(skill.source_dir)

        def build_manifest(staged_dir: Path) -> SkillManifest:
            return self.manifests.generate(
                staged_dir,
                name=descriptor.name,
                version=descriptor.version,
                description=descriptor.description,
                repository=url,
            )

        self._materialize(skill.source_dir, files, descriptor.name, tools, scope, build_manifest)

        metadata = SkillMetadata(
            name=descriptor.name,
            description=descriptor.description,
            version=descriptor.version,
            tags=descriptor.tags,
            target_tools=descriptor.target_tools,
            repository=url,
            source_id=source_id,
        )
        entry = self.registry.merge_installed(scope, metadata, tools)
        logger.info(
            f"Installed '{descriptor.name}' into {', '.join(t.value for t in tools)}"
        )
        return entry

    def apply_to_tools(
        self, name: str, target_tools: list[ToolId | str], scope: Scope
    ) -> InstallSummary:
        """
        Copy an installed skill into additional tools.

        The first existing copy (with its manifest) is the source. Tools that
        already hold the skill are left alone.

        Raises:
            SkillNotFoundError: If the skill is unknown or no copy exists on disk
        """
        tools = parse_tools(target_tools)
        if not tools:
            raise ValueError("At least one target tool is required")
        entry = self.registry.get(scope, name)

        source_dir = next(
            (
                scope.skill_dir(tool, name)
                for tool in entry.installed_by
                if scope.skill_dir(tool, name).is_dir()
            ),
            None,
        )
        if source_dir is None:
            raise SkillNotFoundError(name, where="any installed tool directory")

        new_tools = [t for t in tools if t not in entry.installed_by]
        summary = InstallSummary(repository=entry.metadata.repository)
        if not new_tools:
            summary.results.append(
                SkillInstallResult(name=name, status="installed", tools=[])
            )
            return summary

        files = collect_skill_files(source_dir)
        existing_manifest = self.manifests.read(source_dir)

        def build_manifest(staged_dir: Path) -> SkillManifest:
            if existing_manifest is not None:
                return existing_manifest
            return self.manifests.generate(
                staged_dir,
                name=name,
                version=entry.metadata.version,
                description=entry.metadata.description,
                repository=entry.metadata.repository,
            )

        try:
            self._materialize(source_dir, files, name, new_tools, scope, build_manifest)
        except (SkillSyncError, OSError) as e:
            logger.error(f"Failed to apply '{name}': {e}")
            summary.results.append(
                SkillInstallResult(name=name, status="failed", error=str(e))
            )
            return summary

        self.registry.merge_installed(scope, entry.metadata, new_tools)
        summary.results.append(
            SkillInstallResult(name=name, status="installed", tools=new_tools)
        )
        logger.info(f"Applied '{name}' to {', '.join(t.value for t in new_tools)}")
        return summary

    def _materialize(
        self,
        source_dir: Path,
        files: list[Path],
        name: str,
        tools: list[ToolId],
        scope: Scope,
        build_manifest: Callable[[Path], SkillManifest],
    ) -> None:
        """Stage, write manifests, then swap every target; roll back on failure."""
        targets = [scope.skill_dir(tool, name) for tool in tools]
        stages: list[Path] = []
        swapped: list[tuple[Path, Path | None]] = []
        try:
            for target in targets:
                stages.append(self._stage(source_dir, files, target))

            manifest = build_manifest(stages[0])
            for stage in stages:
                self.manifests.write(stage, manifest)

            for stage, target in zip(stages, targets):
                backup = self._swap(stage, target)
                swapped.append((target, backup))
        except BaseException:
            for target, backup in reversed(swapped):
                _remove_path(target)
                if backup is not None:
                    os.replace(backup, target)
            for stage in stages:
                _remove_path(stage)
            raise

        for _, backup in swapped:
            if backup is not None:
                _remove_path(backup)

    def _stage(self, source_dir: Path, files: list[Path], target: Path) -> Path:
        target.parent.mkdir(parents=True, exist_ok=True)
        stage = _sibling(target, "install")
        stage.mkdir()
        for relative in files:
            destination = stage / relative
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_dir / relative, destination)
        return stage

    def _swap(self, stage: Path, target: Path) -> Path | None:
        backup = None
        if target.exists() or target.is_symlink():
            backup = _sibling(target, "backup")
            os.replace(target, backup)
        try:
            os.replace(stage, target)
        except BaseException:
            if backup is not None:
                os.replace(backup, target)
            raise
        return backup

"""Update detection and application through manifest diffs."""

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

from skillsync.core.exceptions import (
    NoRepositoryError,
    SkillNotFoundError,
    SkillSyncError,
    UpdateApplyError,
)
from skillsync.core.hashing import ManifestFile, hash_file
from skillsync.core.installer import collect_skill_files
from skillsync.core.manifest import ManifestStore, SkillManifest
from skillsync.core.registry import InstalledSkillEntry, SkillRegistry
from skillsync.core.scanner import DiscoveredSkill, RepositoryScanner
from skillsync.core.source import RepositorySnapshot
from skillsync.core.workspace import Scope

logger = logging.getLogger(__name__)


class SkillUpdateCheckResult(BaseModel):
    """Result of comparing an installed skill with its repository."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    has_update: bool = Field(default=False, alias="hasUpdate")
    has_repository: bool = Field(default=False, alias="hasRepository")
    has_manifest: bool = Field(default=False, alias="hasManifest")
    current_version: str | None = Field(default=None, alias="currentVersion")
    latest_version: str | None = Field(default=None, alias="latestVersion")
    changed_files: list[str] = Field(default_factory=list, alias="changedFiles")
    new_files: list[str] = Field(default_factory=list, alias="newFiles")
    removed_files: list[str] = Field(default_factory=list, alias="removedFiles")
    error: str | None = None


class UpdateSummary(BaseModel):
    """What an applied update changed."""

    name: str
    tools: list[str] = Field(default_factory=list)
    version: str | None = None
    changed_files: list[str] = Field(default_factory=list)
    new_files: list[str] = Field(default_factory=list)
    removed_files: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def message(self) -> str:
        total = len(self.changed_files) + len(self.new_files) + len(self.removed_files)
        if total == 0:
            return f"Skill '{self.name}' is already up to date"
        return (
            f"Updated '{self.name}' in {', '.join(self.tools)}: "
            f"{len(self.changed_files)} changed, {len(self.new_files)} new, "
            f"{len(self.removed_files)} removed"
        )


@dataclass
class SkillDiff:
    changed: list[str] = field(default_factory=list)
    new: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.changed or self.new or self.removed)


def diff_files(baseline: list[ManifestFile], remote: list[ManifestFile]) -> SkillDiff:
    """Classify paths by comparing hashes byte-exactly; results are sorted."""
    local = {entry.path: entry.hash for entry in baseline}
    upstream = {entry.path: entry.hash for entry in remote}
    return SkillDiff(
        changed=sorted(p for p in upstream if p in local and local[p] != upstream[p]),
        new=sorted(p for p in upstream if p not in local),
        removed=sorted(p for p in local if p not in upstream),
    )


def _hash_files(root: Path, files: list[Path]) -> list[ManifestFile]:
    entries = []
    for relative in files:
        digest = hash_file(root / relative)
        entries.append(
            ManifestFile(path=relative.as_posix(), hash=digest.hash, size=digest.size)
        )
    return entries


def _write_atomic(source: Path, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp"
    )
    os.close(fd)
    try:
        shutil.copyfile(source, tmp_name)
        os.replace(tmp_name, destination)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def _delete_and_prune(skill_dir: Path, relative: str) -> None:
    path = skill_dir / relative
    if path.is_file() or path.is_symlink():
        path.unlink()
    parent = path.parent
    while parent != skill_dir and parent.is_dir() and not any(parent.iterdir()):
        parent.rmdir()
        parent = parent.parent


class UpdateEngine:
    """Check installed skills against their repositories and apply the diff."""

    def __init__(
        self,
        scanner: RepositoryScanner,
        registry: SkillRegistry,
        manifests: ManifestStore,
    ):
        self.scanner = scanner
        self.registry = registry
        self.manifests = manifests

    def _baseline(
        self, entry: InstalledSkillEntry, scope: Scope
    ) -> tuple[SkillManifest | None, list[ManifestFile]]:
        """Manifest of the first copy that has one, else the first copy's files."""
        copies = [scope.skill_dir(tool, entry.name) for tool in entry.installed_by]
        for skill_dir in copies:
            manifest = self.manifests.read(skill_dir)
            if manifest is not None:
                return manifest, manifest.files
        for skill_dir in copies:
            if skill_dir.is_dir():
                return None, _hash_files(skill_dir, collect_skill_files(skill_dir))
        return None, []

    def _fetch_skill(
        self, entry: InstalledSkillEntry
    ) -> tuple[RepositorySnapshot, DiscoveredSkill]:
        url = entry.metadata.repository
        snapshot = self.scanner.fetcher.fetch(url)
        try:
            for skill in self.scanner.discover(snapshot):
                if skill.name == entry.name:
                    return snapshot, skill
            raise SkillNotFoundError(entry.name, where=url)
        except BaseException:
            snapshot.close()
            raise

    def check(self, name: str, scope: Scope) -> SkillUpdateCheckResult:
        """
        Compare a skill's manifest with its repository.

        Skills without a recorded repository return immediately without any
        network access. Fetch and parse failures are reported in `error`.

        Raises:
            SkillNotFoundError: If the skill is not registered
        """
        entry = self.registry.get(scope, name)
        manifest, baseline = self._baseline(entry, scope)
        result = SkillUpdateCheckResult(
            name=name,
            has_repository=entry.metadata.repository is not None,
            has_manifest=manifest is not None,
            current_version=manifest.version if manifest else entry.metadata.version,
        )
        if not result.has_repository:
            return result

        try:
            snapshot, skill = self._fetch_skill(entry)
            with snapshot:
                remote = _hash_files(skill.source_dir, collect_skill_files(skill.source_dir))
        except (SkillSyncError, OSError) as e:
            logger.warning(f"Update check for '{name}' failed: {e}")
            result.error = str(e)
            return result

        diff = diff_files(baseline, remote)
        result.latest_version = skill.descriptor.version
        result.changed_files = diff.changed
        result.new_files = diff.new
        result.removed_files = diff.removed
        result.has_update = diff.has_changes
        return result

    def apply(self, name: str, scope: Scope) -> UpdateSummary:
        """
        Bring every installed copy of a skill in line with its repository.

        The diff is recomputed here. Only changed, new and removed files are
        touched, in every tool of installed_by whose directory still exists;
        missing copies are skipped with a warning. Manifests are rewritten only
        after all copies were updated. enabled and installed_by are kept.

        Raises:
            SkillNotFoundError: If the skill is not registered, gone upstream or
                has no copy left on disk
            NoRepositoryError: If no repository is recorded
            FetchError: If the repository cannot be retrieved
            PathSafetyError: If the remote tree escapes the skill directory
            UpdateApplyError: If writing to a copy fails part way through
        """
        entry = self.registry.get(scope, name)
        if entry.metadata.repository is None:
            raise NoRepositoryError(name)

        _, baseline = self._baseline(entry, scope)
        snapshot, skill = self._fetch_skill(entry)
        with snapshot:
            source_dir = skill.source_dir
            remote = _hash_files(source_dir, collect_skill_files(source_dir))
            diff = diff_files(baseline, remote)
            descriptor = skill.descriptor

            applied: list[str] = []
            copies = []
            for tool in entry.installed_by:
                skill_dir = scope.skill_dir(tool, name)
                if skill_dir.is_dir():
                    copies.append((tool, skill_dir))
                else:
                    logger.warning(
                        f"Skipping '{name}' for {tool.value}: {skill_dir} is missing"
                    )
            if not copies:
                raise SkillNotFoundError(name, where="any installed tool directory")
            for tool, skill_dir in copies:
                current = None
                try:
                    for relative in [*diff.changed, *diff.new]:
                        current = relative
                        _write_atomic(source_dir / relative, skill_dir / relative)
                        applied.append(f"{tool.value}:{relative}")
                    for relative in diff.removed:
                        current = relative
                        _delete_and_prune(skill_dir, relative)
                        applied.append(f"{tool.value}:{relative}")
                except OSError as e:
                    raise UpdateApplyError(
                        name, tool.value, current or "", applied, str(e)
                    ) from e

        manifest = SkillManifest(
            name=name,
            version=descriptor.version,
            description=descriptor.description,
            repository=entry.metadata.repository,
            files=remote,
        )
        for _, skill_dir in copies:
            self.manifests.write(skill_dir, manifest)
        self.registry.update_metadata(
            scope, name, version=descriptor.version, description=descriptor.description
        )

        summary = UpdateSummary(
            name=name,
            tools=[tool.value for tool, _ in copies],
            version=descriptor.version,
            changed_files=diff.changed,
            new_files=diff.new,
            removed_files=diff.removed,
        )
        logger.info(summary.message)
        return summary

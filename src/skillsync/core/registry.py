"""Registry of installed skills, one per scope."""

import logging
import shutil
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from skillsync.core.exceptions import (
    ParseError,
    PathSafetyError,
    SkillNotFoundError,
    SkillSyncError,
)
from skillsync.core.manifest import write_json_atomic
from skillsync.core.tools import ToolId
from skillsync.core.workspace import Scope
from skillsync.utils.frontmatter import DESCRIPTOR_FILENAME, parse_descriptor

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SkillMetadata(BaseModel):
    """What a skill's author declared, plus where it came from."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    version: str | None = None
    tags: list[str] = Field(default_factory=list)
    target_tools: list[str] = Field(default_factory=list, alias="targetTools")
    repository: str | None = None
    source_id: str | None = Field(default=None, alias="sourceId")


class InstalledSkillEntry(BaseModel):
    """A skill materialized in one or more tools."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    description: str = ""
    enabled: bool = True
    installed_by: list[ToolId] = Field(default_factory=list, alias="installedBy")
    source: Literal["remote", "local"] = "remote"
    installed_at: str = Field(default_factory=_now_iso, alias="installedAt")
    metadata: SkillMetadata


class RegistryFile(BaseModel):
    """Contents of skill-registry.json."""

    version: int = 1
    skills: dict[str, InstalledSkillEntry] = Field(default_factory=dict)


@dataclass
class RemovalResult:
    name: str
    removed_tools: list[ToolId] = field(default_factory=list)
    remaining_tools: list[ToolId] = field(default_factory=list)
    fully_uninstalled: bool = False


def delete_skill_dir(skills_root: Path, name: str) -> bool:
    """
    Delete <skills_root>/<name>, refusing anything outside skills_root.

    Returns:
        True if something was deleted
    """
    target = skills_root / name
    if not target.exists() and not target.is_symlink():
        return False
    if target.parent.resolve() != skills_root.resolve() or name in {"", ".", ".."}:
        raise PathSafetyError(str(target), "refusing to delete outside the skills root")

    if target.is_symlink() or target.is_file():
        target.unlink()
    else:
        shutil.rmtree(target)
    return True


class SkillRegistry:
    """
    Durable mapping from skill name to its metadata, enabled flag and the
    tools that currently hold a copy.

    Every method takes the Scope it operates on. Listings are cached per
    registry file and the cache is dropped on every write and whenever the
    workspace resolver reports a scope change.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._listing_cache: dict[Path, list[InstalledSkillEntry]] = {}

    def invalidate(self, scope: Scope | None = None) -> None:
        with self._lock:
            if scope is None:
                self._listing_cache.clear()
            else:
                self._listing_cache.pop(scope.registry_path, None)

    def load(self, scope: Scope) -> RegistryFile:
        path = scope.registry_path
        if not path.exists():
            return RegistryFile()
        try:
            return RegistryFile.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise SkillSyncError(f"Registry {path} is unreadable: {e}") from e

    def save(self, scope: Scope, data: RegistryFile) -> None:
        with self._lock:
            write_json_atomic(
                scope.registry_path, data.model_dump_json(by_alias=True, indent=2) + "\n"
            )
            self.invalidate(scope)

    def find(self, scope: Scope, name: str) -> InstalledSkillEntry | None:
        with self._lock:
            return self.load(scope).skills.get(name)

    def get(self, scope: Scope, name: str) -> InstalledSkillEntry:
        entry = self.find(scope, name)
        if entry is None:
            raise SkillNotFoundError(name)
        return entry

    def merge_installed(
        self, scope: Scope, metadata: SkillMetadata, tools: list[ToolId]
    ) -> InstalledSkillEntry:
        """Create the entry or add tools to it, refreshing its metadata."""
        with self._lock:
            data = self.load(scope)
            entry = data.skills.get(metadata.name)
            if entry is None:
                entry = InstalledSkillEntry(
                    name=metadata.name,
                    description=metadata.description,
                    installed_by=list(tools),
                    metadata=metadata,
                )
            else:
                if metadata.source_id is None:
                    metadata = metadata.model_copy(
                        update={"source_id": entry.metadata.source_id}
                    )
                entry.description = metadata.description
                entry.metadata = metadata
                entry.installed_by += [t for t in tools if t not in entry.installed_by]
            data.skills[metadata.name] = entry
            self.save(scope, data)
            return entry

    def toggle(self, scope: Scope, name: str, enabled: bool) -> InstalledSkillEntry:
        """Flip the enabled flag; installed files are not touched."""
        with self._lock:
            data = self.load(scope)
            entry = data.skills.get(name)
            if entry is None:
                raise SkillNotFoundError(name)
            entry.enabled = enabled
            self.save(scope, data)
            return entry

    def set_repository(self, scope: Scope, name: str, url: str) -> InstalledSkillEntry:
        with self._lock:
            data = self.load(scope)
            entry = data.skills.get(name)
            if entry is None:
                raise SkillNotFoundError(name)
            entry.metadata.repository = url
            self.save(scope, data)
            return entry

    def update_metadata(
        self,
        scope: Scope,
        name: str,
        *,
        version: str | None,
        description: str,
    ) -> InstalledSkillEntry:
        with self._lock:
            data = self.load(scope)
            entry = data.skills.get(name)
            if entry is None:
                raise SkillNotFoundError(name)
            entry.metadata.version = version
            entry.metadata.description = description
            entry.description = description
            self.save(scope, data)
            return entry

    def list_installed(self, scope: Scope) -> list[InstalledSkillEntry]:
        """
        Registered skills of a scope plus unmanaged skill directories found
        under its tool roots, sorted by name.
        """
        with self._lock:
            cached = self._listing_cache.get(scope.registry_path)
            if cached is not None:
                return list(cached)

            registered = self.load(scope).skills
            local: dict[str, InstalledSkillEntry] = {}
            for tool in ToolId:
                skills_dir = scope.skills_dir(tool)
                if not skills_dir.is_dir():
                    continue
                for skill_dir in sorted(skills_dir.iterdir()):
                    name = skill_dir.name
                    if (
                        name in registered
                        or name.startswith(".")
                        or not (skill_dir / DESCRIPTOR_FILENAME).is_file()
                    ):
                        continue
                    if name in local:
                        local[name].installed_by.append(tool)
                        continue
                    local[name] = self._local_entry(skill_dir, tool)

            entries = sorted(
                [*registered.values(), *local.values()], key=lambda e: e.name
            )
            self._listing_cache[scope.registry_path] = entries
            return list(entries)

    def _local_entry(self, skill_dir: Path, tool: ToolId) -> InstalledSkillEntry:
        name = skill_dir.name
        try:
            content = (skill_dir / DESCRIPTOR_FILENAME).read_text(encoding="utf-8")
            descriptor = parse_descriptor(content, name)
            metadata = SkillMetadata(
                name=name,
                description=descriptor.description,
                version=descriptor.version,
                tags=descriptor.tags,
                target_tools=descriptor.target_tools,
            )
        except (OSError, UnicodeDecodeError, ParseError) as e:
            logger.debug(f"Unparseable local skill {skill_dir}: {e}")
            metadata = SkillMetadata(name=name)

        return InstalledSkillEntry(
            id=f"local:{name}",
            name=name,
            description=metadata.description,
            installed_by=[tool],
            source="local",
            metadata=metadata,
        )

    def remove_from_tools(
        self, scope: Scope, name: str, tools: list[ToolId]
    ) -> RemovalResult:
        """
        Delete the skill from the named tools.

        When no tool is left the entry is deleted and the result reports
        fully_uninstalled, which callers must surface.
        """
        with self._lock:
            data = self.load(scope)
            entry = data.skills.get(name)
            if entry is None:
                raise SkillNotFoundError(name)

            result = RemovalResult(name=name)
            try:
                for tool in tools:
                    if tool not in entry.installed_by:
                        continue
                    delete_skill_dir(scope.skills_dir(tool), name)
                    entry.installed_by.remove(tool)
                    result.removed_tools.append(tool)
            finally:
                # Persist the tools already deleted even when a later one fails.
                result.remaining_tools = list(entry.installed_by)
                if not entry.installed_by:
                    del data.skills[name]
                    result.fully_uninstalled = True
                    logger.info(
                        f"Skill '{name}' removed from its last tool, uninstalled"
                    )
                self.save(scope, data)
            return result

    def full_uninstall(self, scope: Scope, name: str) -> RemovalResult:
        with self._lock:
            entry = self.get(scope, name)
            return self.remove_from_tools(scope, name, list(entry.installed_by))

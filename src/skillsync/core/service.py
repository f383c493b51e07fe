"""Async operations consumed by the CLI and the HTTP API."""

import asyncio
import logging
from pathlib import Path

from pydantic import BaseModel, Field

from skillsync.core.exceptions import (
    InstallFailedError,
    PartialInstallError,
    PathSafetyError,
    SkillNotFoundError,
)
from skillsync.core.installer import Installer, InstallSummary, collect_skill_files
from skillsync.core.locks import KeyedLock, SingleFlight
from skillsync.core.marketplace import Marketplace, MarketplaceCache
from skillsync.core.registry import InstalledSkillEntry, RemovalResult, SkillRegistry
from skillsync.core.scanner import RepositoryScanner, ScannedSkillInfo
from skillsync.core.source import validate_repository_url
from skillsync.core.tools import ToolId, parse_tools
from skillsync.core.updater import SkillUpdateCheckResult, UpdateEngine, UpdateSummary
from skillsync.core.workspace import Scope, WorkspaceResolver
from skillsync.utils.frontmatter import DESCRIPTOR_FILENAME, parse_frontmatter

logger = logging.getLogger(__name__)

ScopeRoot = Path | str | None


class SkillFile(BaseModel):
    path: str
    size: int


class SkillDetail(BaseModel):
    """An installed skill with its descriptor body and file list."""

    entry: InstalledSkillEntry
    path: str
    content: str = ""
    files: list[SkillFile] = Field(default_factory=list)


class SkillService:
    """
    Entry point for every skill operation.

    Each call resolves its Scope once, up front, from scope_root (None means
    the workspace resolver's current scope) and passes it down explicitly.
    Blocking work runs in worker threads; operations that write a skill's
    directories are serialized per skill name.
    """

    def __init__(
        self,
        resolver: WorkspaceResolver,
        registry: SkillRegistry,
        scanner: RepositoryScanner,
        installer: Installer,
        updater: UpdateEngine,
        marketplace: Marketplace,
        default_tools: list[ToolId],
    ):
        self.resolver = resolver
        self.registry = registry
        self.scanner = scanner
        self.installer = installer
        self.updater = updater
        self.marketplace = marketplace
        self.default_tools = default_tools
        self._skill_locks = KeyedLock()
        self._scans = SingleFlight()

    def scope(self, scope_root: ScopeRoot = None) -> Scope:
        return self.resolver.scope_for_root(scope_root)

    def _tools(self, tools: list[ToolId | str] | None) -> list[ToolId]:
        return parse_tools(tools) if tools else list(self.default_tools)

    # ------------------------------------------------------------------
    # Repository operations
    # ------------------------------------------------------------------

    async def scan_repo_skills(
        self, url: str, scope_root: ScopeRoot = None
    ) -> list[ScannedSkillInfo]:
        scope = self.scope(scope_root)
        return await self._scans.do(
            (url, scope.registry_path),
            lambda: asyncio.to_thread(self.scanner.scan, url, scope),
        )

    def _raise_for_summary(self, summary: InstallSummary) -> InstallSummary:
        if summary.status == "partial":
            raise PartialInstallError(summary)
        if summary.status == "failed":
            raise InstallFailedError(summary)
        return summary

    async def install_skill_from_repo(
        self,
        url: str,
        skill_names: list[str],
        target_tools: list[ToolId | str] | None = None,
        scope_root: ScopeRoot = None,
    ) -> InstallSummary:
        """
        Install skills from a repository.

        Raises:
            PartialInstallError: If some skills failed
            InstallFailedError: If every skill failed
        """
        scope = self.scope(scope_root)
        tools = self._tools(target_tools)
        async with self._skill_locks.acquire(*skill_names):
            summary = await asyncio.to_thread(
                self.installer.install, url, skill_names, tools, scope
            )
        return self._raise_for_summary(summary)

    async def install_from_marketplace(
        self,
        source_id: str,
        skill_names: list[str],
        target_tools: list[ToolId | str] | None = None,
        scope_root: ScopeRoot = None,
    ) -> InstallSummary:
        scope = self.scope(scope_root)
        tools = self._tools(target_tools)
        async with self._skill_locks.acquire(*skill_names):
            summary = await asyncio.to_thread(
                self.marketplace.install, source_id, skill_names, tools, scope
            )
        return self._raise_for_summary(summary)

    # ------------------------------------------------------------------
    # Registry operations
    # ------------------------------------------------------------------

    async def list_installed_skills(
        self, scope_root: ScopeRoot = None
    ) -> list[InstalledSkillEntry]:
        scope = self.scope(scope_root)
        return await asyncio.to_thread(self.registry.list_installed, scope)

    async def toggle_skill(
        self, name: str, enabled: bool, scope_root: ScopeRoot = None
    ) -> InstalledSkillEntry:
        scope = self.scope(scope_root)
        return await asyncio.to_thread(self.registry.toggle, scope, name, enabled)

    async def uninstall_skill(
        self, name: str, scope_root: ScopeRoot = None
    ) -> RemovalResult:
        scope = self.scope(scope_root)
        async with self._skill_locks.acquire(name):
            return await asyncio.to_thread(self.registry.full_uninstall, scope, name)

    async def remove_skill_from_tools(
        self, name: str, tools: list[ToolId | str], scope_root: ScopeRoot = None
    ) -> RemovalResult:
        scope = self.scope(scope_root)
        parsed = parse_tools(tools)
        async with self._skill_locks.acquire(name):
            return await asyncio.to_thread(
                self.registry.remove_from_tools, scope, name, parsed
            )

    async def apply_skill_to_tools(
        self, name: str, tools: list[ToolId | str], scope_root: ScopeRoot = None
    ) -> InstallSummary:
        scope = self.scope(scope_root)
        parsed = parse_tools(tools)
        async with self._skill_locks.acquire(name):
            summary = await asyncio.to_thread(
                self.installer.apply_to_tools, name, parsed, scope
            )
        return self._raise_for_summary(summary)

    async def set_skill_repository(
        self, name: str, url: str, scope_root: ScopeRoot = None
    ) -> InstalledSkillEntry:
        scope = self.scope(scope_root)
        url = validate_repository_url(url)
        async with self._skill_locks.acquire(name):
            return await asyncio.to_thread(self.registry.set_repository, scope, name, url)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    async def check_skill_update(
        self, name: str, scope_root: ScopeRoot = None
    ) -> SkillUpdateCheckResult:
        scope = self.scope(scope_root)
        return await asyncio.to_thread(self.updater.check, name, scope)

    async def update_skill(self, name: str, scope_root: ScopeRoot = None) -> UpdateSummary:
        scope = self.scope(scope_root)
        async with self._skill_locks.acquire(name):
            return await asyncio.to_thread(self.updater.apply, name, scope)

    # ------------------------------------------------------------------
    # Installed files
    # ------------------------------------------------------------------

    def _installed_dir(self, name: str, scope: Scope) -> tuple[InstalledSkillEntry, Path]:
        entry = self.registry.find(scope, name)
        if entry is None:
            entry = next(
                (e for e in self.registry.list_installed(scope) if e.name == name), None
            )
        if entry is None:
            raise SkillNotFoundError(name)
        for tool in entry.installed_by:
            skill_dir = scope.skill_dir(tool, name)
            if skill_dir.is_dir():
                return entry, skill_dir
        raise SkillNotFoundError(name, where="any installed tool directory")

    def _read_file(self, name: str, relative_path: str, scope: Scope) -> str:
        _, skill_dir = self._installed_dir(name, scope)
        root = skill_dir.resolve()
        target = (skill_dir / relative_path).resolve()
        if not target.is_relative_to(root) or target == root:
            raise PathSafetyError(relative_path)
        if not target.is_file():
            raise SkillNotFoundError(f"{name}/{relative_path}", where="installed files")
        return target.read_text(encoding="utf-8", errors="replace")

    def _list_files(self, name: str, scope: Scope) -> list[SkillFile]:
        _, skill_dir = self._installed_dir(name, scope)
        return [
            SkillFile(path=relative.as_posix(), size=(skill_dir / relative).stat().st_size)
            for relative in collect_skill_files(skill_dir)
        ]

    def _detail(self, name: str, scope: Scope) -> SkillDetail:
        entry, skill_dir = self._installed_dir(name, scope)
        descriptor = skill_dir / DESCRIPTOR_FILENAME
        content = ""
        if descriptor.is_file():
            _, content = parse_frontmatter(descriptor.read_text(encoding="utf-8"))
        return SkillDetail(
            entry=entry,
            path=str(skill_dir),
            content=content.strip(),
            files=self._list_files(name, scope),
        )

    async def read_skill_file(
        self, name: str, relative_path: str, scope_root: ScopeRoot = None
    ) -> str:
        """
        Read a file of an installed skill.

        Raises:
            SkillNotFoundError: If the skill or the file does not exist
            PathSafetyError: If relative_path leaves the skill directory
        """
        scope = self.scope(scope_root)
        return await asyncio.to_thread(self._read_file, name, relative_path, scope)

    async def list_skill_files(
        self, name: str, scope_root: ScopeRoot = None
    ) -> list[SkillFile]:
        scope = self.scope(scope_root)
        return await asyncio.to_thread(self._list_files, name, scope)

    async def get_skill_detail(
        self, name: str, scope_root: ScopeRoot = None
    ) -> SkillDetail:
        scope = self.scope(scope_root)
        return await asyncio.to_thread(self._detail, name, scope)

    # ------------------------------------------------------------------
    # Marketplace
    # ------------------------------------------------------------------

    async def refresh_marketplace(
        self, source_id: str, scope_root: ScopeRoot = None
    ) -> MarketplaceCache:
        scope = self.scope(scope_root)
        return await asyncio.to_thread(self.marketplace.refresh, source_id, scope)

    async def refresh_all_marketplace(
        self, scope_root: ScopeRoot = None
    ) -> list[MarketplaceCache]:
        scope = self.scope(scope_root)
        return await asyncio.to_thread(self.marketplace.refresh_all, scope)

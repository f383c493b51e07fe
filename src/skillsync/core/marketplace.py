"""Marketplace sources: repositories users browse and install skills from."""

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from skillsync.core.exceptions import SkillSyncError, SourceNotFoundError
from skillsync.core.installer import Installer, InstallSummary
from skillsync.core.manifest import write_json_atomic
from skillsync.core.scanner import RepositoryScanner
from skillsync.core.source import validate_repository_url
from skillsync.core.tools import ToolId
from skillsync.core.workspace import Scope

logger = logging.getLogger(__name__)

BUILTIN_SOURCES: list[tuple[str, str, str, list[str]]] = [
    (
        "https://github.com/anthropics/skills",
        "Anthropic Skills",
        "Official skill collection maintained by Anthropic",
        ["official", "verified", "anthropic"],
    ),
    (
        "https://github.com/vercel-labs/agent-browser",
        "Agent Browser",
        "Browser automation for AI agents by Vercel Labs",
        ["community", "browser", "automation", "vercel"],
    ),
    (
        "https://github.com/softaworks/agent-toolkit",
        "Agent Toolkit",
        "Agent skill toolkit by Softaworks",
        ["community", "toolkit", "softaworks"],
    ),
]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MarketplaceSource(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    url: str
    enabled: bool = True
    tags: list[str] = Field(default_factory=list)
    description: str | None = None
    priority: int = 0
    last_refreshed: str | None = Field(default=None, alias="lastRefreshed")
    skill_count: int = Field(default=0, alias="skillCount")
    auto_update: bool = Field(default=True, alias="autoUpdate")
    is_custom: bool = Field(default=False, alias="isCustom")


class MarketplaceSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    auto_refresh_interval: int = Field(default=86400, alias="autoRefreshInterval")
    enable_auto_update: bool = Field(default=True, alias="enableAutoUpdate")


class MarketplaceConfig(BaseModel):
    """Contents of marketplace.json."""

    version: str = "1.0.0"
    sources: list[MarketplaceSource] = Field(default_factory=list)
    settings: MarketplaceSettings = Field(default_factory=MarketplaceSettings)


class CachedSkillInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    version: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    target_tools: list[str] = Field(default_factory=list, alias="targetTools")
    installed: bool = False
    installed_version: str | None = Field(default=None, alias="installedVersion")
    has_update: bool = Field(default=False, alias="hasUpdate")


class MarketplaceCache(BaseModel):
    """Skills of one source as of its last refresh."""

    model_config = ConfigDict(populate_by_name=True)

    source_id: str = Field(alias="sourceId")
    url: str
    scanned_at: str = Field(default_factory=_now_iso, alias="scannedAt")
    skills: list[CachedSkillInfo] = Field(default_factory=list)


class Marketplace:
    """
    Manage marketplace sources and their cached skill listings.

    Sources live in marketplace.json in the application directory; each
    refresh writes <cache_dir>/<source id>.json.
    """

    def __init__(
        self,
        path: Path,
        cache_dir: Path,
        scanner: RepositoryScanner,
        installer: Installer,
    ):
        self.path = Path(path)
        self.cache_dir = Path(cache_dir)
        self.scanner = scanner
        self.installer = installer
        self._lock = threading.RLock()

    def _read(self) -> MarketplaceConfig:
        if not self.path.exists():
            return MarketplaceConfig()
        return MarketplaceConfig.model_validate_json(self.path.read_text(encoding="utf-8"))

    def _write(self, config: MarketplaceConfig) -> None:
        write_json_atomic(self.path, config.model_dump_json(by_alias=True, indent=2) + "\n")

    def _find(self, config: MarketplaceConfig, source_id: str) -> MarketplaceSource:
        for source in config.sources:
            if source.id == source_id:
                return source
        raise SourceNotFoundError(source_id)

    def cache_path(self, source_id: str) -> Path:
        return self.cache_dir / f"{source_id}.json"

    def list_sources(self) -> list[MarketplaceSource]:
        with self._lock:
            return self._read().sources

    def get(self, source_id: str) -> MarketplaceSource:
        with self._lock:
            return self._find(self._read(), source_id)

    def add(
        self,
        name: str,
        url: str,
        tags: list[str] | None = None,
        description: str | None = None,
    ) -> MarketplaceSource:
        """
        Register a custom source.

        Raises:
            FetchError: If the URL is not a recognized Git form
            ValueError: If a source with the same URL exists
        """
        url = validate_repository_url(url)
        with self._lock:
            config = self._read()
            if any(s.url == url for s in config.sources):
                raise ValueError(f"Marketplace source already exists: {url}")
            source = MarketplaceSource(
                name=name,
                url=url,
                tags=tags or [],
                description=description,
                is_custom=True,
            )
            config.sources.append(source)
            self._write(config)
        logger.info(f"Added marketplace source {name} ({url})")
        return source

    def remove(self, source_id: str) -> None:
        with self._lock:
            config = self._read()
            self._find(config, source_id)
            config.sources = [s for s in config.sources if s.id != source_id]
            self._write(config)
            self.cache_path(source_id).unlink(missing_ok=True)
        logger.info(f"Removed marketplace source {source_id}")

    def toggle(self, source_id: str, enabled: bool) -> MarketplaceSource:
        with self._lock:
            config = self._read()
            source = self._find(config, source_id)
            source.enabled = enabled
            self._write(config)
            return source

    def update(
        self,
        source_id: str,
        name: str | None = None,
        tags: list[str] | None = None,
        description: str | None = None,
        priority: int | None = None,
    ) -> MarketplaceSource:
        with self._lock:
            config = self._read()
            source = self._find(config, source_id)
            if name is not None:
                source.name = name
            if tags is not None:
                source.tags = tags
            if description is not None:
                source.description = description
            if priority is not None:
                source.priority = priority
            self._write(config)
            return source

    def init_default_sources(self) -> list[MarketplaceSource]:
        """Add the built-in sources that are not configured yet."""
        added = []
        with self._lock:
            config = self._read()
            for url, name, description, tags in BUILTIN_SOURCES:
                if any(s.url == url for s in config.sources):
                    continue
                source = MarketplaceSource(
                    name=name, url=url, tags=tags, description=description
                )
                config.sources.append(source)
                added.append(source)
            if added:
                self._write(config)
        logger.info(f"Added {len(added)} built-in marketplace source(s)")
        return added

    def refresh(self, source_id: str, scope: Scope) -> MarketplaceCache:
        """
        Scan a source and cache its skill list.

        Raises:
            SourceNotFoundError: If the source is unknown
            FetchError: If the repository cannot be retrieved
            ParseError: If the repository holds only invalid descriptors
        """
        source = self.get(source_id)
        scanned = self.scanner.scan(source.url, scope)
        cache = MarketplaceCache(
            source_id=source_id,
            url=source.url,
            skills=[
                CachedSkillInfo(
                    name=s.name,
                    version=s.version,
                    description=s.description,
                    tags=s.tags,
                    target_tools=s.target_tools,
                    installed=s.already_installed,
                    installed_version=s.installed_version,
                    has_update=(
                        s.already_installed
                        and s.version is not None
                        and s.installed_version is not None
                        and s.version != s.installed_version
                    ),
                )
                for s in scanned
            ],
        )
        write_json_atomic(
            self.cache_path(source_id), cache.model_dump_json(by_alias=True, indent=2) + "\n"
        )

        with self._lock:
            config = self._read()
            stored = self._find(config, source_id)
            stored.last_refreshed = cache.scanned_at
            stored.skill_count = len(cache.skills)
            self._write(config)
        logger.info(f"Refreshed {source.name}: {len(cache.skills)} skill(s)")
        return cache

    def refresh_all(self, scope: Scope) -> list[MarketplaceCache]:
        """Refresh every enabled source; failures are logged and skipped."""
        caches = []
        for source in self.list_sources():
            if not source.enabled:
                continue
            try:
                caches.append(self.refresh(source.id, scope))
            except SkillSyncError as e:
                logger.warning(f"Failed to refresh {source.name}: {e}")
        return caches

    def cached_skills(self, source_id: str) -> MarketplaceCache:
        """
        Skill list from the last refresh of a source.

        Raises:
            SourceNotFoundError: If the source is unknown
            SkillSyncError: If the source was never refreshed
        """
        self.get(source_id)
        path = self.cache_path(source_id)
        if not path.exists():
            raise SkillSyncError(f"Marketplace source {source_id} has not been refreshed")
        try:
            return MarketplaceCache.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, ValidationError) as e:
            raise SkillSyncError(f"Marketplace cache {path} is unreadable: {e}") from e

    def install(
        self,
        source_id: str,
        skill_names: list[str],
        target_tools: list[ToolId | str],
        scope: Scope,
    ) -> InstallSummary:
        """Install skills from a source, recording the source on each entry."""
        source = self.get(source_id)
        return self.installer.install(
            source.url, skill_names, target_tools, scope, source_id=source_id
        )

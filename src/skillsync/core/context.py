from skillsync.core.installer import Installer
from skillsync.core.manifest import ManifestStore
from skillsync.core.marketplace import Marketplace
from skillsync.core.registry import SkillRegistry
from skillsync.core.scanner import RepositoryScanner
from skillsync.core.service import SkillService
from skillsync.core.source import GitFetcher
from skillsync.core.updater import UpdateEngine
from skillsync.core.workspace import WorkspaceResolver, WorkspaceStore
from skillsync.utils.config import Config


class SharedContext:
    """Global shared state for the application."""

    config: Config
    workspace_store: WorkspaceStore
    resolver: WorkspaceResolver
    registry: SkillRegistry
    manifests: ManifestStore
    fetcher: GitFetcher
    scanner: RepositoryScanner
    installer: Installer
    updater: UpdateEngine
    marketplace: Marketplace
    service: SkillService

    def __init__(self, config: Config):
        self.config = config
        self.workspace_store = WorkspaceStore(
            config.workspaces_path, recent_limit=config.recent_limit
        )
        self.resolver = WorkspaceResolver(
            self.workspace_store,
            home=config.home,
            state_dir=config.workspace,
            tool_paths=config.tool_paths,
        )
        self.registry = SkillRegistry()
        self.resolver.subscribe(lambda scope: self.registry.invalidate())

        self.manifests = ManifestStore()
        self.fetcher = GitFetcher(
            git_binary=config.git.binary,
            depth=config.git.depth,
            timeout=config.git.timeout,
        )
        self.scanner = RepositoryScanner(self.fetcher, self.registry)
        self.installer = Installer(self.scanner, self.registry, self.manifests)
        self.updater = UpdateEngine(self.scanner, self.registry, self.manifests)
        self.marketplace = Marketplace(
            config.marketplace_path,
            config.cache_path / "marketplace",
            self.scanner,
            self.installer,
        )
        self.service = SkillService(
            resolver=self.resolver,
            registry=self.registry,
            scanner=self.scanner,
            installer=self.installer,
            updater=self.updater,
            marketplace=self.marketplace,
            default_tools=config.default_tools,
        )

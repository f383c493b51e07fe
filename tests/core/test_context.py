"""Tests for SharedContext wiring."""

from skillsync.core.context import SharedContext
from skillsync.core.registry import SkillMetadata
from skillsync.core.tools import ToolId


class TestSharedContext:
    def test_components_share_state(self, test_context):
        assert test_context.installer.registry is test_context.registry
        assert test_context.updater.registry is test_context.registry
        assert test_context.scanner.fetcher is test_context.fetcher
        assert test_context.service.resolver is test_context.resolver

    def test_paths_follow_config(self, test_context, test_config):
        assert test_context.workspace_store.path == test_config.workspace / "workspaces.json"
        assert test_context.marketplace.path == test_config.workspace / "marketplace.json"
        assert test_context.marketplace.cache_dir == test_config.cache_path / "marketplace"
        assert test_context.resolver.global_scope().registry_path == (
            test_config.workspace / "skill-registry.json"
        )

    def test_git_settings_reach_fetcher(self, test_config):
        test_config.git.timeout = 5
        context = SharedContext(test_config)

        assert context.fetcher.timeout == 5

    def test_scope_switch_drops_cached_listings(self, test_context, global_scope, tmp_path):
        project = tmp_path / "project"
        project.mkdir()
        workspace = test_context.workspace_store.add(project)
        assert test_context.registry.list_installed(global_scope) == []
        test_context.registry.merge_installed(
            global_scope, SkillMetadata(name="x"), [ToolId.CURSOR]
        )
        test_context.registry._listing_cache[global_scope.registry_path] = []

        test_context.resolver.switch_scope(workspace.id)

        assert [e.name for e in test_context.registry.list_installed(global_scope)] == ["x"]

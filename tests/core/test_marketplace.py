"""Tests for marketplace sources and their caches."""

import json
from typing import get_type_hints

import pytest

from skillsync.core.exceptions import FetchError, SkillSyncError, SourceNotFoundError
from skillsync.core.marketplace import BUILTIN_SOURCES, Marketplace, MarketplaceSource
from skillsync.core.tools import ToolId


@pytest.fixture
def marketplace(test_context):
    return test_context.marketplace


class TestSources:
    def test_add_custom_source(self, marketplace, repo_url):
        source = marketplace.add("Local", repo_url, tags=["team"])

        assert source.is_custom is True
        assert marketplace.get(source.id).url == repo_url
        data = json.loads(marketplace.path.read_text())
        assert data["sources"][0]["isCustom"] is True

    def test_add_rejects_bad_url(self, marketplace):
        with pytest.raises(FetchError):
            marketplace.add("Bad", "not a url")

    def test_add_rejects_duplicate(self, marketplace, repo_url):
        marketplace.add("Local", repo_url)
        with pytest.raises(ValueError):
            marketplace.add("Again", repo_url)

    def test_method_annotations_resolve(self):
        hints = get_type_hints(Marketplace.init_default_sources)
        assert hints["return"] == list[MarketplaceSource]

    def test_init_defaults_once(self, marketplace):
        added = marketplace.init_default_sources()
        again = marketplace.init_default_sources()

        assert len(added) == len(BUILTIN_SOURCES)
        assert again == []
        assert all(not s.is_custom for s in marketplace.list_sources())

    def test_toggle_and_update(self, marketplace, repo_url):
        source = marketplace.add("Local", repo_url)

        marketplace.toggle(source.id, False)
        updated = marketplace.update(source.id, name="Renamed", priority=5)

        assert updated.enabled is False
        assert updated.name == "Renamed"
        assert updated.priority == 5

    def test_unknown_source(self, marketplace):
        with pytest.raises(SourceNotFoundError):
            marketplace.get("nope")
        with pytest.raises(SourceNotFoundError):
            marketplace.remove("nope")


class TestRefresh:
    def test_refresh_writes_cache(self, marketplace, global_scope, repo_url):
        source = marketplace.add("Local", repo_url)

        cache = marketplace.refresh(source.id, global_scope)

        assert sorted(s.name for s in cache.skills) == ["commit", "deploy", "review"]
        assert marketplace.cache_path(source.id).exists()
        stored = marketplace.get(source.id)
        assert stored.skill_count == 3
        assert stored.last_refreshed == cache.scanned_at

    def test_cached_skills_marks_installed(
        self, marketplace, test_context, global_scope, repo_url
    ):
        source = marketplace.add("Local", repo_url)
        test_context.installer.install(repo_url, ["review"], [ToolId.CURSOR], global_scope)
        marketplace.refresh(source.id, global_scope)

        skills = {s.name: s for s in marketplace.cached_skills(source.id).skills}

        assert skills["review"].installed is True
        assert skills["review"].installed_version == "2.1"
        assert skills["review"].has_update is False
        assert skills["commit"].installed is False

    def test_cached_before_refresh(self, marketplace, repo_url):
        source = marketplace.add("Local", repo_url)
        with pytest.raises(SkillSyncError):
            marketplace.cached_skills(source.id)

    def test_refresh_all_skips_failures(self, marketplace, global_scope, repo_url, tmp_path):
        good = marketplace.add("Local", repo_url)
        marketplace.add("Gone", (tmp_path / "gone").as_uri())
        disabled = marketplace.add("Disabled", (tmp_path / "other").as_uri())
        marketplace.toggle(disabled.id, False)

        caches = marketplace.refresh_all(global_scope)

        assert [c.source_id for c in caches] == [good.id]

    def test_remove_deletes_cache(self, marketplace, global_scope, repo_url):
        source = marketplace.add("Local", repo_url)
        marketplace.refresh(source.id, global_scope)

        marketplace.remove(source.id)

        assert not marketplace.cache_path(source.id).exists()
        assert marketplace.list_sources() == []


class TestInstall:
    def test_records_source_id(self, marketplace, test_context, global_scope, repo_url):
        source = marketplace.add("Local", repo_url)

        summary = marketplace.install(source.id, ["commit"], ["claude-code"], global_scope)

        assert summary.status == "installed"
        entry = test_context.registry.get(global_scope, "commit")
        assert entry.metadata.source_id == source.id

"""Tests for skill discovery and repository scanning."""

import pytest

from skillsync.core.exceptions import FetchError, ParseError, PathSafetyError
from skillsync.core.registry import SkillMetadata
from skillsync.core.scanner import discover_skills, validate_skill_name
from skillsync.core.tools import ToolId


class TestDiscoverSkills:
    def test_three_skills_two_plain_directories(self, skill_repo):
        """Directories without a descriptor are not skills."""
        skills = discover_skills(skill_repo)

        assert sorted(s.name for s in skills) == ["commit", "deploy", "review"]

    def test_empty_tree_returns_empty_list(self, tmp_path):
        (tmp_path / "docs").mkdir()
        assert discover_skills(tmp_path) == []

    def test_only_invalid_descriptors_raises(self, tmp_path):
        (tmp_path / "broken").mkdir()
        (tmp_path / "broken" / "SKILL.md").write_text("no frontmatter here")

        with pytest.raises(ParseError):
            discover_skills(tmp_path)

    def test_invalid_descriptor_skipped_next_to_valid_one(self, tmp_path, make_skill):
        make_skill(tmp_path, "good", "good")
        (tmp_path / "bad").mkdir()
        (tmp_path / "bad" / "SKILL.md").write_text("---\ndescription: no name\n---\n")

        assert [s.name for s in discover_skills(tmp_path)] == ["good"]

    def test_hidden_directories_skipped(self, tmp_path, make_skill):
        make_skill(tmp_path, ".github/skill", "hidden")
        make_skill(tmp_path, "visible", "visible")

        assert [s.name for s in discover_skills(tmp_path)] == ["visible"]

    def test_does_not_descend_into_skill_directory(self, tmp_path, make_skill):
        make_skill(tmp_path, "outer", "outer")
        make_skill(tmp_path, "outer/examples/inner", "inner")

        assert [s.name for s in discover_skills(tmp_path)] == ["outer"]

    def test_repository_root_can_be_a_skill(self, tmp_path, make_skill):
        make_skill(tmp_path, "", "single", files={"ref.md": "x"})

        skills = discover_skills(tmp_path)

        assert [s.name for s in skills] == ["single"]
        assert skills[0].rel_path == "."

    def test_first_duplicate_wins(self, tmp_path, make_skill):
        make_skill(tmp_path, "a/dup", "dup", version="1")
        make_skill(tmp_path, "b/dup", "dup", version="2")

        skills = discover_skills(tmp_path)

        assert len(skills) == 1
        assert skills[0].descriptor.version == "1"

    def test_unsafe_name_is_skipped(self, tmp_path, make_skill):
        make_skill(tmp_path, "evil", "../escape")
        make_skill(tmp_path, "fine", "fine")

        assert [s.name for s in discover_skills(tmp_path)] == ["fine"]

    def test_version_coerced_to_string(self, skill_repo):
        versions = {s.name: s.descriptor.version for s in discover_skills(skill_repo)}
        assert versions == {"commit": "1.0.0", "review": "2.1", "deploy": None}


class TestValidateSkillName:
    @pytest.mark.parametrize("name", ["", ".", "..", ".hidden", "a/b", "a\\b"])
    def test_rejects(self, name):
        with pytest.raises(PathSafetyError):
            validate_skill_name(name)

    def test_accepts_plain_name(self):
        assert validate_skill_name("my-skill_2") == "my-skill_2"


class TestRepositoryScanner:
    def test_scan_marks_already_installed(self, test_context, global_scope, repo_url):
        test_context.registry.merge_installed(
            global_scope,
            SkillMetadata(name="review", version="2.0", repository=repo_url),
            [ToolId.CLAUDE_CODE],
        )

        results = {r.name: r for r in test_context.scanner.scan(repo_url, global_scope)}

        assert len(results) == 3
        assert results["review"].already_installed is True
        assert results["review"].installed_version == "2.0"
        assert results["commit"].already_installed is False

    def test_already_installed_is_a_snapshot(self, test_context, global_scope, repo_url):
        """Results are not live-updated after the scan."""
        results = test_context.scanner.scan(repo_url, global_scope)
        test_context.registry.merge_installed(
            global_scope, SkillMetadata(name="commit"), [ToolId.CURSOR]
        )

        assert all(not r.already_installed for r in results)

    def test_scan_serializes_camel_case(self, test_context, global_scope, repo_url):
        result = test_context.scanner.scan(repo_url, global_scope)[0]
        data = result.model_dump(by_alias=True)
        assert "alreadyInstalled" in data

    def test_scan_unreachable_repository(self, test_context, global_scope, tmp_path):
        with pytest.raises(FetchError):
            test_context.scanner.scan((tmp_path / "nope").as_uri(), global_scope)

    def test_scan_has_no_side_effects(self, test_context, global_scope, repo_url):
        test_context.scanner.scan(repo_url, global_scope)

        assert not global_scope.registry_path.exists()
        assert test_context.registry.list_installed(global_scope) == []

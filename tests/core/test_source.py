"""Tests for repository URL validation and fetching."""

import subprocess
from unittest.mock import patch

import pytest

from skillsync.core.exceptions import FetchError
from skillsync.core.source import (
    GitFetcher,
    repo_name_from_url,
    validate_repository_url,
)


class TestValidateRepositoryUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/anthropics/skills",
            "http://git.example.com/team/skills.git",
            "ssh://git@github.com/org/repo.git",
            "git@github.com:org/repo.git",
            "file:///tmp/skills",
        ],
    )
    def test_accepts_git_forms(self, url):
        assert validate_repository_url(url) == url

    @pytest.mark.parametrize("url", ["", "   ", "ftp://host/repo", "github.com/org/repo"])
    def test_rejects_other_forms(self, url):
        with pytest.raises(FetchError):
            validate_repository_url(url)


def test_repo_name_from_url():
    assert repo_name_from_url("https://github.com/org/skills.git") == "skills"
    assert repo_name_from_url("git@github.com:org/agent-toolkit") == "agent-toolkit"


class TestGitFetcher:
    def test_file_url_copies_tree_without_git(self, skill_repo, repo_url):
        (skill_repo / ".git").mkdir()
        (skill_repo / ".git" / "HEAD").write_text("ref")

        with GitFetcher().fetch(repo_url) as snapshot:
            root = snapshot.root
            assert (root / "skills" / "commit" / "SKILL.md").exists()
            assert not (root / ".git").exists()

        assert not root.exists()

    def test_missing_local_directory_raises(self, tmp_path):
        with pytest.raises(FetchError):
            GitFetcher().fetch((tmp_path / "missing").as_uri())

    def test_clone_failure_raises_fetch_error(self):
        result = subprocess.CompletedProcess(
            args=[], returncode=128, stdout="", stderr="fatal: repository not found"
        )
        with patch("skillsync.core.source.subprocess.run", return_value=result):
            with pytest.raises(FetchError, match="repository not found"):
                GitFetcher().fetch("https://github.com/org/missing")

    def test_clone_uses_shallow_non_interactive_git(self, tmp_path):
        result = subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
        with patch("skillsync.core.source.subprocess.run", return_value=result) as run:
            snapshot = GitFetcher(depth=1).fetch("https://github.com/org/repo")
            snapshot.close()

        args = run.call_args.args[0]
        assert args[:4] == ["git", "clone", "--depth", "1"]
        assert run.call_args.kwargs["env"]["GIT_TERMINAL_PROMPT"] == "0"

    def test_missing_git_binary_raises(self):
        with patch(
            "skillsync.core.source.subprocess.run", side_effect=FileNotFoundError()
        ):
            with pytest.raises(FetchError, match="git executable not found"):
                GitFetcher(git_binary="no-such-git").fetch("https://github.com/o/r")

    def test_timeout_raises(self):
        with patch(
            "skillsync.core.source.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="git", timeout=1),
        ):
            with pytest.raises(FetchError, match="timed out"):
                GitFetcher(timeout=1).fetch("https://github.com/o/r")

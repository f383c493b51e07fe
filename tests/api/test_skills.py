"""Tests for skills API router."""

import os

from skillsync.core.registry import SkillMetadata
from skillsync.core.tools import ToolId


def _install(client, repo_url, names, tools=None):
    body = {"url": repo_url, "skill_names": names}
    if tools is not None:
        body["target_tools"] = tools
    return client.post("/skills/install", json=body)


class TestScan:
    def test_scan_lists_repository_skills(self, client, repo_url):
        """POST /skills/scan returns the repository's skills."""
        response = client.post("/skills/scan", json={"url": repo_url})

        assert response.status_code == 200
        skills = {s["name"]: s for s in response.json()}
        assert sorted(skills) == ["commit", "deploy", "review"]
        assert skills["commit"]["alreadyInstalled"] is False
        assert skills["commit"]["path"] == "skills/commit"

    def test_scan_bad_url(self, client):
        """Unrecognized URLs are a fetch error."""
        response = client.post("/skills/scan", json={"url": "not a url"})

        assert response.status_code == 502


class TestInstall:
    def test_install_returns_summary(self, client, repo_url, global_scope):
        """POST /skills/install materializes every target tool."""
        response = _install(client, repo_url, ["commit"], ["claude-code", "cursor"])

        assert response.status_code == 200
        summary = response.json()
        assert summary["status"] == "installed"
        assert summary["results"][0]["tools"] == ["claude-code", "cursor"]
        assert global_scope.skill_dir(ToolId.CURSOR, "commit").is_dir()

    def test_unknown_skill_is_404(self, client, repo_url):
        response = _install(client, repo_url, ["missing"])

        assert response.status_code == 404

    def test_unknown_tool_is_422(self, client, repo_url):
        response = _install(client, repo_url, ["commit"], ["emacs"])

        assert response.status_code == 422

    def test_partial_install_is_207(self, client, skill_repo, repo_url, tmp_path):
        """A partially failed install reports both outcomes."""
        secret = tmp_path / "secret.txt"
        secret.write_text("secret")
        os.symlink(secret, skill_repo / "skills" / "review" / "leak.txt")

        response = _install(client, repo_url, ["commit", "review"])

        assert response.status_code == 207
        summary = response.json()["summary"]
        assert summary["status"] == "partial"

    def test_failed_install_is_422(self, client, test_config, repo_url):
        test_config.home.mkdir(parents=True, exist_ok=True)
        (test_config.home / ".cursor").write_text("not a directory")

        response = _install(client, repo_url, ["commit"], ["cursor"])

        assert response.status_code == 422
        assert response.json()["summary"]["status"] == "failed"


class TestInstalledSkills:
    def test_list_and_detail(self, client, repo_url):
        """GET /skills and /skills/{name} describe installed skills."""
        _install(client, repo_url, ["commit"])

        listing = client.get("/skills").json()
        detail = client.get("/skills/commit").json()

        assert [s["name"] for s in listing] == ["commit"]
        assert listing[0]["installedBy"] == ["claude-code"]
        assert detail["entry"]["metadata"]["repository"] == repo_url
        assert [f["path"] for f in detail["files"]] == ["SKILL.md", "templates/message.txt"]

    def test_get_missing_skill(self, client):
        response = client.get("/skills/nope")

        assert response.status_code == 404

    def test_toggle(self, client, repo_url):
        _install(client, repo_url, ["commit"])

        response = client.put("/skills/commit/enabled", json={"enabled": False})

        assert response.status_code == 200
        assert response.json()["enabled"] is False

    def test_remove_and_uninstall(self, client, repo_url):
        """Removing the last tool reports the skill as uninstalled."""
        _install(client, repo_url, ["commit", "review"], ["cursor", "codex"])

        partial = client.post("/skills/commit/remove", json={"tools": ["cursor"]}).json()
        last = client.post("/skills/commit/remove", json={"tools": ["codex"]}).json()
        full = client.delete("/skills/review").json()

        assert partial["remaining_tools"] == ["codex"]
        assert partial["fully_uninstalled"] is False
        assert last["fully_uninstalled"] is True
        assert full["removed_tools"] == ["cursor", "codex"]
        assert client.get("/skills").json() == []

    def test_apply_to_tools(self, client, repo_url):
        _install(client, repo_url, ["commit"])

        response = client.post("/skills/commit/apply", json={"tools": ["droid"]})

        assert response.status_code == 200
        assert response.json()["results"][0]["tools"] == ["droid"]

    def test_read_file(self, client, repo_url):
        _install(client, repo_url, ["commit"])

        response = client.get("/skills/commit/files/templates/message.txt")

        assert response.status_code == 200
        assert response.json() == {
            "path": "templates/message.txt",
            "content": "feat: something\n",
        }

    def test_read_missing_file(self, client, repo_url):
        _install(client, repo_url, ["commit"])

        response = client.get("/skills/commit/files/missing.txt")

        assert response.status_code == 404


class TestUpdates:
    def test_check_and_apply(self, client, skill_repo, make_skill, repo_url):
        """GET reports the diff, POST applies it."""
        _install(client, repo_url, ["review"])
        make_skill(skill_repo, "skills/review", "review", version="3.0")

        check = client.get("/skills/review/update").json()
        applied = client.post("/skills/review/update").json()

        assert check["hasUpdate"] is True
        assert check["changedFiles"] == ["SKILL.md"]
        assert applied["version"] == "3.0"
        assert client.get("/skills/review/update").json()["hasUpdate"] is False

    def test_update_without_repository(self, client, test_context, global_scope):
        test_context.registry.merge_installed(
            global_scope, SkillMetadata(name="local-skill"), [ToolId.CURSOR]
        )

        response = client.post("/skills/local-skill/update")

        assert response.status_code == 400

    def test_set_repository(self, client, repo_url):
        _install(client, repo_url, ["commit"])

        response = client.put(
            "/skills/commit/repository", json={"url": "https://github.com/acme/skills"}
        )

        assert response.status_code == 200
        assert response.json()["metadata"]["repository"] == "https://github.com/acme/skills"

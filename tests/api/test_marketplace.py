"""Tests for marketplace API router."""


def _add(client, repo_url, name="Local"):
    return client.post("/marketplace", json={"name": name, "url": repo_url})


class TestSources:
    def test_add_and_list(self, client, repo_url):
        response = _add(client, repo_url)

        assert response.status_code == 201
        assert response.json()["isCustom"] is True
        assert len(client.get("/marketplace").json()) == 1

    def test_add_duplicate_is_409(self, client, repo_url):
        _add(client, repo_url)

        assert _add(client, repo_url, name="Again").status_code == 409

    def test_defaults(self, client):
        response = client.post("/marketplace/defaults")

        assert response.status_code == 200
        assert len(response.json()) == 3

    def test_toggle_update_delete(self, client, repo_url):
        source_id = _add(client, repo_url).json()["id"]

        toggled = client.put(f"/marketplace/{source_id}/enabled", json={"enabled": False})
        updated = client.patch(f"/marketplace/{source_id}", json={"name": "Team"})
        deleted = client.delete(f"/marketplace/{source_id}")

        assert toggled.json()["enabled"] is False
        assert updated.json()["name"] == "Team"
        assert deleted.status_code == 204
        assert client.get("/marketplace").json() == []

    def test_unknown_source_is_404(self, client):
        assert client.delete("/marketplace/nope").status_code == 404


class TestRefreshAndInstall:
    def test_refresh_then_browse(self, client, repo_url):
        """Skills are browsable after a refresh."""
        source_id = _add(client, repo_url).json()["id"]
        assert client.get(f"/marketplace/{source_id}/skills").status_code == 400

        refreshed = client.post(f"/marketplace/{source_id}/refresh")
        cached = client.get(f"/marketplace/{source_id}/skills")

        assert refreshed.status_code == 200
        assert cached.json()["sourceId"] == source_id
        assert sorted(s["name"] for s in cached.json()["skills"]) == [
            "commit",
            "deploy",
            "review",
        ]

    def test_refresh_all(self, client, repo_url):
        _add(client, repo_url)

        response = client.post("/marketplace/refresh")

        assert len(response.json()) == 1

    def test_install(self, client, test_context, global_scope, repo_url):
        source_id = _add(client, repo_url).json()["id"]

        response = client.post(
            f"/marketplace/{source_id}/install",
            json={"skill_names": ["deploy"], "target_tools": ["cursor"]},
        )

        assert response.status_code == 200
        entry = test_context.registry.get(global_scope, "deploy")
        assert entry.metadata.source_id == source_id

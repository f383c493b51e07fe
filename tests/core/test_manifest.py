"""Tests for the manifest sidecar."""

import json

from skillsync.core.hashing import MANIFEST_FILENAME, hash_file
from skillsync.core.manifest import ManifestStore, SkillManifest


class TestManifestStore:
    def test_read_missing_returns_none(self, tmp_path):
        assert ManifestStore().read(tmp_path) is None

    def test_read_corrupt_returns_none(self, tmp_path):
        """An unreadable manifest is treated as no manifest."""
        (tmp_path / MANIFEST_FILENAME).write_text("{not json")
        assert ManifestStore().read(tmp_path) is None

    def test_write_uses_camel_case_keys(self, tmp_path):
        store = ManifestStore()
        store.write(tmp_path, SkillManifest(name="commit", version="1.0"))

        data = json.loads((tmp_path / MANIFEST_FILENAME).read_text())
        assert set(data) == {
            "version",
            "name",
            "description",
            "repository",
            "files",
            "generatedAt",
        }
        assert data["generatedAt"].endswith("Z")

    def test_write_then_read(self, tmp_path):
        store = ManifestStore()
        store.write(
            tmp_path,
            SkillManifest(name="commit", repository="https://example.com/r.git"),
        )

        manifest = store.read(tmp_path)
        assert manifest is not None
        assert manifest.name == "commit"
        assert manifest.repository == "https://example.com/r.git"

    def test_generate_hashes_match_disk(self, tmp_path):
        (tmp_path / "SKILL.md").write_text("---\nname: x\n---\n")
        (tmp_path / "ref").mkdir()
        (tmp_path / "ref" / "notes.md").write_text("notes")

        manifest = ManifestStore().generate(tmp_path, name="x", version="1")

        for entry in manifest.files:
            digest = hash_file(tmp_path / entry.path)
            assert entry.hash == digest.hash
            assert entry.size == digest.size
        assert manifest.by_path().keys() == {"SKILL.md", "ref/notes.md"}

    def test_generate_ignores_previous_manifest(self, tmp_path):
        store = ManifestStore()
        (tmp_path / "SKILL.md").write_text("x")
        store.write(tmp_path, SkillManifest(name="x"))

        manifest = store.generate(tmp_path, name="x")
        assert [f.path for f in manifest.files] == ["SKILL.md"]

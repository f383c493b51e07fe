"""Per-skill manifest: the checkpoint update checks diff against."""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from skillsync.core.hashing import MANIFEST_FILENAME, ManifestFile, hash_tree

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    """Return current UTC time as ISO format string."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class SkillManifest(BaseModel):
    """Hashes of a skill's files at the last successful install or update."""

    model_config = ConfigDict(populate_by_name=True)

    version: str | None = None
    name: str
    description: str = ""
    repository: str | None = None
    files: list[ManifestFile] = Field(default_factory=list)
    generated_at: str = Field(default_factory=_now_iso, alias="generatedAt")

    def by_path(self) -> dict[str, ManifestFile]:
        return {entry.path: entry for entry in self.files}


def write_json_atomic(path: Path, payload: str) -> None:
    """Write text to path through a temp file and an atomic rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class ManifestStore:
    """Read and write the manifest sidecar colocated with an installed skill."""

    filename = MANIFEST_FILENAME

    def path_for(self, skill_dir: Path) -> Path:
        return skill_dir / self.filename

    def read(self, skill_dir: Path) -> SkillManifest | None:
        """Load a skill's manifest, or None if absent or unreadable."""
        manifest_path = self.path_for(skill_dir)
        if not manifest_path.exists():
            return None
        try:
            data = json.loads(manifest_path.read_text(encoding="utf-8"))
            return SkillManifest.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable manifest {manifest_path}: {e}")
            return None

    def write(self, skill_dir: Path, manifest: SkillManifest) -> Path:
        manifest_path = self.path_for(skill_dir)
        payload = manifest.model_dump_json(by_alias=True, indent=2) + "\n"
        write_json_atomic(manifest_path, payload)
        return manifest_path

    def generate(
        self,
        skill_dir: Path,
        *,
        name: str,
        version: str | None = None,
        description: str = "",
        repository: str | None = None,
    ) -> SkillManifest:
        """Hash a skill directory as it is on disk right now."""
        return SkillManifest(
            name=name,
            version=version,
            description=description,
            repository=repository,
            files=hash_tree(skill_dir),
        )

"""Content hashing for skill files."""

import hashlib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel

MANIFEST_FILENAME = ".skill-manifest.json"
IGNORED_DIRS = {".git"}
CHUNK_SIZE = 64 * 1024


class ManifestFile(BaseModel):
    """One file entry of a skill manifest."""

    path: str
    hash: str
    size: int


@dataclass(frozen=True)
class FileDigest:
    hash: str
    size: int


def hash_file(path: Path) -> FileDigest:
    """Compute the SHA-256 digest and byte size of a file."""
    digest = hashlib.sha256()
    size = 0
    with open(path, "rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            digest.update(chunk)
            size += len(chunk)
    return FileDigest(hash=digest.hexdigest(), size=size)


def is_tracked(relative: Path) -> bool:
    """Whether a path relative to a skill root belongs to the skill's content."""
    if relative.as_posix() == MANIFEST_FILENAME:
        return False
    return not any(part in IGNORED_DIRS for part in relative.parts)


def iter_skill_files(root: Path) -> list[Path]:
    """List tracked regular files under root as relative paths, sorted."""
    files = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        relative = path.relative_to(root)
        if is_tracked(relative):
            files.append(relative)
    return sorted(files, key=lambda p: p.as_posix())


def hash_tree(root: Path) -> list[ManifestFile]:
    """Hash every tracked file of a skill directory."""
    entries = []
    for relative in iter_skill_files(root):
        digest = hash_file(root / relative)
        entries.append(
            ManifestFile(path=relative.as_posix(), hash=digest.hash, size=digest.size)
        )
    return entries

"""Retrieval of remote skill repositories into local snapshots."""

import logging
import os
import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from skillsync.core.exceptions import FetchError

logger = logging.getLogger(__name__)

SCP_LIKE_URL = re.compile(r"^[\w.-]+@[\w.-]+:[\w./~-]+$")


def validate_repository_url(url: str) -> str:
    """
    Check that url is a Git-hosting form we can clone.

    Accepts https://, http://, ssh://, git@host:path and file:// URLs.

    Raises:
        FetchError: If the URL is empty or of an unrecognized form
    """
    cleaned = url.strip()
    if not cleaned:
        raise FetchError(url, "repository URL is empty")
    if SCP_LIKE_URL.match(cleaned):
        return cleaned

    parsed = urlparse(cleaned)
    if parsed.scheme in {"http", "https", "ssh"} and parsed.netloc:
        return cleaned
    if parsed.scheme == "file" and parsed.path:
        return cleaned
    raise FetchError(
        url, "URL must start with https://, http://, ssh://, git@ or file://"
    )


def repo_name_from_url(url: str) -> str:
    """Last path segment of a repository URL without the .git suffix."""
    tail = re.split(r"[/:]", url.strip().rstrip("/"))[-1]
    return tail.removesuffix(".git") or "repository"


def local_path_from_url(url: str) -> Path | None:
    """Filesystem path of a file:// URL, None for remote URLs."""
    parsed = urlparse(url)
    if parsed.scheme != "file":
        return None
    return Path(url2pathname(parsed.path))


@dataclass
class RepositorySnapshot:
    """A temporary checkout of a repository, removed on close."""

    url: str
    root: Path
    _tmp_dir: Path | None = field(default=None, repr=False)

    def close(self) -> None:
        if self._tmp_dir is not None and self._tmp_dir.exists():
            shutil.rmtree(self._tmp_dir, ignore_errors=True)
        self._tmp_dir = None

    def __enter__(self) -> "RepositorySnapshot":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class GitFetcher:
    """Shallow-clone repositories with the git command line."""

    def __init__(self, git_binary: str = "git", depth: int = 1, timeout: int = 120):
        self.git_binary = git_binary
        self.depth = depth
        self.timeout = timeout

    def fetch(self, url: str) -> RepositorySnapshot:
        """
        Retrieve the default branch of url into a temporary directory.

        Raises:
            FetchError: If the URL is invalid or the repository unreachable
        """
        url = validate_repository_url(url)
        tmp_dir = Path(tempfile.mkdtemp(prefix=f"skillsync-{repo_name_from_url(url)}-"))
        checkout = tmp_dir / "repo"
        try:
            local_path = local_path_from_url(url)
            if local_path is not None:
                self._copy_local(url, local_path, checkout)
            else:
                self._clone(url, checkout)
        except BaseException:
            shutil.rmtree(tmp_dir, ignore_errors=True)
            raise

        return RepositorySnapshot(url=url, root=checkout, _tmp_dir=tmp_dir)

    def _copy_local(self, url: str, source: Path, checkout: Path) -> None:
        if not source.is_dir():
            raise FetchError(url, f"directory not found: {source}")
        logger.info(f"Copying local repository {source}")
        try:
            shutil.copytree(
                source, checkout, symlinks=True, ignore=shutil.ignore_patterns(".git")
            )
        except OSError as e:
            raise FetchError(url, str(e)) from e

    def _clone(self, url: str, checkout: Path) -> None:
        args = [
            self.git_binary,
            "clone",
            "--depth",
            str(self.depth),
            url,
            str(checkout),
        ]
        logger.info(f"Cloning {url}")
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", "GIT_ASKPASS": "echo"}
        try:
            result = subprocess.run(
                args,
                capture_output=True,
                text=True,
                check=False,
                env=env,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise FetchError(url, f"git executable not found: {self.git_binary}") from e
        except subprocess.TimeoutExpired as e:
            raise FetchError(url, f"clone timed out after {self.timeout}s") from e

        if result.returncode != 0:
            stderr = result.stderr.strip() or result.stdout.strip()
            logger.warning(f"Clone of {url} failed: {stderr}")
            raise FetchError(url, stderr or f"git exited with {result.returncode}")

"""Fixtures for CLI tests."""

import logging
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from skillsync.cli.common import console


@pytest.fixture(autouse=True)
def restore_log_handlers():
    """Drop handlers the commands attach to the skillsync logger."""
    logger = logging.getLogger("skillsync")
    saved = list(logger.handlers)
    yield
    for handler in list(logger.handlers):
        if handler not in saved:
            logger.removeHandler(handler)
            handler.close()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep rich from wrapping long tmp paths in captured output."""
    monkeypatch.setattr(console, "width", 200)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner(env={"COLUMNS": "200"})


@pytest.fixture
def app_dir(tmp_path: Path) -> Path:
    """Application directory whose config keeps home inside tmp_path."""
    path = tmp_path / "app"
    path.mkdir()
    (path / "config.user.yaml").write_text(
        yaml.safe_dump({"home": str(tmp_path / "home")})
    )
    return path


@pytest.fixture
def home(tmp_path: Path) -> Path:
    return tmp_path / "home"

"""Tests for the workspace command group."""

import json

from skillsync.cli.main import app


def _invoke(runner, app_dir, *args):
    return runner.invoke(app, ["--workspace", str(app_dir), "workspace", *args])


def _only_id(app_dir):
    data = json.loads((app_dir / "workspaces.json").read_text())
    return data["workspaces"][0]["id"]


def test_add_switch_and_current(runner, app_dir, tmp_path):
    project = tmp_path / "project"
    project.mkdir()

    added = _invoke(runner, app_dir, "add", str(project))
    workspace_id = _only_id(app_dir)
    switched = _invoke(runner, app_dir, "switch", workspace_id)
    current = _invoke(runner, app_dir, "current")

    assert added.exit_code == 0
    assert switched.exit_code == 0
    assert "Scope: project" in current.output
    assert "claude-code:" in current.output


def test_switch_back_to_global(runner, app_dir, tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    _invoke(runner, app_dir, "add", str(project))
    _invoke(runner, app_dir, "switch", _only_id(app_dir))

    result = _invoke(runner, app_dir, "switch")

    assert "global scope" in result.output
    assert "Scope: global" in _invoke(runner, app_dir, "current").output


def test_add_missing_directory(runner, app_dir, tmp_path):
    result = _invoke(runner, app_dir, "add", str(tmp_path / "missing"))

    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_switch_unknown(runner, app_dir):
    result = _invoke(runner, app_dir, "switch", "nope")

    assert result.exit_code == 1


def test_list_and_remove(runner, app_dir, tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    _invoke(runner, app_dir, "add", str(project))
    workspace_id = _only_id(app_dir)

    listed = _invoke(runner, app_dir, "list")
    removed = _invoke(runner, app_dir, "remove", workspace_id)

    assert "project" in listed.output
    assert removed.exit_code == 0
    assert "No workspaces registered" in _invoke(runner, app_dir, "list").output


def test_init_dir(runner, app_dir, tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    _invoke(runner, app_dir, "add", str(project))

    result = _invoke(runner, app_dir, "init-dir", _only_id(app_dir), "-t", "cursor")

    assert result.exit_code == 0
    assert (project / ".cursor" / "skills").is_dir()


def test_list_recent(runner, app_dir, tmp_path):
    for name in ("alpha", "beta"):
        (tmp_path / name).mkdir()
        _invoke(runner, app_dir, "add", str(tmp_path / name))

    result = _invoke(runner, app_dir, "list", "--recent")

    assert result.exit_code == 0
    assert "alpha" in result.output
    assert "beta" in result.output

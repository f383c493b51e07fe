"""Tests for the server command."""

from unittest.mock import patch

from skillsync.cli.main import app


def test_server_runs_api_with_configured_address(runner, app_dir):
    with patch("skillsync.cli.server.uvicorn.Server") as mock_server:

        async def serve():
            return None

        mock_server.return_value.serve = serve
        result = runner.invoke(app, ["--workspace", str(app_dir), "server"])

    assert result.exit_code == 0
    assert "http://127.0.0.1:8000" in result.output
    uvicorn_config = mock_server.call_args[0][0]
    assert uvicorn_config.port == 8000

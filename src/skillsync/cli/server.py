"""Server CLI command for the HTTP API."""

import asyncio
import logging

import typer
import uvicorn

from skillsync.api import create_app
from skillsync.core.context import SharedContext
from skillsync.utils.logging import setup_logging

logger = logging.getLogger(__name__)


async def _run_api(context: SharedContext) -> None:
    """Run the HTTP API server."""
    app = create_app(context)
    config = uvicorn.Config(
        app,
        host=context.config.api.host,
        port=context.config.api.port,
    )
    server = uvicorn.Server(config)
    await server.serve()


def server_command(ctx: typer.Context) -> None:
    """Start the HTTP API server."""
    config = ctx.obj.get("config")

    # Enable console logging for server mode
    setup_logging(config, console_output=True)

    typer.echo("Starting skillsync server...")
    typer.echo(f"Application directory: {config.workspace}")
    typer.echo(f"Listening on http://{config.api.host}:{config.api.port}")
    typer.echo("Press Ctrl+C to stop")

    try:
        context = SharedContext(config)
        asyncio.run(_run_api(context))
    except KeyboardInterrupt:
        typer.echo("\nServer stopped")

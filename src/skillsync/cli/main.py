"""CLI interface for skillsync using Typer."""

from pathlib import Path

import questionary
import typer
import yaml

from skillsync.cli.common import console
from skillsync.cli.marketplace import marketplace_app
from skillsync.cli.server import server_command
from skillsync.cli.skills import skills_app
from skillsync.cli.workspace import workspace_app
from skillsync.core.tools import ToolId
from skillsync.utils.config import Config

app = typer.Typer(
    name="skillsync",
    help="skillsync: install and update skills across AI coding tools",
    no_args_is_help=True,
    add_completion=True,
)
app.add_typer(skills_app, name="skills")
app.add_typer(workspace_app, name="workspace")
app.add_typer(marketplace_app, name="marketplace")


# Global config option callback
def load_config_callback(ctx: typer.Context, workspace: str):
    """Load configuration and store it in the context."""
    workspace_path = Path(workspace).expanduser()

    try:
        cfg = Config.load(workspace_path)
        ctx.ensure_object(dict)
        ctx.obj["config"] = cfg
    except Exception as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise typer.Exit(1)
    return workspace


@app.callback()
def main(
    ctx: typer.Context,
    workspace: str = typer.Option(
        str(Path.home() / ".skillsync"),
        "--workspace",
        "-w",
        help="Path to the application directory",
        callback=load_config_callback,
    ),
) -> None:
    """
    skillsync: install and update skills across AI coding tools.

    Configuration is loaded from ~/.skillsync/ by default.
    Use --workspace to specify a custom application directory.
    """
    pass


@app.command("server")
def server(ctx: typer.Context) -> None:
    """Start the HTTP API server."""
    server_command(ctx)


@app.command()
def init(ctx: typer.Context) -> None:
    """Initialize skillsync configuration and choose default tools."""
    config: Config = ctx.obj["config"]
    config_file = config.workspace / "config.user.yaml"

    if config_file.exists():
        overwrite = questionary.confirm(
            f"{config_file} already exists. Overwrite it?", default=False
        ).ask()
        if not overwrite:
            console.print("[yellow]Keeping existing configuration.[/yellow]")
            raise typer.Exit(0)

    tools = questionary.checkbox(
        "Which tools should skills be installed into by default?",
        choices=[
            questionary.Choice(tool.value, checked=tool == ToolId.CLAUDE_CODE)
            for tool in ToolId
        ],
    ).ask()
    if not tools:
        tools = [ToolId.CLAUDE_CODE.value]

    config.workspace.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w") as f:
        yaml.safe_dump({"default_tools": tools}, f)

    console.print(f"[green]Configuration written to {config_file}[/green]")


if __name__ == "__main__":
    app()

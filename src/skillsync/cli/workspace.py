"""Workspace subcommand group for skillsync CLI."""

import typer
from rich.table import Table

from skillsync.cli.common import console, fail, get_context
from skillsync.core.exceptions import SkillSyncError
from skillsync.core.tools import parse_tool

workspace_app = typer.Typer(
    help="Manage project workspaces and the active scope",
    no_args_is_help=True,
    add_completion=True,
)


@workspace_app.command("list")
def list_workspaces(
    ctx: typer.Context,
    recent: bool = typer.Option(
        False, "--recent", help="Only the most recently opened workspaces"
    ),
) -> None:
    """List registered workspaces; the current one is marked."""
    store = get_context(ctx).workspace_store
    current = store.current_id()
    workspaces = store.recent() if recent else store.list_workspaces()
    if not workspaces:
        console.print("[yellow]No workspaces registered.[/yellow]")
        return

    table = Table()
    table.add_column("", width=1)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Path")
    table.add_column("Skills", justify="right")
    for workspace in workspaces:
        table.add_row(
            "*" if workspace.id == current else "",
            workspace.id,
            workspace.name,
            workspace.path,
            str(workspace.skill_count),
        )
    console.print(table)


@workspace_app.command()
def add(ctx: typer.Context, path: str = typer.Argument(..., help="Project directory")) -> None:
    """Register a project directory as a workspace."""
    try:
        workspace = get_context(ctx).workspace_store.add(path)
    except (SkillSyncError, ValueError) as e:
        fail(str(e))
    console.print(f"[green]Added workspace {workspace.name} ({workspace.id})[/green]")


@workspace_app.command()
def remove(ctx: typer.Context, workspace_id: str = typer.Argument(...)) -> None:
    """Forget a workspace; its files are left alone."""
    context = get_context(ctx)
    try:
        was_current = context.workspace_store.current_id() == workspace_id
        context.workspace_store.remove(workspace_id)
        if was_current:
            context.resolver.switch_scope(None)
    except SkillSyncError as e:
        fail(str(e))
    console.print(f"[green]Removed workspace {workspace_id}[/green]")


@workspace_app.command()
def switch(
    ctx: typer.Context,
    workspace_id: str = typer.Argument(
        None, help="Workspace to activate; omit for the global scope"
    ),
) -> None:
    """Switch the active scope."""
    try:
        workspace = get_context(ctx).resolver.switch_scope(workspace_id)
    except SkillSyncError as e:
        fail(str(e))
    if workspace is None:
        console.print("[green]Switched to the global scope[/green]")
    else:
        console.print(f"[green]Switched to {workspace.name} ({workspace.path})[/green]")


@workspace_app.command()
def current(ctx: typer.Context) -> None:
    """Show the active scope."""
    context = get_context(ctx)
    scope = context.resolver.current_scope()
    console.print(
        typer.style(f"Scope: {scope.label}", bold=True, fg="cyan"), soft_wrap=True
    )
    for tool in context.config.default_tools:
        console.print(f"  {tool.value}: {scope.skills_dir(tool)}", soft_wrap=True)


@workspace_app.command()
def update(
    ctx: typer.Context,
    workspace_id: str = typer.Argument(...),
    name: str = typer.Option(None, "--name"),
    color: str = typer.Option(None, "--color"),
    icon: str = typer.Option(None, "--icon"),
) -> None:
    """Rename or restyle a workspace."""
    try:
        workspace = get_context(ctx).workspace_store.update(
            workspace_id, name=name, color=color, icon=icon
        )
    except SkillSyncError as e:
        fail(str(e))
    console.print(f"[green]Updated workspace {workspace.name}[/green]")


@workspace_app.command()
def refresh(ctx: typer.Context, workspace_id: str = typer.Argument(...)) -> None:
    """Recount the skills of a workspace."""
    try:
        workspace = get_context(ctx).workspace_store.refresh(workspace_id)
    except SkillSyncError as e:
        fail(str(e))
    console.print(f"{workspace.name}: {workspace.skill_count} skill(s)")


@workspace_app.command("init-dir")
def init_dir(
    ctx: typer.Context,
    workspace_id: str = typer.Argument(...),
    tool: str = typer.Option("claude-code", "--tool", "-t"),
) -> None:
    """Create a tool's skills directory inside a workspace."""
    try:
        path = get_context(ctx).workspace_store.init_skills_dir(
            workspace_id, parse_tool(tool)
        )
    except SkillSyncError as e:
        fail(str(e))
    console.print(f"[green]Created {path}[/green]")

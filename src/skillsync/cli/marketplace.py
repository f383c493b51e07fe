"""Marketplace subcommand group for skillsync CLI."""

import typer
from rich.table import Table

from skillsync.cli.common import console, fail, get_context, run
from skillsync.core.exceptions import SkillSyncError

marketplace_app = typer.Typer(
    help="Manage marketplace sources and install from them",
    no_args_is_help=True,
    add_completion=True,
)


@marketplace_app.command("list")
def list_sources(ctx: typer.Context) -> None:
    """List marketplace sources."""
    sources = get_context(ctx).marketplace.list_sources()
    if not sources:
        console.print(
            "[yellow]No sources. Run 'skillsync marketplace init-defaults'.[/yellow]"
        )
        return

    table = Table()
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("URL")
    table.add_column("Enabled")
    table.add_column("Skills", justify="right")
    table.add_column("Refreshed")
    for source in sources:
        table.add_row(
            source.id,
            source.name,
            source.url,
            "yes" if source.enabled else "no",
            str(source.skill_count),
            source.last_refreshed or "never",
        )
    console.print(table)


@marketplace_app.command()
def add(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    url: str = typer.Argument(...),
    tags: list[str] = typer.Option(None, "--tag"),
    description: str = typer.Option(None, "--description", "-d"),
) -> None:
    """Add a custom source."""
    try:
        source = get_context(ctx).marketplace.add(
            name, url, tags=tags or None, description=description
        )
    except (SkillSyncError, ValueError) as e:
        fail(str(e))
    console.print(f"[green]Added source {source.name} ({source.id})[/green]")


@marketplace_app.command()
def remove(ctx: typer.Context, source_id: str = typer.Argument(...)) -> None:
    """Remove a source and its cached skill list."""
    try:
        get_context(ctx).marketplace.remove(source_id)
    except SkillSyncError as e:
        fail(str(e))
    console.print(f"[green]Removed source {source_id}[/green]")


def _toggle(ctx: typer.Context, source_id: str, enabled: bool) -> None:
    try:
        source = get_context(ctx).marketplace.toggle(source_id, enabled)
    except SkillSyncError as e:
        fail(str(e))
    state = "Enabled" if enabled else "Disabled"
    console.print(f"[green]{state} {source.name}[/green]")


@marketplace_app.command()
def enable(ctx: typer.Context, source_id: str = typer.Argument(...)) -> None:
    """Enable a source."""
    _toggle(ctx, source_id, True)


@marketplace_app.command()
def disable(ctx: typer.Context, source_id: str = typer.Argument(...)) -> None:
    """Disable a source."""
    _toggle(ctx, source_id, False)


@marketplace_app.command()
def refresh(
    ctx: typer.Context,
    source_id: str = typer.Argument(None, help="Source to refresh; omit for all"),
) -> None:
    """Scan sources and cache their skill lists."""
    service = get_context(ctx).service
    if source_id is None:
        caches = run(service.refresh_all_marketplace())
        console.print(f"[green]Refreshed {len(caches)} source(s)[/green]")
        return
    cache = run(service.refresh_marketplace(source_id))
    console.print(f"[green]Found {len(cache.skills)} skill(s)[/green]")


@marketplace_app.command()
def skills(ctx: typer.Context, source_id: str = typer.Argument(...)) -> None:
    """Show the cached skills of a source."""
    try:
        cache = get_context(ctx).marketplace.cached_skills(source_id)
    except SkillSyncError as e:
        fail(str(e))

    table = Table(title=f"{cache.url} (scanned {cache.scanned_at})")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Installed")
    table.add_column("Description")
    for skill in cache.skills:
        installed = "update" if skill.has_update else "yes" if skill.installed else ""
        table.add_row(skill.name, skill.version or "", installed, skill.description or "")
    console.print(table)


@marketplace_app.command()
def install(
    ctx: typer.Context,
    source_id: str = typer.Argument(...),
    names: list[str] = typer.Argument(..., help="Skills to install"),
    tools: list[str] = typer.Option(None, "--tool", "-t"),
    scope_root: str = typer.Option(None, "--scope-root", "-s"),
) -> None:
    """Install skills from a marketplace source."""
    service = get_context(ctx).service
    summary = run(service.install_from_marketplace(source_id, names, tools, scope_root))
    console.print(f"[green]{summary.message}[/green]")


@marketplace_app.command("init-defaults")
def init_defaults(ctx: typer.Context) -> None:
    """Add the built-in sources."""
    added = get_context(ctx).marketplace.init_default_sources()
    console.print(f"[green]Added {len(added)} built-in source(s)[/green]")

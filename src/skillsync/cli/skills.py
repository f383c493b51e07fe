"""Skills subcommand group for skillsync CLI."""

import questionary
import typer
from rich.table import Table

from skillsync.cli.common import console, fail, get_context, run
from skillsync.core.tools import parse_tools

skills_app = typer.Typer(
    help="Scan, install, update and remove skills",
    no_args_is_help=True,
    add_completion=True,
)

ScopeOption = typer.Option(
    None,
    "--scope-root",
    "-s",
    help="Project directory to operate on (default: current scope)",
)
ToolsOption = typer.Option(
    None,
    "--tool",
    "-t",
    help="Target tool; repeat for several (default: configured default tools)",
)


@skills_app.command()
def scan(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Repository URL"),
    scope_root: str = ScopeOption,
) -> None:
    """List the skills found in a repository."""
    service = get_context(ctx).service
    skills = run(service.scan_repo_skills(url, scope_root))

    if not skills:
        console.print("[yellow]No skills found.[/yellow]")
        return

    table = Table(title=f"Skills in {url}")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Installed")
    table.add_column("Description")
    for skill in skills:
        installed = (
            f"yes ({skill.installed_version})"
            if skill.already_installed and skill.installed_version
            else "yes" if skill.already_installed else ""
        )
        table.add_row(skill.name, skill.version or "", installed, skill.description)
    console.print(table)


@skills_app.command()
def install(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Repository URL"),
    names: list[str] = typer.Argument(..., help="Skills to install"),
    tools: list[str] = ToolsOption,
    scope_root: str = ScopeOption,
) -> None:
    """Install skills from a repository into one or more tools."""
    service = get_context(ctx).service
    summary = run(service.install_skill_from_repo(url, names, tools, scope_root))
    console.print(f"[green]{summary.message}[/green]")


@skills_app.command("list")
def list_skills(
    ctx: typer.Context,
    scope_root: str = ScopeOption,
) -> None:
    """List installed skills of the current scope."""
    context = get_context(ctx)
    scope = context.service.scope(scope_root)
    entries = run(context.service.list_installed_skills(scope_root))

    console.print(typer.style(f"Scope: {scope.label}", bold=True, fg="cyan"))
    if not entries:
        console.print("[yellow]No skills installed.[/yellow]")
        return

    table = Table()
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Enabled")
    table.add_column("Tools")
    table.add_column("Source")
    for entry in entries:
        table.add_row(
            entry.name,
            entry.metadata.version or "",
            "yes" if entry.enabled else "no",
            ", ".join(tool.value for tool in entry.installed_by),
            entry.metadata.repository or entry.source,
        )
    console.print(table)


@skills_app.command()
def enable(ctx: typer.Context, name: str = typer.Argument(...)) -> None:
    """Enable a skill."""
    run(get_context(ctx).service.toggle_skill(name, True))
    console.print(f"[green]Enabled {name}[/green]")


@skills_app.command()
def disable(ctx: typer.Context, name: str = typer.Argument(...)) -> None:
    """Disable a skill; its files are left in place."""
    run(get_context(ctx).service.toggle_skill(name, False))
    console.print(f"[green]Disabled {name}[/green]")


@skills_app.command()
def uninstall(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete every installed copy of a skill."""
    if not yes and not questionary.confirm(
        f"Uninstall {name} from every tool?", default=False
    ).ask():
        raise typer.Exit(1)
    run(get_context(ctx).service.uninstall_skill(name))
    console.print(f"[green]Uninstalled {name}[/green]")


@skills_app.command()
def remove(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    tools: list[str] = typer.Option(..., "--tool", "-t", help="Tool to remove from"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Remove a skill from some tools."""
    context = get_context(ctx)
    service = context.service
    try:
        parsed = parse_tools(tools)
    except ValueError as e:
        fail(str(e))

    entry = context.registry.find(service.scope(), name)
    if entry is None:
        fail(f"Skill '{name}' not found in registry")
    remaining = [t for t in entry.installed_by if t not in parsed]
    if not remaining and not yes:
        console.print(
            f"[yellow]This removes {name} from its last tool and uninstalls it.[/yellow]"
        )
        if not questionary.confirm("Continue?", default=False).ask():
            raise typer.Exit(1)

    result = run(service.remove_skill_from_tools(name, parsed))
    removed = ", ".join(t.value for t in result.removed_tools) or "no tools"
    console.print(f"[green]Removed {name} from {removed}[/green]")
    if result.fully_uninstalled:
        console.print(f"[yellow]{name} is no longer installed anywhere.[/yellow]")


@skills_app.command()
def apply(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    tools: list[str] = typer.Option(..., "--tool", "-t", help="Tool to add"),
) -> None:
    """Copy an installed skill into more tools."""
    summary = run(get_context(ctx).service.apply_skill_to_tools(name, tools))
    console.print(f"[green]{summary.message}[/green]")


@skills_app.command()
def check(ctx: typer.Context, name: str = typer.Argument(...)) -> None:
    """Check whether a skill's repository has changes."""
    result = run(get_context(ctx).service.check_skill_update(name))

    if not result.has_repository:
        console.print(
            f"[yellow]{name} has no repository. Use 'skills set-repo' first.[/yellow]"
        )
        return
    if result.error:
        fail(f"Update check failed: {result.error}")
    if not result.has_update:
        console.print(f"[green]{name} is up to date[/green]")
        return

    console.print(
        typer.style(
            f"Update available: {result.current_version or '?'} -> "
            f"{result.latest_version or '?'}",
            bold=True,
            fg="cyan",
        )
    )
    for label, paths in (
        ("changed", result.changed_files),
        ("new", result.new_files),
        ("removed", result.removed_files),
    ):
        for path in paths:
            console.print(f"  {label:8} {path}")


@skills_app.command()
def update(ctx: typer.Context, name: str = typer.Argument(...)) -> None:
    """Apply upstream changes to every installed copy of a skill."""
    summary = run(get_context(ctx).service.update_skill(name))
    console.print(f"[green]{summary.message}[/green]")


@skills_app.command("set-repo")
def set_repo(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    url: str = typer.Argument(..., help="Repository URL"),
) -> None:
    """Record the repository a skill is updated from."""
    run(get_context(ctx).service.set_skill_repository(name, url))
    console.print(f"[green]Repository of {name} set to {url}[/green]")


@skills_app.command()
def cat(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    path: str = typer.Argument("SKILL.md", help="File path inside the skill"),
) -> None:
    """Print a file of an installed skill."""
    content = run(get_context(ctx).service.read_skill_file(name, path))
    console.print(content, markup=False, highlight=False)


@skills_app.command()
def files(ctx: typer.Context, name: str = typer.Argument(...)) -> None:
    """List the files of an installed skill."""
    for item in run(get_context(ctx).service.list_skill_files(name)):
        console.print(f"{item.size:>8}  {item.path}")

"""Helpers shared by the CLI command groups."""

import asyncio
from typing import Any, Coroutine, TypeVar

import typer
from rich.console import Console

from skillsync.core.context import SharedContext
from skillsync.core.exceptions import PartialInstallError, SkillSyncError
from skillsync.utils.logging import setup_logging

T = TypeVar("T")

console = Console()


def get_context(ctx: typer.Context) -> SharedContext:
    """Build the SharedContext from the config loaded by the main callback."""
    obj = ctx.ensure_object(dict)
    if "context" not in obj:
        config = obj["config"]
        setup_logging(config)
        obj["context"] = SharedContext(config)
    return obj["context"]


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a service coroutine, turning core errors into a red message and exit 1."""
    try:
        return asyncio.run(coro)
    except PartialInstallError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1)
    except SkillSyncError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)

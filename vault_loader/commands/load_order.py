"""Load order management commands."""

from __future__ import annotations

from typing import cast

import click
from rich.table import Table

from ..console import console
from ..paths import create_settings
from ..settings import Scope
from ..utils.error_format import escape_markup

SCOPES = ["local", "project", "global"]


@click.group(name="load-order", invoke_without_command=True)
@click.pass_context
def load_order(ctx: click.Context):
    """Manage which store paths are loaded on reload, and in what order."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@load_order.command("list")
def list_entries():
    """Show the effective load order (merged across scopes)."""
    entries = create_settings().get_load_order()

    if not entries:
        console.print("[yellow]No load order configured[/yellow]")
        console.print("\n[dim]Add one with:[/dim]")
        console.print("  vault-loader load-order add <path> [<path>...]")
        return

    table = Table(title="Load Order", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Paths", style="green")

    for index, entry in enumerate(entries, start=1):
        table.add_row(str(index), escape_markup(", ".join(entry.paths)) or "[dim](empty)[/dim]")

    console.print(table)


@load_order.command("add")
@click.argument("paths", nargs=-1, required=True)
@click.option("--scope", type=click.Choice(SCOPES), default="project", show_default=True, help="Settings scope")
def add_entry(paths: tuple[str, ...], scope: str):
    """Append an entry with one or more file/folder PATHS."""
    entry = create_settings().add_load_order_entry(list(paths), scope=cast(Scope, scope))
    console.print(f"[green]✓ Added load order entry ({scope}):[/green] {escape_markup(', '.join(entry.paths))}")


@load_order.command("clear")
@click.option("--scope", type=click.Choice(SCOPES), default="project", show_default=True, help="Settings scope")
def clear_entries(scope: str):
    """Remove the load order from one scope."""
    create_settings().clear_load_order(scope=cast(Scope, scope))
    console.print(f"[green]✓ Cleared load order ({scope})[/green]")

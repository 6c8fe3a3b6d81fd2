"""vault-loader - load, interlink and hot-reload user scripts from a content store."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any
from typing import cast

import click
from rich.table import Table

from .commands.load_order import SCOPES
from .commands.load_order import load_order as load_order_group
from .console import console
from .errors import LoaderError
from .loader import Loader
from .logging_setup import init_json_logging
from .paths import create_loader
from .paths import create_settings
from .resolution import resolve_candidates
from .settings import Scope
from .utils.error_format import escape_markup
from .utils.error_format import format_load_failure

logger = logging.getLogger(__name__)


def _render_value(value: Any) -> None:
    """Print module exports as JSON when possible, repr otherwise."""
    try:
        console.print_json(json.dumps(value))
    except (TypeError, ValueError):
        console.print(escape_markup(repr(value)))


def _loader_from(ctx: click.Context) -> Loader:
    return create_loader(ctx.obj.get("root"))


@click.group(invoke_without_command=True)
@click.version_option(package_name="vault-loader")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Content store root (default: settings store.root, then CWD)",
)
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None, help="JSONL log path")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (default: $VAULT_LOADER_LOG_LEVEL or INFO)",
)
@click.pass_context
def cli(ctx: click.Context, root: Path | None, log_file: Path | None, log_level: str | None):
    """vault-loader - user script module loader."""
    ctx.ensure_object(dict)
    ctx.obj["root"] = root
    init_json_logging(log_file, log_level)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("module_id")
@click.option("--source", "-s", default=None, help="Path of the requesting module")
@click.option("--search-path", "-p", "search_paths", multiple=True, help="Search path prefix (repeatable)")
def resolve(module_id: str, source: str | None, search_paths: tuple[str, ...]):
    """Show candidate store paths for MODULE_ID (no store access)."""
    try:
        candidates = resolve_candidates(module_id, source, search_paths)
    except LoaderError as e:
        raise click.BadParameter(str(e), param_hint="MODULE_ID") from e

    if not candidates:
        console.print("[yellow]No candidate paths[/yellow]")
        return
    for index, path in enumerate(candidates, start=1):
        console.print(f"[dim]{index}.[/dim] {escape_markup(path)}")


@cli.command()
@click.argument("module_id")
@click.option("--source", "-s", default=None, help="Path of the requesting module")
@click.option("--no-reload", is_flag=True, help="Skip the initial reload pass")
@click.pass_context
def require(ctx: click.Context, module_id: str, source: str | None, no_reload: bool):
    """Load MODULE_ID (after a reload pass) and print its exports."""
    loader = _loader_from(ctx)

    async def _run() -> Any:
        if not no_reload:
            await loader.reload()
        return await loader.require(module_id, source)

    try:
        value = asyncio.run(_run())
    except LoaderError as e:
        console.print(f"[red]{escape_markup(format_load_failure(e))}[/red]")
        ctx.exit(1)

    _render_value(value)


@cli.command()
@click.pass_context
def reload(ctx: click.Context):
    """Run one reload pass over the configured load order."""
    loader = _loader_from(ctx)
    report = asyncio.run(loader.reload())

    if not report.loaded and not report.failed:
        console.print("[yellow]Nothing to load[/yellow] [dim](see: vault-loader load-order list)[/dim]")
        return

    table = Table(title=f"Reload pass {report.pass_id}", show_header=True, header_style="bold cyan")
    table.add_column("Path", style="green")
    table.add_column("Status")
    table.add_column("Error", style="red")

    for path in report.loaded:
        table.add_row(escape_markup(path), "[green]loaded[/green]", "")
    for path in report.failed:
        error = loader.errors.get(path)
        detail = format_load_failure(error) if error else ""
        table.add_row(escape_markup(path), "[red]failed[/red]", escape_markup(detail))

    console.print(table)
    if report.failures:
        ctx.exit(1)


@cli.command("set-root")
@click.argument("root", type=click.Path(file_okay=False, path_type=Path))
@click.option("--scope", type=click.Choice(SCOPES), default="local", show_default=True, help="Settings scope")
def set_root(root: Path, scope: str):
    """Remember ROOT as the content store directory."""
    create_settings().set_store_root(str(root.expanduser().resolve()), scope=cast(Scope, scope))
    console.print(f"[green]✓ Store root set ({scope}):[/green] {escape_markup(root)}")


cli.add_command(load_order_group)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()

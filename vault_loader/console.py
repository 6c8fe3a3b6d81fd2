"""Shared Rich console instances for CLI and notification output."""

from rich.console import Console

console = Console()
error_console = Console(stderr=True)

__all__ = ["console", "error_console"]

"""User-facing notification sinks.

The loader sends at most one message per reload pass (the aggregate failure
count). Individual load errors go to the log and to the requesting caller.
"""

from __future__ import annotations

import logging
from typing import Protocol

from rich.console import Console

from .console import error_console
from .utils.error_format import escape_markup

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Fire-and-forget sink for user-facing messages."""

    def notify(self, message: str) -> None: ...


class ConsoleNotifier:
    """Prints notifications through a Rich console."""

    def __init__(self, console: Console | None = None):
        self.console = console or error_console

    def notify(self, message: str) -> None:
        self.console.print(f"[yellow]{escape_markup(message)}[/yellow]")


class RecordingNotifier:
    """Keeps notifications in memory (for embedding hosts and tests)."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        logger.debug(f"[notify] {message}")
        self.messages.append(message)


def failure_message(failures: int) -> str:
    """Aggregate message for a reload pass with ``failures`` broken modules."""
    s = "" if failures == 1 else "s"
    return f"[vault-loader] {failures} user module{s} failed to load. See the log for details."

"""CLI path policy and dependency injection helpers.

This module centralizes the CLI's choices (where the store lives, which
settings files are read, which built-ins scripts can require). The loader
itself receives everything via injection.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .events import EventBus
from .loader import Loader
from .notify import ConsoleNotifier
from .notify import Notifier
from .settings import AppSettings
from .store import FileSystemStore


def create_settings() -> AppSettings:
    """Settings with the standard local > project > global layering."""
    return AppSettings()


def resolve_store_root(root: str | Path | None = None, settings: AppSettings | None = None) -> Path:
    """Pick the store root: explicit argument, then settings, then CWD."""
    if root:
        return Path(root).expanduser()
    settings = settings or create_settings()
    if configured := settings.get_store_root():
        return Path(configured).expanduser()
    return Path.cwd()


def create_loader(
    root: str | Path | None = None,
    *,
    settings: AppSettings | None = None,
    notifier: Notifier | None = None,
    events: EventBus | None = None,
    capabilities: Mapping[str, Any] | None = None,
) -> Loader:
    """Build a loader over a directory store with the CLI's default built-ins.

    Built-in modules ``store``, ``settings`` and ``events`` are available to
    every script via ``await require("store")`` and as ``host`` attributes.
    """
    settings = settings or create_settings()
    store = FileSystemStore(resolve_store_root(root, settings))
    events = events or EventBus()
    injected = {"store": store, "settings": settings, "events": events, **(capabilities or {})}

    loader = Loader(
        store,
        load_order=settings.get_load_order,
        notifier=notifier or ConsoleNotifier(),
        events=events,
        capabilities=injected,
    )
    loader.register_module("store", lambda skip: store)
    loader.register_module("settings", lambda skip: settings)
    loader.register_module("events", lambda skip: events)
    return loader

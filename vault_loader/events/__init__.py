"""Loader lifecycle events (module loads, failures, reload passes)."""

from vault_loader.events.bus import EventBus
from vault_loader.events.schemas import LoaderEvent
from vault_loader.events.schemas import ModuleFailed
from vault_loader.events.schemas import ModuleLoaded
from vault_loader.events.schemas import ReloadFinished
from vault_loader.events.schemas import ReloadStarted

__all__ = [
    "EventBus",
    "LoaderEvent",
    "ModuleLoaded",
    "ModuleFailed",
    "ReloadStarted",
    "ReloadFinished",
]

"""Pytest configuration for vault-loader tests."""

import pytest
from vault_loader import Loader
from vault_loader import MemoryStore
from vault_loader.events import EventBus
from vault_loader.notify import RecordingNotifier


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def make_loader(notifier, bus):
    """Build a loader over an in-memory store.

    Usage:
        loader = make_loader({"lib/a.py": "module.exports = 1"}, load_order=[{"paths": ["lib"]}])
    """

    def _make(files=None, *, load_order=None, capabilities=None, **kwargs):
        store = files if isinstance(files, MemoryStore) else MemoryStore(files or {})
        order = load_order if callable(load_order) else (lambda: list(load_order or []))
        kwargs.setdefault("allow_global_modules", False)
        return Loader(
            store,
            load_order=order,
            notifier=notifier,
            events=bus,
            capabilities=capabilities,
            **kwargs,
        )

    return _make

"""Event bus for loader lifecycle events."""

import logging
from collections.abc import Callable

from vault_loader.events.schemas import LoaderEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[LoaderEvent], None]


class EventBus:
    """Simple event bus for publishing and subscribing to loader events.

    Subscribers are called synchronously. Errors in handlers are isolated
    and logged to prevent one failing handler from breaking others.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, handler: Subscriber) -> None:
        """Subscribe a handler to receive all loader events."""
        self._subscribers.append(handler)

    def unsubscribe(self, handler: Subscriber) -> None:
        """Remove a previously subscribed handler (no-op if unknown)."""
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def publish(self, event: LoaderEvent) -> None:
        """Publish an event to all subscribers.

        Errors in handlers are caught and logged to prevent cascading failures.
        """
        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in event handler {getattr(handler, '__name__', handler)!r}")

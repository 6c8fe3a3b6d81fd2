"""Tests for EventBus."""

import logging
from unittest.mock import Mock

from vault_loader.events.bus import EventBus
from vault_loader.events.schemas import ModuleFailed
from vault_loader.events.schemas import ModuleLoaded
from vault_loader.events.schemas import ReloadFinished
from vault_loader.events.schemas import ReloadStarted


class TestEventBus:
    """Test EventBus subscription and publishing."""

    def test_subscribe_single_handler(self):
        bus = EventBus()
        handler = Mock()

        bus.subscribe(handler)
        event = ModuleLoaded(path="lib/a.py")
        bus.publish(event)

        handler.assert_called_once_with(event)

    def test_publish_order_across_subscribers(self):
        bus = EventBus()
        received = []

        bus.subscribe(lambda event: received.append(("first", event.type)))
        bus.subscribe(lambda event: received.append(("second", event.type)))

        bus.publish(ReloadStarted(pass_id=1))
        bus.publish(ReloadFinished(pass_id=1))

        assert received == [
            ("first", "reload_started"),
            ("second", "reload_started"),
            ("first", "reload_finished"),
            ("second", "reload_finished"),
        ]

    def test_error_isolation_handler_exception(self, caplog):
        """Handler exceptions don't crash the bus or affect other handlers."""
        bus = EventBus()
        handler1 = Mock()
        handler3 = Mock()

        def failing_handler(event):
            raise ValueError("index refresh failed")

        bus.subscribe(handler1)
        bus.subscribe(failing_handler)
        bus.subscribe(handler3)

        event = ModuleFailed(path="lib/a.py", error="boom")
        with caplog.at_level(logging.ERROR):
            bus.publish(event)

        handler1.assert_called_once_with(event)
        handler3.assert_called_once_with(event)
        assert "failing_handler" in caplog.text

    def test_unsubscribe(self):
        bus = EventBus()
        handler = Mock()
        bus.subscribe(handler)

        bus.unsubscribe(handler)
        bus.unsubscribe(handler)
        bus.publish(ModuleLoaded(path="a.py"))

        handler.assert_not_called()


class TestEventSchemas:
    def test_reload_finished_defaults(self):
        event = ReloadFinished(pass_id=3)

        assert event.type == "reload_finished"
        assert event.loaded == []
        assert event.failed == []

    def test_serializes_to_dict(self):
        assert ModuleFailed(path="a.py", error="x").model_dump() == {
            "type": "module_failed",
            "path": "a.py",
            "error": "x",
        }

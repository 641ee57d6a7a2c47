"""Tests for the framework event system."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from commando.core.event_system import EventSystem


class TestEventSystem:
    """Test EventSystem functionality."""

    def test_event_system_creation(self):
        """Test creating an EventSystem instance."""
        event_system = EventSystem()

        assert event_system._listeners == {}
        assert event_system.get_all_events() == []

    def test_add_listener(self):
        """Test adding an event listener."""
        event_system = EventSystem()
        listener = MagicMock()
        listener.__name__ = "test_listener"

        event_system.add_listener("test_event", listener)

        assert listener in event_system._listeners["test_event"]

    def test_listen_decorator(self):
        """Test registering a listener with the decorator."""
        event_system = EventSystem()

        @event_system.listen("command_run")
        async def on_command_run(*args):
            pass

        assert event_system.get_listeners("command_run") == [on_command_run]

    def test_remove_listener(self):
        """Test removing an event listener."""
        event_system = EventSystem()
        listener = MagicMock()
        listener.__name__ = "test_listener"

        event_system.add_listener("test_event", listener)
        event_system.remove_listener("test_event", listener)

        assert listener not in event_system.get_listeners("test_event")

    def test_remove_nonexistent_listener(self):
        """Test removing a listener that doesn't exist."""
        event_system = EventSystem()
        event_system.add_listener("test_event", MagicMock(__name__="other"))

        # Should not raise an exception
        event_system.remove_listener("test_event", MagicMock(__name__="missing"))
        event_system.remove_listener("unknown_event", MagicMock(__name__="missing"))

    def test_remove_all_listeners(self):
        """Test removing all listeners for an event."""
        event_system = EventSystem()
        event_system.add_listener("test_event", MagicMock(__name__="listener1"))
        event_system.add_listener("test_event", MagicMock(__name__="listener2"))

        event_system.remove_all_listeners("test_event")

        assert event_system.get_listeners("test_event") == []

    @pytest.mark.asyncio
    async def test_emit_passes_all_arguments(self):
        """Test listeners receive every emitted argument."""
        event_system = EventSystem()
        listener = AsyncMock()
        event_system.add_listener("command_status_change", listener)

        await event_system.emit("command_status_change", 1, "command", True)

        listener.assert_called_once_with(1, "command", True)

    @pytest.mark.asyncio
    async def test_emit_sync_and_async_listeners(self):
        """Test both plain functions and coroutines are called."""
        event_system = EventSystem()
        calls = []

        def sync_listener(value):
            calls.append(("sync", value))

        async def async_listener(value):
            calls.append(("async", value))

        event_system.add_listener("test_event", sync_listener)
        event_system.add_listener("test_event", async_listener)

        await event_system.emit("test_event", 5)

        assert sorted(calls) == [("async", 5), ("sync", 5)]

    @pytest.mark.asyncio
    async def test_emit_event_no_listeners(self):
        """Test emitting an event with no listeners."""
        event_system = EventSystem()

        # Should not raise an exception
        await event_system.emit("test_event", {"test": "data"})

    @pytest.mark.asyncio
    async def test_emit_event_with_error_in_listener(self):
        """Test a failing listener doesn't stop the others."""
        event_system = EventSystem()

        def error_listener(event_data):
            raise Exception("Listener error")

        working_listener = AsyncMock()
        event_system.add_listener("test_event", error_listener)
        event_system.add_listener("test_event", working_listener)

        await event_system.emit("test_event", {"test": "data"})

        working_listener.assert_called_once()

    @pytest.mark.asyncio
    async def test_listener_can_remove_itself(self):
        """Test a listener may unsubscribe while the event is being emitted."""
        event_system = EventSystem()
        other = AsyncMock()

        async def once(value):
            event_system.remove_listener("test_event", once)

        event_system.add_listener("test_event", once)
        event_system.add_listener("test_event", other)

        await event_system.emit("test_event", 1)
        await event_system.emit("test_event", 2)

        assert other.call_count == 2
        assert event_system.get_listeners("test_event") == [other]

    @pytest.mark.asyncio
    async def test_concurrent_event_emission(self):
        """Test emitting multiple events concurrently."""
        event_system = EventSystem()
        listener = AsyncMock()
        event_system.add_listener("test_event", listener)

        await asyncio.gather(*(event_system.emit("test_event", {"index": i}) for i in range(5)))

        assert listener.call_count == 5


class TestEventMiddleware:
    """Test pre/post middleware around event emission."""

    def test_add_and_remove_middleware(self):
        event_system = EventSystem()
        middleware = MagicMock(__name__="middleware")

        event_system.add_middleware(middleware)
        assert event_system._middleware == [middleware]

        event_system.remove_middleware(middleware)
        event_system.remove_middleware(middleware)
        assert event_system._middleware == []

    @pytest.mark.asyncio
    async def test_middleware_runs_before_and_after_listeners(self):
        """Test middleware sees both phases around the listeners."""
        event_system = EventSystem()
        calls = []

        async def middleware(context, phase):
            calls.append((phase, context["event_name"], context["args"]))

        def listener(value):
            calls.append(("listener", value))

        event_system.add_middleware(middleware)
        event_system.add_listener("command_run", listener)

        await event_system.emit("command_run", 7)

        assert calls == [
            ("pre", "command_run", (7,)),
            ("listener", 7),
            ("post", "command_run", (7,)),
        ]

    @pytest.mark.asyncio
    async def test_middleware_returning_false_stops_event(self):
        event_system = EventSystem()
        listener = AsyncMock()
        event_system.add_middleware(lambda context, phase: False)
        event_system.add_listener("test_event", listener)

        await event_system.emit("test_event", 1)

        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_middleware_marking_stopped_stops_event(self):
        event_system = EventSystem()
        listener = AsyncMock()

        def middleware(context, phase):
            context["stopped"] = True

        event_system.add_middleware(middleware)
        event_system.add_listener("test_event", listener)

        await event_system.emit("test_event", 1)

        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_middleware_does_not_stop_event(self):
        """Test a middleware error is logged and the listeners still run."""
        event_system = EventSystem()
        listener = AsyncMock()

        def broken(context, phase):
            raise RuntimeError("middleware error")

        event_system.add_middleware(broken)
        event_system.add_listener("test_event", listener)

        await event_system.emit("test_event", 1)

        listener.assert_called_once_with(1)

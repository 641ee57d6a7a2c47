import asyncio
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class EventSystem:
    """
    Async event emitter.

    Middleware is called as ``middleware(event_context, phase)`` with phase
    ``"pre"`` before the listeners run and ``"post"`` after. Returning
    ``False`` (or setting ``event_context["stopped"]``) in the pre phase stops
    the event.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable]] = {}
        self._middleware: list[Callable] = []

    def add_middleware(self, middleware: Callable) -> None:
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {_name_of(middleware)}")

    def remove_middleware(self, middleware: Callable) -> None:
        if middleware in self._middleware:
            self._middleware.remove(middleware)
            logger.debug(f"Removed middleware: {_name_of(middleware)}")

    def listen(self, event_name: str) -> Callable:
        def decorator(func: Callable) -> Callable:
            self.add_listener(event_name, func)
            return func

        return decorator

    def add_listener(self, event_name: str, callback: Callable) -> None:
        self._listeners.setdefault(event_name, []).append(callback)
        logger.debug(f"Added listener for {event_name}: {_name_of(callback)}")

    def remove_listener(self, event_name: str, callback: Callable) -> None:
        if event_name in self._listeners:
            try:
                self._listeners[event_name].remove(callback)
                logger.debug(f"Removed listener for {event_name}: {_name_of(callback)}")
            except ValueError:
                logger.warning(f"Listener {_name_of(callback)} not found for {event_name}")

    def remove_all_listeners(self, event_name: str) -> None:
        if event_name in self._listeners:
            self._listeners[event_name].clear()
            logger.debug(f"Removed all listeners for {event_name}")

    async def emit(self, event_name: str, *args: Any, **kwargs: Any) -> None:
        listeners = self._listeners.get(event_name)
        if not listeners:
            return

        event_context = {
            "event_name": event_name,
            "args": args,
            "kwargs": kwargs,
            "stopped": False,
        }

        for middleware in list(self._middleware):
            try:
                result = await self._call_maybe_async(middleware, event_context, "pre")
            except Exception as e:
                logger.error(f"Error in middleware {_name_of(middleware)}: {e}")
                continue
            if result is False or event_context["stopped"]:
                logger.debug(f"Event {event_name} stopped by middleware")
                return

        # Snapshot so listeners may unsubscribe themselves while running
        listeners = list(listeners)
        results = await asyncio.gather(
            *(self._call_maybe_async(listener, *args, **kwargs) for listener in listeners),
            return_exceptions=True,
        )
        for listener, result in zip(listeners, results):
            if isinstance(result, Exception):
                logger.error(f"Error in listener {_name_of(listener)} for {event_name}: {result}")

        for middleware in list(self._middleware):
            try:
                await self._call_maybe_async(middleware, event_context, "post")
            except Exception as e:
                logger.error(f"Error in middleware {_name_of(middleware)} (post): {e}")

    async def _call_maybe_async(self, func: Callable, *args: Any, **kwargs: Any) -> Any:
        result = func(*args, **kwargs)
        if asyncio.iscoroutine(result):
            return await result
        return result

    def get_listeners(self, event_name: str) -> list[Callable]:
        return self._listeners.get(event_name, []).copy()

    def get_all_events(self) -> list[str]:
        return list(self._listeners.keys())


def _name_of(callback: Callable) -> str:
    return getattr(callback, "__name__", repr(callback))

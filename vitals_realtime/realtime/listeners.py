"""
Event name -> ordered callbacks.

Registration order is invocation order. Every callback runs isolated: an
exception is logged and the remaining callbacks still run. Callbacks that
return an awaitable are scheduled on the running loop.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional

from vitals_realtime.applib.types import RealtimeEvent

logger = logging.getLogger(__name__)

Callback = Callable[[Any], Any]
EventName = RealtimeEvent | str


def _event_key(event: EventName) -> RealtimeEvent:
    if isinstance(event, RealtimeEvent):
        return event
    try:
        return RealtimeEvent(event)
    except ValueError:
        raise ValueError(f"Unknown realtime event: {event!r}") from None


class ListenerRegistry:

    def __init__(self) -> None:
        self._listeners: Dict[RealtimeEvent, List[Callback]] = {}
        self._pending: set[asyncio.Future] = set()

    def on(self, event: EventName, callback: Callback) -> Callable[[], None]:
        """Register callback for event. Returns a function that unregisters it."""
        if not callable(callback):
            raise TypeError("callback must be callable")
        key = _event_key(event)
        self._listeners.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            self._remove(key, callback)

        return unsubscribe

    def off(self, event: EventName, callback: Optional[Callback] = None) -> None:
        """Unregister callback; without a callback, drop every listener for event."""
        key = _event_key(event)
        if callback is None:
            self._listeners.pop(key, None)
            return
        self._remove(key, callback)

    def _remove(self, key: RealtimeEvent, callback: Callback) -> None:
        callbacks = self._listeners.get(key)
        if not callbacks:
            return
        try:
            callbacks.remove(callback)
        except ValueError:
            pass

    def emit(self, event: EventName, data: Any = None) -> None:
        key = _event_key(event)
        # Snapshot: callbacks may unsubscribe themselves while running
        for callback in list(self._listeners.get(key, ())):
            try:
                result = callback(data)
            except Exception:
                logger.exception("Error in %s callback", key.value)
                continue
            if inspect.isawaitable(result):
                self._schedule(key, result)

    def _schedule(self, key: RealtimeEvent, awaitable: Any) -> None:
        try:
            future = asyncio.ensure_future(awaitable)
        except RuntimeError:
            # No running loop to put it on
            logger.error("Cannot schedule async %s callback outside an event loop", key.value)
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        self._pending.add(future)

        def _done(f: asyncio.Future) -> None:
            self._pending.discard(f)
            if f.cancelled():
                return
            exc = f.exception()
            if exc is not None:
                logger.error("Error in %s callback", key.value, exc_info=exc)

        future.add_done_callback(_done)

    def count(self, event: EventName) -> int:
        return len(self._listeners.get(_event_key(event), ()))

    def clear(self) -> None:
        self._listeners.clear()

"""
Shared shape of the transport adapters.

Each adapter owns at most one `Connection` at a time and a listener registry
that callers subscribe to with `on`/`off`. Transport callbacks are bound to
the `Connection` they were created for; `_is_current` lets them drop events
that arrive after that connection was torn down.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from vitals_realtime.applib.config import Settings, config
from vitals_realtime.applib.models.connection import Connection
from vitals_realtime.applib.types import ConnectionState, TransportKind
from .backoff import BackoffPolicy
from .listeners import Callback, EventName, ListenerRegistry

logger = logging.getLogger(__name__)


class BaseTransport:
    kind: TransportKind

    def __init__(self, settings: Optional[Settings] = None, policy: Optional[BackoffPolicy] = None):
        self.settings: Settings = settings or config
        self.policy: BackoffPolicy = policy or BackoffPolicy()
        self._listeners = ListenerRegistry()
        self._connection: Optional[Connection] = None
        self._task: Optional[asyncio.Task] = None
        self._connected: bool = False

    # --- listeners -------------------------------------------------------

    def on(self, event: EventName, callback: Callback) -> Callable[[], None]:
        return self._listeners.on(event, callback)

    def off(self, event: EventName, callback: Optional[Callback] = None) -> None:
        self._listeners.off(event, callback)

    def emit(self, event: EventName, data: Any = None) -> None:
        self._listeners.emit(event, data)

    # --- state -----------------------------------------------------------

    @property
    def connection(self) -> Optional[Connection]:
        return self._connection

    def get_connection_status(self) -> bool:
        return self._connected

    def _is_current(self, conn: Connection) -> bool:
        return conn is self._connection

    # --- lifecycle -------------------------------------------------------

    async def connect(self, practice_id: int | str, patient_id: Optional[int | str] = None) -> None:
        raise NotImplementedError

    async def disconnect(self) -> None:
        """Close the connection if any and drop all listeners. Safe to call repeatedly."""
        await self._teardown()
        self._listeners.clear()

    async def _teardown(self) -> None:
        """Release the current connection; listeners are kept."""
        conn = self._connection
        self._connection = None
        self._connected = False

        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                # Only swallow the cancellation we asked for
                current = asyncio.current_task()
                if current is not None and current.cancelling():
                    raise

        await self._close_transport()

        if conn is not None:
            logger.info("Disconnecting %s transport...", self.kind.value)
            conn.state = ConnectionState.DISCONNECTED

    async def _close_transport(self) -> None:
        pass

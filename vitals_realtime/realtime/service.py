"""
Unified realtime vitals facade.

Screens talk to this object only: connect with a practice (and optionally a
patient), subscribe to events, disconnect on unmount. Which transport is
active stays hidden behind it.

Events re-emitted unchanged from the active transport:
    connected, disconnected, vital-reading-update, patient-vital-update, error

Construct one per owner (screen / navigator) and tear it down with
`disconnect()` or `async with`.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, Optional

from vitals_realtime.applib.config import Settings, config
from vitals_realtime.applib.models.connection import ConnectionInfo, ConnectOptions
from vitals_realtime.applib.types import RealtimeEvent, TransportKind
from .base import BaseTransport
from .listeners import Callback, EventName, ListenerRegistry
from .websocket import WebSocketTransport

logger = logging.getLogger(__name__)

FORWARDED_EVENTS = (
    RealtimeEvent.CONNECTED,
    RealtimeEvent.DISCONNECTED,
    RealtimeEvent.VITAL_READING_UPDATE,
    RealtimeEvent.PATIENT_VITAL_UPDATE,
    RealtimeEvent.ERROR,
)


class VitalsRealtimeService:

    def __init__(
        self,
        websocket: Optional[WebSocketTransport] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings: Settings = settings or config
        self.websocket: WebSocketTransport = websocket or WebSocketTransport(settings=self.settings)
        self._listeners = ListenerRegistry()
        self._active: Optional[BaseTransport] = None
        self.method: TransportKind = TransportKind.WEBSOCKET
        self.current_practice_id: Optional[int | str] = None
        self.current_patient_id: Optional[int | str] = None

    async def __aenter__(self) -> "VitalsRealtimeService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    async def connect(
        self,
        practice_id: Optional[int | str] = None,
        patient_id: Optional[int | str] = None,
        method: TransportKind | str = TransportKind.WEBSOCKET,
    ) -> None:
        """
        Connect to live vitals for a practice, or a single patient of it.

        Returns once the connection has been started; watch the `connected`
        and `error` events for the outcome.
        """
        options = ConnectOptions(practice_id=practice_id, patient_id=patient_id, method=method)
        if options.practice_id is None:
            logger.error("Practice ID is required")
            return

        kind = self._resolve_method(options.method)

        # One active connection per facade
        if self._active is not None:
            await self._active.disconnect()

        self.current_practice_id = options.practice_id
        self.current_patient_id = options.patient_id
        self.method = kind
        self._active = self.websocket

        await self._active.connect(options.practice_id, options.patient_id)
        self._wire(self._active)

    @staticmethod
    def _resolve_method(method: TransportKind | str) -> TransportKind:
        if isinstance(method, TransportKind):
            requested = method
        else:
            try:
                requested = TransportKind(str(method).lower())
            except ValueError:
                requested = None

        if requested is not TransportKind.WEBSOCKET:
            # SSE needs a streaming HTTP stack the mobile client does not ship
            logger.warning(
                "Transport %r is not supported for vitals realtime. Using WebSocket instead.", method
            )
        return TransportKind.WEBSOCKET

    def _wire(self, transport: BaseTransport) -> None:
        for event in FORWARDED_EVENTS:
            transport.on(event, partial(self._forward, event))

    def _forward(self, event: RealtimeEvent, data: Any) -> None:
        if event is RealtimeEvent.ERROR:
            logger.error("Vitals realtime error: %s", data)
        else:
            logger.info("Vitals realtime %s: %s", event.value, data)
        self.emit(event, data)

    async def disconnect(self) -> None:
        if self._active is not None:
            await self._active.disconnect()
            self._active = None

        self.current_practice_id = None
        self.current_patient_id = None
        self._listeners.clear()

    def on(self, event: EventName, callback: Callback) -> Callable[[], None]:
        return self._listeners.on(event, callback)

    def off(self, event: EventName, callback: Optional[Callback] = None) -> None:
        self._listeners.off(event, callback)

    def emit(self, event: EventName, data: Any = None) -> None:
        self._listeners.emit(event, data)

    def is_connected(self) -> bool:
        if self._active is None:
            return False
        return self._active.get_connection_status()

    def get_current_connection(self) -> ConnectionInfo:
        return ConnectionInfo(
            practice_id=self.current_practice_id,
            patient_id=self.current_patient_id,
            method=self.method,
        )

"""
Socket.IO transport for realtime vital readings.

- Connects to the API host (API base URL without /api), websocket first, polling fallback.
- On connect, joins `practice-<id>-patient-<id>` when a patient is given, else `practice-<id>`.
- Re-emits server events to local listeners:
    connect            -> connected {socketId}
    disconnect         -> disconnected {reason}
    connect_error      -> error {error, reconnectAttempts}
    error              -> error {error}
    joined-room, vital-reading-update, patient-vital-update -> same name, payload untouched

Retries are left to the Socket.IO client's reconnection settings (taken from the
BackoffPolicy); this adapter only counts failed attempts.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from vitals_realtime.applib.config import Settings
from vitals_realtime.applib.helpers import build_cookie_header, redact_string, socket_base_url
from vitals_realtime.applib.models.connection import Connection
from vitals_realtime.applib.types import ConnectionState, RealtimeEvent, TransportKind
from .backoff import BackoffPolicy
from .base import BaseTransport

logger = logging.getLogger(__name__)

# Server events relayed to listeners verbatim
RELAYED_EVENTS = (
    RealtimeEvent.JOINED_ROOM,
    RealtimeEvent.VITAL_READING_UPDATE,
    RealtimeEvent.PATIENT_VITAL_UPDATE,
)


def _error_message(data: Any) -> str:
    if isinstance(data, dict):
        return str(data.get("message") or data)
    return str(data)


class WebSocketTransport(BaseTransport):
    kind = TransportKind.WEBSOCKET

    TRANSPORTS = ["websocket", "polling"]

    def __init__(
        self,
        settings: Optional[Settings] = None,
        policy: Optional[BackoffPolicy] = None,
        client_factory: Optional[Callable[..., socketio.AsyncClient]] = None,
    ):
        super().__init__(settings=settings, policy=policy or BackoffPolicy.for_websocket(settings))
        self._client_factory = client_factory or socketio.AsyncClient
        self._sio: Optional[socketio.AsyncClient] = None

    @property
    def url(self) -> str:
        return socket_base_url(self.settings.API_BASE_URL)

    async def connect(self, practice_id: int | str, patient_id: Optional[int | str] = None) -> None:
        """
        Start a connection and return without waiting for it.

        Any existing connection is torn down first. Completion is reported
        through the `connected` / `error` events.
        """
        await self._teardown()

        conn = Connection(
            kind=self.kind,
            practice_id=practice_id,
            patient_id=patient_id,
            state=ConnectionState.CONNECTING,
        )
        self._connection = conn
        self._sio = sio = self._new_client()
        self._register_handlers(sio, conn)

        logger.info("Connecting to WebSocket: %s", self.url)
        self._task = asyncio.create_task(self._run(sio, conn))

    def _new_client(self) -> socketio.AsyncClient:
        return self._client_factory(
            reconnection=True,
            reconnection_attempts=self.policy.max_attempts,
            reconnection_delay=self.policy.initial_delay,
            reconnection_delay_max=self.policy.max_delay,
            randomization_factor=self.policy.jitter,
        )

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        cookie = build_cookie_header(self.settings.SESSION_COOKIE_NAME, self.settings.SESSION_ID)
        if cookie:
            logger.debug("Sending session cookie %s", redact_string(self.settings.SESSION_ID))
            headers["Cookie"] = cookie
        return headers

    async def _run(self, sio: socketio.AsyncClient, conn: Connection) -> None:
        try:
            # retry=True applies the client's reconnection policy to the first attempt too
            await sio.connect(
                self.url,
                headers=self._headers(),
                transports=self.TRANSPORTS,
                wait_timeout=self.settings.SOCKET_CONNECT_TIMEOUT,
                retry=True,
            )
        except SocketConnectionError as e:
            if not self._is_current(conn):
                return
            conn.state = ConnectionState.ERROR
            self._connected = False
            logger.error(
                "WebSocket connection failed after %d attempts: %s", conn.reconnect_attempts, e
            )
        except Exception as e:
            # Invalid URL, bad handshake data; the client does not retry these
            if not self._is_current(conn):
                return
            conn.state = ConnectionState.ERROR
            self._connected = False
            logger.exception("WebSocket connection could not be started")
            self.emit(RealtimeEvent.ERROR, {"error": str(e) or e.__class__.__name__})

    def _register_handlers(self, sio: socketio.AsyncClient, conn: Connection) -> None:

        async def on_connect(*args: Any) -> None:
            if not self._is_current(conn):
                return
            self._connected = True
            conn.state = ConnectionState.CONNECTED
            conn.reconnect_attempts = 0
            logger.info("WebSocket connected: %s", sio.sid)
            await self._join_rooms(conn)
            self.emit(RealtimeEvent.CONNECTED, {"socketId": sio.sid})

        async def on_disconnect(*args: Any) -> None:
            if not self._is_current(conn):
                return
            # python-socketio >= 5.12 passes the reason; older versions pass nothing
            reason = args[0] if args else None
            logger.info("WebSocket disconnected: %s", reason)
            self._connected = False
            conn.state = ConnectionState.DISCONNECTED
            self.emit(RealtimeEvent.DISCONNECTED, {"reason": reason})

        async def on_connect_error(data: Any = None) -> None:
            if not self._is_current(conn):
                return
            conn.reconnect_attempts += 1
            conn.state = ConnectionState.ERROR
            message = _error_message(data)
            logger.error("WebSocket connection error: %s", message)
            self.emit(
                RealtimeEvent.ERROR,
                {"error": message, "reconnectAttempts": conn.reconnect_attempts},
            )

        async def on_error(data: Any = None) -> None:
            if not self._is_current(conn):
                return
            logger.error("WebSocket error: %s", data)
            self.emit(RealtimeEvent.ERROR, {"error": data})

        sio.on("connect", on_connect)
        sio.on("disconnect", on_disconnect)
        sio.on("connect_error", on_connect_error)
        sio.on("error", on_error)
        for event in RELAYED_EVENTS:
            sio.on(event.value, self._relay(event, conn))

    def _relay(self, event: RealtimeEvent, conn: Connection):
        async def handler(data: Any = None) -> None:
            if not self._is_current(conn):
                return
            if event is RealtimeEvent.JOINED_ROOM:
                logger.info("Joined room: %s", data)
            else:
                logger.debug("%s received: %s", event.value, data)
            self.emit(event, data)

        return handler

    async def _join_rooms(self, conn: Connection) -> None:
        if conn.practice_id is None:
            return
        if conn.patient_id is not None:
            await self.join_patient_room(conn.practice_id, conn.patient_id)
        else:
            await self.join_practice_room(conn.practice_id)

    async def join_patient_room(self, practice_id: int | str, patient_id: int | str) -> None:
        if self._sio is None or not self._connected:
            logger.warning("Cannot join room: WebSocket not connected")
            return
        logger.info("Joining patient room: practice-%s-patient-%s", practice_id, patient_id)
        await self._sio.emit("join-patient-room", {"practiceId": practice_id, "patientId": patient_id})

    async def join_practice_room(self, practice_id: int | str) -> None:
        if self._sio is None or not self._connected:
            logger.warning("Cannot join room: WebSocket not connected")
            return
        logger.info("Joining practice room: practice-%s", practice_id)
        # The server expects the bare practice id for this event
        await self._sio.emit("join-practice-room", practice_id)

    async def _close_transport(self) -> None:
        sio, self._sio = self._sio, None
        if sio is not None:
            # shutdown() also stops a reconnection loop in progress
            await sio.shutdown()

"""
Server-Sent Events transport for realtime vital readings.

Streams GET {API_BASE_URL}/vitals/sse/<practice>/<patient> (or
/vitals/sse/practice/<practice>) with aiohttp. Every frame carries a JSON
object whose `type` selects the local event:

    connected                                   -> connected
    vital-reading-update, patient-vital-update  -> vital-reading-update
    heartbeat                                   -> (keep-alive, not emitted)
    error                                       -> error
    anything else                               -> message

Unlike the Socket.IO transport, reconnection is handled here: after a failed
or closed stream the adapter waits `policy.delay_for(attempt)` and tries
again, until the policy runs out of attempts.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Callable, Dict, Optional

import aiohttp

from vitals_realtime.applib.config import Settings
from vitals_realtime.applib.helpers import build_cookie_header, redact_string, sse_url
from vitals_realtime.applib.models.connection import Connection
from vitals_realtime.applib.types import ConnectionState, RealtimeEvent, TransportKind
from .backoff import BackoffPolicy
from .base import BaseTransport

logger = logging.getLogger(__name__)

MAX_ATTEMPTS_MESSAGE = "Max reconnect attempts reached"

# `type` field -> local event; None means "do not emit"
MESSAGE_TYPES: Dict[str, Optional[RealtimeEvent]] = {
    "connected": RealtimeEvent.CONNECTED,
    "vital-reading-update": RealtimeEvent.VITAL_READING_UPDATE,
    "patient-vital-update": RealtimeEvent.VITAL_READING_UPDATE,
    "heartbeat": None,
    "error": RealtimeEvent.ERROR,
}


async def iter_sse_data(lines: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """
    Yield the data of each complete event in an SSE byte stream.

    Multiple `data:` lines are joined with newlines; comments and the
    `event`/`id`/`retry` fields are ignored. A trailing event without its
    terminating blank line is dropped.
    """
    data_lines: list[str] = []
    async for raw in lines:
        line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
        if not line:
            if data_lines:
                yield "\n".join(data_lines)
                data_lines = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "data":
            data_lines.append(value)


class SSETransport(BaseTransport):
    kind = TransportKind.SSE

    def __init__(
        self,
        settings: Optional[Settings] = None,
        policy: Optional[BackoffPolicy] = None,
        session_factory: Optional[Callable[[], aiohttp.ClientSession]] = None,
    ):
        super().__init__(settings=settings, policy=policy or BackoffPolicy.for_sse(settings))
        self._session_factory = session_factory or aiohttp.ClientSession

    def url_for(self, practice_id: int | str, patient_id: Optional[int | str] = None) -> str:
        return sse_url(self.settings.API_BASE_URL, practice_id, patient_id)

    async def connect(self, practice_id: Optional[int | str] = None, patient_id: Optional[int | str] = None) -> None:
        """
        Start streaming and return without waiting for the stream to open.

        Any existing connection (and a pending reconnect) is torn down first.
        """
        if practice_id is None or practice_id == "":
            logger.error("Practice ID is required for SSE connection")
            return

        await self._teardown()

        conn = Connection(
            kind=self.kind,
            practice_id=practice_id,
            patient_id=patient_id,
            state=ConnectionState.CONNECTING,
        )
        self._connection = conn
        url = self.url_for(practice_id, patient_id)
        logger.info("Connecting to SSE: %s", url)
        self._task = asyncio.create_task(self._run(conn, url))

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        cookie = build_cookie_header(self.settings.SESSION_COOKIE_NAME, self.settings.SESSION_ID)
        if cookie:
            logger.debug("Sending session cookie %s", redact_string(self.settings.SESSION_ID))
            headers["Cookie"] = cookie
        return headers

    async def _run(self, conn: Connection, url: str) -> None:
        """Stream, and on failure reconnect with backoff until the policy gives up."""
        async with self._session_factory() as session:
            while self._is_current(conn):
                conn.state = ConnectionState.CONNECTING
                try:
                    await self._stream(session, conn, url)
                    error = "SSE stream closed by server"
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    error = str(e) or e.__class__.__name__
                except Exception as e:
                    # e.g. aiohttp.http_exceptions.LineTooLong, not a ClientError
                    logger.exception("Unexpected SSE stream failure")
                    error = str(e) or e.__class__.__name__

                if not self._is_current(conn):
                    return

                self._connected = False
                conn.reconnect_attempts += 1
                attempts = conn.reconnect_attempts
                logger.error("SSE error: %s", error)
                self.emit(RealtimeEvent.ERROR, {"error": error, "reconnectAttempts": attempts})

                delay = self.policy.delay_for(attempts)
                if delay is None:
                    logger.error("%s (%d)", MAX_ATTEMPTS_MESSAGE, attempts)
                    conn.state = ConnectionState.ERROR
                    self.emit(
                        RealtimeEvent.ERROR,
                        {"error": MAX_ATTEMPTS_MESSAGE, "reconnectAttempts": attempts},
                    )
                    return

                conn.state = ConnectionState.ERROR
                logger.info(
                    "Reconnecting SSE in %dms (attempt %d/%d)",
                    int(delay * 1000), attempts, self.policy.max_attempts,
                )
                await self._sleep(delay)

    async def _sleep(self, delay: float) -> None:
        await asyncio.sleep(delay)

    async def _stream(self, session: aiohttp.ClientSession, conn: Connection, url: str) -> None:
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self.settings.SOCKET_CONNECT_TIMEOUT)
        async with session.get(url, headers=self._headers(), timeout=timeout) as resp:
            resp.raise_for_status()
            if not self._is_current(conn):
                return
            self._connected = True
            conn.state = ConnectionState.CONNECTED
            conn.reconnect_attempts = 0
            logger.info("SSE connection opened")
            self.emit(RealtimeEvent.CONNECTED, {"url": url})

            async for payload in iter_sse_data(resp.content):
                if not self._is_current(conn):
                    return
                self._handle_message(payload)

    def _handle_message(self, raw: str) -> None:
        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Error parsing SSE message: %s", e)
            return

        logger.debug("SSE message received: %s", data)
        msg_type = data.get("type") if isinstance(data, dict) else None
        if isinstance(msg_type, str) and msg_type in MESSAGE_TYPES:
            event = MESSAGE_TYPES[msg_type]
            if event is not None:
                self.emit(event, data)
            return
        self.emit(RealtimeEvent.MESSAGE, data)

"""Pytest configuration and fixtures for vitals-realtime tests."""

import pytest
from typing import Any, Dict, List, Optional, Tuple

from vitals_realtime.applib.config import Settings


# ============================================================================
# Fake Socket.IO client
# ============================================================================


class FakeSocketClient:
    """Stands in for socketio.AsyncClient; tests fire server events with trigger()."""

    def __init__(self, **kwargs: Any):
        self.kwargs = kwargs
        self.handlers: Dict[str, Any] = {}
        self.emitted: List[Tuple[str, Any]] = []
        self.connect_calls: List[Tuple[str, Dict[str, Any]]] = []
        self.connect_exc: Optional[Exception] = None
        self.shutdown_called = False
        self.sid = "sid-0"

    def on(self, event, handler=None):
        self.handlers[event] = handler

    async def connect(self, url, **kwargs):
        self.connect_calls.append((url, kwargs))
        if self.connect_exc is not None:
            raise self.connect_exc

    async def emit(self, event, data=None):
        self.emitted.append((event, data))

    async def shutdown(self):
        self.shutdown_called = True

    async def trigger(self, event, *args):
        await self.handlers[event](*args)


# ============================================================================
# Fake SSE HTTP layer
# ============================================================================


class _Lines:
    def __init__(self, lines):
        self._lines = list(lines)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._lines:
            raise StopAsyncIteration
        return self._lines.pop(0)


class FakeSSEResponse:
    def __init__(self, lines, status: int = 200):
        self.content = _Lines(lines)
        self.status = status

    def raise_for_status(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSSESession:
    """Minimal aiohttp.ClientSession replacement serving the same frames on every GET."""

    def __init__(self, lines=()):
        self.lines = list(lines)
        self.requests: List[Tuple[str, Dict[str, Any]]] = []
        self.closed = False

    def get(self, url, **kwargs):
        self.requests.append((url, kwargs))
        return FakeSSEResponse(self.lines)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.closed = True
        return False


def sse_frames(*payloads: str) -> List[bytes]:
    """Encode each payload as one `data:` event."""
    lines: List[bytes] = []
    for p in payloads:
        lines.append(f"data: {p}\n".encode())
        lines.append(b"\n")
    return lines


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """Settings pointing at a test host, without a session cookie."""
    return Settings(API_BASE_URL="http://vitals.test:3007/api", SESSION_ID=None)


@pytest.fixture
def socket_clients():
    """Factory creating FakeSocketClient instances; `.created` lists them in order."""
    created: List[FakeSocketClient] = []

    def factory(**kwargs):
        client = FakeSocketClient(**kwargs)
        client.sid = f"sid-{len(created) + 1}"
        created.append(client)
        return client

    factory.created = created
    return factory


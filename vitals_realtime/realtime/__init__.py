"""
Realtime vitals transports.

This package contains:
- A Socket.IO transport adapter that joins practice/patient rooms (`websocket`)
- A Server-Sent Events transport adapter with its own reconnect loop (`sse`)
- The facade screens talk to, hiding which transport is active (`service`)
"""

from .backoff import BackoffPolicy
from .listeners import ListenerRegistry
from .service import VitalsRealtimeService
from .sse import SSETransport
from .websocket import WebSocketTransport

__all__ = [
    "BackoffPolicy",
    "ListenerRegistry",
    "SSETransport",
    "VitalsRealtimeService",
    "WebSocketTransport",
]

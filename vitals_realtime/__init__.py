"""Realtime vitals client: Socket.IO and SSE transports behind one facade."""

__version__ = "0.1.0"

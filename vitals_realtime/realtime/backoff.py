"""
Reconnection policy shared by both transports.

The Socket.IO transport hands these numbers to the client library's own
reconnection logic; the SSE transport drives its reconnect loop with
`delay_for`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from vitals_realtime.applib.config import Settings, config


@dataclass(frozen=True)
class BackoffPolicy:
    initial_delay: float = 1.0      # seconds
    max_delay: float = 30.0         # seconds
    max_attempts: int = 5
    multiplier: float = 2.0
    jitter: float = 0.0             # 0..1, only used by the Socket.IO client

    def __post_init__(self) -> None:
        if self.initial_delay < 0 or self.max_delay < self.initial_delay:
            raise ValueError("require 0 <= initial_delay <= max_delay")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")

    def delay_for(self, attempt: int) -> Optional[float]:
        """
        Delay before retrying after failed attempt number `attempt` (1-indexed).
        None once the attempt budget is spent.
        """
        if attempt >= self.max_attempts:
            return None
        return min(self.initial_delay * (self.multiplier ** attempt), self.max_delay)

    @classmethod
    def for_websocket(cls, settings: Settings = None) -> "BackoffPolicy":
        settings = settings or config
        return cls(
            initial_delay=settings.SOCKET_RECONNECT_DELAY,
            max_delay=settings.SOCKET_RECONNECT_DELAY_MAX,
            max_attempts=settings.SOCKET_RECONNECT_ATTEMPTS,
        )

    @classmethod
    def for_sse(cls, settings: Settings = None) -> "BackoffPolicy":
        settings = settings or config
        return cls(
            initial_delay=settings.SSE_RECONNECT_DELAY,
            max_delay=settings.SSE_RECONNECT_DELAY_MAX,
            max_attempts=settings.SSE_RECONNECT_ATTEMPTS,
        )

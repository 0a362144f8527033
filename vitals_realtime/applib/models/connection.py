from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from vitals_realtime.applib.types import ConnectionState, TransportKind


@dataclass
class Connection:
    """
    One transport connection attempt and its lifetime.

    Owned by exactly one adapter; a fresh instance is created on every connect
    and the previous one is torn down first.
    """
    kind: TransportKind
    practice_id: int | str
    patient_id: Optional[int | str] = None
    state: ConnectionState = ConnectionState.DISCONNECTED
    reconnect_attempts: int = 0


class ConnectOptions(BaseModel):
    practice_id: Optional[int | str] = None
    patient_id: Optional[int | str] = None
    method: TransportKind | str = TransportKind.WEBSOCKET

    @field_validator('practice_id', 'patient_id', mode='before')
    @classmethod
    def empty_as_none(cls, v):
        # UI layers pass '' or 0-like placeholders for "not selected"
        if v == '' or v is False:
            return None
        return v


# === ConnectionInfo ===
# Diagnostics record for the facade's last connect call.
class ConnectionInfo(BaseModel):
    practice_id: Optional[int | str] = Field(default=None)
    patient_id: Optional[int | str] = Field(default=None)
    method: TransportKind = TransportKind.WEBSOCKET

from enum import Enum

class TransportKind(Enum):
    WEBSOCKET = 'websocket'
    SSE = 'sse'

class ConnectionState(Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    ERROR = 'error'

class RealtimeEvent(Enum):
    CONNECTED = 'connected'
    DISCONNECTED = 'disconnected'
    ERROR = 'error'
    JOINED_ROOM = 'joined-room'
    VITAL_READING_UPDATE = 'vital-reading-update'
    PATIENT_VITAL_UPDATE = 'patient-vital-update'
    MESSAGE = 'message'

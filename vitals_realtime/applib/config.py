from pathlib import Path
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Priority: environment variables > .env file
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # REST base, e.g. http://13.233.6.224:3007/api. The socket server lives at the same host without /api.
    API_BASE_URL: str = "http://localhost:3007/api"
    SESSION_COOKIE_NAME: str = "evitals_session"
    # Optional: backend session id, sent as a cookie on socket handshake and SSE requests
    SESSION_ID: Optional[str] = None

    SOCKET_CONNECT_TIMEOUT: float = 20.0
    SOCKET_RECONNECT_DELAY: float = 1.0
    SOCKET_RECONNECT_DELAY_MAX: float = 5.0
    SOCKET_RECONNECT_ATTEMPTS: int = 5

    SSE_RECONNECT_DELAY: float = 1.0
    SSE_RECONNECT_DELAY_MAX: float = 30.0
    SSE_RECONNECT_ATTEMPTS: int = 5

    LOG_LEVEL: str = "INFO"

    @property
    def logging_config(self) -> dict:
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"}},
            "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "plain"}},
            "root": {"handlers": ["console"], "level": self.LOG_LEVEL.upper()},
        }

# Load .env before creating the Settings instance so pydantic-settings sees it
current_dir = Path(__file__).resolve().parent
env_paths = [
    current_dir.parent.parent / ".env",         # Project root
    current_dir.parent / ".env",                # vitals_realtime/.env
    Path(os.getcwd()) / ".env",                 # Current working directory
]

for env_path in env_paths:
    if env_path.exists():
        load_dotenv(env_path, override=False)
        break
else:
    load_dotenv(override=False)

config = Settings()

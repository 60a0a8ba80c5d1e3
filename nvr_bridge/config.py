# nvr_bridge/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import PositiveInt, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from nvr_bridge.exceptions import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── NVR Connection ────────────────────────────────────────────────────
    NVR_HOST: str
    NVR_PORT: Optional[int] = None             # defaults to 443 when secure, else 80
    NVR_SECURE: bool = False
    NVR_USERNAME: str = "admin"
    NVR_PASSWORD: str
    NVR_IGNORE_INSECURE_TLS: bool = False
    NVR_REQUEST_TIMEOUT_SECONDS: float = 10.0

    # ── Motion ────────────────────────────────────────────────────────────
    MOTION_RETRIGGER_IN_SECONDS: PositiveInt    # auto-clear delay after a detection
    MOTION_REARM_ON_REPEAT: bool = True         # repeated "active" restarts the clear timer

    # ── Alert Stream ──────────────────────────────────────────────────────
    STREAM_CHUNK_SIZE: int = 4096
    STREAM_MAX_BUFFER_BYTES: int = 1024 * 1024  # force a reconnect past this
    STREAM_READ_TIMEOUT_SECONDS: Optional[float] = None
    RECONNECT_MIN_BACKOFF_SECONDS: float = 3.0
    RECONNECT_MAX_BACKOFF_SECONDS: float = 60.0

    # ── Channel Directory ─────────────────────────────────────────────────
    CHANNEL_STATUS_POLL_SECONDS: int = 60       # 0 disables periodic status polls

    # ── Service ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8080
    API_KEY: Optional[str] = None   # Set in .env to enable auth on API endpoints

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    @property
    def nvr_base_url(self) -> str:
        host = self.NVR_HOST.rstrip("/")
        if host.startswith(("http://", "https://")):
            scheme, host = host.split("://", 1)
        else:
            scheme = "https" if self.NVR_SECURE else "http"
        port = self.NVR_PORT or (443 if scheme == "https" else 80)
        return f"{scheme}://{host}:{port}"


@lru_cache
def get_settings() -> Settings:
    """Load settings once. Missing or invalid fields are fatal at startup."""
    try:
        return Settings()
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigurationError(f"Invalid configuration ({fields}): {e}") from e

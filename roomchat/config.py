"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_DB_PATH = DATA_DIR / "roomchat.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

# Lifecycle thresholds (milliseconds), each applied separately.
MESSAGE_RETENTION_MS = 60 * 60 * 1000
ONLINE_THRESHOLD_MS = 2 * 60 * 1000
INACTIVE_USER_MS = 5 * 60 * 1000
CLEANUP_INTERVAL_MS = 5 * 60 * 1000

DEFAULT_ROOM_ID = "general"
SSE_HEARTBEAT_SECONDS = 15.0


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


@dataclass
class Settings:
    """Runtime settings, read from the environment."""

    api_host: str = "localhost"
    api_port: int = 8000
    database_url: str | None = None
    store_backend: str = "sqlite"  # "sqlite" or "redis"
    redis_url: str = "redis://localhost:6379/0"
    log_level: str = "INFO"
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )
    message_retention_ms: int = MESSAGE_RETENTION_MS
    online_threshold_ms: int = ONLINE_THRESHOLD_MS
    inactive_user_ms: int = INACTIVE_USER_MS
    cleanup_interval_ms: int = CLEANUP_INTERVAL_MS
    default_room_id: str = DEFAULT_ROOM_ID
    sse_heartbeat_seconds: float = SSE_HEARTBEAT_SECONDS

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (after load_dotenv)."""
        defaults = cls()
        origins = os.getenv("CORS_ORIGINS")
        return cls(
            api_host=os.getenv("API_HOST", defaults.api_host),
            api_port=_int_env("API_PORT", defaults.api_port),
            database_url=os.getenv("DATABASE_URL") or None,
            store_backend=os.getenv("STORE_BACKEND", defaults.store_backend).lower(),
            redis_url=os.getenv("REDIS_URL", defaults.redis_url),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
            cors_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins
                else defaults.cors_origins
            ),
            message_retention_ms=_int_env(
                "MESSAGE_RETENTION_MS", defaults.message_retention_ms
            ),
            online_threshold_ms=_int_env(
                "ONLINE_THRESHOLD_MS", defaults.online_threshold_ms
            ),
            inactive_user_ms=_int_env("INACTIVE_USER_MS", defaults.inactive_user_ms),
            cleanup_interval_ms=_int_env(
                "CLEANUP_INTERVAL_MS", defaults.cleanup_interval_ms
            ),
            default_room_id=os.getenv("DEFAULT_ROOM_ID", defaults.default_room_id),
            sse_heartbeat_seconds=float(
                os.getenv("SSE_HEARTBEAT_SECONDS", defaults.sse_heartbeat_seconds)
            ),
        )

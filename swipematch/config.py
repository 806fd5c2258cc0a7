import os
from functools import lru_cache
from pathlib import Path as _Path
from typing import List

from dotenv import load_dotenv as _load_dotenv
from pydantic import BaseModel, Field

# Load .env early so settings see env vars before get_settings() caches them
_load_dotenv(dotenv_path=_Path(__file__).resolve().parent.parent / ".env", override=False)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _redis_pubsub_enabled_default() -> bool:
    explicit = os.getenv("REDIS_PUBSUB_ENABLED")
    if explicit is not None:
        return explicit.lower() in ("1", "true", "yes")
    return bool(os.getenv("REDIS_URL"))


class Settings(BaseModel):
    # Support multiple common env var names for Mongo connection string
    mongo_uri: str = Field(
        default_factory=lambda: (
            os.getenv("MONGO_URI")
            or os.getenv("MONGODB_URI")
            or os.getenv("MONGO_URL")
            or ""
        )
    )
    mongo_db: str = Field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "swipematch"))
    # Optional: provide a non-SRV fallback URI (e.g., mongodb://127.0.0.1:27017)
    mongo_alt_uri: str = Field(default_factory=lambda: os.getenv("MONGO_ALT_URI", ""))
    mongo_direct: bool = Field(default_factory=lambda: _env_flag("MONGO_DIRECT"))
    mongo_server_selection_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "3000"))
    )
    mongo_connect_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("MONGO_CONNECT_TIMEOUT_MS", "3000"))
    )
    mongo_socket_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("MONGO_SOCKET_TIMEOUT_MS", "5000"))
    )

    cors_origins: str = Field(
        default_factory=lambda: (
            os.getenv("CORS_ORIGINS")
            or os.getenv("CORS_ORIGIN")
            or "http://localhost:5173,http://127.0.0.1:5173"
        )
    )
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8081")))
    slow_request_ms: int = Field(default_factory=lambda: int(os.getenv("SLOW_REQUEST_MS", "800")))

    # Bearer tokens are minted by the identity service; we only verify them
    jwt_secret: str = Field(default_factory=lambda: os.getenv("JWT_SECRET", ""))
    jwt_algorithm: str = Field(default_factory=lambda: os.getenv("JWT_ALGORITHM", "HS256"))

    # Redis pub/sub fan-out for notification events (optional)
    redis_url: str = Field(default_factory=lambda: os.getenv("REDIS_URL", ""))
    redis_pubsub_enabled: bool = Field(default_factory=_redis_pubsub_enabled_default)
    redis_pubsub_prefix: str = Field(default_factory=lambda: os.getenv("REDIS_PUBSUB_PREFIX", "sm"))

    # Feed policy
    dislike_exclusion_window: int = Field(
        default_factory=lambda: int(os.getenv("DISLIKE_EXCLUSION_WINDOW", "10")), ge=0
    )
    feed_default_limit: int = Field(default_factory=lambda: int(os.getenv("FEED_DEFAULT_LIMIT", "10")), ge=1)
    feed_max_limit: int = Field(default_factory=lambda: int(os.getenv("FEED_MAX_LIMIT", "30")), ge=1)
    filter_options_ttl_seconds: int = Field(
        default_factory=lambda: int(os.getenv("FILTER_OPTIONS_TTL_SECONDS", "300"))
    )

    # Contact masking for unmatched viewers
    phone_visible_prefix: int = Field(default_factory=lambda: int(os.getenv("PHONE_VISIBLE_PREFIX", "4")), ge=0)
    phone_mask: str = Field(default_factory=lambda: os.getenv("PHONE_MASK", "XXXXXX"))

    notification_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("NOTIFICATION_TIMEOUT_MS", "1500"))
    )

    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()

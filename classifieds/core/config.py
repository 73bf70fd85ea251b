"""
Configuration helpers for the classifieds backend.

Settings are read once from environment variables so that routers/services do
not fetch os.environ directly. Tests call ``get_settings.cache_clear()`` after
changing the environment.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    jwt_secret: str
    jwt_algorithm: str
    jwt_ttl_seconds: int
    listing_id_prefix: str
    listing_id_width: int
    listing_id_max_attempts: int
    default_currency: str
    cors_origins: tuple[str, ...]
    log_level: str
    log_format: str
    auto_create_tables: bool


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    app_env = (os.getenv("APP_ENV") or "dev").lower()
    origins = tuple(o.strip().rstrip("/") for o in (os.getenv("CORS_ORIGINS") or "").split(",") if o.strip())
    return Settings(
        app_env=app_env,
        database_url=(os.getenv("DATABASE_URL") or "sqlite:///./classifieds.db").strip(),
        jwt_secret=os.getenv("JWT_SECRET") or os.getenv("JWT_KEY") or "change-me-in-production",
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_ttl_seconds=max(60, _int(os.getenv("JWT_TTL_SECONDS", "86400"), 86400)),
        listing_id_prefix=(os.getenv("LISTING_ID_PREFIX") or "LST").strip().upper(),
        listing_id_width=max(1, _int(os.getenv("LISTING_ID_WIDTH", "5"), 5)),
        listing_id_max_attempts=max(1, _int(os.getenv("LISTING_ID_MAX_ATTEMPTS", "3"), 3)),
        default_currency=(os.getenv("DEFAULT_CURRENCY") or "LKR").strip().upper(),
        cors_origins=origins,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        log_format=(os.getenv("LOG_FORMAT") or ("json" if app_env == "prod" else "console")).lower(),
        auto_create_tables=_bool(os.getenv("AUTO_CREATE_TABLES"), app_env != "prod"),
    )

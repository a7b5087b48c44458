"""
Runtime configuration.

Everything is read from environment variables once, at startup, into a
frozen `Settings` object. The app keeps it on `app.state.settings` and
routes receive it through `dependencies.get_settings`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

ENV_LOCAL = "local"
ENV_DEV = "dev"
ENV_PROD = "prod"

DEFAULT_ENRICHMENT_URL = "http://api.url/info"


@dataclass(frozen=True)
class Settings:
    env: str
    host: str
    port: int
    database_url: str
    enrichment_url: str
    store_timeout_s: float = 2.0
    enrichment_timeout_s: float = 2.0
    batch_concurrency: int = 16
    max_batch_size: int = 1000
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10


def _sanitize_database_url(url: str) -> str:
    # asyncpg rejects libpq's `sslmode` query param.
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"Invalid {name}. It must be an integer.")
    if value < minimum:
        raise RuntimeError(f"Invalid {name}. It must be >= {minimum}.")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"Invalid {name}. It must be a number.")
    if value <= 0:
        raise RuntimeError(f"Invalid {name}. It must be > 0.")
    return value


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


def load_settings() -> Settings:
    env = _env_str("APP_ENV", ENV_LOCAL).lower()
    if env not in (ENV_LOCAL, ENV_DEV, ENV_PROD):
        raise RuntimeError(f"Invalid APP_ENV '{env}'. Allowed: local, dev, prod.")

    min_size = _env_int("DB_POOL_MIN_SIZE", 1)
    max_size = _env_int("DB_POOL_MAX_SIZE", 10)
    if max_size < min_size:
        raise RuntimeError("DB_POOL_MAX_SIZE must be >= DB_POOL_MIN_SIZE.")

    return Settings(
        env=env,
        host=_env_str("HOST", "0.0.0.0"),
        port=_env_int("PORT", 8080),
        database_url=database_url(),
        enrichment_url=_env_str("ENRICHMENT_URL", DEFAULT_ENRICHMENT_URL),
        store_timeout_s=_env_float("STORE_TIMEOUT_S", 2.0),
        enrichment_timeout_s=_env_float("ENRICHMENT_TIMEOUT_S", 2.0),
        batch_concurrency=_env_int("BATCH_CONCURRENCY", 16),
        max_batch_size=_env_int("MAX_BATCH_SIZE", 1000),
        db_pool_min_size=min_size,
        db_pool_max_size=max_size,
    )

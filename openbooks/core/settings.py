"""
Runtime configuration for the OpenBooks client core.

Everything is read from the environment:

    OPENBOOKS_API_URL              backend base URL
    OPENBOOKS_API_TOKEN            bearer token sent to the backend
    OPENBOOKS_API_TIMEOUT          request timeout in seconds
    OPENBOOKS_CACHE_STALE_SECONDS  age after which cached reads are refetched

API_KEY is not part of Settings: services/auth.py reads it on every request.
"""

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_API_URL = "http://localhost:3001/api"
DEFAULT_TIMEOUT = 15.0
DEFAULT_STALE_SECONDS = 5 * 60  # quotations change moderately


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    api_token: Optional[str] = None
    api_timeout: float = DEFAULT_TIMEOUT
    cache_stale_seconds: float = DEFAULT_STALE_SECONDS


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def load_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings(
        api_url=os.getenv("OPENBOOKS_API_URL", DEFAULT_API_URL).rstrip("/"),
        api_token=os.getenv("OPENBOOKS_API_TOKEN") or None,
        api_timeout=_float_env("OPENBOOKS_API_TIMEOUT", DEFAULT_TIMEOUT),
        cache_stale_seconds=_float_env("OPENBOOKS_CACHE_STALE_SECONDS", DEFAULT_STALE_SECONDS),
    )

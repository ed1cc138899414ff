"""
Gateway API key check.

The key is read from API_KEY on every request so it can be rotated (or
switched off in development) without rebuilding the app.
"""
import hmac
import os
from typing import Optional

from fastapi import Security
from fastapi.security import APIKeyHeader

from openbooks.services.errors import APIKeyError

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)

DEV_MODE_CLIENT = "dev-mode"


def configured_api_key() -> Optional[str]:
    return os.getenv("API_KEY") or None


def verify_api_key(api_key: Optional[str] = Security(API_KEY_HEADER)) -> str:
    """
    Router dependency guarding every /journal-entries and /quotations route.

    Returns the caller's key, or "dev-mode" when no key is configured.

    Raises:
        APIKeyError: key configured but header missing or different.
    """
    expected = configured_api_key()
    if expected is None:
        return api_key or DEV_MODE_CLIENT

    if not api_key:
        raise APIKeyError("Provide the X-API-Key header")
    if not hmac.compare_digest(api_key.encode(), expected.encode()):
        raise APIKeyError("X-API-Key does not match the configured key")
    return api_key

"""
Client-side query cache.

Reads populate the cache, successful writes invalidate it. Keys are tuples
arranged as a hierarchy (resource, kind, ...), so invalidating a prefix such
as ("quotations", "list") marks every cached list page stale at once.
Invalidation never deletes data: a stale entry is simply refetched on the
next read.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[Any, ...]


def _frozen_params(params: Optional[Dict[str, Any]]) -> Tuple[Tuple[str, Any], ...]:
    if not params:
        return ()
    return tuple(sorted((k, v) for k, v in params.items() if v is not None))


class QuotationKeys:
    all: CacheKey = ("quotations",)

    @staticmethod
    def lists() -> CacheKey:
        return QuotationKeys.all + ("list",)

    @staticmethod
    def list(params: Optional[Dict[str, Any]] = None) -> CacheKey:
        return QuotationKeys.lists() + (_frozen_params(params),)

    @staticmethod
    def details() -> CacheKey:
        return QuotationKeys.all + ("detail",)

    @staticmethod
    def detail(quotation_id: str) -> CacheKey:
        return QuotationKeys.details() + (quotation_id,)


class InvoiceKeys:
    all: CacheKey = ("invoices",)

    @staticmethod
    def lists() -> CacheKey:
        return InvoiceKeys.all + ("list",)


class JournalKeys:
    all: CacheKey = ("journal-entries",)

    @staticmethod
    def lists() -> CacheKey:
        return JournalKeys.all + ("list",)

    @staticmethod
    def list(params: Optional[Dict[str, Any]] = None) -> CacheKey:
        return JournalKeys.lists() + (_frozen_params(params),)


class AccountKeys:
    all: CacheKey = ("accounts",)
    tree: CacheKey = all + ("tree",)
    summary: CacheKey = all + ("summary",)


@dataclass
class CacheEntry:
    value: Any
    stored_at: float
    stale: bool = False


class QueryCache:
    """Process-wide keyed store; inject one instance per client."""

    def __init__(self, stale_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.stale_seconds = stale_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        # Every invalidated prefix, in order; read by tests and diagnostics
        self.invalidations: List[CacheKey] = []

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def is_fresh(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return False
        return (self._clock() - entry.stored_at) < self.stale_seconds

    def get(self, key: CacheKey, default: Any = None) -> Any:
        """Cached value regardless of freshness."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else default

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    async def fetch(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the fresh cached value or load, store and return a new one."""
        if self.is_fresh(key):
            return self._entries[key].value
        value = await loader()
        self.set(key, value)
        return value

    def invalidate(self, prefix: CacheKey) -> int:
        """Mark every entry under prefix stale. Returns how many were marked."""
        self.invalidations.append(prefix)
        marked = 0
        n = len(prefix)
        for key, entry in self._entries.items():
            if key[:n] == prefix:
                entry.stale = True
                marked += 1
        logger.debug("Invalidated %s (%d entries)", prefix, marked)
        return marked

    def clear(self) -> None:
        self._entries.clear()
        self.invalidations.clear()

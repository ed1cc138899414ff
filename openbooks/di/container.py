"""Dependency injection container for core services."""
from typing import Optional

from openbooks.core.settings import Settings, load_settings
from openbooks.services.backend_client import BackendClient
from openbooks.services.journal_entries import JournalEntryService
from openbooks.services.query_cache import QueryCache
from openbooks.services.quotations import QuotationService


class ServiceContainer:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings
        self._backend = None
        self._cache = None
        self._journal_entries = None
        self._quotations = None

    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = load_settings()
        return self._settings

    def backend(self) -> BackendClient:
        if self._backend is None:
            self._backend = BackendClient(settings=self.settings())
        return self._backend

    def cache(self) -> QueryCache:
        if self._cache is None:
            self._cache = QueryCache(stale_seconds=self.settings().cache_stale_seconds)
        return self._cache

    def journal_entries(self) -> JournalEntryService:
        if self._journal_entries is None:
            self._journal_entries = JournalEntryService(backend=self.backend(), cache=self.cache())
        return self._journal_entries

    def quotations(self) -> QuotationService:
        if self._quotations is None:
            self._quotations = QuotationService(backend=self.backend(), cache=self.cache())
        return self._quotations

    def reset(self, backend: Optional[BackendClient] = None, cache: Optional[QueryCache] = None) -> None:
        """Drop built services; tests pass a fake backend / fresh cache."""
        self._backend = backend
        self._cache = cache
        self._journal_entries = None
        self._quotations = None


container = ServiceContainer()

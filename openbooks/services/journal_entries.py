"""
Journal Entry Service for OpenBooks

Manual journal entries:
- Validate locally (balanced, at least two single-sided lines) before any request
- Create as DRAFT on the backend, optionally post straight away
- Reverse posted entries
- Status workflow: DRAFT → POSTED → REVERSED
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from openbooks.models.journal_entries import JournalEntry, JournalEntryRecord, JournalEntryStatus
from openbooks.services.backend_client import ApiFailure, BackendClient, failure_to_error, write_was_applied
from openbooks.services.errors import OpenBooksError
from openbooks.services.journal_balance import validate_entry
from openbooks.services.logging import log_mutation
from openbooks.services.metrics import record_mutation
from openbooks.services.query_cache import AccountKeys, JournalKeys, QueryCache

logger = logging.getLogger(__name__)


class JournalEntryService:
    def __init__(self, backend: BackendClient, cache: QueryCache) -> None:
        self.backend = backend
        self.cache = cache

    def _invalidate_ledger(self) -> None:
        # Posting changes balances, so the account views go stale too
        self.cache.invalidate(AccountKeys.tree)
        self.cache.invalidate(AccountKeys.summary)
        self.cache.invalidate(JournalKeys.lists())

    def _fail(self, operation: str, failure: ApiFailure, resource_id: Optional[str] = None):
        # The ledger changed even if the reply could not be parsed
        if write_was_applied(failure):
            self._invalidate_ledger()
        log_mutation(operation, "rejected", resource_id, status_code=failure.status_code, reason=failure.message)
        record_mutation(operation, "rejected")
        return failure_to_error(operation, failure)

    async def create_entry(self, entry: JournalEntry, post: bool = False) -> JournalEntryRecord:
        """
        Create a journal entry, and post it too when `post` is set.

        Validation errors are raised before the backend is called. If the
        entry is created but posting fails, the draft stays on the backend
        and the posting error is raised.
        """
        try:
            summary = validate_entry(entry)
        except OpenBooksError:
            record_mutation("create_journal_entry", "blocked")
            raise

        result = await self.backend.create_journal_entry(entry)
        if isinstance(result, ApiFailure):
            raise self._fail("create_journal_entry", result)

        record: JournalEntryRecord = result.data
        self._invalidate_ledger()
        log_mutation(
            "create_journal_entry",
            "success",
            record.id,
            entry_number=record.entry_number,
            total=str(summary.total_debit),
        )
        record_mutation("create_journal_entry", "success")

        if post:
            await self.post_entry(record.id)
            record = record.model_copy(update={"status": JournalEntryStatus.POSTED})
        return record

    async def post_entry(self, entry_id: str) -> Dict[str, Any]:
        result = await self.backend.post_journal_entry(entry_id)
        if isinstance(result, ApiFailure):
            raise self._fail("post_journal_entry", result, entry_id)

        self._invalidate_ledger()
        log_mutation("post_journal_entry", "success", entry_id)
        record_mutation("post_journal_entry", "success")
        return result.data if isinstance(result.data, dict) else {"success": True}

    async def reverse_entry(self, entry_id: str, reversal_date: date) -> JournalEntryRecord:
        """Create the reversing entry for a posted one (backend checks the status)."""
        result = await self.backend.reverse_journal_entry(entry_id, reversal_date)
        if isinstance(result, ApiFailure):
            raise self._fail("reverse_journal_entry", result, entry_id)

        self._invalidate_ledger()
        log_mutation("reverse_journal_entry", "success", entry_id, reversal_id=result.data.id)
        record_mutation("reverse_journal_entry", "success")
        return result.data

    async def list_entries(
        self,
        status: Optional[JournalEntryStatus] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[JournalEntryRecord]:
        params = {
            "status": status.value if status else None,
            "startDate": start_date,
            "endDate": end_date,
            "limit": limit,
            "offset": offset,
        }

        async def load() -> List[JournalEntryRecord]:
            result = await self.backend.list_journal_entries(
                status=status, start_date=start_date, end_date=end_date, limit=limit, offset=offset
            )
            if isinstance(result, ApiFailure):
                raise failure_to_error("list_journal_entries", result)
            return result.data

        return await self.cache.fetch(JournalKeys.list(params), load)

"""
Quotation Service for OpenBooks

Status changes, conversion to invoice and deletion of quotations. Every
operation runs the quotation state machine first, so illegal requests
(converted quotations, client-only quotations, direct "converted" status
updates) fail here without touching the backend.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from openbooks.models.quotations import (
    ConversionResult,
    CreateQuotationInput,
    Quotation,
    QuotationStatus,
    QuotationTotals,
    QuotationType,
)
from openbooks.services.backend_client import ApiFailure, BackendClient, failure_to_error, write_was_applied
from openbooks.services.errors import LocalQuotationError, OpenBooksError
from openbooks.services.logging import log_mutation
from openbooks.services.metrics import record_mutation
from openbooks.services.query_cache import InvoiceKeys, QueryCache, QuotationKeys
from openbooks.services.quotation_state import Convert, Delete, UpdateStatus, assert_transition
from openbooks.services.quotation_totals import quotation_breakdown

logger = logging.getLogger(__name__)


class QuotationService:
    def __init__(self, backend: BackendClient, cache: QueryCache) -> None:
        self.backend = backend
        self.cache = cache

    def _guard(self, operation: str, quotation: Quotation, action: str, event) -> None:
        """Local checks; raise before any request is made."""
        try:
            if quotation.type == QuotationType.LOCAL:
                raise LocalQuotationError(quotation.id, action)
            assert_transition(quotation.status, event)
        except OpenBooksError as e:
            log_mutation(operation, "blocked", quotation.id, reason=e.message)
            record_mutation(operation, "blocked")
            raise

    def _fail(self, operation: str, failure: ApiFailure, quotation_id: str):
        log_mutation(operation, "rejected", quotation_id, status_code=failure.status_code, reason=failure.message)
        record_mutation(operation, "rejected")
        return failure_to_error(operation, failure)

    def _succeeded(self, operation: str, quotation_id: str, **fields) -> None:
        log_mutation(operation, "success", quotation_id, **fields)
        record_mutation(operation, "success")

    def _invalidate_conversion(self, quotation_id: str) -> None:
        self.cache.invalidate(QuotationKeys.lists())
        self.cache.invalidate(QuotationKeys.detail(quotation_id))
        self.cache.invalidate(InvoiceKeys.lists())

    # ==================== READS ====================

    async def get_quotation(self, quotation_id: str) -> Quotation:
        async def load() -> Quotation:
            result = await self.backend.get_quotation(quotation_id)
            if isinstance(result, ApiFailure):
                raise failure_to_error("get_quotation", result)
            return result.data

        return await self.cache.fetch(QuotationKeys.detail(quotation_id), load)

    async def list_quotations(self, params: Optional[Dict[str, Any]] = None) -> List[Quotation]:
        params = {k: v for k, v in (params or {}).items() if v is not None}

        async def load() -> List[Quotation]:
            result = await self.backend.list_quotations(params)
            if isinstance(result, ApiFailure):
                raise failure_to_error("list_quotations", result)
            return result.data

        return await self.cache.fetch(QuotationKeys.list(params), load)

    async def get_totals(self, quotation_id: str) -> QuotationTotals:
        """Subtotal, billing adjustments and total of the cached quotation."""
        quotation = await self.get_quotation(quotation_id)
        breakdown = quotation_breakdown(quotation.items, quotation.billing_details)
        return QuotationTotals(currency=quotation.currency or "MYR", **breakdown)

    # ==================== MUTATIONS ====================

    async def create_quotation(self, data: CreateQuotationInput) -> Quotation:
        result = await self.backend.create_quotation(data)
        if isinstance(result, ApiFailure):
            if write_was_applied(result):
                self.cache.invalidate(QuotationKeys.lists())
            raise self._fail("create_quotation", result, "")

        quotation: Quotation = result.data
        self.cache.invalidate(QuotationKeys.lists())
        self._succeeded("create_quotation", quotation.id)
        return quotation

    async def update_status(self, quotation: Quotation, status: QuotationStatus) -> Quotation:
        """Set a new status. "converted" is only reachable through convert_to_invoice."""
        status = QuotationStatus(status)
        self._guard("update_quotation_status", quotation, "updated", UpdateStatus(status))

        result = await self.backend.update_quotation_status(quotation.id, status)
        if isinstance(result, ApiFailure):
            raise self._fail("update_quotation_status", result, quotation.id)

        self.cache.invalidate(QuotationKeys.lists())
        self.cache.invalidate(QuotationKeys.detail(quotation.id))
        self._succeeded("update_quotation_status", quotation.id, status=status.value)
        return quotation.model_copy(update={"status": status})

    async def convert_to_invoice(
        self,
        quotation: Quotation,
        issue_date: Optional[date] = None,
        due_date: Optional[date] = None,
    ) -> ConversionResult:
        """
        Convert a server quotation into a new invoice.

        The backend creates the invoice and marks the quotation converted;
        after that the quotation can no longer change status.

        Raises:
            LocalQuotationError: the quotation was never synced.
            AlreadyConvertedError: the quotation is already converted.
            BackendRequestError: the backend refused or could not be reached.
        """
        self._guard("convert_to_invoice", quotation, "converted", Convert())

        result = await self.backend.convert_to_invoice(quotation.id, issue_date, due_date)
        if isinstance(result, ApiFailure):
            # Converted on the backend even though the reply was unreadable
            if write_was_applied(result):
                self._invalidate_conversion(quotation.id)
            raise self._fail("convert_to_invoice", result, quotation.id)

        invoice_id = result.data.invoice_id
        updated = result.data.quotation or quotation
        updated = updated.model_copy(
            update={
                "type": quotation.type,
                "status": QuotationStatus.CONVERTED,
                "converted_invoice_id": invoice_id,
            }
        )

        self._invalidate_conversion(quotation.id)
        self._succeeded("convert_to_invoice", quotation.id, invoice_id=invoice_id)
        return ConversionResult(invoice_id=invoice_id, quotation=updated)

    async def delete_quotation(self, quotation: Quotation) -> None:
        """Delete a server quotation. There is no undo."""
        self._guard("delete_quotation", quotation, "deleted", Delete())

        result = await self.backend.delete_quotation(quotation.id)
        if isinstance(result, ApiFailure):
            raise self._fail("delete_quotation", result, quotation.id)

        self.cache.invalidate(QuotationKeys.lists())
        self.cache.invalidate(QuotationKeys.detail(quotation.id))
        self._succeeded("delete_quotation", quotation.id)

"""
Bookkeeping backend client.

Every call returns either ApiSuccess or ApiFailure instead of raising, so
callers branch on the tag rather than on the shape of the response body.
Successful bodies use the envelope {"data": ..., "meta": {...}}; failures use
{"error": {"code": ..., "message": ...}, "meta": {...}}. Bare JSON bodies are
accepted as data for endpoints that do not wrap their responses.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
from pydantic import ValidationError

from openbooks.core.settings import Settings, load_settings
from openbooks.models.journal_entries import JournalEntry, JournalEntryRecord, JournalEntryStatus
from openbooks.models.quotations import CreateQuotationInput, Quotation, QuotationStatus
from openbooks.services.errors import BackendRequestError, ErrorCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiSuccess:
    data: Any
    status_code: int = 200


@dataclass(frozen=True)
class ApiFailure:
    status_code: Optional[int]  # None when the backend was never reached
    code: str
    message: str
    details: Any = None


ApiResult = Union[ApiSuccess, ApiFailure]


@dataclass(frozen=True)
class ConvertedInvoice:
    """Body of a successful convert-to-invoice call."""
    invoice_id: str
    quotation: Optional[Quotation] = None


def _error_from_body(status_code: int, body: Any) -> ApiFailure:
    default_code = "NOT_FOUND" if status_code == 404 else f"HTTP_{status_code}"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return ApiFailure(
                status_code=status_code,
                code=str(error.get("code") or default_code),
                message=str(error.get("message") or f"Request failed with status {status_code}"),
                details=error.get("details"),
            )
        if isinstance(error, str):
            return ApiFailure(status_code, default_code, body.get("message") or error)
        if body.get("message"):
            return ApiFailure(status_code, default_code, str(body["message"]))
    return ApiFailure(status_code, default_code, f"Request failed with status {status_code}")


def _unwrap(body: Any) -> Any:
    if isinstance(body, dict) and "data" in body and ("meta" in body or len(body) == 1):
        return body["data"]
    return body


def _items(data: Any, *names: str) -> List[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for name in names:
            if isinstance(data.get(name), list):
                return data[name]
    raise ValueError("expected a list in response body")


class BackendClient:
    """
    Client for the bookkeeping backend REST API.

    A new httpx.AsyncClient is opened per request; pass `transport` to route
    requests somewhere other than the network (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or load_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self._transport = transport

        token = api_token or settings.api_token
        self.headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> ApiResult:
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=json, params=params or None)
        except httpx.HTTPError as e:
            logger.error(f"Backend unreachable for {method} {path}: {e}")
            return ApiFailure(None, "NETWORK_ERROR", f"Could not reach the bookkeeping service: {e}")

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None

        if response.is_success:
            return ApiSuccess(data=_unwrap(body), status_code=response.status_code)

        failure = _error_from_body(response.status_code, body)
        logger.warning(f"Backend rejected {method} {path}: {response.status_code} {failure.message}")
        return failure

    @staticmethod
    def _parse(result: ApiResult, parser: Callable[[Any], Any]) -> ApiResult:
        if isinstance(result, ApiFailure):
            return result
        try:
            return ApiSuccess(data=parser(result.data), status_code=result.status_code)
        except (ValidationError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.error(f"Unexpected backend response: {e}")
            return ApiFailure(result.status_code, "INVALID_RESPONSE", "Unexpected response from the bookkeeping service", str(e))

    # ==================== JOURNAL ENTRIES ====================

    async def create_journal_entry(self, entry: JournalEntry) -> ApiResult:
        """Create a draft entry. Data: JournalEntryRecord."""
        result = await self._request("POST", "/journal-entries", json=entry.to_payload())
        return self._parse(result, JournalEntryRecord.model_validate)

    async def post_journal_entry(self, entry_id: str) -> ApiResult:
        """Post a draft entry to the ledger. Data: raw backend body."""
        return await self._request("POST", f"/journal-entries/{entry_id}/post")

    async def reverse_journal_entry(self, entry_id: str, reversal_date: date) -> ApiResult:
        """Reverse a posted entry. Data: JournalEntryRecord of the reversal."""
        result = await self._request(
            "POST",
            f"/journal-entries/{entry_id}/reverse",
            json={"reversalDate": reversal_date.isoformat()},
        )
        return self._parse(result, JournalEntryRecord.model_validate)

    async def list_journal_entries(
        self,
        status: Optional[JournalEntryStatus] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> ApiResult:
        """Data: list of JournalEntryRecord."""
        result = await self._request(
            "GET",
            "/journal-entries",
            params={
                "status": status.value if status else None,
                "startDate": start_date,
                "endDate": end_date,
                "limit": limit,
                "offset": offset,
            },
        )
        return self._parse(
            result,
            lambda data: [JournalEntryRecord.model_validate(e) for e in _items(data, "entries", "items")],
        )

    # ==================== QUOTATIONS ====================

    async def get_quotation(self, quotation_id: str) -> ApiResult:
        result = await self._request("GET", f"/quotations/{quotation_id}")
        return self._parse(result, Quotation.model_validate)

    async def list_quotations(self, params: Optional[Dict[str, Any]] = None) -> ApiResult:
        """params: customerId, status, startDate, endDate, limit, offset."""
        result = await self._request("GET", "/quotations", params=dict(params or {}))
        return self._parse(
            result,
            lambda data: [Quotation.model_validate(q) for q in _items(data, "quotations", "items")],
        )

    async def create_quotation(self, data: CreateQuotationInput) -> ApiResult:
        result = await self._request("POST", "/quotations", json=data.to_payload())

        def parse(body: Any) -> Quotation:
            if isinstance(body, dict) and "id" not in body and body.get("quotationId"):
                return Quotation(id=body["quotationId"], customer_id=data.customer_id)
            return Quotation.model_validate(body)

        return self._parse(result, parse)

    async def update_quotation_status(self, quotation_id: str, status: QuotationStatus) -> ApiResult:
        return await self._request(
            "PATCH",
            f"/quotations/{quotation_id}/status",
            json={"status": QuotationStatus(status).value},
        )

    async def convert_to_invoice(
        self,
        quotation_id: str,
        issue_date: Optional[date] = None,
        due_date: Optional[date] = None,
    ) -> ApiResult:
        """Data: ConvertedInvoice."""
        payload: Dict[str, Any] = {}
        if issue_date:
            payload["issueDate"] = issue_date.isoformat()
        if due_date:
            payload["dueDate"] = due_date.isoformat()
        result = await self._request(
            "POST", f"/quotations/{quotation_id}/convert-to-invoice", json=payload
        )

        def parse(body: Any) -> ConvertedInvoice:
            invoice = body.get("invoice") or {}
            invoice_id = invoice.get("id") or body.get("invoiceId")
            if not invoice_id:
                raise ValueError("response has no invoice id")
            quotation = body.get("quotation")
            return ConvertedInvoice(
                invoice_id=str(invoice_id),
                quotation=Quotation.model_validate(quotation) if quotation else None,
            )

        return self._parse(result, parse)

    async def delete_quotation(self, quotation_id: str) -> ApiResult:
        return await self._request("DELETE", f"/quotations/{quotation_id}")


def write_was_applied(failure: ApiFailure) -> bool:
    """True when the backend accepted the request (2xx) but its reply could not be parsed."""
    return failure.status_code is not None and 200 <= failure.status_code < 300


def failure_to_error(operation: str, failure: ApiFailure) -> BackendRequestError:
    """Turn a tagged failure into the exception services raise to callers."""
    if failure.status_code is None:
        code = ErrorCode.NETWORK_ERROR
    elif failure.status_code == 404:
        code = ErrorCode.NOT_FOUND
    else:
        code = ErrorCode.BACKEND_REJECTED
    return BackendRequestError(
        operation=operation,
        message=failure.message,
        status_code=failure.status_code,
        code=code,
        backend_code=failure.code,
    )

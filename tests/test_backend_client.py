import asyncio
import json
from datetime import date

import httpx

from openbooks.core.settings import Settings
from openbooks.models.journal_entries import JournalEntry, JournalEntryLine, JournalEntryRecord
from openbooks.models.quotations import Quotation, QuotationStatus
from openbooks.services.backend_client import (
    ApiFailure,
    ApiSuccess,
    BackendClient,
    ConvertedInvoice,
    failure_to_error,
    write_was_applied,
)
from openbooks.services.errors import ErrorCode


def _client(handler, token=None) -> BackendClient:
    return BackendClient(
        transport=httpx.MockTransport(handler),
        settings=Settings(api_url="http://books.test/api", api_token=token),
    )


def _envelope(data):
    return {"data": data, "meta": {"timestamp": "2025-01-01T00:00:00Z"}}


def test_enveloped_quotation_is_parsed():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/api/quotations/q-1"
        return httpx.Response(200, json=_envelope({"id": "q-1", "status": "sent", "customerId": "c-1"}))

    result = asyncio.run(_client(handler).get_quotation("q-1"))

    assert isinstance(result, ApiSuccess)
    assert isinstance(result.data, Quotation)
    assert result.data.status == QuotationStatus.SENT
    assert result.data.customer_id == "c-1"


def test_bearer_token_is_sent():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True})

    asyncio.run(_client(handler, token="tok-123").delete_quotation("q-1"))

    assert seen["auth"] == "Bearer tok-123"


def test_no_token_no_authorization_header():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"success": True})

    asyncio.run(_client(handler).delete_quotation("q-1"))

    assert seen["auth"] is None


def test_error_envelope_message_is_kept_verbatim():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "error": {"code": "BAD_REQUEST", "message": "Quotation has already been converted to an invoice"},
                "meta": {},
            },
        )

    result = asyncio.run(_client(handler).convert_to_invoice("q-1"))

    assert result == ApiFailure(400, "BAD_REQUEST", "Quotation has already been converted to an invoice")


def test_plain_error_string_and_404_default_code():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "Quotation not found"})

    result = asyncio.run(_client(handler).get_quotation("missing"))

    assert isinstance(result, ApiFailure)
    assert result.code == "NOT_FOUND"
    assert result.message == "Quotation not found"
    assert failure_to_error("get_quotation", result).code == ErrorCode.NOT_FOUND


def test_error_without_body_uses_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    result = asyncio.run(_client(handler).delete_quotation("q-1"))

    assert result.status_code == 500
    assert result.message == "Request failed with status 500"


def test_network_error_becomes_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = asyncio.run(_client(handler).delete_quotation("q-1"))

    assert isinstance(result, ApiFailure)
    assert result.status_code is None
    assert result.code == "NETWORK_ERROR"
    assert failure_to_error("delete_quotation", result).code == ErrorCode.NETWORK_ERROR


def test_update_status_request_shape():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    result = asyncio.run(_client(handler).update_quotation_status("q-1", QuotationStatus.ACCEPTED))

    assert isinstance(result, ApiSuccess)
    assert seen == {"method": "PATCH", "path": "/api/quotations/q-1/status", "body": {"status": "accepted"}}


def test_convert_reads_nested_invoice_id():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json=_envelope({"invoice": {"id": "inv-9"}, "quotation": {"id": "q-1", "status": "converted"}}),
        )

    result = asyncio.run(_client(handler).convert_to_invoice("q-1", issue_date=date(2025, 2, 1)))

    assert seen["body"] == {"issueDate": "2025-02-01"}
    assert result.data.invoice_id == "inv-9"
    assert result.data.quotation.status == QuotationStatus.CONVERTED


def test_convert_accepts_flat_invoice_id():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"invoiceId": "inv-3"})

    result = asyncio.run(_client(handler).convert_to_invoice("q-1"))

    assert result.data == ConvertedInvoice(invoice_id="inv-3")


def test_convert_without_invoice_id_is_invalid_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": True})

    result = asyncio.run(_client(handler).convert_to_invoice("q-1"))

    assert isinstance(result, ApiFailure)
    assert result.code == "INVALID_RESPONSE"


def test_create_journal_entry_posts_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json=_envelope({"id": "je-1", "entryNumber": "JE-0001", "status": "draft"}))

    entry = JournalEntry(
        entry_date=date(2025, 3, 1),
        description="Rent",
        lines=[
            JournalEntryLine(account_id="rent", debit_amount="1500"),
            JournalEntryLine(account_id="bank", credit_amount="1500"),
        ],
    )
    result = asyncio.run(_client(handler).create_journal_entry(entry))

    assert seen["path"] == "/api/journal-entries"
    assert seen["body"]["description"] == "Rent"
    assert result.status_code == 201
    assert isinstance(result.data, JournalEntryRecord)
    assert result.data.entry_number == "JE-0001"


def test_list_journal_entries_drops_unset_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=_envelope({"entries": [{"id": "je-1"}, {"id": "je-2"}]}))

    result = asyncio.run(_client(handler).list_journal_entries(limit=10))

    assert seen["params"] == {"limit": "10", "offset": "0"}
    assert [e.id for e in result.data] == ["je-1", "je-2"]


def test_write_was_applied_only_for_2xx():
    assert write_was_applied(ApiFailure(200, "INVALID_RESPONSE", "Unexpected response"))
    assert not write_was_applied(ApiFailure(400, "BAD_REQUEST", "No"))
    assert not write_was_applied(ApiFailure(None, "NETWORK_ERROR", "Down"))

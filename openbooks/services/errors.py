"""
OpenBooks Error Handling

Specific error types with user-friendly messages and debugging context.
Local errors are raised before any backend call; backend errors carry the
backend's message unchanged.
"""
from typing import Optional, Dict, Any, List
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for client handling."""
    # Local validation (400s)
    VALIDATION_FAILED = "VALIDATION_FAILED"
    UNBALANCED_ENTRY = "UNBALANCED_ENTRY"
    LOCAL_QUOTATION = "LOCAL_QUOTATION"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    ALREADY_CONVERTED = "ALREADY_CONVERTED"

    # Auth errors (401/403)
    INVALID_API_KEY = "INVALID_API_KEY"

    # Backend errors
    NOT_FOUND = "NOT_FOUND"
    BACKEND_REJECTED = "BACKEND_REJECTED"
    NETWORK_ERROR = "NETWORK_ERROR"


class OpenBooksError(Exception):
    """Base exception with structured error info."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.detail = detail
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response format."""
        result = {
            "error": self.code.value,
            "message": self.message
        }
        if self.detail:
            result["detail"] = self.detail
        if self.context:
            result["context"] = self.context
        return result


class JournalEntryValidationError(OpenBooksError):
    """Entry failed local validation; never reaches the backend."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__(
            code=ErrorCode.VALIDATION_FAILED,
            message=self.problems[0] if self.problems else "Invalid journal entry",
            detail="; ".join(self.problems) or None,
            context={"problems": self.problems}
        )


class UnbalancedEntryError(OpenBooksError):
    """Debits and credits differ by a cent or more."""

    def __init__(self, total_debit, total_credit, difference):
        super().__init__(
            code=ErrorCode.UNBALANCED_ENTRY,
            message="Total debits must equal total credits",
            detail=f"Out of balance by {difference}",
            context={
                "total_debit": str(total_debit),
                "total_credit": str(total_credit),
                "difference": str(difference),
            }
        )


class LocalQuotationError(OpenBooksError):
    """Operation needs a backend record but the quotation is client-only."""

    def __init__(self, quotation_id: str, action: str):
        super().__init__(
            code=ErrorCode.LOCAL_QUOTATION,
            message=f"Local quotations cannot be {action} from here",
            detail="The quotation exists only on this device and has no server record",
            context={"quotation_id": quotation_id, "action": action}
        )


class InvalidTransitionError(OpenBooksError):
    """Requested quotation status change is not allowed."""

    def __init__(self, from_status: str, to_status: str, message: Optional[str] = None):
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=message or f"Invalid transition: {from_status} -> {to_status}",
            context={"from": from_status, "to": to_status}
        )


class AlreadyConvertedError(OpenBooksError):
    """Quotation is already converted; nothing may change it any more."""

    def __init__(self, message: str = "Quotation has already been converted to an invoice"):
        super().__init__(
            code=ErrorCode.ALREADY_CONVERTED,
            message=message,
            context={"status": "converted"}
        )


class BackendRequestError(OpenBooksError):
    """Backend rejected a request or could not be reached."""

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: Optional[int] = None,
        code: ErrorCode = ErrorCode.BACKEND_REJECTED,
        backend_code: Optional[str] = None,
    ):
        self.operation = operation
        self.status_code = status_code
        context: Dict[str, Any] = {"operation": operation}
        if status_code is not None:
            context["status_code"] = status_code
        if backend_code:
            context["backend_code"] = backend_code
        super().__init__(code=code, message=message, context=context)


class APIKeyError(OpenBooksError):
    def __init__(self, detail: str):
        super().__init__(
            code=ErrorCode.INVALID_API_KEY,
            message="Invalid or missing API key",
            detail=detail
        )


# Map error codes to HTTP status codes
STATUS_MAP = {
    ErrorCode.VALIDATION_FAILED: 422,
    ErrorCode.UNBALANCED_ENTRY: 422,
    ErrorCode.LOCAL_QUOTATION: 400,
    ErrorCode.INVALID_TRANSITION: 400,
    ErrorCode.ALREADY_CONVERTED: 409,
    ErrorCode.INVALID_API_KEY: 401,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.BACKEND_REJECTED: 400,
    ErrorCode.NETWORK_ERROR: 502,
}


def status_for(error: OpenBooksError) -> int:
    if isinstance(error, BackendRequestError) and error.code == ErrorCode.BACKEND_REJECTED:
        # Pass through the backend's own 4xx; anything else is a bad gateway
        if error.status_code and 400 <= error.status_code < 500:
            return error.status_code
        return 502
    return STATUS_MAP.get(error.code, 500)


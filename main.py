"""
OpenBooks v1 - FastAPI Gateway

Exposes journal entry balancing and the quotation lifecycle in front of the
bookkeeping backend, so UI clients share one implementation of the rules.

Run Instructions:
-----------------
1. Install dependencies:
   pip install -e .

2. Point the gateway at the backend:
   export OPENBOOKS_API_URL=http://localhost:3001/api

3. Run the app locally with uvicorn:
   uvicorn main:app --host 0.0.0.0 --port 8000 --reload

4. Test /health endpoint:
   curl http://localhost:8000/health
"""
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from openbooks import __version__
from openbooks.api import journal_entries_router, quotations_router
from openbooks.services.errors import OpenBooksError, status_for
from openbooks.services.logging import log_request, log_error
from openbooks.services.metrics import record_request, record_error, get_metrics

app = FastAPI(
    title="OpenBooks API",
    description="""
    OpenBooks API v1 - Journal Entries & Quotation Lifecycle

    ## Journal Entries
    - Live balance preview (debits vs. credits, submit readiness)
    - Local validation before anything reaches the ledger
    - Create as draft, post, reverse

    ## Quotations
    - Status updates between draft, sent, accepted, rejected and expired
    - One-way conversion into an invoice
    - Deletion of server quotations

    ## Authentication
    API key authentication is optional. Set `API_KEY` environment variable to enable.
    When enabled, include `X-API-Key` header in requests.
    """,
    version=__version__,
)

app.include_router(journal_entries_router)
app.include_router(quotations_router)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log requests and record metrics."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_id = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            record_error("exception", request.url.path)
            log_error("request_exception", str(e), {"path": request.url.path, "method": request.method}, exception=e)
            raise

        duration_ms = (time.time() - start_time) * 1000
        log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            client_id=client_id
        )
        record_request(request.method, request.url.path, response.status_code, duration_ms)
        if response.status_code >= 400:
            record_error(f"http_{response.status_code}", request.url.path)
        return response


app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OpenBooksError)
async def openbooks_exception_handler(request: Request, exc: OpenBooksError):
    """Handle all OpenBooksErrors with structured responses."""
    status_code = status_for(exc)
    if status_code >= 500:
        log_error(exc.code.value, str(exc), {"path": str(request.url.path), **exc.context})

    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict()
    )


@app.get("/health", tags=["System"], summary="Health Check")
async def health():
    """Liveness check. No authentication required."""
    return {"status": "healthy", "version": __version__}


@app.get("/metrics", tags=["System"], summary="Get Metrics")
async def metrics_endpoint():
    """Request, error and mutation counters since startup."""
    return get_metrics()

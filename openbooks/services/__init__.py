# Lazy imports to avoid dependency chains at startup
def __getattr__(name):
    if name == "JournalEntryService":
        from openbooks.services.journal_entries import JournalEntryService
        return JournalEntryService
    elif name == "QuotationService":
        from openbooks.services.quotations import QuotationService
        return QuotationService
    elif name == "BackendClient":
        from openbooks.services.backend_client import BackendClient
        return BackendClient
    elif name == "QueryCache":
        from openbooks.services.query_cache import QueryCache
        return QueryCache
    elif name == "compute_balance":
        from openbooks.services.journal_balance import compute_balance
        return compute_balance
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

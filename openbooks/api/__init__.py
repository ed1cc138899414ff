from openbooks.api.journal_entries import router as journal_entries_router
from openbooks.api.quotations import router as quotations_router

__all__ = ["journal_entries_router", "quotations_router"]

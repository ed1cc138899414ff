"""FastAPI dependencies for OpenBooks core services."""
from openbooks.di.container import container


def get_journal_entry_service():
    return container.journal_entries()


def get_quotation_service():
    return container.quotations()

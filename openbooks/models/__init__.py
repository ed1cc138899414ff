from openbooks.models.base import OBBaseModel
from openbooks.models.journal_entries import (
    BalanceSummary,
    JournalEntry,
    JournalEntryLine,
    JournalEntryRecord,
    JournalEntryRecordLine,
    JournalEntryStatus,
    SSTTaxCode,
)
from openbooks.models.quotations import (
    BillingAdjustment,
    BillingDetail,
    ConversionResult,
    CreateQuotationInput,
    Quotation,
    QuotationItem,
    QuotationDetails,
    QuotationFields,
    QuotationStatus,
    QuotationTotals,
    QuotationType,
)

__all__ = [
    "BalanceSummary",
    "BillingAdjustment",
    "BillingDetail",
    "ConversionResult",
    "CreateQuotationInput",
    "JournalEntry",
    "JournalEntryLine",
    "JournalEntryRecord",
    "JournalEntryRecordLine",
    "JournalEntryStatus",
    "OBBaseModel",
    "Quotation",
    "QuotationItem",
    "QuotationDetails",
    "QuotationFields",
    "QuotationStatus",
    "QuotationTotals",
    "QuotationType",
    "SSTTaxCode",
]

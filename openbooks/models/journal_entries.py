from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from openbooks.models.base import OBBaseModel


class JournalEntryStatus(str, Enum):
    DRAFT = "draft"
    POSTED = "posted"
    REVERSED = "reversed"


class SSTTaxCode(str, Enum):
    """Malaysian SST tax codes a line may carry."""
    SR = "sr"    # standard rate
    ZRL = "zrl"  # zero-rated local
    ES = "es"    # exempt supply
    OS = "os"    # out of scope
    RS = "rs"    # relief supply
    GS = "gs"    # goods suspended
    NONE = "none"


class JournalEntryLine(OBBaseModel):
    """
    One side of a journal entry.

    Amounts stay as the strings typed into the form; they are parsed only
    when totals are computed or the entry is validated.
    """

    account_id: str = Field(default="", alias="accountId")
    debit_amount: str = Field(default="", alias="debitAmount")
    credit_amount: str = Field(default="", alias="creditAmount")
    description: Optional[str] = None
    sst_tax_code: Optional[SSTTaxCode] = Field(default=None, alias="sstTaxCode")
    tax_amount: Optional[str] = Field(default=None, alias="taxAmount")

    @field_validator("debit_amount", "credit_amount", mode="before")
    @classmethod
    def _amount_as_text(cls, value):
        if value is None:
            return ""
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        return value


class JournalEntryRecordLine(JournalEntryLine):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class JournalEntry(OBBaseModel):
    """Manual journal entry as built by the entry form."""

    entry_date: Optional[date] = Field(default=None, alias="entryDate")
    description: str = ""
    reference: Optional[str] = None
    lines: List[JournalEntryLine] = Field(default_factory=list)

    def to_payload(self) -> dict:
        """Backend request body (camelCase, unset optionals dropped)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class JournalEntryRecord(OBBaseModel):
    """Journal entry as returned by the backend."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    entry_number: Optional[str] = Field(default=None, alias="entryNumber")
    status: JournalEntryStatus = JournalEntryStatus.DRAFT
    entry_date: Optional[str] = Field(default=None, alias="entryDate")  # as sent by the backend
    description: Optional[str] = None
    reference: Optional[str] = None
    lines: List[JournalEntryRecordLine] = Field(default_factory=list)


class BalanceSummary(OBBaseModel):
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool
    difference: Decimal
    is_empty: bool
    can_submit: bool

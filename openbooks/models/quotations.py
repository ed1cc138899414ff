from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, computed_field

from openbooks.models.base import OBBaseModel


class QuotationStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


class QuotationType(str, Enum):
    LOCAL = "local"    # held only by the client, never synced
    SERVER = "server"  # persisted by the backend


class BillingAdjustment(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class QuotationItem(OBBaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    description: Optional[str] = None
    quantity: float = Field(gt=0)
    unit_price: float = Field(gt=0, alias="unitPrice")


class BillingDetail(OBBaseModel):
    """Tax, discount or fee applied on top of the item subtotal."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    label: str
    value: float
    type: BillingAdjustment = BillingAdjustment.FIXED
    is_sst_tax: Optional[bool] = Field(default=None, alias="isSstTax")
    sst_tax_type: Optional[str] = Field(default=None, alias="sstTaxType")
    sst_rate_code: Optional[str] = Field(default=None, alias="sstRateCode")


class QuotationDetails(OBBaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    currency: str = "MYR"
    prefix: Optional[str] = None
    serial_number: Optional[str] = Field(default=None, alias="serialNumber")
    issue_date: Optional[str] = Field(default=None, alias="date")
    valid_until: Optional[str] = Field(default=None, alias="validUntil")
    payment_terms: Optional[str] = Field(default=None, alias="paymentTerms")
    billing_details: List[BillingDetail] = Field(default_factory=list, alias="billingDetails")


class QuotationFields(OBBaseModel):
    """Document contents stored by the backend under quotationFields."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    company_details: Dict[str, Any] = Field(default_factory=dict, alias="companyDetails")
    client_details: Dict[str, Any] = Field(default_factory=dict, alias="clientDetails")
    quotation_details: QuotationDetails = Field(default_factory=QuotationDetails, alias="quotationDetails")
    items: List[QuotationItem] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None


class Quotation(OBBaseModel):
    """Client copy of a quotation; may be stale."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    type: QuotationType = QuotationType.SERVER
    status: QuotationStatus = QuotationStatus.DRAFT
    customer_id: Optional[str] = Field(default=None, alias="customerId")
    valid_until: Optional[str] = Field(default=None, alias="validUntil")
    converted_invoice_id: Optional[str] = Field(default=None, alias="convertedInvoiceId")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    quotation_fields: Optional[QuotationFields] = Field(default=None, alias="quotationFields")

    @property
    def is_converted(self) -> bool:
        return self.status == QuotationStatus.CONVERTED

    @property
    def currency(self) -> Optional[str]:
        return self.quotation_fields.quotation_details.currency if self.quotation_fields else None

    @property
    def items(self) -> List[QuotationItem]:
        return self.quotation_fields.items if self.quotation_fields else []

    @property
    def billing_details(self) -> List[BillingDetail]:
        return self.quotation_fields.quotation_details.billing_details if self.quotation_fields else []

    @computed_field
    @property
    def total(self) -> Optional[Decimal]:
        """Items plus billing adjustments; None when the contents were not loaded."""
        if self.quotation_fields is None:
            return None
        from openbooks.services.quotation_totals import quotation_total

        return quotation_total(self.items, self.billing_details)


class QuotationTotals(OBBaseModel):
    currency: str
    subtotal: Decimal
    adjustments: Decimal
    total: Decimal


class CreateQuotationInput(OBBaseModel):
    customer_id: Optional[str] = Field(default=None, alias="customerId")
    currency: str = "MYR"
    prefix: str = "QUO-"
    serial_number: str = Field(alias="serialNumber")
    issue_date: date = Field(alias="date")
    valid_until: Optional[date] = Field(default=None, alias="validUntil")
    payment_terms: Optional[str] = Field(default=None, alias="paymentTerms")
    company_details: Dict[str, Any] = Field(default_factory=dict, alias="companyDetails")
    client_details: Dict[str, Any] = Field(default_factory=dict, alias="clientDetails")
    items: List[QuotationItem] = Field(min_length=1)
    billing_details: List[BillingDetail] = Field(default_factory=list, alias="billingDetails")
    notes: Optional[str] = None
    terms: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Nested request body expected by the quotations endpoint."""
        details: Dict[str, Any] = {
            "currency": self.currency,
            "prefix": self.prefix,
            "serialNumber": self.serial_number,
            "date": self.issue_date.isoformat(),
            "billingDetails": [
                b.model_dump(mode="json", by_alias=True, exclude_none=True) for b in self.billing_details
            ],
        }
        if self.valid_until:
            details["validUntil"] = self.valid_until.isoformat()
        if self.payment_terms:
            details["paymentTerms"] = self.payment_terms

        payload: Dict[str, Any] = {
            "companyDetails": self.company_details,
            "clientDetails": self.client_details,
            "quotationDetails": details,
            "items": [i.model_dump(mode="json", by_alias=True, exclude_none=True) for i in self.items],
        }
        if self.customer_id:
            payload["customerId"] = self.customer_id
        if self.valid_until:
            payload["validUntil"] = self.valid_until.isoformat()
        metadata = {k: v for k, v in (("notes", self.notes), ("terms", self.terms)) if v}
        if metadata:
            payload["metadata"] = metadata
        return payload


class ConversionResult(OBBaseModel):
    """Outcome of converting a quotation into an invoice."""

    invoice_id: str
    quotation: Quotation

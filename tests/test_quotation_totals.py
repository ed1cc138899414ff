from decimal import Decimal

from openbooks.models.quotations import BillingAdjustment, BillingDetail, QuotationItem
from openbooks.services.quotation_totals import quotation_breakdown, quotation_subtotal, quotation_total


ITEMS = [
    QuotationItem(name="Website design", quantity=1, unit_price=2500),
    QuotationItem(name="Hosting (months)", quantity=12, unit_price=45.5),
]


def test_subtotal():
    assert quotation_subtotal(ITEMS) == Decimal("3046.0")


def test_total_without_adjustments():
    assert quotation_total(ITEMS) == Decimal("3046.00")


def test_sst_percentage_applies_to_subtotal():
    details = [
        BillingDetail(label="SST 8%", value=8, type=BillingAdjustment.PERCENTAGE, is_sst_tax=True),
        BillingDetail(label="Discount", value=-46, type=BillingAdjustment.FIXED),
    ]

    # 3046 + 243.68 - 46
    assert quotation_total(ITEMS, details) == Decimal("3243.68")


def test_breakdown():
    details = [BillingDetail(label="Service charge", value=10, type=BillingAdjustment.PERCENTAGE)]

    breakdown = quotation_breakdown(ITEMS, details)

    assert breakdown == {
        "subtotal": Decimal("3046.00"),
        "adjustments": Decimal("304.60"),
        "total": Decimal("3350.60"),
    }

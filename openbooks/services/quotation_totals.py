"""Quotation totals shown in lists and on the quotation PDF."""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Optional

from openbooks.models.quotations import BillingAdjustment, BillingDetail, QuotationItem


def _dec(value) -> Decimal:
    return Decimal(str(value))


def quotation_subtotal(items: Iterable[QuotationItem]) -> Decimal:
    return sum((_dec(i.quantity) * _dec(i.unit_price) for i in items), Decimal("0"))


def quotation_total(
    items: Iterable[QuotationItem],
    billing_details: Optional[Iterable[BillingDetail]] = None,
) -> Decimal:
    """
    Subtotal plus billing adjustments.

    Percentage adjustments apply to the item subtotal (not to the running
    total), fixed ones are added as-is. Negative values act as discounts.
    """
    subtotal = quotation_subtotal(items)
    total = subtotal
    for detail in billing_details or ():
        value = _dec(detail.value)
        if detail.type == BillingAdjustment.PERCENTAGE:
            total += subtotal * value / Decimal("100")
        else:
            total += value
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def quotation_breakdown(
    items: Iterable[QuotationItem],
    billing_details: Optional[Iterable[BillingDetail]] = None,
) -> Dict[str, Decimal]:
    items = list(items)
    details = list(billing_details or ())
    subtotal = quotation_subtotal(items)
    total = quotation_total(items, details)
    return {
        "subtotal": subtotal.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        "adjustments": total - subtotal.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        "total": total,
    }

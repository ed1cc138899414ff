"""
Journal entry balancing.

Totals are computed from the raw amount strings of the entry form. Anything
that does not parse as a finite decimal counts as zero, so a malformed amount
never makes an entry balance but can hide a real imbalance; validate_entry
is the strict check run before anything is sent to the backend.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import List, Sequence

from openbooks.models.journal_entries import BalanceSummary, JournalEntry, JournalEntryLine
from openbooks.services.errors import JournalEntryValidationError, UnbalancedEntryError


BALANCE_TOLERANCE = Decimal("0.01")
MIN_LINES = 2
MAX_DESCRIPTION_LENGTH = 500
MAX_REFERENCE_LENGTH = 100
# Whole-number digits accepted on submission (backend numeric column)
MAX_AMOUNT_DIGITS = 15

# Totals are exact for any amount below 10**MAX_TOTAL_EXPONENT
MAX_TOTAL_EXPONENT = 90
_WORKING_PRECISION = 120

_CENT = Decimal("0.01")
_ZERO = Decimal("0")
_AMOUNT_LIMIT = Decimal(10) ** MAX_AMOUNT_DIGITS


def parse_amount(value) -> Decimal:
    """Lenient parse: empty, malformed, non-finite or absurdly large input is zero."""
    if value is None:
        return _ZERO
    text = str(value).strip()
    if not text:
        return _ZERO
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return _ZERO
    if not amount.is_finite() or amount.adjusted() >= MAX_TOTAL_EXPONENT:
        return _ZERO
    return amount


def _strict_amount(value):
    """Strict parse used by validation; None for non-numeric input."""
    if value is None or str(value).strip() == "":
        return _ZERO
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def compute_balance(lines: Sequence[JournalEntryLine]) -> BalanceSummary:
    """Totals of the form as it stands. Never raises, whatever the amounts hold."""
    with localcontext() as ctx:
        ctx.prec = _WORKING_PRECISION
        total_debit = sum((parse_amount(line.debit_amount) for line in lines), _ZERO)
        total_credit = sum((parse_amount(line.credit_amount) for line in lines), _ZERO)
        gap = abs(total_debit - total_credit)
        difference = gap.quantize(_CENT, rounding=ROUND_HALF_UP)
    is_balanced = gap < BALANCE_TOLERANCE
    is_empty = total_debit == 0 and total_credit == 0

    return BalanceSummary(
        total_debit=total_debit,
        total_credit=total_credit,
        is_balanced=is_balanced,
        difference=difference,
        is_empty=is_empty,
        # 0 == 0 is balanced but there is nothing to post yet
        can_submit=is_balanced and total_debit > 0 and total_credit > 0,
    )


def set_debit(lines: List[JournalEntryLine], index: int, value: str) -> None:
    """Set a debit; a positive debit clears the credit on the same line."""
    line = lines[index]
    line.debit_amount = value
    if parse_amount(value) > 0:
        line.credit_amount = ""


def set_credit(lines: List[JournalEntryLine], index: int, value: str) -> None:
    """Set a credit; a positive credit clears the debit on the same line."""
    line = lines[index]
    line.credit_amount = value
    if parse_amount(value) > 0:
        line.debit_amount = ""


def blank_lines(count: int = MIN_LINES) -> List[JournalEntryLine]:
    return [JournalEntryLine() for _ in range(count)]


def add_line(lines: List[JournalEntryLine]) -> JournalEntryLine:
    line = JournalEntryLine()
    lines.append(line)
    return line


def remove_line(lines: List[JournalEntryLine], index: int) -> bool:
    """Remove a line unless that would leave fewer than two. Returns True if removed."""
    if len(lines) <= MIN_LINES:
        return False
    del lines[index]
    return True


def _line_problems(position: int, line: JournalEntryLine) -> List[str]:
    problems: List[str] = []
    label = f"Line {position}"

    if not line.account_id:
        problems.append(f"{label}: Please select an account")

    debit = _strict_amount(line.debit_amount)
    credit = _strict_amount(line.credit_amount)
    if debit is None or credit is None:
        problems.append(f"{label}: Amounts must be numbers")
        return problems
    if debit < 0 or credit < 0:
        problems.append(f"{label}: Amounts cannot be negative")
        return problems
    if max(debit, credit) >= _AMOUNT_LIMIT:
        problems.append(f"{label}: Amounts must be less than 10^{MAX_AMOUNT_DIGITS}")
        return problems
    if debit > 0 and credit > 0:
        problems.append(f"{label}: A line cannot have both debit and credit amounts")
    elif debit == 0 and credit == 0:
        problems.append(f"{label}: Each line must have either a debit or credit amount")
    return problems


def validate_entry(entry: JournalEntry) -> BalanceSummary:
    """
    Check an entry before it is sent to the backend.

    Raises:
        JournalEntryValidationError: listing every structural problem found.
        UnbalancedEntryError: when the lines are well formed but do not balance.

    Returns:
        The balance summary of a valid entry.
    """
    problems: List[str] = []

    if entry.entry_date is None:
        problems.append("Entry date is required")
    if not entry.description:
        problems.append("Description is required")
    elif len(entry.description) > MAX_DESCRIPTION_LENGTH:
        problems.append(f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters")
    if entry.reference and len(entry.reference) > MAX_REFERENCE_LENGTH:
        problems.append(f"Reference must be at most {MAX_REFERENCE_LENGTH} characters")
    if len(entry.lines) < MIN_LINES:
        problems.append("Journal entry must have at least 2 lines")

    for position, line in enumerate(entry.lines, start=1):
        problems.extend(_line_problems(position, line))

    summary = compute_balance(entry.lines)
    if summary.is_empty:
        problems.append("Journal entry has no amounts")

    if problems:
        raise JournalEntryValidationError(problems)
    if not summary.is_balanced:
        raise UnbalancedEntryError(summary.total_debit, summary.total_credit, summary.difference)
    return summary

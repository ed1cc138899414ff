"""
Tests for journal entry balancing and local validation.
"""

from datetime import date
from decimal import Decimal

import pytest

from openbooks.models.journal_entries import JournalEntry, JournalEntryLine
from openbooks.services.errors import ErrorCode, JournalEntryValidationError, UnbalancedEntryError
from openbooks.services.journal_balance import (
    add_line,
    blank_lines,
    compute_balance,
    parse_amount,
    remove_line,
    set_credit,
    set_debit,
    validate_entry,
)


def _line(debit: str = "", credit: str = "", account: str = "acc-1") -> JournalEntryLine:
    return JournalEntryLine(account_id=account, debit_amount=debit, credit_amount=credit)


def _entry(*lines: JournalEntryLine, description: str = "Owner capital injection") -> JournalEntry:
    return JournalEntry(entry_date=date(2025, 3, 1), description=description, lines=list(lines))


class TestComputeBalance:

    def test_balanced_pair(self):
        summary = compute_balance([_line(debit="100.00"), _line(credit="100.00")])

        assert summary.total_debit == Decimal("100.00")
        assert summary.total_credit == Decimal("100.00")
        assert summary.is_balanced is True
        assert summary.can_submit is True

    def test_half_ringgit_off_is_unbalanced(self):
        summary = compute_balance([_line(debit="100.00"), _line(credit="99.50")])

        assert summary.is_balanced is False
        assert summary.difference == Decimal("0.50")
        assert summary.can_submit is False

    def test_sub_cent_gap_still_balanced(self):
        summary = compute_balance([_line(debit="10.004"), _line(credit="10")])
        assert summary.is_balanced is True

    def test_one_cent_gap_is_unbalanced(self):
        summary = compute_balance([_line(debit="10.01"), _line(credit="10.00")])
        assert summary.is_balanced is False
        assert summary.difference == Decimal("0.01")

    def test_many_lines(self):
        lines = [
            _line(debit="250.00"),
            _line(debit="49.99"),
            _line(credit="120.00"),
            _line(credit="179.99"),
        ]
        summary = compute_balance(lines)
        assert summary.total_debit == Decimal("299.99")
        assert summary.total_credit == Decimal("299.99")
        assert summary.is_balanced is True

    def test_all_empty_is_balanced_but_not_ready(self):
        summary = compute_balance(blank_lines())

        assert summary.total_debit == 0
        assert summary.total_credit == 0
        assert summary.is_balanced is True
        assert summary.is_empty is True
        assert summary.can_submit is False

    def test_one_side_only_is_not_ready(self):
        summary = compute_balance([_line(debit="0"), _line(credit="0.00")])
        assert summary.can_submit is False

    def test_malformed_amounts_count_as_zero(self):
        summary = compute_balance([_line(debit="abc"), _line(debit="50"), _line(credit="50")])

        assert summary.total_debit == Decimal("50")
        assert summary.is_balanced is True

    def test_malformed_amount_can_hide_imbalance(self):
        # "1O0" (letter O) silently counts as zero on both sides
        summary = compute_balance([_line(debit="1O0"), _line(credit="")])
        assert summary.is_balanced is True
        assert summary.can_submit is False

    def test_amount_beyond_default_precision(self):
        huge = "1" + "0" * 27

        summary = compute_balance([_line(debit=huge), _line(credit="1")])

        assert summary.total_debit == Decimal(huge)
        assert summary.is_balanced is False
        assert summary.difference == Decimal(huge) - 1

    def test_astronomical_amount_counts_as_zero(self):
        summary = compute_balance([_line(debit="1e500"), _line(credit="5")])
        assert summary.total_debit == 0

    @pytest.mark.parametrize("raw", ["", "   ", None, "NaN", "Infinity", "12,50"])
    def test_parse_amount_lenient(self, raw):
        assert parse_amount(raw) == 0


class TestLineEditing:

    def test_setting_debit_clears_credit(self):
        lines = [_line(credit="25"), _line()]

        set_debit(lines, 0, "10")

        assert lines[0].debit_amount == "10"
        assert lines[0].credit_amount == ""

    def test_setting_credit_clears_debit(self):
        lines = [_line(), _line()]

        set_debit(lines, 1, "10")
        set_credit(lines, 1, "5")

        assert lines[1].credit_amount == "5"
        assert lines[1].debit_amount == ""

    def test_zero_or_blank_does_not_clear_other_side(self):
        lines = [_line(credit="25"), _line()]

        set_debit(lines, 0, "0")
        assert lines[0].credit_amount == "25"

        set_debit(lines, 0, "")
        assert lines[0].credit_amount == "25"

    def test_remove_line_keeps_minimum_of_two(self):
        lines = blank_lines()

        assert remove_line(lines, 0) is False
        assert len(lines) == 2

    def test_remove_line_above_minimum(self):
        lines = blank_lines()
        add_line(lines)
        lines[2].debit_amount = "7"

        assert remove_line(lines, 2) is True
        assert len(lines) == 2
        assert all(line.debit_amount == "" for line in lines)


class TestValidateEntry:

    def test_valid_entry_returns_summary(self):
        summary = validate_entry(_entry(_line(debit="100.00"), _line(credit="100.00", account="acc-2")))
        assert summary.total_debit == Decimal("100.00")

    def test_unbalanced_entry(self):
        with pytest.raises(UnbalancedEntryError) as exc:
            validate_entry(_entry(_line(debit="100.00"), _line(credit="99.50")))

        assert exc.value.code == ErrorCode.UNBALANCED_ENTRY
        assert exc.value.context["difference"] == "0.50"

    def test_line_with_both_sides(self):
        with pytest.raises(JournalEntryValidationError) as exc:
            validate_entry(_entry(_line(debit="10", credit="10"), _line(credit="0")))

        assert "Line 1: A line cannot have both debit and credit amounts" in exc.value.problems
        assert "Line 2: Each line must have either a debit or credit amount" in exc.value.problems

    def test_missing_description_and_account(self):
        entry = _entry(_line(debit="5", account=""), _line(credit="5"), description="")

        with pytest.raises(JournalEntryValidationError) as exc:
            validate_entry(entry)

        assert "Description is required" in exc.value.problems
        assert "Line 1: Please select an account" in exc.value.problems

    def test_description_too_long(self):
        entry = _entry(_line(debit="5"), _line(credit="5"), description="x" * 501)

        with pytest.raises(JournalEntryValidationError) as exc:
            validate_entry(entry)

        assert exc.value.problems == ["Description must be at most 500 characters"]

    def test_needs_two_lines(self):
        with pytest.raises(JournalEntryValidationError) as exc:
            validate_entry(_entry(_line(debit="5")))

        assert "Journal entry must have at least 2 lines" in exc.value.problems

    def test_non_numeric_and_negative_amounts(self):
        with pytest.raises(JournalEntryValidationError) as exc:
            validate_entry(_entry(_line(debit="ten"), _line(credit="-10")))

        assert "Line 1: Amounts must be numbers" in exc.value.problems
        assert "Line 2: Amounts cannot be negative" in exc.value.problems

    def test_amount_too_large(self):
        huge = "1" + "0" * 27

        with pytest.raises(JournalEntryValidationError) as exc:
            validate_entry(_entry(_line(debit=huge), _line(credit=huge, account="acc-2")))

        assert "Line 1: Amounts must be less than 10^15" in exc.value.problems
        assert "Line 2: Amounts must be less than 10^15" in exc.value.problems

    def test_missing_date(self):
        entry = JournalEntry(description="Accrual", lines=[_line(debit="1"), _line(credit="1")])

        with pytest.raises(JournalEntryValidationError) as exc:
            validate_entry(entry)

        assert exc.value.message == "Entry date is required"

"""
Unit tests for the ledger aggregate.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from classification import CategoryKind
from exceptions import LedgerError
from ledger import Ledger
from validation import TransactionRecord


def _record(day, category, amount):
    return TransactionRecord(date=day, category=category, amount=Decimal(amount))


class TestLoad:
    """Test loading records into the ledger."""

    def test_totals(self, surplus_ledger):
        assert surplus_ledger.total_income() == Decimal("5200")
        assert surplus_ledger.total_expenses() == Decimal("-1700")
        assert surplus_ledger.net_balance() == Decimal("3500")
        assert surplus_ledger.year == 2024
        assert surplus_ledger.record_count == 6

    def test_ambiguous_routing(self):
        ledger = Ledger()
        ledger.load_rows([
            ("01/01/2024", "Other", "200"),
            ("01/02/2024", "Other", "-50"),
        ])
        assert ledger.other_income == Decimal("200")
        assert ledger.other_expense == Decimal("-50")
        assert ledger.category_totals() == {"other": Decimal("150")}
        assert ledger.total_income() == Decimal("200")
        assert ledger.total_expenses() == Decimal("-50")

    def test_sign_invariant(self, surplus_ledger, deficit_ledger):
        for ledger in (surplus_ledger, deficit_ledger):
            assert ledger.total_income() >= 0
            assert ledger.total_expenses() <= 0
            assert ledger.other_income >= 0
            assert ledger.other_expense <= 0

    def test_load_replaces_state(self, surplus_ledger, deficit_rows):
        surplus_ledger.load_rows(deficit_rows)
        assert surplus_ledger.net_balance() == Decimal("-300")
        assert "other" not in surplus_ledger.category_totals()
        assert surplus_ledger.other_income == 0

    def test_records_from_other_years_are_skipped(self):
        ledger = Ledger()
        with patch("ledger.logger") as mock_logger:
            count = ledger.load([
                _record(date(2024, 1, 1), "food", "-10"),
                _record(date(2023, 1, 1), "food", "-20"),
            ])
        assert count == 1
        assert ledger.category_totals() == {"food": Decimal("-10")}
        mock_logger.warning.assert_called_once()

    def test_unrecognized_records_are_skipped(self):
        ledger = Ledger()
        count = ledger.load([_record(date(2024, 1, 1), "travel", "-10")])
        assert count == 0
        assert ledger.category_totals() == {}
        assert ledger.year is None

    def test_sign_mismatch_records_are_skipped(self):
        ledger = Ledger()
        ledger.load([
            _record(date(2024, 1, 1), "food", "10"),
            _record(date(2024, 1, 2), "compensation", "-10"),
        ])
        assert ledger.record_count == 0

    def test_load_rows_returns_report(self, surplus_rows):
        ledger = Ledger()
        report = ledger.load_rows(surplus_rows + [("01/01/2024", "Travel", "-5")])
        assert report.accepted_count == 6
        assert report.rejected_count == 1
        assert ledger.record_count == 6

    def test_categories_accumulate(self):
        ledger = Ledger()
        ledger.load_rows([
            ("01/01/2024", "Food", "-10"),
            ("01/02/2024", "FOOD", "-15.25"),
        ])
        assert ledger.category_totals() == {"food": Decimal("-25.25")}


class TestAccessors:
    """Test read accessors."""

    def test_category_totals_is_a_copy(self, surplus_ledger):
        totals = surplus_ledger.category_totals()
        totals["food"] = Decimal("0")
        assert surplus_ledger.category_totals()["food"] == Decimal("-300")

    def test_find_category_is_case_insensitive(self, surplus_ledger):
        assert surplus_ledger.find_category("FOOD") == "food"
        assert surplus_ledger.find_category("travel") is None

    def test_category_kind(self, surplus_ledger):
        assert surplus_ledger.category_kind("Rent") is CategoryKind.EXPENSE
        assert surplus_ledger.is_expense_category("other")
        assert not surplus_ledger.is_expense_category("compensation")

    def test_expense_magnitudes(self, surplus_ledger):
        assert surplus_ledger.expense_magnitudes() == {
            "rent": Decimal("1200"),
            "food": Decimal("300"),
            "other": Decimal("50"),
            "entertainment": Decimal("150"),
        }

    def test_other_without_spending_has_no_magnitude(self):
        ledger = Ledger()
        ledger.load_rows([("01/01/2024", "Other", "100"), ("01/02/2024", "Food", "-5")])
        assert ledger.expense_magnitudes() == {"food": Decimal("5")}

    def test_percentage_by_category(self, surplus_ledger):
        shares = surplus_ledger.percentage_by_category()
        assert shares["rent"] == pytest.approx(1200 / 1700)
        assert shares["other"] == pytest.approx(50 / 1700)
        assert "compensation" not in shares
        assert sum(shares.values()) == pytest.approx(1.0)

    def test_percentage_with_zero_expenses(self):
        ledger = Ledger()
        ledger.load_rows([("01/01/2024", "Compensation", "100")])
        with patch("ledger.logger") as mock_logger:
            assert ledger.percentage_by_category() == {}
        mock_logger.error.assert_called_once()

    def test_largest_expense_category_tie_break(self):
        ledger = Ledger()
        ledger.load_rows([
            ("01/01/2024", "Work", "-100"),
            ("01/02/2024", "Food", "-100"),
            ("01/03/2024", "Home", "-50"),
        ])
        assert ledger.largest_expense_category() == ("food", Decimal("100"))

    def test_largest_expense_category_empty(self):
        assert Ledger().largest_expense_category() is None

    def test_snapshot(self, surplus_ledger):
        snapshot = surplus_ledger.snapshot()
        assert snapshot.year == 2024
        assert snapshot.net_balance == Decimal("3500")
        assert snapshot.has_surplus
        assert not snapshot.has_deficit
        assert snapshot.record_count == 6
        assert snapshot.excluded == {}
        assert snapshot.expense_percentages["food"] == pytest.approx(300 / 1700)


class TestMutations:
    """Test the mutation helpers used by exclusion and scenarios."""

    def test_adjust_expense_increases_spending(self, surplus_ledger):
        assert surplus_ledger.adjust_expense("food", Decimal("100")) == Decimal("400")
        assert surplus_ledger.category_totals()["food"] == Decimal("-400")
        assert surplus_ledger.net_balance() == Decimal("3400")

    def test_adjust_other_moves_expense_part(self, surplus_ledger):
        surplus_ledger.adjust_expense("other", Decimal("25"))
        assert surplus_ledger.other_expense == Decimal("-75")
        assert surplus_ledger.other_income == Decimal("200")
        assert surplus_ledger.category_totals()["other"] == Decimal("125")

    def test_adjust_income_category_raises(self, surplus_ledger):
        with pytest.raises(LedgerError):
            surplus_ledger.adjust_expense("compensation", Decimal("10"))

    def test_adjust_beyond_spending_raises(self, surplus_ledger):
        with pytest.raises(LedgerError):
            surplus_ledger.adjust_expense("food", Decimal("-301"))
        assert surplus_ledger.category_totals()["food"] == Decimal("-300")

    def test_detach_inactive_category_raises(self, surplus_ledger):
        with pytest.raises(LedgerError):
            surplus_ledger.detach_category("travel")

    def test_attach_active_category_raises(self, surplus_ledger):
        with pytest.raises(LedgerError):
            surplus_ledger.attach_category("food")

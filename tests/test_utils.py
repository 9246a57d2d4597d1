"""
Unit tests for utility helpers.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest

from utils import get_project_root, quantize_amount, resolve_log_path, to_decimal


class TestToDecimal:
    """Test Decimal conversion."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("12.50", Decimal("12.50")),
            (" -3 ", Decimal("-3")),
            (7, Decimal("7")),
            (0.1, Decimal("0.1")),
            (Decimal("5"), Decimal("5")),
        ],
    )
    def test_valid_values(self, value, expected):
        assert to_decimal(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", "NaN", "Infinity", True, float("inf")])
    def test_invalid_values(self, value):
        assert to_decimal(value) is None


class TestQuantizeAmount:
    """Test half-up rounding to the accounting unit."""

    @pytest.mark.parametrize(
        "amount, unit, expected",
        [
            ("2.5", "1", "3"),
            ("-2.5", "1", "-3"),
            ("2.49", "1", "2"),
            ("33.335", "0.01", "33.34"),
            ("123", "5", "125"),
        ],
    )
    def test_rounding(self, amount, unit, expected):
        assert quantize_amount(Decimal(amount), Decimal(unit)) == Decimal(expected)


class TestPaths:
    """Test path helpers."""

    def test_relative_log_path_is_under_project_root(self, tmp_path):
        with patch("utils.get_project_root", return_value=tmp_path):
            path = resolve_log_path("logs/test.log")
        assert path == tmp_path / "logs" / "test.log"
        assert path.parent.is_dir()

    def test_project_root_holds_this_module(self):
        assert (get_project_root() / "utils.py").exists()

    def test_absolute_log_path_is_kept(self, tmp_path):
        target = tmp_path / "nested" / "app.log"
        assert resolve_log_path(str(target)) == target
        assert target.parent.is_dir()

"""
Shared fixtures for the budget planner tests.

The sample years below are small enough to check by hand:

surplus_rows: income 5200 (5000 compensation + 200 other), expenses -1700
(rent 1200, food 300, entertainment 150, other 50), net balance 3500.

deficit_rows: income 1000, expenses -1300 (rent 900, food 300, utilities 100),
net balance -300.
"""

import copy
import logging

import pytest

from config_manager import DEFAULT_CONFIG
from ledger import Ledger


@pytest.fixture
def surplus_rows():
    """One year of rows that ends with a surplus."""
    return [
        ("01/05/2024", "Compensation", "5000"),
        ("01/10/2024", "Rent", "-1200"),
        ("02/01/2024", "Food", "-300"),
        ("02/15/2024", "Other", "200"),
        ("03/01/2024", "Other", "-50"),
        ("03/05/2024", "Entertainment", "-150"),
    ]


@pytest.fixture
def deficit_rows():
    """One year of rows that ends with a deficit."""
    return [
        ("01/05/2024", "Compensation", "1000"),
        ("01/10/2024", "Rent", "-900"),
        ("01/11/2024", "Food", "-300"),
        ("01/12/2024", "Utilities", "-100"),
    ]


@pytest.fixture
def surplus_ledger(surplus_rows):
    """Ledger loaded with surplus_rows."""
    ledger = Ledger()
    ledger.load_rows(surplus_rows)
    return ledger


@pytest.fixture
def deficit_ledger(deficit_rows):
    """Ledger loaded with deficit_rows."""
    ledger = Ledger()
    ledger.load_rows(deficit_rows)
    return ledger


@pytest.fixture
def default_config():
    """Independent copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a file under tmp_path and return its path."""

    def _write(content: str, name: str = "transactions_2024.csv"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def reset_logging():
    """Remove handlers installed by setup_logging once the test finishes."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in original_handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(original_level)

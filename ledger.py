"""
Ledger module for aggregating validated transactions.

The ledger is the single mutable aggregate of a budgeting session. It keeps
per-category signed totals, the split of the ambiguous category into its
income and expense parts, and the set of temporarily excluded categories.
Income and expense totals are always derived from the active categories, so
they cannot drift from the per-category figures.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from classification import CategoryClassifier, CategoryKind, CategoryType, default_classifier, normalize_category
from exceptions import LedgerError
from validation import BatchReport, RecordValidator, TransactionRecord

# Configure logging
logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class ExcludedCategory:
    """
    Stored value of a category removed from active aggregation.

    Attributes:
        category: Normalized category name
        total: Signed category total at the time of exclusion
        income_part: Ambiguous category only: its income subtotal
        expense_part: Ambiguous category only: its expense subtotal
    """
    category: str
    total: Decimal
    income_part: Decimal = ZERO
    expense_part: Decimal = ZERO


@dataclass(frozen=True)
class LedgerSnapshot:
    """Read-only copy of the ledger figures handed to hosts and reports."""
    year: Optional[int]
    total_income: Decimal
    total_expenses: Decimal
    net_balance: Decimal
    other_income: Decimal
    other_expense: Decimal
    category_totals: Dict[str, Decimal] = field(default_factory=dict)
    expense_percentages: Dict[str, float] = field(default_factory=dict)
    excluded: Dict[str, Decimal] = field(default_factory=dict)
    record_count: int = 0

    @property
    def has_surplus(self) -> bool:
        return self.net_balance > 0

    @property
    def has_deficit(self) -> bool:
        return self.net_balance < 0


class Ledger:
    """
    In-memory aggregate of validated transactions for one scenario run.

    A ledger is rebuilt from scratch by ``load``; afterwards only the
    exclusion manager and the scenario simulator mutate it, one category at
    a time.
    """

    def __init__(self, classifier: Optional[CategoryClassifier] = None):
        """
        Initialize an empty ledger.

        Args:
            classifier: Category classifier; defaults to the built-in vocabulary.
        """
        self.classifier = classifier or default_classifier()
        self.year: Optional[int] = None
        self.record_count = 0
        self._totals: Dict[str, Decimal] = {}
        self._other_income = ZERO
        self._other_expense = ZERO
        self._excluded: Dict[str, ExcludedCategory] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self.year = None
        self.record_count = 0
        self._totals = {}
        self._other_income = ZERO
        self._other_expense = ZERO
        self._excluded = {}

    def load(self, records: Iterable[TransactionRecord]) -> int:
        """
        Replace all ledger state with the given records.

        Records whose category cannot be resolved, whose sign contradicts
        their category, or whose year differs from the first aggregated record's year
        are skipped with a warning.

        Args:
            records: Validated transaction records.

        Returns:
            Number of records aggregated.
        """
        self._reset()

        for record in records:
            category = normalize_category(record.category)
            resolved = self.classifier.resolve(category, record.amount)
            if resolved is None:
                logger.warning("Skipping record with unrecognized category '%s'", record.category)
                continue

            if not self.classifier.is_ambiguous(category):
                if resolved is CategoryType.INCOME and record.amount <= 0:
                    logger.warning("Skipping non-positive income record: %s %s", category, record.amount)
                    continue
                if resolved is CategoryType.EXPENSE and record.amount >= 0:
                    logger.warning("Skipping non-negative expense record: %s %s", category, record.amount)
                    continue

            if self.year is None:
                self.year = record.date.year
            elif record.date.year != self.year:
                logger.warning(
                    "Skipping record dated %s: year does not match ledger year %s", record.date, self.year
                )
                continue

            if self.classifier.is_ambiguous(category):
                if resolved is CategoryType.INCOME:
                    self._other_income += record.amount
                else:
                    self._other_expense += record.amount

            self._totals[category] = self._totals.get(category, ZERO) + record.amount
            self.record_count += 1

        logger.info(
            "Ledger loaded %s records for year %s across %s categories",
            self.record_count,
            self.year,
            len(self._totals),
        )
        return self.record_count

    def load_rows(
        self,
        rows: Iterable[Sequence],
        validator: Optional[RecordValidator] = None
    ) -> BatchReport:
        """
        Validate raw rows and load the accepted ones.

        Args:
            rows: Raw ``(date, category, amount)`` string tuples.
            validator: Optional validator; a new one sharing this ledger's
                classifier is used when omitted.

        Returns:
            BatchReport describing accepted and rejected rows.
        """
        validator = validator or RecordValidator(self.classifier)
        report = validator.validate_batch(rows)
        self.load(report.records)
        return report

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def other_income(self) -> Decimal:
        """Active income part of the ambiguous category."""
        return self._other_income

    @property
    def other_expense(self) -> Decimal:
        """Active expense part of the ambiguous category (non-positive)."""
        return self._other_expense

    def total_income(self) -> Decimal:
        """Sum of all active income contributions (non-negative)."""
        total = self._other_income
        for category, amount in self._totals.items():
            if self.classifier.classify(category) is CategoryKind.INCOME:
                total += amount
        return total

    def total_expenses(self) -> Decimal:
        """Sum of all active expense contributions (non-positive)."""
        total = self._other_expense
        for category, amount in self._totals.items():
            if self.classifier.classify(category) is CategoryKind.EXPENSE:
                total += amount
        return total

    def net_balance(self) -> Decimal:
        """Income plus (already negative) expenses."""
        return self.total_income() + self.total_expenses()

    def category_totals(self) -> Dict[str, Decimal]:
        """Copy of the active category totals."""
        return dict(self._totals)

    def categories(self) -> List[str]:
        """Sorted names of active categories."""
        return sorted(self._totals)

    def find_category(self, category: Optional[str]) -> Optional[str]:
        """Return the active category key matching ``category`` case-insensitively."""
        key = normalize_category(category)
        return key if key in self._totals else None

    def category_kind(self, category: Optional[str]) -> CategoryKind:
        """Classify a category name with this ledger's classifier."""
        return self.classifier.classify(category)

    def is_expense_category(self, category: Optional[str]) -> bool:
        """True for static expense categories and the ambiguous category."""
        return self.category_kind(category) in (CategoryKind.EXPENSE, CategoryKind.AMBIGUOUS)

    def expense_magnitudes(self) -> Dict[str, Decimal]:
        """
        Positive spending per active expense contributor.

        The ambiguous category contributes its expense part only. Categories
        with no spending are omitted.
        """
        magnitudes: Dict[str, Decimal] = {}
        for category, amount in self._totals.items():
            kind = self.classifier.classify(category)
            if kind is CategoryKind.EXPENSE:
                magnitude = -amount
            elif kind is CategoryKind.AMBIGUOUS:
                magnitude = -self._other_expense
            else:
                continue
            if magnitude > 0:
                magnitudes[category] = magnitude
        return magnitudes

    def percentage_by_category(self) -> Dict[str, float]:
        """
        Share of total expenses per expense category, as fractions in [0, 1].

        Returns an empty mapping (and logs an error) when total expenses are
        zero or positive.
        """
        denominator = self.total_expenses()
        if denominator == 0:
            logger.error("Cannot compute expense percentages: total expenses are zero")
            return {}
        if denominator > 0:
            logger.error("Cannot compute expense percentages: total expenses are positive (%s)", denominator)
            return {}

        magnitude_total = -denominator
        return {
            category: float(magnitude / magnitude_total)
            for category, magnitude in self.expense_magnitudes().items()
        }

    def largest_expense_category(self) -> Optional[Tuple[str, Decimal]]:
        """
        Return the expense category with the largest spending.

        Ties are broken by the alphabetically first category name.
        """
        magnitudes = self.expense_magnitudes()
        if not magnitudes:
            return None
        category = min(magnitudes, key=lambda name: (-magnitudes[name], name))
        return category, magnitudes[category]

    def snapshot(self) -> LedgerSnapshot:
        """Capture the current figures as an immutable snapshot."""
        return LedgerSnapshot(
            year=self.year,
            total_income=self.total_income(),
            total_expenses=self.total_expenses(),
            net_balance=self.net_balance(),
            other_income=self._other_income,
            other_expense=self._other_expense,
            category_totals=self.category_totals(),
            expense_percentages=self.percentage_by_category() if self.total_expenses() < 0 else {},
            excluded={name: entry.total for name, entry in self._excluded.items()},
            record_count=self.record_count,
        )

    # ------------------------------------------------------------------
    # Mutations used by the exclusion manager and scenario simulator
    # ------------------------------------------------------------------

    @property
    def excluded(self) -> Dict[str, ExcludedCategory]:
        """Copy of the exclusion set."""
        return dict(self._excluded)

    def is_excluded(self, category: Optional[str]) -> bool:
        return normalize_category(category) in self._excluded

    def detach_category(self, category: str) -> ExcludedCategory:
        """
        Move an active category into the exclusion set.

        Raises:
            LedgerError: If the category is not active.
        """
        key = normalize_category(category)
        if key not in self._totals:
            raise LedgerError("Category is not active", details={"category": key})

        entry = ExcludedCategory(category=key, total=self._totals.pop(key))
        if self.classifier.is_ambiguous(key):
            entry = ExcludedCategory(
                category=key,
                total=entry.total,
                income_part=self._other_income,
                expense_part=self._other_expense,
            )
            self._other_income = ZERO
            self._other_expense = ZERO

        self._excluded[key] = entry
        return entry

    def attach_category(self, category: str) -> ExcludedCategory:
        """
        Move an excluded category back into the active totals.

        Raises:
            LedgerError: If the category is not excluded.
        """
        key = normalize_category(category)
        if key not in self._excluded:
            raise LedgerError("Category is not excluded", details={"category": key})

        entry = self._excluded.pop(key)
        self._totals[key] = entry.total
        if self.classifier.is_ambiguous(key):
            self._other_income = entry.income_part
            self._other_expense = entry.expense_part
        return entry

    def adjust_expense(self, category: str, delta: Decimal) -> Decimal:
        """
        Change the spending of an active expense category in place.

        A positive ``delta`` increases spending (the signed total becomes more
        negative). The result may not make spending negative.

        Args:
            category: Active expense category name.
            delta: Change in spending magnitude.

        Returns:
            New spending magnitude of the category.

        Raises:
            LedgerError: If the category is not an active expense category or
                the adjustment would turn spending into income.
        """
        key = self.find_category(category)
        if key is None or not self.is_expense_category(key):
            raise LedgerError("Not an active expense category", details={"category": normalize_category(category)})

        if self.classifier.is_ambiguous(key):
            new_expense = self._other_expense - delta
            if new_expense > 0:
                raise LedgerError("Adjustment exceeds category spending", details={"category": key, "delta": delta})
            self._other_expense = new_expense
            self._totals[key] -= delta
            return -new_expense

        new_total = self._totals[key] - delta
        if new_total > 0:
            raise LedgerError("Adjustment exceeds category spending", details={"category": key, "delta": delta})
        self._totals[key] = new_total
        return -new_total

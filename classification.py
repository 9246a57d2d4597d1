"""
Category classification module for income/expense typing.

This module owns the category vocabulary and maps a category name to its
kind. One category name (``other`` by default) is ambiguous: it is neither
income nor expense until the sign of a concrete amount resolves it.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, Optional

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_INCOME_CATEGORIES = (
    "compensation",
    "allowance",
    "investments",
)

DEFAULT_EXPENSE_CATEGORIES = (
    "home",
    "rent",
    "utilities",
    "food",
    "appearance",
    "work",
    "education",
    "transportation",
    "entertainment",
    "professional services",
)

DEFAULT_AMBIGUOUS_CATEGORY = "other"


class CategoryKind(Enum):
    """Classifier verdict for a category name."""
    INCOME = "income"
    EXPENSE = "expense"
    AMBIGUOUS = "ambiguous"
    UNRECOGNIZED = "unrecognized"


class CategoryType(Enum):
    """Resolved type of a single transaction."""
    INCOME = "income"
    EXPENSE = "expense"


def normalize_category(category: Optional[str]) -> str:
    """
    Normalize a category name for lookups.

    Strips surrounding whitespace, collapses inner runs of whitespace and
    lowercases the result.

    Args:
        category: Raw category name.

    Returns:
        Normalized category key (empty string if None).
    """
    if category is None:
        return ""
    return " ".join(str(category).split()).lower()


class CategoryClassifier:
    """
    Classifies category names against a fixed vocabulary.

    Income and expense sets must be disjoint and must not contain the
    ambiguous category name.
    """

    def __init__(
        self,
        income_categories: Iterable[str] = DEFAULT_INCOME_CATEGORIES,
        expense_categories: Iterable[str] = DEFAULT_EXPENSE_CATEGORIES,
        ambiguous_category: str = DEFAULT_AMBIGUOUS_CATEGORY,
    ):
        """
        Initialize the classifier.

        Args:
            income_categories: Names that are always income.
            expense_categories: Names that are always expenses.
            ambiguous_category: Name resolved per record by amount sign.

        Raises:
            ValueError: If the vocabularies overlap or the ambiguous name is empty.
        """
        self.income_categories = frozenset(
            normalize_category(name) for name in income_categories if normalize_category(name)
        )
        self.expense_categories = frozenset(
            normalize_category(name) for name in expense_categories if normalize_category(name)
        )
        self.ambiguous_category = normalize_category(ambiguous_category)

        if not self.ambiguous_category:
            raise ValueError("Ambiguous category name cannot be empty")

        overlap = self.income_categories & self.expense_categories
        if overlap:
            raise ValueError(f"Categories cannot be both income and expense: {sorted(overlap)}")

        if self.ambiguous_category in self.income_categories | self.expense_categories:
            raise ValueError(
                f"Ambiguous category '{self.ambiguous_category}' must not be listed as income or expense"
            )

        logger.debug(
            "Classifier initialized with %s income, %s expense categories (ambiguous: '%s')",
            len(self.income_categories),
            len(self.expense_categories),
            self.ambiguous_category,
        )

    @property
    def known_categories(self) -> frozenset:
        """All recognized category names, including the ambiguous one."""
        return self.income_categories | self.expense_categories | {self.ambiguous_category}

    def classify(self, category: Optional[str]) -> CategoryKind:
        """
        Classify a category name.

        Args:
            category: Category name in any case.

        Returns:
            CategoryKind for the name; UNRECOGNIZED for unknown or empty names.

        Examples:
            >>> CategoryClassifier().classify("Food")
            <CategoryKind.EXPENSE: 'expense'>
            >>> CategoryClassifier().classify("OTHER")
            <CategoryKind.AMBIGUOUS: 'ambiguous'>
        """
        key = normalize_category(category)
        if key in self.income_categories:
            return CategoryKind.INCOME
        if key in self.expense_categories:
            return CategoryKind.EXPENSE
        if key and key == self.ambiguous_category:
            return CategoryKind.AMBIGUOUS
        return CategoryKind.UNRECOGNIZED

    def static_type(self, category: Optional[str]) -> Optional[CategoryType]:
        """Return the fixed type of a category, or None if ambiguous or unknown."""
        kind = self.classify(category)
        if kind is CategoryKind.INCOME:
            return CategoryType.INCOME
        if kind is CategoryKind.EXPENSE:
            return CategoryType.EXPENSE
        return None

    def resolve(self, category: Optional[str], amount: Decimal) -> Optional[CategoryType]:
        """
        Resolve a category to a concrete type for one amount.

        The ambiguous category becomes INCOME for a positive amount and
        EXPENSE otherwise. Static categories keep their fixed type.

        Args:
            category: Category name.
            amount: Signed transaction amount.

        Returns:
            Resolved CategoryType, or None for unrecognized categories.
        """
        kind = self.classify(category)
        if kind is CategoryKind.AMBIGUOUS:
            return CategoryType.INCOME if amount > 0 else CategoryType.EXPENSE
        return self.static_type(category)

    def is_ambiguous(self, category: Optional[str]) -> bool:
        """Return True if the name is the ambiguous category."""
        return self.classify(category) is CategoryKind.AMBIGUOUS

    def describe(self) -> Dict[str, list]:
        """Return the vocabulary as sorted lists, for reports and error messages."""
        return {
            "income": sorted(self.income_categories),
            "expense": sorted(self.expense_categories),
            "ambiguous": [self.ambiguous_category],
        }


_DEFAULT_CLASSIFIER = CategoryClassifier()


def classify(category: Optional[str]) -> CategoryKind:
    """Classify a category name against the default vocabulary."""
    return _DEFAULT_CLASSIFIER.classify(category)


def default_classifier() -> CategoryClassifier:
    """Return the shared classifier built from the default vocabulary."""
    return _DEFAULT_CLASSIFIER

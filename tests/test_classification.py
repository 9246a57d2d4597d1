"""
Unit tests for category classification.
"""

from decimal import Decimal

import pytest

from classification import (
    CategoryClassifier,
    CategoryKind,
    CategoryType,
    classify,
    default_classifier,
    normalize_category,
)


class TestNormalizeCategory:
    """Test category name normalization."""

    def test_strips_and_lowercases(self):
        assert normalize_category("  Food ") == "food"

    def test_collapses_inner_whitespace(self):
        assert normalize_category("Professional   Services") == "professional services"

    def test_none_is_empty(self):
        assert normalize_category(None) == ""


class TestClassify:
    """Test the default vocabulary."""

    @pytest.mark.parametrize("name", ["compensation", "Allowance", "INVESTMENTS"])
    def test_income_categories(self, name):
        assert classify(name) is CategoryKind.INCOME

    @pytest.mark.parametrize(
        "name",
        ["home", "rent", "utilities", "food", "appearance", "work", "education",
         "transportation", "entertainment", "Professional Services"],
    )
    def test_expense_categories(self, name):
        assert classify(name) is CategoryKind.EXPENSE

    def test_other_is_ambiguous(self):
        assert classify("Other") is CategoryKind.AMBIGUOUS

    @pytest.mark.parametrize("name", ["travel", "", None, "food1"])
    def test_unknown_names_are_unrecognized(self, name):
        assert classify(name) is CategoryKind.UNRECOGNIZED

    def test_default_classifier_is_shared(self):
        assert default_classifier() is default_classifier()


class TestResolve:
    """Test one-step resolution of the ambiguous category."""

    def test_positive_other_is_income(self):
        assert default_classifier().resolve("other", Decimal("200")) is CategoryType.INCOME

    def test_negative_other_is_expense(self):
        assert default_classifier().resolve("other", Decimal("-50")) is CategoryType.EXPENSE

    def test_zero_other_is_expense(self):
        assert default_classifier().resolve("other", Decimal("0")) is CategoryType.EXPENSE

    def test_static_categories_ignore_sign(self):
        classifier = default_classifier()
        assert classifier.resolve("food", Decimal("10")) is CategoryType.EXPENSE
        assert classifier.resolve("compensation", Decimal("-10")) is CategoryType.INCOME

    def test_unrecognized_resolves_to_none(self):
        assert default_classifier().resolve("travel", Decimal("10")) is None


class TestCustomVocabulary:
    """Test classifiers built from custom vocabularies."""

    def test_custom_sets(self):
        classifier = CategoryClassifier(["Salary"], ["Groceries"], "Misc")
        assert classifier.classify("salary") is CategoryKind.INCOME
        assert classifier.classify("GROCERIES") is CategoryKind.EXPENSE
        assert classifier.is_ambiguous("misc")
        assert classifier.classify("food") is CategoryKind.UNRECOGNIZED

    def test_overlapping_sets_rejected(self):
        with pytest.raises(ValueError):
            CategoryClassifier(["food"], ["Food"], "other")

    def test_ambiguous_name_in_vocabulary_rejected(self):
        with pytest.raises(ValueError):
            CategoryClassifier(["salary"], ["other"], "other")

    def test_empty_ambiguous_name_rejected(self):
        with pytest.raises(ValueError):
            CategoryClassifier(["salary"], ["food"], "  ")

    def test_describe_lists_sorted_vocabulary(self):
        described = CategoryClassifier(["b", "a"], ["d", "c"], "e").describe()
        assert described == {"income": ["a", "b"], "expense": ["c", "d"], "ambiguous": ["e"]}

    def test_known_categories_include_ambiguous(self):
        classifier = CategoryClassifier(["a"], ["b"], "c")
        assert classifier.known_categories == frozenset({"a", "b", "c"})

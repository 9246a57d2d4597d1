"""
Record validation module for raw transaction rows.

This module checks raw ``(date, category, amount)`` string tuples against the
format and consistency rules, producing typed per-row results instead of
printing errors. Every rule is evaluated independently so a single row can
report several problems. Rejected rows never abort the batch.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from classification import CategoryClassifier, CategoryKind, default_classifier, normalize_category

# Configure logging
logger = logging.getLogger(__name__)

DATE_FORMAT = "%m/%d/%Y"

_DATE_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$")
_AMOUNT_PATTERN = re.compile(r"^[+-]?\d+(\.\d+)?$")
_DIGIT_PATTERN = re.compile(r"\d")


class RawRow(NamedTuple):
    """Raw string row as delivered by an ingestion layer."""
    date: str
    category: str
    amount: str
    row_number: Optional[int] = None


@dataclass(frozen=True)
class TransactionRecord:
    """
    A validated transaction.

    Attributes:
        date: Calendar date of the transaction
        category: Normalized (lowercase) category name
        amount: Signed amount; positive for income, negative for expenses
    """
    date: date
    category: str
    amount: Decimal


@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for rejecting a row.

    Attributes:
        field: Field the rule applies to ('date', 'category', 'amount' or 'row')
        code: Stable machine-readable code, e.g. 'year_mismatch'
        message: Human-readable description
        value: Offending raw value
    """
    field: str
    code: str
    message: str
    value: Any = None


@dataclass
class RowResult:
    """Outcome of validating one row."""
    row_number: Optional[int]
    raw: Tuple[Any, ...]
    record: Optional[TransactionRecord] = None
    reasons: List[RejectionReason] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        """True if the row produced a record."""
        return self.record is not None and not self.reasons

    @property
    def codes(self) -> List[str]:
        """Rejection codes in the order they were found."""
        return [reason.code for reason in self.reasons]


@dataclass
class BatchReport:
    """
    Aggregated validation results for one batch load.

    Attributes:
        results: Per-row results in input order
        year: Batch year fixed by the first valid date, if any
    """
    results: List[RowResult] = field(default_factory=list)
    year: Optional[int] = None

    @property
    def records(self) -> List[TransactionRecord]:
        """Accepted records in input order."""
        return [result.record for result in self.results if result.accepted]

    @property
    def rejections(self) -> List[RowResult]:
        """Rejected row results in input order."""
        return [result for result in self.results if not result.accepted]

    @property
    def accepted_count(self) -> int:
        return sum(1 for result in self.results if result.accepted)

    @property
    def rejected_count(self) -> int:
        return len(self.results) - self.accepted_count

    @property
    def has_valid_rows(self) -> bool:
        return self.accepted_count > 0

    @property
    def valid_row_numbers(self) -> List[Optional[int]]:
        return [result.row_number for result in self.results if result.accepted]

    @property
    def invalid_row_numbers(self) -> List[Optional[int]]:
        return [result.row_number for result in self.results if not result.accepted]

    def reason_counts(self) -> Dict[str, int]:
        """Count rejection reasons by code."""
        counts: Dict[str, int] = {}
        for result in self.rejections:
            for code in result.codes:
                counts[code] = counts.get(code, 0) + 1
        return counts


class RecordValidator:
    """
    Validates raw transaction rows for a single batch.

    The validator is stateful across one batch: the first accepted row
    fixes the batch year, and later rows with a different year are rejected.
    Call ``reset()`` (or ``validate_batch``) to start a new batch.
    """

    def __init__(self, classifier: Optional[CategoryClassifier] = None):
        """
        Initialize the validator.

        Args:
            classifier: Category classifier; defaults to the built-in vocabulary.
        """
        self.classifier = classifier or default_classifier()
        self.batch_year: Optional[int] = None

    def reset(self) -> None:
        """Forget the batch year so a new batch can be validated."""
        self.batch_year = None

    def _check_date(self, date_text: str, reasons: List[RejectionReason]) -> Optional[date]:
        """Validate the date field and apply the batch-year rule."""
        if not date_text:
            reasons.append(RejectionReason("date", "date_missing", "Date is required", date_text))
            return None

        if not _DATE_PATTERN.match(date_text):
            reasons.append(RejectionReason(
                "date", "date_format", f"Date '{date_text}' must be in MM/DD/YYYY format", date_text
            ))
            return None

        try:
            parsed = datetime.strptime(date_text, DATE_FORMAT).date()
        except ValueError:
            reasons.append(RejectionReason(
                "date", "date_invalid", f"Date '{date_text}' is not a real calendar date", date_text
            ))
            return None

        if self.batch_year is not None and parsed.year != self.batch_year:
            reasons.append(RejectionReason(
                "date",
                "year_mismatch",
                f"Year {parsed.year} does not match batch year {self.batch_year}",
                date_text,
            ))
            return None

        return parsed

    def _check_category(self, category_text: str, reasons: List[RejectionReason]) -> CategoryKind:
        """Validate the category field and return its kind."""
        if not category_text:
            reasons.append(RejectionReason("category", "category_missing", "Category is required", category_text))
            return CategoryKind.UNRECOGNIZED

        if _DIGIT_PATTERN.search(category_text):
            reasons.append(RejectionReason(
                "category", "category_digits", f"Category '{category_text}' contains digits", category_text
            ))

        kind = self.classifier.classify(category_text)
        if kind is CategoryKind.UNRECOGNIZED:
            reasons.append(RejectionReason(
                "category",
                "category_unrecognized",
                f"Category '{category_text}' is not a recognized category",
                category_text,
            ))
        return kind

    def _check_amount(
        self,
        amount_text: str,
        kind: CategoryKind,
        category_text: str,
        reasons: List[RejectionReason]
    ) -> Optional[Decimal]:
        """Validate the amount field, including sign consistency with the category."""
        if not amount_text:
            reasons.append(RejectionReason("amount", "amount_missing", "Amount is required", amount_text))
            return None

        if not _AMOUNT_PATTERN.match(amount_text):
            reasons.append(RejectionReason(
                "amount", "amount_format", f"Amount '{amount_text}' is not a valid number", amount_text
            ))
            return None

        amount = Decimal(amount_text)

        if kind is CategoryKind.INCOME and amount <= 0:
            reasons.append(RejectionReason(
                "amount",
                "amount_sign",
                f"Income category '{category_text}' must have a positive amount, found {amount_text}",
                amount_text,
            ))
        elif kind is CategoryKind.EXPENSE and amount >= 0:
            reasons.append(RejectionReason(
                "amount",
                "amount_sign",
                f"Expense category '{category_text}' must have a negative amount, found {amount_text}",
                amount_text,
            ))

        return amount

    def validate(
        self,
        date_text: Any,
        category_text: Any,
        amount_text: Any,
        row_number: Optional[int] = None
    ) -> RowResult:
        """
        Validate a single raw row.

        Args:
            date_text: Date string in MM/DD/YYYY form
            category_text: Category name
            amount_text: Signed integer or fixed-point amount string
            row_number: Optional row/line number for reporting

        Returns:
            RowResult carrying either a TransactionRecord or rejection reasons.
        """
        raw = (date_text, category_text, amount_text)
        date_value = "" if date_text is None else str(date_text).strip()
        category_value = "" if category_text is None else str(category_text).strip()
        amount_value = "" if amount_text is None else str(amount_text).strip()

        reasons: List[RejectionReason] = []
        parsed_date = self._check_date(date_value, reasons)
        kind = self._check_category(category_value, reasons)
        amount = self._check_amount(amount_value, kind, category_value, reasons)

        if reasons:
            logger.warning(
                "Rejected row %s (%s): %s",
                row_number if row_number is not None else "?",
                ", ".join(reason.code for reason in reasons),
                "; ".join(reason.message for reason in reasons),
            )
            return RowResult(row_number=row_number, raw=raw, reasons=reasons)

        if self.batch_year is None:
            self.batch_year = parsed_date.year
            logger.debug("Batch year fixed to %s by date %s", parsed_date.year, date_value)

        record = TransactionRecord(
            date=parsed_date,
            category=normalize_category(category_value),
            amount=amount,
        )
        return RowResult(row_number=row_number, raw=raw, record=record)

    def validate_row(self, row: Sequence[Any], row_number: Optional[int] = None) -> RowResult:
        """
        Validate one tokenized row of any sequence type.

        Rows that do not have exactly three fields are rejected without
        further checks. ``RawRow`` instances supply their own row number.
        """
        if isinstance(row, RawRow):
            number = row.row_number if row.row_number is not None else row_number
            return self.validate(row.date, row.category, row.amount, row_number=number)

        fields = tuple(row)
        if len(fields) != 3:
            reason = RejectionReason(
                "row",
                "column_count",
                f"Expected exactly 3 columns (Date,Category,Amount) but found {len(fields)}",
                fields,
            )
            logger.warning("Rejected row %s (column_count): %s", row_number, reason.message)
            return RowResult(row_number=row_number, raw=fields, reasons=[reason])

        return self.validate(*fields, row_number=row_number)

    def validate_batch(self, rows: Iterable[Sequence[Any]]) -> BatchReport:
        """
        Validate a whole batch of rows with a fresh batch year.

        Args:
            rows: Iterable of raw rows; row numbers default to 1-based positions.

        Returns:
            BatchReport with one result per input row.
        """
        self.reset()
        report = BatchReport()

        for index, row in enumerate(rows, start=1):
            report.results.append(self.validate_row(row, row_number=index))

        report.year = self.batch_year
        logger.info(
            "Validated batch: %s accepted, %s rejected (year: %s)",
            report.accepted_count,
            report.rejected_count,
            report.year,
        )
        return report

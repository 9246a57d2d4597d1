"""
Report generator module for formatting budget results.

This module renders ledger snapshots, allocation plans, validation batches
and scenario results as plain-text reports. It only formats; every figure
comes from the core objects passed in.
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd
from tabulate import tabulate

from allocation import AllocationPlan, PlanDirection
from exceptions import ReportError
from ledger import LedgerSnapshot
from scenario import SimulationResult
from validation import BatchReport

logger = logging.getLogger(__name__)

MAX_LISTED_ROWS = 10
MAX_LISTED_ISSUES = 5


class ReportGenerator:
    """
    Generate formatted text reports from budget results.

    Tables are rendered with tabulate; category breakdowns go through a
    pandas DataFrame so they can also be exported.
    """

    def __init__(self, table_format: str = "github"):
        """
        Initialize the report generator.

        Args:
            table_format: tabulate table format name
        """
        self.table_format = table_format
        logger.info("Report generator initialized")

    def format_currency(self, amount: Decimal) -> str:
        """
        Format amount as currency string.

        Args:
            amount: Amount to format

        Returns:
            Formatted currency string, e.g. '-$1,200.00'
        """
        sign = "-" if amount < 0 else ""
        return f"{sign}${abs(amount):,.2f}"

    def format_percentage(self, fraction: float) -> str:
        """Format a fraction in [0, 1] as a percentage string."""
        return f"{fraction * 100:.1f}%"

    def category_frame(self, snapshot: LedgerSnapshot) -> pd.DataFrame:
        """
        Build a category breakdown DataFrame from a snapshot.

        Columns: category, total, share_of_expenses. Sorted by total ascending
        so the largest expenses come first.
        """
        rows = [
            {
                "category": category,
                "total": total,
                "share_of_expenses": snapshot.expense_percentages.get(category),
            }
            for category, total in snapshot.category_totals.items()
        ]
        df = pd.DataFrame(rows, columns=["category", "total", "share_of_expenses"])
        if df.empty:
            return df
        return df.sort_values(["total", "category"]).reset_index(drop=True)

    def export_category_csv(self, snapshot: LedgerSnapshot, output_path: Union[str, Path]) -> Path:
        """
        Write the category breakdown to a CSV file.

        Args:
            snapshot: Ledger snapshot
            output_path: Destination file

        Returns:
            Path written

        Raises:
            ReportError: If the file cannot be written
        """
        path = Path(output_path)
        df = self.category_frame(snapshot)
        try:
            df.to_csv(path, index=False)
        except OSError as e:
            raise ReportError("Failed to export category breakdown", details={"path": str(path)},
                              original_error=e) from e
        logger.info("Exported %s categories to %s", len(df), path)
        return path

    def generate_summary_report(self, snapshot: LedgerSnapshot) -> str:
        """
        Generate the income/expense summary for a ledger snapshot.

        Args:
            snapshot: Ledger snapshot

        Returns:
            Formatted text report
        """
        year = snapshot.year if snapshot.year is not None else "n/a"
        status = "Surplus" if snapshot.has_surplus else "Deficit" if snapshot.has_deficit else "Break-even"
        report_lines = [
            "=" * 60,
            f"BUDGET SUMMARY ({year})",
            "=" * 60,
            f"Total Income:     {self.format_currency(snapshot.total_income):>20}",
            f"Total Expenses:   {self.format_currency(snapshot.total_expenses):>20}",
            "-" * 60,
            f"Net Balance:      {self.format_currency(snapshot.net_balance):>20}  ({status})",
            f"Monthly Average:  {self.format_currency(snapshot.net_balance / 12):>20}",
            "",
            f"Records Loaded:   {snapshot.record_count:>20}",
        ]
        if snapshot.excluded:
            report_lines.append(f"Excluded:         {', '.join(sorted(snapshot.excluded)):>20}")
        report_lines.append("=" * 60)
        return "\n".join(report_lines)

    def generate_category_report(self, snapshot: LedgerSnapshot) -> str:
        """
        Generate the per-category breakdown table.

        Args:
            snapshot: Ledger snapshot

        Returns:
            Formatted text report
        """
        df = self.category_frame(snapshot)
        if df.empty:
            return "\nNo categories loaded\n"

        table_data = [
            [
                row.category.title(),
                self.format_currency(row.total),
                "" if row.share_of_expenses is None or pd.isna(row.share_of_expenses)
                else self.format_percentage(row.share_of_expenses),
            ]
            for row in df.itertuples(index=False)
        ]
        table = tabulate(
            table_data,
            headers=["Category", "Total", "Share of Expenses"],
            tablefmt=self.table_format,
            colalign=("left", "right", "right"),
        )
        return "\n".join(["CATEGORY BREAKDOWN", table])

    def generate_plan_report(self, plan: AllocationPlan) -> str:
        """
        Generate a report for an allocation plan.

        Args:
            plan: Allocation plan

        Returns:
            Formatted text report
        """
        if plan.direction is PlanDirection.INCREASE:
            title = "SURPLUS ALLOCATION PLAN"
            column = "Suggested Increase"
        else:
            title = "DEFICIT REDUCTION PLAN"
            column = "Suggested Change"

        lines = ["=" * 60, title, "=" * 60]
        if plan.is_empty:
            lines.append("No adjustments to suggest.")
        else:
            table_data = [
                [category.title(), self.format_currency(amount), self.format_currency(amount / 12)]
                for category, amount in sorted(plan.adjustments.items())
            ]
            lines.append(tabulate(
                table_data,
                headers=["Category", column, "Per Month"],
                tablefmt=self.table_format,
                colalign=("left", "right", "right"),
            ))
            lines.append("")
            lines.append(f"Total: {self.format_currency(plan.total)} of {self.format_currency(plan.target)}")

        for category in plan.blocked:
            lines.append(f"Note: '{category}' is protected and was not reduced.")
        if plan.shortfall:
            lines.append(f"Uncovered amount: {self.format_currency(plan.shortfall)}")
        lines.append("=" * 60)
        return "\n".join(lines)

    def generate_validation_summary(self, report: Optional[BatchReport]) -> str:
        """
        Summarize a validation batch for display.

        Args:
            report: Batch report from the validator

        Returns:
            Formatted summary string
        """
        if report is None:
            return "No validation results available."

        if not report.results:
            return "No rows to validate."

        if not report.has_valid_rows:
            lines = ["No valid rows to import. Please fix the issues and try again."]
        elif report.rejected_count == 0:
            return f"All rows are valid. Total valid rows: {report.accepted_count}"
        else:
            lines = [
                "Validation found issues with some rows:",
                f"- Valid rows: {report.accepted_count}",
                f"- Invalid rows: {report.rejected_count} (skipped)",
            ]

        invalid_rows = report.invalid_row_numbers
        listed: List[str] = [str(number) for number in invalid_rows[:MAX_LISTED_ROWS]]
        row_text = ", ".join(listed)
        if len(invalid_rows) > MAX_LISTED_ROWS:
            row_text += f" ... and {len(invalid_rows) - MAX_LISTED_ROWS} more"
        lines.append(f"Invalid row numbers: {row_text}")

        lines.append("Example issues:")
        messages = [
            f"Row {result.row_number}: {reason.message}"
            for result in report.rejections
            for reason in result.reasons
        ]
        for message in messages[:MAX_LISTED_ISSUES]:
            lines.append(f"  {message}")
        if len(messages) > MAX_LISTED_ISSUES:
            lines.append(f"  ... and {len(messages) - MAX_LISTED_ISSUES} more issues")

        return "\n".join(lines)

    def generate_scenario_report(self, result: SimulationResult) -> str:
        """Describe the outcome of a simulate/apply/reduce request in one or two lines."""
        category = result.category.title() or "(blank)"
        amount = self.format_currency(result.amount) if result.amount is not None else "n/a"
        if result.ok:
            return (
                f"{category}: {result.outcome.value} ({amount}). "
                f"Surplus {self.format_currency(result.surplus_before)} -> "
                f"{self.format_currency(result.surplus_after)}"
            )
        return f"{category}: {result.outcome.value} ({amount}); reason: {result.reason}"

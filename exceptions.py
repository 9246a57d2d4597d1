"""
Unified exception hierarchy for the budget-planner project.

The core (classification, validation, ledger, allocation, exclusion and
scenario modules) reports bad rows and disallowed operations as typed
outcomes. The exceptions below are raised at the host boundary only: for
unreadable input files, broken configuration, or programming errors such as
an unknown plan direction.
"""

from typing import Optional


class BudgetPlannerError(Exception):
    """
    Base exception class for all budget-planner errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
        original_error: Optional original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ) -> None:
        """
        Initialize BudgetPlannerError.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        msg = self.message
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            msg = f"{msg} ({detail_str})"
        return msg


class ConfigError(BudgetPlannerError):
    """Raised when configuration loading or validation fails."""
    pass


class IngestionError(BudgetPlannerError):
    """Raised when a transaction file cannot be read or has a bad header."""
    pass


class LedgerError(BudgetPlannerError):
    """Raised when a ledger operation receives invalid arguments."""
    pass


class AllocationError(BudgetPlannerError):
    """Raised when an allocation plan is requested with invalid arguments."""
    pass


class ReportError(BudgetPlannerError):
    """Raised when report rendering fails."""
    pass

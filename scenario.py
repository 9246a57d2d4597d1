"""
Scenario simulation module for what-if spending questions.

Answers whether spending an extra amount on a category keeps the ledger at or
above break-even, and applies such changes to the in-memory ledger. Applied
changes adjust the aggregate directly and compound on the last state; they
are not re-derived from the loaded records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Tuple, Union

from allocation import DEFAULT_PROTECTED_CATEGORIES
from classification import normalize_category
from ledger import Ledger
from utils import quantize_amount, to_decimal

# Configure logging
logger = logging.getLogger(__name__)

ZERO = Decimal("0")
MONTHS_PER_YEAR = 12


class SimulationOutcome(Enum):
    """Outcome of a simulate/apply/reduce request."""
    POSSIBLE = "possible"
    NOT_POSSIBLE = "not_possible"
    APPLIED = "applied"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class SimulationResult:
    """
    Result of a scenario request.

    Attributes:
        outcome: What happened
        category: Normalized category name
        amount: Amount requested (or, for reductions, the amount cut)
        surplus_before: Net balance before the change
        surplus_after: Net balance after the change (projected for simulate)
        reason: Machine-readable reason for negative outcomes
    """
    outcome: SimulationOutcome
    category: str
    amount: Optional[Decimal]
    surplus_before: Decimal
    surplus_after: Decimal
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome in (SimulationOutcome.POSSIBLE, SimulationOutcome.APPLIED)


@dataclass(frozen=True)
class WhatIfReduction:
    """How much of the current deficit cutting one category to zero would cover."""
    category: str
    reduced: Decimal
    remaining_deficit: Decimal

    @property
    def eliminates_deficit(self) -> bool:
        return self.remaining_deficit == 0


class ScenarioSimulator:
    """
    What-if analysis over a ledger.

    ``simulate`` never changes the ledger; ``apply`` and ``reduce`` do.
    """

    def __init__(
        self,
        ledger: Ledger,
        protected_categories: Iterable[str] = DEFAULT_PROTECTED_CATEGORIES,
        accounting_unit: Union[Decimal, int, str] = Decimal("1")
    ):
        """
        Initialize the simulator.

        Args:
            ledger: Ledger to analyze and adjust
            protected_categories: Categories that may not be reduced
            accounting_unit: Rounding unit for percentage reductions
        """
        self.ledger = ledger
        self.protected_categories = frozenset(
            normalize_category(name) for name in protected_categories if normalize_category(name)
        )
        self.accounting_unit = to_decimal(accounting_unit) or Decimal("1")

    def current_surplus(self) -> Decimal:
        """Current net balance; negative values are a deficit."""
        return self.ledger.net_balance()

    def monthly_surplus(self) -> Decimal:
        """Current net balance spread over twelve months, rounded to the accounting unit."""
        return quantize_amount(self.current_surplus() / MONTHS_PER_YEAR, self.accounting_unit)

    def _known(self, key: str) -> bool:
        return self.ledger.find_category(key) is not None or self.ledger.is_excluded(key)

    def _result(
        self,
        outcome: SimulationOutcome,
        key: str,
        amount: Optional[Decimal],
        reason: Optional[str] = None,
        surplus_after: Optional[Decimal] = None
    ) -> SimulationResult:
        surplus = self.current_surplus()
        return SimulationResult(
            outcome=outcome,
            category=key,
            amount=amount,
            surplus_before=surplus,
            surplus_after=surplus if surplus_after is None else surplus_after,
            reason=reason,
        )

    def simulate(self, category: Optional[str], amount: Union[Decimal, int, str]) -> SimulationResult:
        """
        Check whether spending ``amount`` more on a category keeps the budget at break-even.

        Args:
            category: Expense category name (case-insensitive)
            amount: Additional spending

        Returns:
            POSSIBLE, NOT_POSSIBLE or NOT_FOUND. Non-positive amounts are
            trivially POSSIBLE.
        """
        key = normalize_category(category)
        value = to_decimal(amount)

        if not self._known(key):
            logger.info("Category '%s' not found for simulation", category)
            return self._result(SimulationOutcome.NOT_FOUND, key, value, "not_found")

        if value is None:
            logger.warning("Simulation amount %r is not numeric", amount)
            return self._result(SimulationOutcome.NOT_POSSIBLE, key, None, "invalid_amount")

        if value <= 0:
            logger.debug("Simulation called with non-positive amount %s; nothing to spend", value)
            return self._result(SimulationOutcome.POSSIBLE, key, value, "no_op")

        if self.ledger.is_excluded(key):
            return self._result(SimulationOutcome.NOT_POSSIBLE, key, value, "excluded")

        if not self.ledger.is_expense_category(key):
            return self._result(SimulationOutcome.NOT_POSSIBLE, key, value, "not_expense")

        surplus = self.current_surplus()
        if value > surplus:
            logger.info("Not enough surplus to spend %s on %s (surplus %s)", value, key, surplus)
            return self._result(SimulationOutcome.NOT_POSSIBLE, key, value, "insufficient_surplus")

        logger.info("Spending %s on %s keeps the budget at or above break-even", value, key)
        return self._result(SimulationOutcome.POSSIBLE, key, value, surplus_after=surplus - value)

    def apply(self, category: Optional[str], amount: Union[Decimal, int, str]) -> SimulationResult:
        """
        Spend ``amount`` more on a category if the surplus allows it.

        Args:
            category: Active expense category name (case-insensitive)
            amount: Additional spending; must be positive

        Returns:
            APPLIED, REJECTED or NOT_FOUND.
        """
        key = normalize_category(category)
        value = to_decimal(amount)

        if not self._known(key):
            logger.warning("Category '%s' not found in expenses", category)
            return self._result(SimulationOutcome.NOT_FOUND, key, value, "not_found")

        if value is None or value <= 0:
            logger.warning("Refusing to apply non-positive or invalid amount %r to %s", amount, key)
            return self._result(SimulationOutcome.REJECTED, key, value, "invalid_amount")

        check = self.simulate(key, value)
        if check.outcome is not SimulationOutcome.POSSIBLE:
            return self._result(SimulationOutcome.REJECTED, key, value, check.reason)

        new_spending = self.ledger.adjust_expense(key, value)
        surplus_after = self.current_surplus()
        logger.info(
            "Spent %s on %s; new spending %s, annual surplus %s, monthly surplus %s",
            value,
            key,
            new_spending,
            surplus_after,
            self.monthly_surplus(),
        )
        return SimulationResult(
            outcome=SimulationOutcome.APPLIED,
            category=key,
            amount=value,
            surplus_before=check.surplus_before,
            surplus_after=surplus_after,
        )

    def reduce(self, category: Optional[str], percent: Union[Decimal, int, str]) -> SimulationResult:
        """
        Cut an expense category's spending by a percentage.

        Protected categories are never reduced; the attempt is logged and rejected.

        Args:
            category: Active expense category name (case-insensitive)
            percent: Percentage to cut, in (0, 100]

        Returns:
            APPLIED (``amount`` is the cut), REJECTED or NOT_FOUND.
        """
        key = normalize_category(category)
        pct = to_decimal(percent)

        if not self._known(key):
            logger.warning("Category '%s' not found in expenses", category)
            return self._result(SimulationOutcome.NOT_FOUND, key, None, "not_found")

        if pct is None or pct <= 0 or pct > 100:
            logger.warning("Invalid reduction percentage %r for %s", percent, key)
            return self._result(SimulationOutcome.REJECTED, key, None, "invalid_percent")

        if self.ledger.is_excluded(key):
            return self._result(SimulationOutcome.REJECTED, key, None, "excluded")

        if not self.ledger.is_expense_category(key):
            return self._result(SimulationOutcome.REJECTED, key, None, "not_expense")

        if key in self.protected_categories:
            logger.warning("Attempted to decrease protected category '%s'; operation skipped", key)
            return self._result(SimulationOutcome.REJECTED, key, None, "protected")

        spending = self.ledger.expense_magnitudes().get(key, ZERO)
        reduction = min(quantize_amount(spending * pct / 100, self.accounting_unit), spending)
        surplus_before = self.current_surplus()
        new_spending = self.ledger.adjust_expense(key, -reduction)
        logger.info(
            "Decreased spending in %s by %s (from %s to %s)", key, reduction, spending, new_spending
        )
        return SimulationResult(
            outcome=SimulationOutcome.APPLIED,
            category=key,
            amount=reduction,
            surplus_before=surplus_before,
            surplus_after=self.current_surplus(),
        )

    def max_spend(self, category: Optional[str]) -> Decimal:
        """Largest extra amount ``simulate`` would accept for the category."""
        key = normalize_category(category)
        if self.ledger.find_category(key) is None or not self.ledger.is_expense_category(key):
            return ZERO
        return max(self.current_surplus(), ZERO)

    def what_if_reduce(self, category: Optional[str]) -> WhatIfReduction:
        """
        Estimate how much of the current deficit dropping one category would cover.

        Protected and unknown categories cover nothing.
        """
        key = normalize_category(category)
        deficit = max(-self.current_surplus(), ZERO)
        spending = ZERO
        if key not in self.protected_categories:
            spending = self.ledger.expense_magnitudes().get(key, ZERO)

        reduced = min(spending, deficit)
        return WhatIfReduction(category=key, reduced=reduced, remaining_deficit=deficit - reduced)

    def suggest_reduction(self) -> Optional[Tuple[str, Decimal]]:
        """
        Suggest the unprotected expense category with the largest spending.

        Returns:
            (category, spending) or None when nothing can be reduced.
        """
        candidates = {
            name: spending
            for name, spending in self.ledger.expense_magnitudes().items()
            if name not in self.protected_categories
        }
        if not candidates:
            logger.info("No expenses available to analyze")
            return None
        category = min(candidates, key=lambda name: (-candidates[name], name))
        logger.info("Consider reducing expenses in category %s (current %s)", category, candidates[category])
        return category, candidates[category]

"""
Allocation planning module for distributing a surplus or deficit.

Plans are proportional: each active expense category receives a share of the
target in proportion to its spending. Shares are rounded to the accounting
unit and the rounding residual is given to the largest category, so the
adjustments always add up to the target exactly. Protected categories (rent
by default) are never reduced; their share is spread over the remaining
categories instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from classification import normalize_category
from exceptions import AllocationError
from ledger import Ledger
from utils import quantize_amount, to_decimal

# Configure logging
logger = logging.getLogger(__name__)

ZERO = Decimal("0")
DEFAULT_PROTECTED_CATEGORIES = ("rent",)


class PlanDirection(Enum):
    """Whether a plan adds a surplus to spending or cuts spending to cover a deficit."""
    INCREASE = "increase"
    REDUCE = "reduce"


@dataclass(frozen=True)
class PlanNotice:
    """
    Structured note about a policy decision taken while planning.

    Attributes:
        category: Category the notice refers to
        reason: Machine-readable reason, e.g. 'protected'
        value: Amount involved (the category's spending)
    """
    category: str
    reason: str
    value: Any = None


@dataclass
class AllocationPlan:
    """
    Per-category adjustment plan.

    Attributes:
        direction: INCREASE or REDUCE
        target: Signed amount the adjustments must add up to
        adjustments: Category name -> signed adjustment
        blocked: Protected categories left out of a reduction
        residual_category: Category that absorbed the rounding residual
        residual: Rounding residual that was absorbed
        shortfall: Part of the requested amount the plan could not place
        notices: Policy notices raised while planning
    """
    direction: PlanDirection
    target: Decimal
    adjustments: Dict[str, Decimal] = field(default_factory=dict)
    blocked: List[str] = field(default_factory=list)
    residual_category: Optional[str] = None
    residual: Decimal = ZERO
    shortfall: Decimal = ZERO
    notices: List[PlanNotice] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        """Sum of all adjustments."""
        return sum(self.adjustments.values(), ZERO)

    @property
    def is_conserving(self) -> bool:
        """True if the adjustments add up to the target exactly."""
        return self.total == self.target

    @property
    def is_empty(self) -> bool:
        return not self.adjustments


class AllocationPlanner:
    """
    Builds proportional allocation plans from a ledger's expense totals.

    Every plan built is appended to ``history`` for the lifetime of the
    planner.
    """

    def __init__(
        self,
        ledger: Ledger,
        protected_categories: Iterable[str] = DEFAULT_PROTECTED_CATEGORIES,
        accounting_unit: Union[Decimal, int, str] = Decimal("1")
    ):
        """
        Initialize the planner.

        Args:
            ledger: Ledger providing expense totals
            protected_categories: Categories exempt from reduction
            accounting_unit: Rounding unit for shares, e.g. 1 or 0.01

        Raises:
            AllocationError: If the accounting unit is not a positive number.
        """
        unit = to_decimal(accounting_unit)
        if unit is None or unit <= 0:
            raise AllocationError("Accounting unit must be a positive number", details={"unit": accounting_unit})

        self.ledger = ledger
        self.protected_categories = frozenset(
            normalize_category(name) for name in protected_categories if normalize_category(name)
        )
        self.accounting_unit = unit
        self.history: List[AllocationPlan] = []
        logger.debug(
            "Allocation planner initialized (protected: %s, unit: %s)",
            sorted(self.protected_categories),
            unit,
        )

    def is_protected(self, category: Optional[str]) -> bool:
        return normalize_category(category) in self.protected_categories

    @staticmethod
    def _coerce_direction(direction: Union[PlanDirection, str, None], amount: Decimal) -> PlanDirection:
        if direction is None:
            return PlanDirection.REDUCE if amount < 0 else PlanDirection.INCREASE
        if isinstance(direction, PlanDirection):
            return direction
        try:
            return PlanDirection(str(direction).strip().lower())
        except ValueError as exc:
            raise AllocationError(
                f"Unknown plan direction '{direction}'",
                details={"allowed": [d.value for d in PlanDirection]},
                original_error=exc,
            ) from exc

    def _record(self, plan: AllocationPlan) -> AllocationPlan:
        self.history.append(plan)
        return plan

    def build_plan(
        self,
        amount: Union[Decimal, int, str],
        direction: Union[PlanDirection, str, None] = None
    ) -> AllocationPlan:
        """
        Distribute an amount over the active expense categories.

        Args:
            amount: Surplus or deficit to distribute. Its magnitude is used
                when ``direction`` is given; otherwise a negative amount
                means REDUCE and a non-negative one INCREASE.
            direction: INCREASE (surplus) or REDUCE (deficit).

        Returns:
            AllocationPlan whose adjustments add up to the signed target,
            unless every contributing category is protected.

        Raises:
            AllocationError: If the amount is not numeric or the direction is unknown.
        """
        value = to_decimal(amount)
        if value is None:
            raise AllocationError("Plan amount must be numeric", details={"amount": amount})

        plan_direction = self._coerce_direction(direction, value)
        magnitude = abs(value)
        target = magnitude if plan_direction is PlanDirection.INCREASE else -magnitude
        plan = AllocationPlan(direction=plan_direction, target=target)

        magnitudes = self.ledger.expense_magnitudes()
        if not magnitudes:
            logger.error("Cannot build %s plan: total expenses are zero", plan_direction.value)
            plan.shortfall = magnitude
            return self._record(plan)

        eligible = dict(magnitudes)
        if plan_direction is PlanDirection.REDUCE:
            for category in sorted(magnitudes):
                if self.is_protected(category):
                    logger.warning(
                        "Attempted to reduce protected category '%s'; operation skipped", category
                    )
                    plan.blocked.append(category)
                    plan.notices.append(PlanNotice(category, "protected", magnitudes[category]))
                    del eligible[category]

        if not eligible:
            logger.warning(
                "No reducible categories remain; plan cannot place %s", magnitude
            )
            plan.shortfall = magnitude
            return self._record(plan)

        eligible_total = sum(eligible.values(), ZERO)
        for category, spending in eligible.items():
            share = spending / eligible_total * target
            plan.adjustments[category] = quantize_amount(share, self.accounting_unit)

        residual = target - plan.total
        if residual != 0:
            largest = min(eligible, key=lambda name: (-eligible[name], name))
            plan.adjustments[largest] += residual
            plan.residual_category = largest
            plan.residual = residual
            logger.debug("Assigned rounding residual %s to '%s'", residual, largest)

        logger.info(
            "Built %s plan for %s across %s categories",
            plan_direction.value,
            target,
            len(plan.adjustments),
        )
        return self._record(plan)

    def surplus_plan(self) -> AllocationPlan:
        """
        Build an INCREASE plan for the ledger's current surplus.

        Returns an empty plan with a zero target when there is no surplus.
        """
        net = self.ledger.net_balance()
        if net <= 0:
            logger.info("No surplus available after expenses (net balance %s)", net)
            return self._record(AllocationPlan(direction=PlanDirection.INCREASE, target=ZERO))
        return self.build_plan(net, PlanDirection.INCREASE)

    def adjustable_total(self) -> Decimal:
        """Spending across active, unprotected expense categories."""
        return sum(
            (spending for category, spending in self.ledger.expense_magnitudes().items()
             if not self.is_protected(category)),
            ZERO,
        )

    def protected_total(self) -> Decimal:
        """Spending across active, protected expense categories."""
        return sum(
            (spending for category, spending in self.ledger.expense_magnitudes().items()
             if self.is_protected(category)),
            ZERO,
        )

    def deficit_plan(self) -> AllocationPlan:
        """
        Build a REDUCE plan for the ledger's current deficit.

        The amount cut is capped at the adjustable spending; whatever the cap
        leaves uncovered is reported as ``shortfall``. Returns an empty plan
        with a zero target when there is no deficit.
        """
        net = self.ledger.net_balance()
        if net >= 0:
            logger.info("No deficit to cover (net balance %s)", net)
            return self._record(AllocationPlan(direction=PlanDirection.REDUCE, target=ZERO))

        deficit = -net
        adjustable = self.adjustable_total()
        if adjustable <= 0:
            return self.build_plan(deficit, PlanDirection.REDUCE)

        cut = min(deficit, adjustable)
        plan = self.build_plan(cut, PlanDirection.REDUCE)
        plan.shortfall += deficit - cut
        if plan.shortfall:
            logger.warning("Deficit exceeds adjustable spending; %s remains uncovered", plan.shortfall)
        return plan

    def essential_expenses_exceed_income(self) -> bool:
        """True when protected spending alone is larger than total income."""
        return self.protected_total() > self.ledger.total_income()

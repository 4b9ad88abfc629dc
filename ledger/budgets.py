"""Budget status classification and spent bookkeeping.

``spent`` on a Budget is a derived value: the sum of expense transactions in
the budget's category whose date falls inside its period window. The helpers
here either recompute it from the transaction list or keep it in step with a
single create/update/delete of a transaction.
"""
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ledger.domain import EXPENSE, MONTHLY, Budget, Transaction
from ledger.errors import ValidationError
from ledger.totals import ZERO, DateRange, month_window, year_window

OVER = "over"
WARNING = "warning"
PROGRESS = "progress"
GOOD = "good"

ADD = "add"
REMOVE = "remove"

# (minimum percentage, status) pairs, checked from the top; anything below
# the last row is "good".
ThresholdTable = Tuple[Tuple[Decimal, str], ...]

DEFAULT_THRESHOLDS: ThresholdTable = (
    (Decimal(100), OVER),
    (Decimal(80), WARNING),
    (Decimal(50), PROGRESS),
)

# Budgets page: two tiers at 80% and 100%
BUDGETS_VIEW: ThresholdTable = (
    (Decimal(100), OVER),
    (Decimal(80), WARNING),
)

# Alerts panel: four tiers at 50%, 75% and 100%
ALERTS_VIEW: ThresholdTable = (
    (Decimal(100), OVER),
    (Decimal(75), WARNING),
    (Decimal(50), PROGRESS),
)

PRESETS: Dict[str, ThresholdTable] = {
    "default": DEFAULT_THRESHOLDS,
    "budgets": BUDGETS_VIEW,
    "alerts": ALERTS_VIEW,
}

ALERT_PERCENTAGE = Decimal(80)


def get_preset(name: str) -> ThresholdTable:
    try:
        return PRESETS[name]
    except KeyError:
        raise ValidationError(f"Unknown threshold preset {name!r}, expected one of {sorted(PRESETS)}") from None


@dataclass(frozen=True)
class BudgetStatus:
    status: str
    percentage: Decimal
    remaining: Decimal  # negative when over budget


@dataclass(frozen=True)
class BudgetAlert:
    budget_id: str
    category: str
    budgeted: Decimal
    spent: Decimal
    percentage: Decimal

    @property
    def is_over_budget(self) -> bool:
        return self.percentage > 100

    @property
    def remaining(self) -> Decimal:
        return self.budgeted - self.spent


def classify(percentage: Decimal, thresholds: ThresholdTable = DEFAULT_THRESHOLDS) -> str:
    for minimum, status in thresholds:
        if percentage >= minimum:
            return status
    return GOOD


def budget_status(budget: Budget, thresholds: ThresholdTable = DEFAULT_THRESHOLDS) -> BudgetStatus:
    remaining = budget.amount - budget.spent
    if budget.amount == 0:
        return BudgetStatus(status=GOOD, percentage=ZERO, remaining=remaining)
    percentage = budget.spent / budget.amount * 100
    return BudgetStatus(status=classify(percentage, thresholds), percentage=percentage, remaining=remaining)


def budget_window(budget: Budget) -> Optional[DateRange]:
    """Inclusive date window of the budget, or None when it is not anchored."""
    if budget.year is None:
        return None
    if budget.period == MONTHLY:
        if budget.month is None:
            return None
        return month_window(budget.year, budget.month)
    return year_window(budget.year)


def in_budget_window(budget: Budget, day: date) -> bool:
    window = budget_window(budget)
    return window is None or window[0] <= day <= window[1]


def counts_against(budget: Budget, t: Transaction) -> bool:
    return t.kind == EXPENSE and t.category == budget.category and in_budget_window(budget, t.date)


def recompute_spent(budget: Budget, transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions if counts_against(budget, t)), ZERO)


def refresh_budgets(budgets: Iterable[Budget], transactions: Sequence[Transaction]) -> Tuple[Budget, ...]:
    return tuple(replace(b, spent=recompute_spent(b, transactions)) for b in budgets)


def apply_transaction_to_budgets(
    budgets: Iterable[Budget], transaction: Transaction, direction: str
) -> Tuple[Budget, ...]:
    """Add or remove one transaction's effect on every matching budget.

    Income never touches a budget. Removal clamps ``spent`` at zero.
    """
    if direction not in (ADD, REMOVE):
        raise ValidationError(f"direction must be {ADD!r} or {REMOVE!r}: {direction!r}")

    updated = []
    for b in budgets:
        if counts_against(b, transaction):
            if direction == ADD:
                b = replace(b, spent=b.spent + transaction.amount)
            else:
                b = replace(b, spent=max(ZERO, b.spent - transaction.amount))
        updated.append(b)
    return tuple(updated)


def replace_transaction_in_budgets(
    budgets: Iterable[Budget], old: Transaction, new: Transaction
) -> Tuple[Budget, ...]:
    """Reverse ``old`` then apply ``new``, the budget side of an edit."""
    return apply_transaction_to_budgets(
        apply_transaction_to_budgets(budgets, old, REMOVE), new, ADD
    )


def rank_budgets(
    budgets: Iterable[Budget], thresholds: ThresholdTable = DEFAULT_THRESHOLDS
) -> List[Tuple[Budget, BudgetStatus]]:
    """Budgets paired with their status, most used first."""
    ranked = [(b, budget_status(b, thresholds)) for b in budgets]
    return sorted(ranked, key=lambda pair: pair[1].percentage, reverse=True)


def budget_alerts(budgets: Iterable[Budget], threshold: Decimal = ALERT_PERCENTAGE) -> List[BudgetAlert]:
    alerts = []
    for b, status in rank_budgets(budgets):
        if b.amount > 0 and status.percentage >= threshold:
            alerts.append(BudgetAlert(
                budget_id=b.id,
                category=b.category,
                budgeted=b.amount,
                spent=b.spent,
                percentage=status.percentage,
            ))
    return alerts

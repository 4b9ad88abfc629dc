"""Rule-based spending advisories.

Each rule looks at one aspect of the month (savings, the biggest expense
category, budget discipline) and contributes at most one Advisory. Missing
data simply suppresses a rule. One general tip is always appended.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Sequence, Tuple

from ledger import config
from ledger.budgets import GOOD, OVER, BudgetStatus
from ledger.domain import Budget
from ledger.totals import CategoryTotal, Summary

SUCCESS = "success"
WARNING = "warning"
INFO = "info"
TIP = "tip"

# Share of total expense above which the top category is called out as high
TOP_CATEGORY_HIGH_SHARE = Decimal(40)
DISCIPLINE_RATIO = Decimal("0.8")


@dataclass(frozen=True)
class Advisory:
    kind: str
    title: str
    message: str


TIPS: Tuple[Advisory, ...] = (
    Advisory(
        TIP,
        "Smart Saving Tip",
        "Try the 50/30/20 rule: 50% for needs, 30% for wants, and 20% for savings. "
        "This helps maintain a balanced financial lifestyle.",
    ),
    Advisory(
        TIP,
        "Expense Tracking",
        "Consider setting up automatic categorization rules for recurring transactions "
        "to save time and improve accuracy.",
    ),
    Advisory(
        TIP,
        "Emergency Fund",
        "Aim to build an emergency fund covering 3-6 months of expenses. "
        "Start small and gradually increase it over time.",
    ),
)


def money(value: Decimal) -> str:
    return f"{config.CURRENCY}{value:,.2f}"


def pct(value: Decimal) -> str:
    return f"{value:.1f}%"


def _savings_rules(summary: Summary) -> List[Advisory]:
    if summary.income > summary.expense and summary.income > 0:
        savings = summary.net_savings
        return [Advisory(
            SUCCESS,
            "Great Savings Performance!",
            f"You saved {money(savings)} this month ({pct(summary.savings_rate)} savings rate). "
            "You're on track to meet your financial goals!",
        )]
    if summary.expense > summary.income:
        deficit = summary.expense - summary.income
        return [Advisory(
            WARNING,
            "Spending Alert",
            f"You spent {money(deficit)} more than you earned this month. "
            "Consider reviewing your expenses and finding areas to cut back.",
        )]
    return []


def _top_category_rule(summary: Summary, category_totals: Sequence[CategoryTotal]) -> List[Advisory]:
    if not category_totals or summary.expense == 0:
        return []
    top = max(category_totals, key=lambda c: c.total)
    share = top.total / summary.expense * 100
    verdict = (
        "This seems quite high - consider if there are ways to optimize this spending."
        if share > TOP_CATEGORY_HIGH_SHARE
        else "This looks reasonable for your spending pattern."
    )
    return [Advisory(
        INFO,
        "Top Spending Category",
        f"Your highest expense this month is {top.category} at {money(top.total)} "
        f"({pct(share)} of total expenses). {verdict}",
    )]


def _budget_rules(budget_statuses: Sequence[Tuple[Budget, BudgetStatus]]) -> List[Advisory]:
    advisories = []
    disciplined = [
        b.category for b, s in budget_statuses
        if s.status == GOOD and b.spent < b.amount * DISCIPLINE_RATIO
    ]
    if disciplined:
        advisories.append(Advisory(
            SUCCESS,
            "Budget Discipline",
            f"Excellent! You stayed well under budget in {len(disciplined)} categories: "
            f"{', '.join(disciplined)}. Great self-control!",
        ))

    over = [b for b, s in budget_statuses if s.status == OVER]
    if over:
        advisories.append(Advisory(
            WARNING,
            "Budget Overspending",
            f"You exceeded your budget in {len(over)} categories. Consider adjusting your "
            "spending habits or increasing these budget limits if necessary.",
        ))
    return advisories


def generate_advisories(
    summary: Summary,
    category_totals: Sequence[CategoryTotal],
    budget_statuses: Sequence[Tuple[Budget, BudgetStatus]],
    tip_index: int = 0,
) -> List[Advisory]:
    """Evaluate every rule and append the tip at ``tip_index`` (wrapped)."""
    advisories = []
    advisories += _savings_rules(summary)
    advisories += _top_category_rule(summary, category_totals)
    advisories += _budget_rules(budget_statuses)
    advisories.append(TIPS[tip_index % len(TIPS)])
    return advisories


def prompt_context(
    summary: Summary,
    category_totals: Sequence[CategoryTotal],
    budget_statuses: Sequence[Tuple[Budget, BudgetStatus]],
) -> str:
    """Plain-text financial summary for the suggestion service prompt."""
    lines = [
        "Financial Summary:",
        f"- Total Income: {money(summary.income)}",
        f"- Total Expenses: {money(summary.expense)}",
        f"- Net Savings: {money(summary.net_savings)}",
        f"- Savings Rate: {pct(summary.savings_rate)}",
        "",
        "Top Spending Categories:",
    ]
    lines += [f"- {c.category}: {money(c.total)}" for c in category_totals[:5]]
    lines += ["", "Budget Performance:"]
    for b, s in budget_statuses:
        flag = "Over Budget" if s.status == OVER else "OK"
        lines.append(f"- {b.category}: {money(b.spent)} / {money(b.amount)} ({pct(s.percentage)}) {flag}")
    return "\n".join(lines)

"""JSON response bodies for the analytics, budgets and notifications handlers.

Handlers fetch rows from the database, turn them into records with
``transaction_from_row``/``budget_from_row`` and hand them to a
ReportService. Payload conventions: money and percentages are plain numbers,
dates are ``YYYY-MM-DD``.
"""
import calendar
import json
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Sequence

from ledger.budgets import (
    ALERT_PERCENTAGE,
    BUDGETS_VIEW,
    ThresholdTable,
    budget_alerts,
    budget_status,
    refresh_budgets,
)
from ledger.categories import DEFAULT_CATEGORIES, CategoryTable
from ledger.domain import BOTH, EXPENSE, INCOME, Budget, Transaction, transaction_to_row
from ledger.errors import ValidationError
from ledger.log import get_logger
from ledger.totals import (
    DAY,
    MONTH,
    group_by_category,
    group_by_time_bucket,
    month_window,
    recent_transactions,
    select,
    summarize,
    top_categories,
    year_window,
)

logger = get_logger(__name__)

NET_SAVINGS_PERIODS = ("monthly", "yearly", "all-time")

# Daily series inside one month are never trimmed
MAX_MONTH_DAYS = 31


def _default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(payload: Any) -> str:
    return json.dumps(payload, default=_default)


def _summary_block(summary) -> Dict[str, Decimal]:
    return {
        "income": summary.income,
        "expenses": summary.expense,
        "netSavings": summary.net_savings,
    }


def _series(buckets, key_name: str) -> list:
    return [
        {key_name: b.key, "income": b.income, "expenses": b.expense, "netSavings": b.net}
        for b in buckets
    ]


class ReportService:
    """Builds handler payloads from already-fetched transactions and budgets.

    ``clock`` supplies "today" so current-month reports are testable.
    """

    def __init__(
        self,
        categories: CategoryTable = DEFAULT_CATEGORIES,
        clock: Callable[[], date] = date.today,
        thresholds: ThresholdTable = BUDGETS_VIEW,
    ):
        self.categories = categories
        self.clock = clock
        self.thresholds = thresholds

    def _year_month(self, year: Optional[int], month: Optional[int]):
        today = self.clock()
        year = today.year if year is None else int(year)
        month = today.month if month is None else int(month)
        if not 1 <= month <= 12:
            raise ValidationError(f"month must be between 1 and 12: {month}")
        return year, month

    def monthly(
        self, transactions: Sequence[Transaction], year: Optional[int] = None, month: Optional[int] = None
    ) -> Dict[str, Any]:
        year, month = self._year_month(year, month)
        in_month = select(transactions, BOTH, month_window(year, month))
        logger.debug(f"Monthly report {year}-{month:02d}: {len(in_month)} transactions")
        return {
            "period": f"{year}-{month:02d}",
            "summary": _summary_block(summarize(in_month)),
            "dailyData": _series(group_by_time_bucket(in_month, BOTH, DAY, limit=MAX_MONTH_DAYS), "date"),
            "transactionCount": len(in_month),
        }

    def monthly_report(self, transactions: Sequence[Transaction]) -> Dict[str, Any]:
        """Summary of the previous calendar month for the report e-mail."""
        today = self.clock()
        year, month = (today.year - 1, 12) if today.month == 1 else (today.year, today.month - 1)
        summary = summarize(transactions, month_window(year, month))
        in_month = select(transactions, EXPENSE, month_window(year, month))
        logger.info(f"Monthly report for {year}-{month:02d}")
        return {
            "message": "Monthly report generated",
            "reportData": {
                "period": f"{calendar.month_name[month]} {year}",
                "income": summary.income,
                "expenses": summary.expense,
                "netSavings": summary.net_savings,
                "topCategories": [
                    {"category": c.category, "amount": c.total}
                    for c in top_categories(in_month, 5, self.categories)
                ],
            },
        }

    def categories_breakdown(
        self,
        transactions: Sequence[Transaction],
        kind: str = EXPENSE,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        if kind not in (INCOME, EXPENSE):
            raise ValidationError(f"type must be income or expense: {kind!r}")
        rows = [
            t for t in select(transactions, kind)
            if (start_date is None or t.date >= start_date) and (end_date is None or t.date <= end_date)
        ]
        grouped = group_by_category(rows, kind, self.categories)
        return {
            "type": kind,
            "categories": [
                {
                    "name": c.category,
                    "value": c.total,
                    "count": c.count,
                    "color": c.color,
                    "icon": self.categories.icon_for(c.category, kind),
                }
                for c in grouped
            ],
            "totalAmount": sum((c.total for c in grouped), Decimal(0)),
            "period": {
                "startDate": start_date.isoformat() if start_date else "all-time",
                "endDate": end_date.isoformat() if end_date else "all-time",
            },
        }

    def net_savings(
        self,
        transactions: Sequence[Transaction],
        period: str = "monthly",
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> Dict[str, Any]:
        if period not in NET_SAVINGS_PERIODS:
            raise ValidationError(f"period must be one of {NET_SAVINGS_PERIODS}: {period!r}")
        year, month = self._year_month(year, month)
        if period == "monthly":
            rows = select(transactions, BOTH, month_window(year, month))
            trend = _series(group_by_time_bucket(rows, BOTH, DAY, limit=MAX_MONTH_DAYS), "date")
        elif period == "yearly":
            rows = select(transactions, BOTH, year_window(year))
            trend = _series(group_by_time_bucket(rows, BOTH, MONTH), "month")
        else:
            rows = list(transactions)
            trend = []
        summary = summarize(rows)
        block = _summary_block(summary)
        block["savingsRate"] = summary.savings_rate
        return {"period": period, "summary": block, "trendData": trend}

    def dashboard(self, transactions: Sequence[Transaction], budgets: Sequence[Budget]) -> Dict[str, Any]:
        today = self.clock()
        current = summarize(transactions, month_window(today.year, today.month))
        return {
            "currentMonth": _summary_block(current),
            "allTime": _summary_block(summarize(transactions)),
            "recentTransactions": [transaction_to_row(t) for t in recent_transactions(transactions, 10)],
            "budgetCount": len(budgets),
            "transactionCount": len(transactions),
        }

    def budget_summary(self, budgets: Sequence[Budget], transactions: Sequence[Transaction]) -> Dict[str, Any]:
        rows = []
        for b in refresh_budgets(budgets, transactions):
            status = budget_status(b, self.thresholds)
            rows.append({
                "id": b.id,
                "category": b.category,
                "amount": b.amount,
                "period": b.period,
                "color": b.color,
                "spent": b.spent,
                "remaining": status.remaining,
                "percentage": status.percentage,
                "status": status.status,
            })
        return {"budgets": rows}

    def budget_alerts(
        self,
        budgets: Sequence[Budget],
        transactions: Sequence[Transaction],
        threshold: Decimal = ALERT_PERCENTAGE,
    ) -> Dict[str, Any]:
        alerts = budget_alerts(refresh_budgets(budgets, transactions), threshold)
        return {
            "message": f"Processed {len(alerts)} budget alerts",
            "alerts": [
                {
                    "budgetId": a.budget_id,
                    "category": a.category,
                    "budgeted": a.budgeted,
                    "spent": a.spent,
                    "remaining": a.remaining,
                    "percentage": a.percentage,
                    "isOverBudget": a.is_over_budget,
                }
                for a in alerts
            ],
        }

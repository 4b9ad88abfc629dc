"""Totals, category groupings and time-bucketed series over transactions.

Every function here is pure and total: empty input gives zero sums or empty
lists, never None, and nothing is mutated.
"""
import calendar
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ledger import config
from ledger.categories import DEFAULT_CATEGORIES, CategoryTable
from ledger.domain import BOTH, EXPENSE, INCOME, Transaction
from ledger.errors import ValidationError

DateRange = Tuple[date, date]

DAY = "day"
MONTH = "month"
BUCKETS = (DAY, MONTH)

ZERO = Decimal(0)


@dataclass(frozen=True)
class Summary:
    income: Decimal
    expense: Decimal

    @property
    def net_savings(self) -> Decimal:
        return self.income - self.expense

    @property
    def savings_rate(self) -> Decimal:
        if self.income == 0:
            return ZERO
        return self.net_savings / self.income * 100


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: Decimal
    count: int
    color: str


@dataclass(frozen=True)
class BucketTotal:
    key: str  # "YYYY-MM-DD" for days, "YYYY-MM" for months
    income: Decimal
    expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


def by_kind(kind: str) -> Callable[[Transaction], bool]:
    def _filter(t: Transaction) -> bool:
        return kind == BOTH or t.kind == kind

    return _filter


def by_category(name: str) -> Callable[[Transaction], bool]:
    def _filter(t: Transaction) -> bool:
        return t.category == name

    return _filter


def by_date_range(start: date, end: date) -> Callable[[Transaction], bool]:
    def _filter(t: Transaction) -> bool:
        return start <= t.date <= end

    return _filter


def month_window(year: int, month: int) -> DateRange:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def year_window(year: int) -> DateRange:
    return date(year, 1, 1), date(year, 12, 31)


def in_month(year: int, month: int) -> Callable[[Transaction], bool]:
    return by_date_range(*month_window(year, month))


def select(
    transactions: Iterable[Transaction], kind: str = BOTH, date_range: Optional[DateRange] = None
) -> List[Transaction]:
    kind_ok = by_kind(kind)
    in_range = by_date_range(*date_range) if date_range else (lambda t: True)
    return [t for t in transactions if kind_ok(t) and in_range(t)]


def compute_totals(
    transactions: Iterable[Transaction], kind: str = BOTH, date_range: Optional[DateRange] = None
) -> Decimal:
    """Sum of amounts for transactions of ``kind`` inside the inclusive range."""
    if kind not in (INCOME, EXPENSE, BOTH):
        raise ValidationError(f"Unknown kind filter: {kind!r}")
    return sum((t.amount for t in select(transactions, kind, date_range)), ZERO)


def summarize(transactions: Iterable[Transaction], date_range: Optional[DateRange] = None) -> Summary:
    income = ZERO
    expense = ZERO
    for t in select(transactions, BOTH, date_range):
        if t.kind == INCOME:
            income += t.amount
        else:
            expense += t.amount
    return Summary(income=income, expense=expense)


def group_by_category(
    transactions: Iterable[Transaction],
    kind: str = EXPENSE,
    categories: CategoryTable = DEFAULT_CATEGORIES,
) -> List[CategoryTotal]:
    """Per-category totals, largest first; ties keep first-seen order."""
    totals: Dict[str, Decimal] = defaultdict(Decimal)
    counts: Dict[str, int] = defaultdict(int)
    for t in select(transactions, kind):
        totals[t.category] += t.amount
        counts[t.category] += 1

    lookup_kind = kind if kind != BOTH else None
    grouped = [
        CategoryTotal(
            category=name,
            total=total,
            count=counts[name],
            color=categories.color_for(name, lookup_kind),
        )
        for name, total in totals.items()
    ]
    # sorted() is stable and dicts keep insertion order
    return sorted(grouped, key=lambda item: item.total, reverse=True)


def top_categories(
    transactions: Iterable[Transaction],
    k: int,
    categories: CategoryTable = DEFAULT_CATEGORIES,
) -> List[CategoryTotal]:
    return group_by_category(transactions, EXPENSE, categories)[: max(0, k)]


def _bucket_date(key: str) -> date:
    if len(key) == 7:
        return date.fromisoformat(f"{key}-01")
    return date.fromisoformat(key)


def group_by_time_bucket(
    transactions: Iterable[Transaction],
    kind: str = BOTH,
    bucket: str = DAY,
    limit: Optional[int] = None,
) -> List[BucketTotal]:
    """Income and expense sums per day or month, oldest first.

    Day series keep only the most recent ``config.TREND_WINDOW`` buckets
    unless ``limit`` says otherwise.
    """
    if bucket not in BUCKETS:
        raise ValidationError(f"bucket must be one of {BUCKETS}: {bucket!r}")

    income: Dict[str, Decimal] = defaultdict(Decimal)
    expense: Dict[str, Decimal] = defaultdict(Decimal)
    keys: Dict[str, None] = {}
    for t in select(transactions, kind):
        key = t.date.isoformat() if bucket == DAY else t.date.strftime("%Y-%m")
        keys[key] = None
        if t.kind == INCOME:
            income[key] += t.amount
        else:
            expense[key] += t.amount

    ordered = sorted(keys, key=_bucket_date)
    if limit is None and bucket == DAY:
        limit = config.TREND_WINDOW
    if limit is not None:
        ordered = ordered[-limit:] if limit > 0 else []
    return [BucketTotal(key=k, income=income[k], expense=expense[k]) for k in ordered]


def daily_spending(transactions: Iterable[Transaction]) -> Dict[date, Decimal]:
    spending: Dict[date, Decimal] = defaultdict(Decimal)
    for t in select(transactions, EXPENSE):
        spending[t.date] += t.amount
    return dict(spending)


def spending_level(amount: Decimal, peak: Decimal) -> str:
    """Classify a day's spending against the busiest day: none/low/medium/high."""
    if amount == 0 or peak == 0:
        return "none"
    if amount < peak * Decimal("0.3"):
        return "low"
    if amount < peak * Decimal("0.7"):
        return "medium"
    return "high"


def recent_transactions(transactions: Sequence[Transaction], limit: int = 5) -> List[Transaction]:
    return sorted(transactions, key=lambda t: t.date, reverse=True)[: max(0, limit)]

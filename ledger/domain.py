from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional
from uuid import uuid4

from ledger.errors import ValidationError

INCOME = "income"
EXPENSE = "expense"
BOTH = "both"  # filter value only, never stored on a transaction
KINDS = (INCOME, EXPENSE)

MONTHLY = "monthly"
YEARLY = "yearly"
PERIODS = (MONTHLY, YEARLY)

NEUTRAL_COLOR = "#6B7280"


def _check_money(value: Any, field: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        raise ValidationError(f"{field} must be a Decimal: {value!r}")
    if not Decimal(value).is_finite() or value < 0:
        raise ValidationError(f"{field} must be a finite, non-negative number: {value!r}")


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    color: str
    icon: str
    kind: str  # "income" or "expense"


@dataclass(frozen=True)
class Transaction:
    id: str
    title: str
    amount: Decimal   # never negative, kind carries the sign
    category: str     # category name
    kind: str         # "income" or "expense"
    date: date
    notes: str = ""

    def __post_init__(self):
        _check_money(self.amount, "amount")
        if self.kind not in KINDS:
            raise ValidationError(f"kind must be one of {KINDS}: {self.kind!r}")


# A spending cap for one category over one period
@dataclass(frozen=True)
class Budget:
    id: str
    category: str
    amount: Decimal
    spent: Decimal = Decimal(0)
    period: str = MONTHLY
    color: str = NEUTRAL_COLOR
    year: Optional[int] = None   # year/month anchor the period window
    month: Optional[int] = None

    def __post_init__(self):
        _check_money(self.amount, "amount")
        _check_money(self.spent, "spent")
        if self.period not in PERIODS:
            raise ValidationError(f"period must be one of {PERIODS}: {self.period!r}")
        if self.month is not None and not 1 <= self.month <= 12:
            raise ValidationError(f"month must be between 1 and 12: {self.month}")
        if self.period == MONTHLY and self.year is not None and self.month is None:
            raise ValidationError("monthly budget anchored to a year needs a month")


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} is required and must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} is not a number: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite: {value!r}")
    if amount < 0:
        raise ValidationError(f"{field} must not be negative: {value!r}")
    return amount


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationError(f"date must be YYYY-MM-DD: {value!r}") from None


def _optional_int(row: Mapping[str, Any], key: str) -> Optional[int]:
    value = row.get(key)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer: {value!r}") from None


def transaction_from_row(row: Mapping[str, Any]) -> Transaction:
    """Build a Transaction from a JSON row or form payload.

    Accepts ``kind`` or the stored column name ``type``. Raises
    ValidationError for negative or unparseable amounts, bad dates and
    unknown kinds. A missing id is generated.
    """
    kind = row.get("kind", row.get("type"))
    if kind not in KINDS:
        raise ValidationError(f"kind must be one of {KINDS}: {kind!r}")
    category = str(row.get("category") or "").strip()
    if not category:
        raise ValidationError("category is required")
    return Transaction(
        id=str(row.get("id") or uuid4()),
        title=str(row.get("title") or "").strip(),
        amount=parse_amount(row.get("amount")),
        category=category,
        kind=kind,
        date=parse_date(row.get("date")),
        notes=str(row.get("notes") or ""),
    )


def budget_from_row(row: Mapping[str, Any]) -> Budget:
    """Build a Budget from a JSON row or form payload.

    The limit must be positive. ``spent`` defaults to zero; callers that
    own the transaction list should recompute it instead of trusting the row.
    """
    period = row.get("period", MONTHLY)
    if period not in PERIODS:
        raise ValidationError(f"period must be one of {PERIODS}: {period!r}")
    amount = parse_amount(row.get("amount"))
    if amount == 0:
        raise ValidationError("budget amount must be positive")
    category = str(row.get("category") or "").strip()
    if not category:
        raise ValidationError("category is required")
    spent = row.get("spent")
    return Budget(
        id=str(row.get("id") or uuid4()),
        category=category,
        amount=amount,
        spent=parse_amount(spent, "spent") if spent not in (None, "") else Decimal(0),
        period=period,
        color=str(row.get("color") or NEUTRAL_COLOR),
        year=_optional_int(row, "year"),
        month=_optional_int(row, "month"),
    )


def transaction_to_row(t: Transaction) -> dict:
    return {
        "id": t.id,
        "title": t.title,
        "amount": float(t.amount),
        "category": t.category,
        "type": t.kind,
        "date": t.date.isoformat(),
        "notes": t.notes,
    }


def budget_to_row(b: Budget) -> dict:
    row = {
        "id": b.id,
        "category": b.category,
        "amount": float(b.amount),
        "spent": float(b.spent),
        "period": b.period,
        "color": b.color,
    }
    if b.year is not None:
        row["year"] = b.year
    if b.month is not None:
        row["month"] = b.month
    return row

from datetime import date
from decimal import Decimal

from ledger.domain import Budget, Transaction


def make_tx(id, amount, category, kind, day, title=""):
    return Transaction(
        id=id,
        title=title or category,
        amount=Decimal(str(amount)),
        category=category,
        kind=kind,
        date=date.fromisoformat(day),
    )


def make_budget(id, category, amount, spent=0, period="monthly", year=None, month=None):
    return Budget(
        id=id,
        category=category,
        amount=Decimal(str(amount)),
        spent=Decimal(str(spent)),
        period=period,
        year=year,
        month=month,
    )

import asyncio
from dataclasses import replace
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from ledger.budgets import DEFAULT_THRESHOLDS, BudgetStatus, ThresholdTable, budget_status, recompute_spent
from ledger.domain import EXPENSE, Budget, Transaction
from ledger.totals import compute_totals, month_window


async def expenses_by_month(trans: Sequence[Transaction], months: Sequence[str]) -> Dict[str, Decimal]:
    """Compute total expenses per month concurrently for the given months.

    months: list of YYYY-MM strings (e.g., '2024-01')
    """
    async def month_total(month: str) -> Tuple[str, Decimal]:
        year, mon = (int(part) for part in month.split("-"))
        total = compute_totals(trans, EXPENSE, month_window(year, mon))
        await asyncio.sleep(0)
        return month, total

    results = await asyncio.gather(*(month_total(m) for m in months))
    return dict(results)


async def budget_summaries(
    budgets: Sequence[Budget],
    trans: Sequence[Transaction],
    thresholds: ThresholdTable = DEFAULT_THRESHOLDS,
) -> List[Tuple[Budget, BudgetStatus]]:
    """Recompute spent and status for every budget in parallel, keeping input order."""
    async def summarize_budget(b: Budget) -> Tuple[Budget, BudgetStatus]:
        refreshed = replace(b, spent=recompute_spent(b, trans))
        await asyncio.sleep(0)
        return refreshed, budget_status(refreshed, thresholds)

    return list(await asyncio.gather(*(summarize_budget(b) for b in budgets)))

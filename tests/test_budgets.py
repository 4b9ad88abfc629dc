from dataclasses import replace
from decimal import Decimal

import pytest

from ledger.budgets import (
    ALERTS_VIEW,
    BUDGETS_VIEW,
    DEFAULT_THRESHOLDS,
    apply_transaction_to_budgets,
    budget_alerts,
    budget_status,
    budget_window,
    get_preset,
    rank_budgets,
    recompute_spent,
    refresh_budgets,
    replace_transaction_in_budgets,
)
from ledger.errors import ValidationError

from helpers import make_budget, make_tx


def test_status_under_half_is_good():
    s = budget_status(make_budget("b", "Food & Dining", 500, 150))

    assert s.status == "good"
    assert s.percentage == 30
    assert s.remaining == 350


def test_status_over_budget():
    s = budget_status(make_budget("b", "Food & Dining", 500, 520))

    assert s.status == "over"
    assert s.percentage == 104
    assert s.remaining == -20


def test_status_at_eighty_percent_depends_on_preset():
    b = make_budget("b", "Food & Dining", 500, 400)

    assert budget_status(b, BUDGETS_VIEW).status == "warning"
    assert budget_status(b, DEFAULT_THRESHOLDS).status == "warning"
    assert budget_status(b, ALERTS_VIEW).status == "warning"


def test_alerts_preset_thresholds():
    assert budget_status(make_budget("b", "Travel", 100, 74), ALERTS_VIEW).status == "progress"
    assert budget_status(make_budget("b", "Travel", 100, 75), ALERTS_VIEW).status == "warning"
    assert budget_status(make_budget("b", "Travel", 100, 49), ALERTS_VIEW).status == "good"
    assert budget_status(make_budget("b", "Travel", 100, 100), ALERTS_VIEW).status == "over"


def test_budgets_preset_has_no_progress_tier():
    assert budget_status(make_budget("b", "Travel", 100, 79), BUDGETS_VIEW).status == "good"
    assert budget_status(make_budget("b", "Travel", 100, 80), BUDGETS_VIEW).status == "warning"
    assert budget_status(make_budget("b", "Travel", 100, 100), BUDGETS_VIEW).status == "over"


def test_default_preset_progress_tier():
    assert budget_status(make_budget("b", "Travel", 100, 50)).status == "progress"
    assert budget_status(make_budget("b", "Travel", 100, 79.99)).status == "progress"


def test_zero_limit_is_good_with_zero_percentage():
    s = budget_status(make_budget("b", "Travel", 0, 25))
    assert s.status == "good"
    assert s.percentage == 0
    assert s.remaining == -25


def test_remaining_is_exact():
    b = make_budget("b", "Travel", "100.10", "33.33")
    assert budget_status(b).remaining == Decimal("66.77")


def test_status_does_not_mutate_budget():
    b = make_budget("b", "Travel", 100, 30)
    budget_status(b)
    assert b.spent == 30


def test_get_preset():
    assert get_preset("alerts") is ALERTS_VIEW
    with pytest.raises(ValidationError):
        get_preset("strict")


def test_apply_expense_adds_to_matching_budgets():
    budgets = (make_budget("1", "Food & Dining", 500, 150), make_budget("2", "Transportation", 200, 45))
    tx = make_tx("t", 30, "Food & Dining", "expense", "2024-01-20")

    updated = apply_transaction_to_budgets(budgets, tx, "add")

    assert updated[0].spent == 180
    assert updated[1].spent == 45
    assert budgets[0].spent == 150


def test_income_never_touches_budgets():
    budgets = (make_budget("1", "Other", 500, 10),)
    tx = make_tx("t", 30, "Other", "income", "2024-01-20")

    assert apply_transaction_to_budgets(budgets, tx, "add") == budgets
    assert apply_transaction_to_budgets(budgets, tx, "remove") == budgets


def test_remove_clamps_at_zero():
    budgets = (make_budget("1", "Travel", 500, 10),)
    tx = make_tx("t", 30, "Travel", "expense", "2024-01-20")

    assert apply_transaction_to_budgets(budgets, tx, "remove")[0].spent == 0


def test_add_then_remove_restores_spent():
    budgets = (make_budget("1", "Travel", 500, "12.34"), make_budget("2", "Travel", 90, 0))
    tx = make_tx("t", "7.66", "Travel", "expense", "2024-01-20")

    restored = apply_transaction_to_budgets(apply_transaction_to_budgets(budgets, tx, "add"), tx, "remove")
    assert [b.spent for b in restored] == [b.spent for b in budgets]


def test_apply_rejects_unknown_direction():
    with pytest.raises(ValidationError):
        apply_transaction_to_budgets((), make_tx("t", 1, "Travel", "expense", "2024-01-01"), "undo")


def test_replace_transaction_moves_spend_between_categories():
    budgets = (make_budget("1", "Travel", 500, 100), make_budget("2", "Shopping", 300, 0))
    old = make_tx("t", 100, "Travel", "expense", "2024-01-20")
    new = replace(old, category="Shopping", amount=Decimal(80))

    updated = replace_transaction_in_budgets(budgets, old, new)

    assert updated[0].spent == 0
    assert updated[1].spent == 80


def test_replace_expense_with_income_releases_budget():
    budgets = (make_budget("1", "Other", 500, 100),)
    old = make_tx("t", 100, "Other", "expense", "2024-01-20")
    new = replace(old, kind="income")

    assert replace_transaction_in_budgets(budgets, old, new)[0].spent == 0


def test_anchored_window_limits_spend():
    monthly = make_budget("m", "Travel", 500, period="monthly", year=2024, month=1)
    yearly = make_budget("y", "Travel", 500, period="yearly", year=2024)
    open_ended = make_budget("o", "Travel", 500)
    trans = (
        make_tx("1", 10, "Travel", "expense", "2024-01-31"),
        make_tx("2", 20, "Travel", "expense", "2024-02-01"),
        make_tx("3", 40, "Travel", "expense", "2023-12-31"),
    )

    assert recompute_spent(monthly, trans) == 10
    assert recompute_spent(yearly, trans) == 30
    assert recompute_spent(open_ended, trans) == 70
    assert budget_window(open_ended) is None

    feb = make_tx("4", 5, "Travel", "expense", "2024-02-05")
    updated = apply_transaction_to_budgets((monthly, yearly, open_ended), feb, "add")
    assert [b.spent for b in updated] == [0, 5, 5]


def test_refresh_matches_incremental_updates():
    budgets = (make_budget("1", "Travel", 500), make_budget("2", "Shopping", 100))
    trans = [
        make_tx("1", 10, "Travel", "expense", "2024-01-01"),
        make_tx("2", 20, "Shopping", "expense", "2024-01-02"),
        make_tx("3", 500, "Salary", "income", "2024-01-03"),
    ]
    incremental = budgets
    for t in trans:
        incremental = apply_transaction_to_budgets(incremental, t, "add")

    assert refresh_budgets(budgets, trans) == incremental


def test_rank_and_alerts():
    budgets = (
        make_budget("1", "Travel", 100, 20),
        make_budget("2", "Shopping", 100, 120),
        make_budget("3", "Healthcare", 100, 85),
        make_budget("4", "Education", 0, 10),
    )

    ranked = rank_budgets(budgets)
    assert [b.id for b, _ in ranked] == ["2", "3", "1", "4"]

    alerts = budget_alerts(budgets)
    assert [a.category for a in alerts] == ["Shopping", "Healthcare"]
    assert alerts[0].is_over_budget
    assert not alerts[1].is_over_budget
    assert alerts[1].remaining == 15


def test_empty_budgets():
    assert rank_budgets(()) == []
    assert budget_alerts(()) == []
    assert apply_transaction_to_budgets((), make_tx("t", 1, "Travel", "expense", "2024-01-01"), "add") == ()

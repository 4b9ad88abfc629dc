"""Application state container.

``reduce`` is a pure function from (state, action) to a new state. ``Store``
wraps it with the side effects a session needs: loading and saving through
an injected storage, and publishing events for each mutation.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, NamedTuple, Optional, Tuple, Union

from ledger.budgets import (
    ADD,
    DEFAULT_THRESHOLDS,
    OVER,
    REMOVE,
    WARNING,
    ThresholdTable,
    apply_transaction_to_budgets,
    budget_status,
    recompute_spent,
    refresh_budgets,
    replace_transaction_in_budgets,
)
from ledger.categories import DEFAULT_CATEGORIES, CategoryTable
from ledger.domain import (
    EXPENSE,
    Budget,
    Transaction,
    budget_from_row,
    budget_to_row,
    transaction_from_row,
    transaction_to_row,
)
from ledger.errors import NotFoundError, StorageError, ValidationError
from ledger.events import (
    BUDGET_ALERT,
    TRANSACTION_ADDED,
    TRANSACTION_DELETED,
    TRANSACTION_UPDATED,
    EventBus,
)
from ledger.log import get_logger
from ledger.storage import MemoryStorage, Storage

logger = get_logger(__name__)

ADD_TRANSACTION = "ADD_TRANSACTION"
UPDATE_TRANSACTION = "UPDATE_TRANSACTION"
DELETE_TRANSACTION = "DELETE_TRANSACTION"
ADD_BUDGET = "ADD_BUDGET"
UPDATE_BUDGET = "UPDATE_BUDGET"
DELETE_BUDGET = "DELETE_BUDGET"
SET_VIEW = "SET_VIEW"

VIEWS = ("dashboard", "transactions", "budgets", "analytics", "calendar")


class Action(NamedTuple):
    type: str
    payload: Any = None


@dataclass(frozen=True)
class AppState:
    transactions: Tuple[Transaction, ...] = field(default_factory=tuple)
    budgets: Tuple[Budget, ...] = field(default_factory=tuple)
    current_view: str = "dashboard"


TransactionInput = Union[Transaction, Mapping[str, Any]]
BudgetInput = Union[Budget, Mapping[str, Any]]


def _as_transaction(payload: TransactionInput) -> Transaction:
    if isinstance(payload, Transaction):
        return payload
    return transaction_from_row(payload)


def _as_budget(payload: BudgetInput, categories: CategoryTable) -> Budget:
    if isinstance(payload, Budget):
        budget = payload
    else:
        budget = budget_from_row(payload)
        if not payload.get("color"):
            budget = replace(budget, color=categories.color_for(budget.category, EXPENSE))
    if budget.amount == 0:
        raise ValidationError("budget amount must be positive")
    return budget


def _find(records, record_id: str, label: str):
    for r in records:
        if r.id == record_id:
            return r
    raise NotFoundError(f"{label} {record_id!r} not found")


def reduce(state: AppState, action: Action, categories: CategoryTable = DEFAULT_CATEGORIES) -> AppState:
    """Return the state after ``action``. ``state`` itself is never modified.

    Category references are checked against ``categories`` on every write.
    Budget ``spent`` is adjusted once per transaction create, update or delete
    and recomputed whenever a budget is created or edited.
    """
    kind, payload = action.type, action.payload

    if kind == ADD_TRANSACTION:
        t = _as_transaction(payload)
        categories.require(t.category, t.kind)
        if any(existing.id == t.id for existing in state.transactions):
            raise ValidationError(f"Transaction {t.id!r} already exists")
        return replace(
            state,
            transactions=state.transactions + (t,),
            budgets=apply_transaction_to_budgets(state.budgets, t, ADD),
        )

    if kind == UPDATE_TRANSACTION:
        t = _as_transaction(payload)
        old = _find(state.transactions, t.id, "Transaction")
        categories.require(t.category, t.kind)
        return replace(
            state,
            transactions=tuple(t if x.id == t.id else x for x in state.transactions),
            budgets=replace_transaction_in_budgets(state.budgets, old, t),
        )

    if kind == DELETE_TRANSACTION:
        old = _find(state.transactions, payload, "Transaction")
        return replace(
            state,
            transactions=tuple(x for x in state.transactions if x.id != old.id),
            budgets=apply_transaction_to_budgets(state.budgets, old, REMOVE),
        )

    if kind == ADD_BUDGET:
        b = _as_budget(payload, categories)
        categories.require(b.category, EXPENSE)
        if any(existing.id == b.id for existing in state.budgets):
            raise ValidationError(f"Budget {b.id!r} already exists")
        b = replace(b, spent=recompute_spent(b, state.transactions))
        return replace(state, budgets=state.budgets + (b,))

    if kind == UPDATE_BUDGET:
        b = _as_budget(payload, categories)
        _find(state.budgets, b.id, "Budget")
        categories.require(b.category, EXPENSE)
        b = replace(b, spent=recompute_spent(b, state.transactions))
        return replace(state, budgets=tuple(b if x.id == b.id else x for x in state.budgets))

    if kind == DELETE_BUDGET:
        old = _find(state.budgets, payload, "Budget")
        return replace(state, budgets=tuple(x for x in state.budgets if x.id != old.id))

    if kind == SET_VIEW:
        if payload not in VIEWS:
            raise ValidationError(f"Unknown view {payload!r}")
        return replace(state, current_view=payload)

    raise ValidationError(f"Unknown action type {kind!r}")


def snapshot(state: AppState) -> dict:
    return {
        "transactions": [transaction_to_row(t) for t in state.transactions],
        "budgets": [budget_to_row(b) for b in state.budgets],
        "current_view": state.current_view,
    }


def restore(data: Optional[Mapping[str, Any]]) -> AppState:
    """Rebuild state from a snapshot, recomputing every budget's spent."""
    if not data:
        return AppState()
    try:
        transactions = tuple(transaction_from_row(row) for row in data.get("transactions", []))
        budgets = tuple(budget_from_row(row) for row in data.get("budgets", []))
    except ValidationError as e:
        raise StorageError(f"Corrupt snapshot: {e}") from e
    view = data.get("current_view", "dashboard")
    return AppState(
        transactions=transactions,
        budgets=refresh_budgets(budgets, transactions),
        current_view=view if view in VIEWS else "dashboard",
    )


class Store:
    """Holds the current AppState for one session."""

    def __init__(
        self,
        storage: Optional[Storage] = None,
        categories: CategoryTable = DEFAULT_CATEGORIES,
        bus: Optional[EventBus] = None,
        thresholds: ThresholdTable = DEFAULT_THRESHOLDS,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.categories = categories
        self.bus = bus if bus is not None else EventBus()
        self.thresholds = thresholds
        self.state = restore(self.storage.load())
        logger.info(
            f"Store ready with {len(self.state.transactions)} transactions "
            f"and {len(self.state.budgets)} budgets"
        )

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return self.state.transactions

    @property
    def budgets(self) -> Tuple[Budget, ...]:
        return self.state.budgets

    def dispatch(self, action: Action) -> AppState:
        before = self.state
        after = reduce(before, action, self.categories)
        # state only advances once the snapshot is stored
        if action.type != SET_VIEW:
            self.storage.save(snapshot(after))
            logger.info(f"{action.type} applied")
        self.state = after
        self._publish(action, before, after)
        return after

    def _publish(self, action: Action, before: AppState, after: AppState) -> None:
        if action.type == ADD_TRANSACTION:
            self.bus.publish(TRANSACTION_ADDED, {"transaction": after.transactions[-1]})
        elif action.type == UPDATE_TRANSACTION:
            self.bus.publish(TRANSACTION_UPDATED, {"transaction": _as_transaction(action.payload)})
        elif action.type == DELETE_TRANSACTION:
            self.bus.publish(TRANSACTION_DELETED, {"transaction_id": action.payload})

        previous = {b.id: budget_status(b, self.thresholds).status for b in before.budgets}
        for b in after.budgets:
            status = budget_status(b, self.thresholds)
            if status.status in (WARNING, OVER) and previous.get(b.id) != status.status:
                logger.info(f"Budget {b.category} moved to {status.status} ({status.percentage:.0f}%)")
                self.bus.publish(BUDGET_ALERT, {
                    "budget_id": b.id,
                    "category": b.category,
                    "status": status.status,
                    "percentage": status.percentage,
                    "remaining": status.remaining,
                })

    def add_transaction(self, payload: TransactionInput) -> Transaction:
        self.dispatch(Action(ADD_TRANSACTION, payload))
        return self.state.transactions[-1]

    def update_transaction(self, payload: TransactionInput) -> AppState:
        return self.dispatch(Action(UPDATE_TRANSACTION, payload))

    def delete_transaction(self, transaction_id: str) -> AppState:
        return self.dispatch(Action(DELETE_TRANSACTION, transaction_id))

    def add_budget(self, payload: BudgetInput) -> Budget:
        self.dispatch(Action(ADD_BUDGET, payload))
        return self.state.budgets[-1]

    def update_budget(self, payload: BudgetInput) -> AppState:
        return self.dispatch(Action(UPDATE_BUDGET, payload))

    def delete_budget(self, budget_id: str) -> AppState:
        return self.dispatch(Action(DELETE_BUDGET, budget_id))

    def set_view(self, view: str) -> AppState:
        return self.dispatch(Action(SET_VIEW, view))

from typing import Dict, Iterable, Optional, Tuple

from ledger.domain import EXPENSE, INCOME, NEUTRAL_COLOR, Category
from ledger.errors import UnknownCategoryError, ValidationError

EXPENSE_CATEGORIES: Tuple[Category, ...] = (
    Category("food-dining", "Food & Dining", "#EF4444", "utensils", EXPENSE),
    Category("transportation", "Transportation", "#F97316", "car", EXPENSE),
    Category("shopping", "Shopping", "#EAB308", "shopping-bag", EXPENSE),
    Category("entertainment", "Entertainment", "#8B5CF6", "film", EXPENSE),
    Category("bills-utilities", "Bills & Utilities", "#3B82F6", "zap", EXPENSE),
    Category("healthcare", "Healthcare", "#10B981", "heart", EXPENSE),
    Category("education", "Education", "#06B6D4", "book", EXPENSE),
    Category("travel", "Travel", "#F59E0B", "plane", EXPENSE),
    Category("other-expense", "Other", NEUTRAL_COLOR, "more-horizontal", EXPENSE),
)

INCOME_CATEGORIES: Tuple[Category, ...] = (
    Category("salary", "Salary", "#10B981", "briefcase", INCOME),
    Category("freelance", "Freelance", "#3B82F6", "laptop", INCOME),
    Category("investment", "Investment", "#8B5CF6", "trending-up", INCOME),
    Category("business", "Business", "#F59E0B", "building", INCOME),
    Category("other-income", "Other", NEUTRAL_COLOR, "more-horizontal", INCOME),
)


class CategoryTable:
    """Id-keyed category reference data.

    Transactions and budgets refer to categories by name, and the same name
    may appear once per kind ("Other" is both an income and an expense
    category), so name lookups are scoped by kind where it matters.
    """

    def __init__(self, categories: Iterable[Category]):
        self._by_id: Dict[str, Category] = {}
        self._by_kind_name: Dict[Tuple[str, str], Category] = {}
        for c in categories:
            if c.id in self._by_id:
                raise ValidationError(f"Duplicate category id: {c.id}")
            if (c.kind, c.name) in self._by_kind_name:
                raise ValidationError(f"Duplicate {c.kind} category name: {c.name}")
            self._by_id[c.id] = c
            self._by_kind_name[(c.kind, c.name)] = c

    def __iter__(self):
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, cat_id: str) -> Optional[Category]:
        return self._by_id.get(cat_id)

    def by_kind(self, kind: str) -> Tuple[Category, ...]:
        return tuple(c for c in self._by_id.values() if c.kind == kind)

    def find(self, name: str, kind: Optional[str] = None) -> Optional[Category]:
        """Look a category up by name, optionally within one kind.

        Without a kind, expense categories win over income ones.
        """
        if kind is not None:
            return self._by_kind_name.get((kind, name))
        return self._by_kind_name.get((EXPENSE, name)) or self._by_kind_name.get((INCOME, name))

    def require(self, name: str, kind: str) -> Category:
        category = self.find(name, kind)
        if category is None:
            raise UnknownCategoryError(name, kind)
        return category

    def color_for(self, name: str, kind: Optional[str] = None) -> str:
        category = self.find(name, kind)
        return category.color if category else NEUTRAL_COLOR

    def icon_for(self, name: str, kind: Optional[str] = None) -> str:
        category = self.find(name, kind)
        return category.icon if category else "more-horizontal"

    def names(self, kind: str) -> Tuple[str, ...]:
        return tuple(c.name for c in self.by_kind(kind))


DEFAULT_CATEGORIES = CategoryTable(EXPENSE_CATEGORIES + INCOME_CATEGORIES)

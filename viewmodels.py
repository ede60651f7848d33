"""Display-side join of transactions and categories.

A transaction may reference a category that is not in the supplied list. The
join never fails in that case: the category comes back as ``None`` and
:func:`category_key` maps it to :data:`DEFAULT_CATEGORY_KEY`, the key
presentation tables use for colour and label fallbacks.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from models import Category, Transaction

DEFAULT_CATEGORY_KEY = "Default"


def attach_category(
    transaction: Transaction, categories: Iterable[Category]
) -> tuple[Transaction, Optional[Category]]:
    match = next((c for c in categories if c.id == transaction.category_id), None)
    return transaction, match


def category_key(category: Optional[Category]) -> str:
    if category is None:
        return DEFAULT_CATEGORY_KEY
    return category.name


@dataclass(frozen=True)
class TransactionRow:
    transaction: Transaction
    category: Optional[Category]

    @property
    def category_key(self) -> str:
        return category_key(self.category)

    @property
    def category_name(self) -> Optional[str]:
        return self.category.name if self.category is not None else None


def build_rows(
    transactions: Iterable[Transaction], categories: Iterable[Category]
) -> list[TransactionRow]:
    by_id = {c.id: c for c in categories}
    return [TransactionRow(t, by_id.get(t.category_id)) for t in transactions]

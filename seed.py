import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from config import get_settings
from database import create_db_engine, create_schema, make_session_factory, session_scope
from models import Category, TransactionType
from schemas import CategoryIn
from services import CategoryService

logger = logging.getLogger(__name__)


DEFAULT_CATEGORIES: list[tuple[str, TransactionType]] = [
    ("Groceries", TransactionType.expense),
    ("Rent", TransactionType.expense),
    ("Bills", TransactionType.expense),
    ("Utilities", TransactionType.expense),
    ("Electronics", TransactionType.expense),
    ("Eating out", TransactionType.expense),
    ("Fuel", TransactionType.expense),
    ("Gifts", TransactionType.expense),
    ("Debt Repayment", TransactionType.expense),
    ("Misc", TransactionType.expense),
    ("Salary", TransactionType.income),
    ("Gift", TransactionType.income),
    ("Bonus", TransactionType.income),
    ("Side Hustle", TransactionType.income),
    ("Refund", TransactionType.income),
    ("Tax Return", TransactionType.income),
]


def seed_default_categories(session: Session) -> int:
    """Insert the default categories that are missing; returns how many were added."""
    existing = {
        (row.type, row.name.lower())
        for row in session.execute(select(Category.type, Category.name)).all()
    }
    service = CategoryService(session)
    added = 0
    for name, txn_type in DEFAULT_CATEGORIES:
        if (txn_type, name.lower()) in existing:
            continue
        service.create(CategoryIn(name=name, type=txn_type))
        added += 1
    logger.info(f"categories_seeded: added={added}")
    return added


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    engine = create_db_engine(settings.database_url)
    create_schema(engine)
    with session_scope(make_session_factory(engine)) as session:
        seed_default_categories(session)


if __name__ == "__main__":
    main()

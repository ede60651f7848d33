from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base
from models import Category, TransactionType
from periods import month_window
from schemas import TransactionIn
from services import OverviewService, SummaryService, TransactionService


def make_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def _ts(*args: int) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp())


def _seed(session) -> tuple[Category, Category]:
    groceries = Category(name="Groceries", type=TransactionType.expense)
    salary = Category(name="Salary", type=TransactionType.income)
    session.add_all([groceries, salary])
    session.commit()
    return groceries, salary


def _add(session, category: Category, amount: float, when: int, note: str = ""):
    return TransactionService(session).create(
        TransactionIn(
            category_id=category.id,
            amount=amount,
            date=when,
            description=note,
            type=category.type,
        )
    )


def test_empty_store_yields_zero_totals() -> None:
    session = make_session()
    window = month_window(2025, 6, "UTC")

    summary = SummaryService(session).monthly_summary(window.start, window.end)

    assert summary.total_expenses == 0
    assert summary.total_income == 0
    assert summary.savings == 0


def test_totals_only_count_rows_inside_window() -> None:
    session = make_session()
    groceries, salary = _seed(session)
    _add(session, groceries, 10.25, _ts(2025, 6, 3))
    _add(session, groceries, 4.75, _ts(2025, 6, 28, 18, 0))
    _add(session, salary, 2000, _ts(2025, 6, 1, 9, 0))
    _add(session, groceries, 99, _ts(2025, 5, 31, 23, 59, 59))
    _add(session, salary, 500, _ts(2025, 7, 1))

    summary = SummaryService(session, "UTC").for_month(2025, 6)

    assert summary.total_expenses == 15.0
    assert summary.total_income == 2000.0
    assert summary.savings == 1985.0


def test_window_bounds_are_inclusive() -> None:
    session = make_session()
    groceries, salary = _seed(session)
    window = month_window(2025, 2, "UTC")
    _add(session, groceries, 1, window.start)
    _add(session, groceries, 2, window.end)
    _add(session, groceries, 4, window.start - 1)
    _add(session, salary, 8, window.end + 1)

    summary = SummaryService(session).for_window(window)

    assert summary.total_expenses == 3
    assert summary.total_income == 0
    assert (summary.start, summary.end) == (window.start, window.end)


def test_only_income_reports_zero_expenses() -> None:
    session = make_session()
    _, salary = _seed(session)
    _add(session, salary, 300, _ts(2025, 6, 10))

    summary = SummaryService(session, "UTC").for_month(2025, 6)

    assert summary.total_expenses == 0
    assert summary.total_income == 300
    assert summary.savings == 300


def test_expenses_exceeding_income_give_negative_savings() -> None:
    session = make_session()
    groceries, salary = _seed(session)
    _add(session, groceries, 120, _ts(2025, 6, 10))
    _add(session, salary, 100, _ts(2025, 6, 11))

    summary = SummaryService(session, "UTC").for_month(2025, 6)

    assert summary.savings == -20


def test_current_month_summary_for_weekly_shop() -> None:
    session = make_session()
    groceries, _ = _seed(session)
    now = datetime(2025, 6, 20, 12, 0, tzinfo=timezone.utc)
    _add(session, groceries, 42.50, _ts(2025, 6, 5, 9, 30), "Weekly shop")

    summary = SummaryService(session, "UTC").current_month(now)
    transactions = TransactionService(session).list()

    assert summary.total_expenses == 42.50
    assert summary.total_income == 0
    assert transactions[0].description == "Weekly shop"


def test_retrieve_all_returns_transactions_categories_and_summary() -> None:
    session = make_session()
    groceries, salary = _seed(session)
    now = datetime(2025, 6, 20, 12, 0, tzinfo=timezone.utc)
    _add(session, salary, 1000, _ts(2025, 6, 1), "June pay")
    _add(session, groceries, 30, _ts(2025, 5, 30), "Late May shop")
    shop = _add(session, groceries, 42.5, _ts(2025, 6, 5), "Weekly shop")

    overview = OverviewService(session, "UTC").retrieve_all(now)

    assert [t.id for t in overview.transactions][0] == shop.id
    assert len(overview.transactions) == 3
    assert {c.name for c in overview.categories} == {"Groceries", "Salary"}
    assert overview.monthly_summary.total_expenses == 42.5
    assert overview.monthly_summary.total_income == 1000
    rows = overview.rows()
    assert [r.category_key for r in rows] == ["Groceries", "Groceries", "Salary"]


def test_retrieve_all_reflects_deletes() -> None:
    session = make_session()
    groceries, _ = _seed(session)
    now = datetime(2025, 6, 20, 12, 0, tzinfo=timezone.utc)
    txn = _add(session, groceries, 42.5, _ts(2025, 6, 5))
    overview = OverviewService(session, "UTC")
    assert overview.retrieve_all(now).monthly_summary.total_expenses == 42.5

    TransactionService(session).delete(txn.id)

    after = overview.retrieve_all(now)
    assert after.transactions == []
    assert after.monthly_summary.total_expenses == 0

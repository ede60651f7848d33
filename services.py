from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional, Union

from pydantic import ValidationError
from sqlalchemy import case, delete, func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from models import Category, Transaction, TransactionType
from periods import MonthWindow, current_month_window, month_window
from schemas import SQLITE_INT_MAX, SQLITE_INT_MIN, CategoryIn, TransactionIn
from viewmodels import TransactionRow, build_rows

logger = logging.getLogger(__name__)


class TransactionValidationError(ValueError):
    pass


class ConstraintViolation(ValueError):
    pass


class StorageUnavailable(RuntimeError):
    pass


def _describe_errors(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error["loc"]) or "input"
        parts.append(f"{loc}: {error['msg']}")
    return "; ".join(parts)


def parse_transaction(payload: Union[TransactionIn, Mapping[str, object]]) -> TransactionIn:
    if isinstance(payload, TransactionIn):
        return payload
    try:
        return TransactionIn.model_validate(payload)
    except ValidationError as exc:
        raise TransactionValidationError(_describe_errors(exc)) from exc


@contextmanager
def _reading(action: str) -> Iterator[None]:
    try:
        yield
    except OperationalError as exc:
        logger.exception(f"storage_error: action={action}")
        raise StorageUnavailable(f"Database unavailable during {action}") from exc


@contextmanager
def _unit_of_work(session: Session, action: str) -> Iterator[None]:
    """Commit on success, roll back and translate storage errors otherwise."""
    try:
        yield
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.warning(f"constraint_violation: action={action} detail={exc.orig}")
        raise ConstraintViolation(str(exc.orig)) from exc
    except OperationalError as exc:
        session.rollback()
        logger.exception(f"storage_error: action={action}")
        raise StorageUnavailable(f"Database unavailable during {action}") from exc
    except Exception:
        session.rollback()
        raise


@dataclass(frozen=True)
class MonthlySummary:
    start: int
    end: int
    total_expenses: float = 0.0
    total_income: float = 0.0

    @property
    def savings(self) -> float:
        return self.total_income - self.total_expenses


@dataclass(frozen=True)
class Overview:
    transactions: list[Transaction]
    categories: list[Category]
    monthly_summary: MonthlySummary

    def rows(self) -> list[TransactionRow]:
        return build_rows(self.transactions, self.categories)


class CategoryService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[Category]:
        stmt = select(Category).order_by(Category.id)
        with _reading("list_categories"):
            return self.session.scalars(stmt).all()

    def list_by_type(self, type: Union[TransactionType, str]) -> list[Category]:
        txn_type = TransactionType(type)
        stmt = select(Category).where(Category.type == txn_type).order_by(Category.id)
        with _reading("list_categories_by_type"):
            return self.session.scalars(stmt).all()

    def get(self, category_id: int) -> Optional[Category]:
        with _reading("get_category"):
            return self.session.get(Category, category_id)

    def create(self, data: CategoryIn) -> Category:
        name = data.name.strip()
        if not name:
            raise ValueError("Category name must not be empty")
        with _reading("create_category"):
            existing = self.session.scalar(
                select(Category).where(
                    Category.type == data.type,
                    func.lower(Category.name) == name.lower(),
                )
            )
        if existing:
            raise ConstraintViolation("Category with this name already exists")
        category = Category(name=name, type=data.type)
        with _unit_of_work(self.session, "create_category"):
            self.session.add(category)
        with _reading("refresh_category"):
            self.session.refresh(category)
        return category


class TransactionService:
    def __init__(self, session: Session, enforce_category_type: bool = True) -> None:
        self.session = session
        self.enforce_category_type = enforce_category_type

    def list(self) -> list[Transaction]:
        # Insertion order, not the transaction's own date.
        stmt = select(Transaction).order_by(Transaction.id.desc())
        with _reading("list_transactions"):
            return self.session.scalars(stmt).all()

    def create(self, data: Union[TransactionIn, Mapping[str, object]]) -> Transaction:
        data = parse_transaction(data)
        with _reading("resolve_category"):
            category = self.session.get(Category, data.category_id)
        if category is None:
            raise ConstraintViolation("Category not found")
        if self.enforce_category_type and category.type != data.type:
            raise ConstraintViolation("Category type mismatch")

        txn = Transaction(
            category_id=data.category_id,
            amount=data.amount,
            date=data.date,
            description=data.description,
            type=data.type,
        )
        with _unit_of_work(self.session, "create_transaction"):
            self.session.add(txn)
        with _reading("refresh_transaction"):
            self.session.refresh(txn)
        logger.info(
            f"transaction_created: id={txn.id} type={txn.type.value} "
            f"category_id={txn.category_id} amount={txn.amount}"
        )
        return txn

    def delete(self, transaction_id: int) -> None:
        if not SQLITE_INT_MIN <= transaction_id <= SQLITE_INT_MAX:
            # No stored row can have an id outside the INTEGER range.
            logger.info(f"transaction_deleted: id={transaction_id} removed=0")
            return
        with _unit_of_work(self.session, "delete_transaction"):
            result = self.session.execute(
                delete(Transaction).where(Transaction.id == transaction_id)
            )
        logger.info(
            f"transaction_deleted: id={transaction_id} removed={result.rowcount}"
        )


class SummaryService:
    def __init__(self, session: Session, timezone: Optional[str] = None) -> None:
        self.session = session
        self.timezone = timezone

    def monthly_summary(self, start: int, end: int) -> MonthlySummary:
        def total_for(txn_type: TransactionType):
            return func.coalesce(
                func.sum(
                    case((Transaction.type == txn_type, Transaction.amount), else_=0.0)
                ),
                0.0,
            )

        stmt = select(
            total_for(TransactionType.expense).label("total_expenses"),
            total_for(TransactionType.income).label("total_income"),
        ).where(Transaction.date.between(start, end))
        with _reading("monthly_summary"):
            row = self.session.execute(stmt).one()
        return MonthlySummary(
            start=start,
            end=end,
            total_expenses=float(row.total_expenses or 0),
            total_income=float(row.total_income or 0),
        )

    def for_window(self, window: MonthWindow) -> MonthlySummary:
        return self.monthly_summary(window.start, window.end)

    def for_month(self, year: int, month: int) -> MonthlySummary:
        return self.for_window(month_window(year, month, self.timezone))

    def current_month(self, now: Optional[datetime] = None) -> MonthlySummary:
        return self.for_window(current_month_window(now, self.timezone))


class OverviewService:
    def __init__(self, session: Session, timezone: Optional[str] = None) -> None:
        self.session = session
        self.timezone = timezone

    def retrieve_all(self, now: Optional[datetime] = None) -> Overview:
        transactions = TransactionService(self.session).list()
        categories = CategoryService(self.session).list_all()
        summary = SummaryService(self.session, self.timezone).current_month(now)
        return Overview(
            transactions=transactions,
            categories=categories,
            monthly_summary=summary,
        )

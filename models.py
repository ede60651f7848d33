from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class TransactionType(str, Enum):
    expense = "Expense"
    income = "Income"


def _transaction_type_enum() -> SAEnum:
    return SAEnum(
        TransactionType,
        name="transactiontype",
        values_callable=lambda enum_cls: [member.value for member in enum_cls],
        create_constraint=True,
        length=10,
    )


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        _transaction_type_enum(), nullable=False
    )

    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction", back_populates="category", passive_deletes="all"
    )

    __table_args__ = (
        UniqueConstraint("type", "name", name="uq_category_type_name"),
        CheckConstraint("length(name) > 0", name="ck_categories_name_not_empty"),
    )

    def __repr__(self) -> str:
        return f"Category(id={self.id!r}, name={self.name!r}, type={self.type.value!r})"


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    # Whole seconds since the Unix epoch.
    date: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[TransactionType] = mapped_column(
        _transaction_type_enum(), nullable=False
    )

    category: Mapped["Category"] = relationship(
        "Category", back_populates="transactions"
    )

    __table_args__ = (
        Index("ix_transactions_date", "date"),
        Index("ix_transactions_category_id", "category_id"),
        CheckConstraint("amount >= 0", name="ck_transactions_amount_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id!r}, type={self.type.value!r}, "
            f"amount={self.amount!r}, date={self.date!r})"
        )

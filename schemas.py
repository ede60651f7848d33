import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import TransactionType

# SQLite INTEGER is a signed 64-bit value.
SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType


class TransactionIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category_id: int = Field(..., ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX)
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    date: int = Field(..., ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX)
    description: str = Field(default="", max_length=200)
    type: TransactionType

    @field_validator("category_id", "amount", "date", mode="before")
    @classmethod
    def _reject_booleans(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("must be a number, not a boolean")
        return value

    @field_validator("date", mode="before")
    @classmethod
    def _floor_to_seconds(cls, value: object) -> object:
        if isinstance(value, float) and math.isfinite(value):
            return math.floor(value)
        return value


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: TransactionType


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    amount: float
    date: int
    description: str
    type: TransactionType


class TransactionRowOut(TransactionOut):
    category_name: Optional[str] = None
    category_key: str


class MonthlySummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: int
    end: int
    total_expenses: float
    total_income: float
    savings: float


class OverviewOut(BaseModel):
    transactions: list[TransactionRowOut]
    categories: list[CategoryOut]
    monthly_summary: MonthlySummaryOut

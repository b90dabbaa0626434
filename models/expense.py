"""Pydantic models for Expense data"""
import math
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

AMOUNT_ERROR = "Amount must be a positive number"
# Largest value a DECIMAL(10, 2) column holds
MAX_AMOUNT = 99_999_999.99


class Expense(BaseModel):
    """
    A single expense owned by one user.
    Serialized with camelCase keys (userId, createdAt, updatedAt).
    """
    id: str
    user_id: str
    category: str
    amount: float
    comments: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ExpenseIn(BaseModel):
    """Request body for creating or updating an expense."""
    category: str
    amount: float
    comments: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def require_category_and_amount(cls, data: Any) -> Any:
        if isinstance(data, dict):
            category = data.get("category")
            amount = data.get("amount")
            if category is None or (isinstance(category, str) and not category.strip()):
                raise ValueError("Category and amount are required")
            if amount is None or (isinstance(amount, str) and not amount.strip()):
                raise ValueError("Category and amount are required")
        return data

    @field_validator("category", mode="before")
    @classmethod
    def strip_category(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, value: Any) -> float:
        # Numeric strings ("0.01") are accepted, booleans are not
        if isinstance(value, bool):
            raise ValueError(AMOUNT_ERROR)
        try:
            amount = float(value.strip() if isinstance(value, str) else value)
        except (TypeError, ValueError):
            raise ValueError(AMOUNT_ERROR)
        if not math.isfinite(amount) or amount <= 0:
            raise ValueError(AMOUNT_ERROR)
        if amount > MAX_AMOUNT:
            raise ValueError(f"Amount must not exceed {MAX_AMOUNT:.2f}")
        # Stored with cent precision
        amount = round(amount, 2)
        if amount <= 0:
            raise ValueError(AMOUNT_ERROR)
        return amount

    @field_validator("comments", mode="before")
    @classmethod
    def strip_comments(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("Comments must be text")
        return value.strip() or None


class CategoryStat(BaseModel):
    category: str
    total: float
    count: int
    percentage: float


class ExpenseStats(BaseModel):
    """Per-category totals for one user, largest total first."""
    stats: List[CategoryStat] = Field(default_factory=list)
    total_expenses: float = 0

    class Config:
        alias_generator = to_camel
        populate_by_name = True

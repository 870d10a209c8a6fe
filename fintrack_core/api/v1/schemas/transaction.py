"""Pydantic schemas for transaction requests and responses."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ....config import settings

TransactionType = Literal["income", "expense"]


class TransactionBase(BaseModel):
    """Shared transaction fields.

    The amount is always positive; `type` says which way the money moved.
    Categories are free-form labels, not foreign keys.
    """

    amount: float = Field(..., gt=0, description="Positive amount in `currency`")
    type: TransactionType = Field(..., description="'income' or 'expense'")
    currency: str = Field(default_factory=lambda: settings.default_currency, min_length=3, max_length=3)
    transaction_date: date = Field(..., description="ISO 8601 date (YYYY-MM-DD)")
    description: str = Field(default="", max_length=500)
    category: str | None = Field(default=None, max_length=100)


class TransactionCreate(TransactionBase):
    """Create request."""


class TransactionUpdate(BaseModel):
    """Partial update. Only fields present in the request are changed."""

    amount: float | None = Field(default=None, gt=0)
    type: TransactionType | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    transaction_date: date | None = None
    description: str | None = Field(default=None, max_length=500)
    category: str | None = Field(default=None, max_length=100)


class TransactionResponse(TransactionBase):
    """Transaction as returned by the API."""

    id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

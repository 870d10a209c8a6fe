"""Pydantic schemas for API v1 validation."""

from .transaction import (
    TransactionBase,
    TransactionCreate,
    TransactionResponse,
    TransactionType,
    TransactionUpdate,
)

__all__ = [
    "TransactionBase",
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionResponse",
    "TransactionType",
]

"""Transaction-specific operations.

IMPORT CONVENTION:
- Core accesses these through core.transaction property

OWNERSHIP:
Every method takes the owning user's ID and filters on it. A transaction
that exists but belongs to someone else is indistinguishable from one that
does not exist (ResourceNotFound either way).
"""

import sqlite3
from datetime import date
from typing import Any

from . import query
from ..utils import isodatetime, uid
from ..exceptions import ResourceNotFound


class TransactionOperations:
    """Transaction operations scoped to a single owner per call."""

    def __init__(self, conn: sqlite3.Connection):
        """Initialize transaction operations.

        Args:
            conn: SQLite connection with row_factory set to sqlite3.Row
        """
        self._conn = conn

    def get_by_id(self, user_id: str, transaction_id: str) -> sqlite3.Row:
        """Get transaction by ID.

        Raises:
            ResourceNotFound: If transaction_id doesn't exist for this user
        """
        row = self._conn.execute(
            "SELECT * FROM transactions WHERE id = ? AND user_id = ?",
            (transaction_id, user_id)
        ).fetchone()

        if not row:
            raise ResourceNotFound(
                f"Transaction '{transaction_id}' not found",
                {"transaction_id": transaction_id}
            )

        return row

    def create(
        self,
        user_id: str,
        amount: float,
        type: str,
        transaction_date: date,
        currency: str,
        description: str = "",
        category: str | None = None,
    ) -> str:
        """Create a transaction with an auto-generated UUID.

        Returns:
            The new transaction ID
        """
        transaction_id = uid.generate_uuid()
        now = isodatetime.now()

        self._conn.execute(
            """INSERT INTO transactions
               (id, user_id, amount, type, currency, category, transaction_date,
                description, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                transaction_id, user_id, amount, type, currency, category,
                isodatetime.to_datestring(transaction_date), description, now, now
            )
        )

        return transaction_id

    def list(
        self,
        user_id: str,
        filters: dict[str, Any],
        limit: int = 100,
        offset: int = 0
    ) -> list[sqlite3.Row]:
        """List a user's transactions with filtering.

        Args:
            user_id: Owner
            filters: Dictionary of filter conditions:
                - start_date: ISO 8601 date string (inclusive)
                - end_date: ISO 8601 date string (inclusive)
                - type: "income" or "expense"
                - category: Category label
            limit: Maximum number of results to return (default: 100)
            offset: Number of results to skip (default: 0)
        """
        param_map = {
            "user_id": "user_id = ?",
            "start_date": "transaction_date >= ?",
            "end_date": "transaction_date <= ?",
            "type": "type = ?",
            "category": "category = ?",
        }
        conditions = {"user_id": user_id}
        conditions.update({k: v for k, v in filters.items() if k in param_map})

        where_clause, params = query.build_where_clause(conditions, param_map)
        params.extend([limit, offset])

        return self._conn.execute(
            f"""SELECT * FROM transactions
                WHERE {where_clause}
                ORDER BY transaction_date DESC, created_at DESC
                LIMIT ? OFFSET ?""",
            params
        ).fetchall()

    def update(self, user_id: str, transaction_id: str, data: dict[str, Any]) -> None:
        """Update transaction with partial data.

        Note:
            - Only non-None fields in data are updated
            - 'id' and 'user_id' are never updated
        """
        if data.get("transaction_date") is not None:
            data["transaction_date"] = isodatetime.to_datestring(data["transaction_date"])

        update_clause, params = query.build_update_clause(
            data,
            exclude={"id", "user_id", "created_at", "updated_at"}
        )

        if update_clause:
            params.extend([isodatetime.now(), transaction_id, user_id])
            self._conn.execute(
                f"UPDATE transactions SET {update_clause}, updated_at = ? "
                "WHERE id = ? AND user_id = ?",
                params
            )

    def delete(self, user_id: str, transaction_id: str) -> bool:
        """Delete a transaction. Returns True if a row was removed."""
        cursor = self._conn.execute(
            "DELETE FROM transactions WHERE id = ? AND user_id = ?",
            (transaction_id, user_id)
        )
        return cursor.rowcount > 0

    def list_categories(self, user_id: str) -> "list[str]":
        """Distinct category labels used by a user."""
        rows = self._conn.execute(
            """SELECT DISTINCT category FROM transactions
               WHERE user_id = ? AND category IS NOT NULL
               ORDER BY category""",
            (user_id,)
        ).fetchall()
        return [row["category"] for row in rows]

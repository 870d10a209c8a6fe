"""Transaction CRUD endpoints for FinTrack Core API.

This module implements RESTful endpoints for transaction management:
- POST   /api/v1/transactions                 - Create transaction
- GET    /api/v1/transactions                 - List with filtering
- GET    /api/v1/transactions/{id}            - Get single transaction
- PUT    /api/v1/transactions/{id}            - Update transaction
- DELETE /api/v1/transactions/{id}            - Delete transaction
- GET    /api/v1/transactions/categories      - List distinct categories

Architecture Notes:
- Every endpoint runs behind the api_v1 authentication hook; g.user_id is
  the owner for all reads and writes
- Another user's transaction answers 404, never 403
- Categories are labels (strings), not relational entities
- ISO 8601 dates for transaction_date, UTC timestamps for created/updated
"""

import logging
from datetime import date

from flask import Blueprint, g, jsonify, request

from .schemas.transaction import TransactionCreate, TransactionUpdate, TransactionResponse
from ...exceptions import ValidationError
from ...db import get_core
from ..validation import validate_request

logger = logging.getLogger(__name__)

# Create Blueprint
transactions_bp = Blueprint("transactions", __name__, url_prefix="/transactions")

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 500


def _row_to_transaction_response(row) -> dict:
    """
    Convert a transactions row to a TransactionResponse dict.

    Args:
        row: SQLite Row object from the transactions table

    Returns:
        Dictionary matching TransactionResponse schema
    """
    return TransactionResponse(
        id=row["id"],
        amount=row["amount"],
        type=row["type"],
        currency=row["currency"],
        transaction_date=row["transaction_date"],
        description=row["description"],
        category=row["category"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    ).model_dump(mode="json")


def _int_arg(name: str, default: int, minimum: int, maximum: int | None = None) -> int:
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"'{name}' must be an integer", {"field": name, "value": raw})
    if value < minimum or (maximum is not None and value > maximum):
        raise ValidationError(
            f"'{name}' is out of range",
            {"field": name, "value": value, "minimum": minimum, "maximum": maximum}
        )
    return value


def _date_arg(name: str) -> str | None:
    raw = request.args.get(name)
    if raw is None:
        return None
    try:
        return date.fromisoformat(raw).isoformat()
    except ValueError:
        raise ValidationError(f"'{name}' must be an ISO 8601 date (YYYY-MM-DD)", {"field": name, "value": raw})


@transactions_bp.post("")
@validate_request
def create_transaction(data: TransactionCreate):
    """
    Create a new transaction for the authenticated user.

    Request Body (TransactionCreate):
        - amount: float > 0 (required)
        - type: "income" | "expense" (required)
        - transaction_date: date (ISO 8601 YYYY-MM-DD, required)
        - currency: str (default: settings.default_currency)
        - description: str (default: "")
        - category: str | None (default: None)

    Returns:
        201: TransactionResponse with created transaction
        400: Validation error
    """
    with get_core(atomic=True) as core:
        transaction_id = core.transaction.create(
            user_id=g.user_id,
            amount=data.amount,
            type=data.type,
            transaction_date=data.transaction_date,
            currency=data.currency,
            description=data.description,
            category=data.category,
        )
        row = core.transaction.get_by_id(g.user_id, transaction_id)

    logger.info(f"Transaction {transaction_id} created for user {g.user_id}")
    return jsonify(_row_to_transaction_response(row)), 201


@transactions_bp.get("/<transaction_id>")
def get_transaction(transaction_id: str):
    """
    Get a single transaction by ID.

    Returns:
        200: TransactionResponse
        404: Transaction not found (or owned by another user)
    """
    core = get_core()
    try:
        row = core.transaction.get_by_id(g.user_id, transaction_id)
    finally:
        core.close()

    return jsonify(_row_to_transaction_response(row))


@transactions_bp.get("")
def list_transactions():
    """
    List the authenticated user's transactions, newest first.

    Query Parameters:
        - start_date: ISO 8601 date (YYYY-MM-DD) - Filter from this date
        - end_date: ISO 8601 date (YYYY-MM-DD) - Filter until this date
        - type: "income" | "expense"
        - category: str - Filter by category label
        - limit: int - Maximum results to return (default: 100, max: 500)
        - offset: int - Number of results to skip (default: 0)

    Returns:
        200: Array of TransactionResponse objects
        400: Malformed query parameter
    """
    transaction_type = request.args.get("type")
    if transaction_type is not None and transaction_type not in ("income", "expense"):
        raise ValidationError(
            "'type' must be 'income' or 'expense'",
            {"field": "type", "value": transaction_type}
        )

    filters = {
        "start_date": _date_arg("start_date"),
        "end_date": _date_arg("end_date"),
        "type": transaction_type,
        "category": request.args.get("category"),
    }
    limit = _int_arg("limit", DEFAULT_PAGE_SIZE, minimum=1, maximum=MAX_PAGE_SIZE)
    offset = _int_arg("offset", 0, minimum=0)

    core = get_core()
    try:
        rows = core.transaction.list(g.user_id, filters, limit=limit, offset=offset)
    finally:
        core.close()

    return jsonify([_row_to_transaction_response(row) for row in rows])


@transactions_bp.put("/<transaction_id>")
@validate_request
def update_transaction(transaction_id: str, data: TransactionUpdate):
    """
    Update a transaction.

    Only provided, non-null fields are updated (partial update).

    Returns:
        200: TransactionResponse with updated transaction
        404: Transaction not found
        400: Validation error
    """
    with get_core(atomic=True) as core:
        # Verify transaction exists and belongs to the caller
        core.transaction.get_by_id(g.user_id, transaction_id)

        update_data = data.model_dump(exclude_unset=True)
        if update_data:
            core.transaction.update(g.user_id, transaction_id, update_data)

        row = core.transaction.get_by_id(g.user_id, transaction_id)

    return jsonify(_row_to_transaction_response(row))


@transactions_bp.delete("/<transaction_id>")
def delete_transaction(transaction_id: str):
    """
    Delete a transaction.

    Returns:
        204: No content (successful deletion)
        404: Transaction not found
    """
    with get_core(atomic=True) as core:
        core.transaction.get_by_id(g.user_id, transaction_id)
        core.transaction.delete(g.user_id, transaction_id)

    logger.info(f"Transaction {transaction_id} deleted for user {g.user_id}")
    return "", 204


@transactions_bp.get("/categories")
def list_categories():
    """
    List the distinct category labels the user has used.

    Useful for UI autocomplete/dropdowns.

    Returns:
        200: Array of category label strings
    """
    core = get_core()
    try:
        categories = core.transaction.list_categories(g.user_id)
    finally:
        core.close()

    return jsonify(categories)

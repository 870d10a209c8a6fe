"""API v1 endpoints for FinTrack Core.

This module provides the ApiV1 blueprint that aggregates all v1 resources:
- Transactions

The ApiV1 blueprint is registered in main.py and provides a central point
for applying security middleware to all v1 endpoints.

All API v1 endpoints require a valid access token.
"""

from flask import Blueprint

from ...auth.decorators import _authenticate_request
from ...config import settings
from . import transactions

# Create the ApiV1 blueprint
api_v1_bp = Blueprint("api_v1", __name__, url_prefix=settings.api_v1_prefix)


# ============================================================================
# Authentication Middleware (ApiV1-level)
# ============================================================================


@api_v1_bp.before_request
def authenticate():
    """
    Require authentication for all API v1 endpoints.

    Delegates to the shared _authenticate_request() function used by the
    @auth_required decorator, so both paths reject requests identically.

    Raises:
        Unauthorized: If no valid access token is provided
    """
    _authenticate_request()


# transactions_bp has url_prefix="/transactions", so full path is /api/v1/transactions
api_v1_bp.register_blueprint(transactions.transactions_bp)

__all__ = ["api_v1_bp"]

"""Flask application entry point."""

import logging
from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import settings
from .db import init_db, get_schema_version
from .exceptions import (
    AuthenticationError,
    DatabaseError,
    EmailInUse,
    FinTrackError,
    ResourceNotFound,
    ValidationError,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Create Flask app
app = Flask(__name__)

# CORS configuration (credentials allowed so the refresh cookie travels)
CORS(app, origins=settings.cors_origins, supports_credentials=True)


# Database initialization (runs once on app startup)
def initialize_database():
    """Initialize database on app startup."""
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


# Initialize database with app context
with app.app_context():
    initialize_database()


def _error_response(error_type: str, message: str, details: dict | None, status: int):
    response = {
        "error": {
            "type": error_type,
            "message": message
        }
    }
    if details:
        response["error"]["details"] = details
    return jsonify(response), status


# Error handlers
@app.errorhandler(ResourceNotFound)
def handle_not_found(error):
    """Handle ResourceNotFound exceptions."""
    return _error_response("ResourceNotFound", error.message, error.details, 404)


@app.errorhandler(ValidationError)
def handle_validation_error(error):
    """Handle ValidationError exceptions."""
    return _error_response("ValidationError", error.message, error.details, 400)


@app.errorhandler(EmailInUse)
def handle_email_in_use(error):
    """Handle registration with an email that already has an account."""
    return _error_response("EmailInUse", error.message, error.details, 409)


@app.errorhandler(AuthenticationError)
def handle_authentication_error(error):
    """Handle all authentication failures (401).

    The concrete subclass name is the error type, so clients can tell an
    expired session (log in again) from a missing token. Details are never
    sent for authentication errors.
    """
    return _error_response(error.__class__.__name__, error.message, None, 401)


@app.errorhandler(DatabaseError)
def handle_database_error(error):
    """Handle persistence failures without leaking backend detail."""
    logger.error(f"Database error: {error.message} {error.details}")
    return _error_response(
        "ServiceUnavailable",
        "The service is temporarily unavailable",
        None,
        503
    )


@app.errorhandler(FinTrackError)
def handle_fintrack_error(error):
    """Handle generic FinTrackError exceptions."""
    return _error_response(error.__class__.__name__, error.message, error.details, 500)


@app.errorhandler(HTTPException)
def handle_http_exception(error):
    """Render Flask/Werkzeug HTTP errors (404 route, 405 method) as JSON."""
    return _error_response(error.name.replace(" ", ""), error.description, None, error.code)


@app.errorhandler(Exception)
def handle_internal_error(error):
    """Handle unexpected errors."""
    logger.exception(f"Internal error: {error}")
    return _error_response("InternalServerError", "An internal error occurred", None, 500)


# Health check endpoint
@app.route("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok", "schema_version": get_schema_version()})


# Register blueprints
from .auth.api import auth_bp
from .api.v1 import api_v1_bp

app.register_blueprint(auth_bp)
app.register_blueprint(api_v1_bp)


if __name__ == "__main__":
    app.run(debug=True)

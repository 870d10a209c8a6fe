"""Request body validation decorator.

@validate_request parses the JSON (or form) body into the Pydantic model
named by a view parameter's annotation and passes the model instance in.
Parameters that Flask already supplies as URL path arguments pass through
untouched.

    @transactions_bp.put("/<transaction_id>")
    @validate_request
    def update_transaction(transaction_id: str, data: TransactionUpdate):
        ...

Validation failures raise our ValidationError with details:
- model: schema name
- received: the submitted body, with secret-looking fields redacted
- errors: [{field, message, expected_type}, ...]
"""

import inspect
from functools import wraps
from typing import Any

from flask import request
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..exceptions import ValidationError

REDACTED = "***"
_SECRET_MARKERS = ("password", "token", "secret")


def _redact(body: dict[str, Any]) -> dict[str, Any]:
    """Copy of the body with password/token values masked."""
    return {
        key: REDACTED if any(marker in key.lower() for marker in _SECRET_MARKERS) else value
        for key, value in body.items()
    }


def _expected_type(model: type[BaseModel], field: str) -> str:
    field_info = model.model_fields.get(field)
    if field_info is None:
        return "unknown"
    annotation = field_info.annotation
    return getattr(annotation, "__name__", str(annotation))


def _request_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    if body is None and request.form:
        body = request.form.to_dict()
    return body if isinstance(body, dict) else {}


def validate_request(f):
    """Validate the request body against the view's Pydantic-annotated parameter."""
    params = list(inspect.signature(f).parameters.values())
    if not params:
        raise TypeError(f"{f.__name__} has no parameters to validate")
    for param in params:
        if param.annotation is inspect.Parameter.empty:
            raise TypeError(f"Parameter '{param.name}' of {f.__name__} lacks a type annotation")

    @wraps(f)
    def wrapper(*args, **kwargs):
        view_args = request.view_args or {}
        for param in params:
            if param.name in view_args or param.name in kwargs:
                continue

            model = param.annotation
            if not (inspect.isclass(model) and issubclass(model, BaseModel)):
                raise TypeError(
                    f"Parameter '{param.name}' of {f.__name__} must be annotated "
                    "with a Pydantic BaseModel subclass"
                )

            body = _request_body()
            try:
                kwargs[param.name] = model(**body)
            except PydanticValidationError as e:
                raise ValidationError(
                    "Invalid request data",
                    {
                        "model": model.__name__,
                        "received": _redact(body),
                        "errors": [
                            {
                                "field": ".".join(str(part) for part in err["loc"]),
                                "message": err["msg"],
                                "expected_type": _expected_type(model, str(err["loc"][0]) if err["loc"] else ""),
                            }
                            for err in e.errors(include_url=False)
                        ],
                    }
                )

        return f(*args, **kwargs)

    return wrapper

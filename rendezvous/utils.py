"""Utility functions shared by the blueprints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from flask import current_app, jsonify, request
from werkzeug.datastructures import ImmutableMultiDict

from .core.types import APIResponse
from .errors import ValidationError

if TYPE_CHECKING:
    from flask_wtf import FlaskForm

    from .services import Services

EXTENSION_KEY = "rendezvous"


def get_services() -> Services:
    """Return the services registered by ``create_app``."""
    return current_app.extensions[EXTENSION_KEY]


def current_user_id() -> str:
    """Return the uid of the logged in user, as the services see it."""
    return get_services().auth.current_user_id()


def json_formdata() -> ImmutableMultiDict:
    """Return the JSON body as form data, dropping null values."""
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return ImmutableMultiDict(
        {key: value for key, value in payload.items() if value is not None}
    )


def validate_form(form: FlaskForm) -> None:
    """Raise ``ValidationError`` with the first field error, if any."""
    if form.validate():
        return
    for field_name, errors in form.errors.items():
        if errors:
            raise ValidationError(f"{field_name}: {errors[0]}")
    raise ValidationError()


def api_response(
    message: str = "OK",
    data: Optional[dict[str, Any]] = None,
    status_code: int = 200,
) -> Any:
    """Build the JSON envelope every successful route returns."""
    body: APIResponse = {"status": "success", "message": message, "data": data}
    return jsonify(body), status_code

"""Routes for the auth blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, g, session

from rendezvous.errors import NotFoundError
from rendezvous.utils import api_response, get_services, json_formdata, validate_form

from . import bp
from .decorators import login_required
from .forms import SessionLoginForm
from .utils import load_user, verify_token


@bp.route("/session", methods=["POST"])
def session_login() -> Any:
    """Exchange a Firebase ID token for a server-side session.

    The client signs in with the Firebase SDK and posts the resulting token
    here once.
    """
    form = SessionLoginForm(formdata=json_formdata())
    validate_form(form)
    uid = verify_token(form.idToken.data)
    user = load_user(get_services().db, uid)
    if user is None:
        raise NotFoundError("User not found in Firestore.")
    session.clear()
    session["user_id"] = uid
    current_app.logger.info(f"User {uid} logged in")
    return api_response("Logged in", {"uid": uid})


@bp.route("/logout", methods=["POST"])
def logout() -> Any:
    """Clear the server-side session."""
    session.clear()
    return api_response("Logged out")


@bp.route("/me", methods=["GET"])
@login_required
def me() -> Any:
    """Return the profile of the logged in user."""
    return api_response(data=dict(g.user))

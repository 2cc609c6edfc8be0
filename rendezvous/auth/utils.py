"""Utility functions for authentication."""

from __future__ import annotations

from typing import Any

from firebase_admin import auth as firebase_auth
from flask import current_app

from rendezvous.core.constants import USERS_COLLECTION
from rendezvous.errors import AuthenticationError


def verify_token(id_token: str) -> str:
    """Verify a Firebase ID token and return the uid it was issued to."""
    try:
        decoded_token = firebase_auth.verify_id_token(id_token)
    except (
        ValueError,
        firebase_auth.InvalidIdTokenError,
        firebase_auth.CertificateFetchError,
        firebase_auth.UserDisabledError,
    ) as e:
        current_app.logger.warning(f"Rejected ID token: {e}")
        raise AuthenticationError("Invalid or expired ID token") from e
    return str(decoded_token["uid"])


def bearer_token(header: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header."""
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def load_user(db: Any, uid: str) -> dict[str, Any] | None:
    """Return the profile of ``uid`` with its id, or None if it is missing."""
    user_doc = db.collection(USERS_COLLECTION).document(uid).get()
    if not user_doc.exists:
        return None
    user = user_doc.to_dict() or {}
    user["uid"] = uid
    return user

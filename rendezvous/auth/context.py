"""Identity of the acting principal, as seen by the services."""

from __future__ import annotations

from typing import Protocol

from flask import g

from rendezvous.errors import AuthenticationError, UnauthorizedError


class AuthContext(Protocol):
    """Supplies the id of the user on whose behalf a service call runs."""

    def current_user_id(self) -> str:
        """Return the acting user's id or raise ``AuthenticationError``."""
        ...


class FlaskAuthContext:
    """Read the principal that ``load_logged_in_user`` stored in ``g.user``."""

    def current_user_id(self) -> str:
        """Return the uid of the request's logged in user."""
        user = g.get("user")
        if not user or not user.get("uid"):
            raise AuthenticationError()
        return str(user["uid"])


class StaticAuthContext:
    """A fixed principal, for scripts, background jobs and tests."""

    def __init__(self, user_id: str | None = None) -> None:
        """Initialize with the acting user id (``None`` means logged out)."""
        self.user_id = user_id

    def current_user_id(self) -> str:
        """Return the configured user id."""
        if self.user_id is None:
            raise AuthenticationError()
        return self.user_id


def ensure_current_user(
    auth: AuthContext,
    user_id: str,
    message: str = "Users can only access their own data",
) -> str:
    """Raise ``UnauthorizedError`` unless ``user_id`` is the acting user."""
    current_user_id = auth.current_user_id()
    if user_id != current_user_id:
        raise UnauthorizedError(message)
    return current_user_id

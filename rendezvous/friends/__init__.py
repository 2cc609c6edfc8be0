"""Friends blueprint."""

from flask import Blueprint

bp = Blueprint("friends", __name__, url_prefix="/friends")

from . import routes  # noqa: E402, F401
from .models import FriendshipStatus  # noqa: E402
from .services import FriendGraphService  # noqa: E402

__all__ = ["FriendGraphService", "FriendshipStatus", "routes"]

"""Notification blueprint."""

from flask import Blueprint

bp = Blueprint("notification", __name__, url_prefix="/notifications")

from . import routes  # noqa: E402, F401
from .services import NotificationService  # noqa: E402

__all__ = ["NotificationService", "routes"]

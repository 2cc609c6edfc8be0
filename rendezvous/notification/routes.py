"""Routes for the notification blueprint."""

from __future__ import annotations

from typing import Any

from rendezvous.auth.decorators import login_required
from rendezvous.utils import api_response, current_user_id, get_services

from . import bp


@bp.route("/", methods=["GET"])
@login_required
def list_notifications() -> Any:
    """List the logged in user's notifications."""
    notifications = get_services().notifications.get_notifications(current_user_id())
    return api_response(data={"notifications": notifications})


@bp.route("/<string:notification_id>/read", methods=["POST"])
@login_required
def mark_read(notification_id: str) -> Any:
    """Mark a notification as read."""
    get_services().notifications.mark_as_read(notification_id)
    return api_response("Notification marked as read", {"id": notification_id})

"""Service layer for store-side notification records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from rendezvous.auth.context import ensure_current_user
from rendezvous.core.constants import (
    NOTIFICATION_FRIEND_REQUEST,
    NOTIFICATIONS_COLLECTION,
)
from rendezvous.core.transactions import server_timestamp
from rendezvous.errors import NotFoundError, UnauthorizedError

from .models import FriendRequestNotification

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from rendezvous.auth.context import AuthContext

logger = logging.getLogger(__name__)


class NotificationService:
    """Write and read the notification documents shown to users."""

    def __init__(self, db: Client, auth: AuthContext) -> None:
        """Initialize the service with its store handle and identity source."""
        self.db = db
        self.auth = auth

    def _collection(self) -> Any:
        return self.db.collection(NOTIFICATIONS_COLLECTION)

    def create_friend_request_notification(
        self, user_id: str, from_user_id: str, from_user_name: str
    ) -> str:
        """Record that ``from_user_id`` sent ``user_id`` a friend request."""
        ref = self._collection().document()
        notification: FriendRequestNotification = {
            "id": ref.id,
            "userId": user_id,
            "type": NOTIFICATION_FRIEND_REQUEST,
            "fromUserId": from_user_id,
            "fromUserName": from_user_name,
            "timestamp": server_timestamp(),
            "isRead": False,
        }
        ref.set(notification)
        logger.debug("Created notification %s for user %s", ref.id, user_id)
        return ref.id

    def get_notifications(self, user_id: str) -> list[FriendRequestNotification]:
        """Return the notifications addressed to ``user_id``."""
        ensure_current_user(
            self.auth, user_id, "Users can only read their own notifications"
        )
        query = self._collection().where(
            filter=firestore.FieldFilter("userId", "==", user_id)
        )
        notifications: list[FriendRequestNotification] = []
        for doc in query.stream():
            if not doc.exists:
                continue
            data = doc.to_dict() or {}
            data["id"] = doc.id
            notifications.append(data)  # type: ignore[arg-type]
        return notifications

    def mark_as_read(self, notification_id: str) -> None:
        """Flag a notification owned by the acting user as read."""
        current_user_id = self.auth.current_user_id()
        ref = self._collection().document(notification_id)
        doc = ref.get()
        if not doc.exists:
            raise NotFoundError(f"Notification not found: {notification_id}")
        data = doc.to_dict() or {}
        if data.get("userId") != current_user_id:
            raise UnauthorizedError("Users can only update their own notifications")
        ref.update({"isRead": True})

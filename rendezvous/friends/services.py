"""Service layer keeping the friend graph symmetric."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rendezvous.auth.context import ensure_current_user
from rendezvous.core.constants import (
    DEFAULT_TRANSACTION_MAX_ATTEMPTS,
    FRIEND_REQUESTS_SUBCOLLECTION,
    FRIENDS_SUBCOLLECTION,
    SENT_REQUESTS_SUBCOLLECTION,
    USERS_COLLECTION,
)
from rendezvous.core.transactions import run_in_transaction, server_timestamp
from rendezvous.core.types import FriendSummary
from rendezvous.errors import (
    DuplicateResourceError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from rendezvous.notification.models import display_name

from .models import FriendshipStatus

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from rendezvous.auth.context import AuthContext
    from rendezvous.notification.services import NotificationService

logger = logging.getLogger(__name__)

FRIEND_DATA_MESSAGE = "Users can only access their own friend data"


class FriendGraphService:
    """Send, answer and withdraw friend requests and maintain friendships.

    A friendship is stored as two edge documents, one under each user. A
    pending request is stored as two views: the incoming request under the
    recipient and the sent request under the sender. Every mutation writes
    or deletes both documents of a pair together.
    """

    def __init__(
        self,
        db: Client,
        auth: AuthContext,
        notifications: NotificationService | None = None,
        max_attempts: int = DEFAULT_TRANSACTION_MAX_ATTEMPTS,
    ) -> None:
        """Initialize the service with its collaborators."""
        self.db = db
        self.auth = auth
        self.notifications = notifications
        self.max_attempts = max_attempts

    # References

    def _user_ref(self, user_id: str) -> DocumentReference:
        return self.db.collection(USERS_COLLECTION).document(user_id)

    def _friend_ref(self, user_id: str, friend_id: str) -> DocumentReference:
        return (
            self._user_ref(user_id).collection(FRIENDS_SUBCOLLECTION).document(friend_id)
        )

    def _request_ref(self, to_id: str, from_id: str) -> DocumentReference:
        """Incoming request view, stored under the recipient."""
        return (
            self._user_ref(to_id)
            .collection(FRIEND_REQUESTS_SUBCOLLECTION)
            .document(from_id)
        )

    def _sent_ref(self, from_id: str, to_id: str) -> DocumentReference:
        """Outgoing request view, stored under the sender."""
        return (
            self._user_ref(from_id)
            .collection(SENT_REQUESTS_SUBCOLLECTION)
            .document(to_id)
        )

    def _ensure_self(self, user_id: str) -> str:
        return ensure_current_user(self.auth, user_id, FRIEND_DATA_MESSAGE)

    def _list_ids(self, user_id: str, subcollection: str) -> list[str]:
        docs = self._user_ref(user_id).collection(subcollection).stream()
        return sorted(doc.id for doc in docs if doc.exists)

    # Mutations

    def send_friend_request(self, from_id: str, to_id: str) -> None:
        """Create a pending request from ``from_id`` to ``to_id``."""
        self._ensure_self(from_id)
        if from_id == to_id:
            raise ValidationError("Cannot send friend request to yourself")
        if not self._user_ref(to_id).get().exists:
            raise ValidationError(f"Recipient user not found: {to_id}")
        if self._friend_ref(from_id, to_id).get().exists:
            raise ValidationError("Users are already friends")
        if self._request_ref(to_id, from_id).get().exists:
            raise DuplicateResourceError("Friend request already sent")
        if self._request_ref(from_id, to_id).get().exists:
            raise DuplicateResourceError(
                "A friend request from the recipient already exists. "
                "Accept their request instead."
            )

        timestamp = server_timestamp()
        batch = self.db.batch()
        batch.set(self._request_ref(to_id, from_id), {"timestamp": timestamp})
        batch.set(self._sent_ref(from_id, to_id), {"timestamp": timestamp})
        batch.commit()
        logger.info("Friend request sent from %s to %s", from_id, to_id)

        self._notify_friend_request(from_id, to_id)

    def _notify_friend_request(self, from_id: str, to_id: str) -> None:
        if self.notifications is None:
            return
        try:
            sender = self._user_ref(from_id).get()
            name = display_name(sender.to_dict() if sender.exists else None)
            self.notifications.create_friend_request_notification(to_id, from_id, name)
        except Exception:
            # The request itself is already committed.
            logger.exception(
                "Failed to create friend request notification for %s", to_id
            )

    def accept_friend_request(self, user_id: str, from_id: str) -> None:
        """Turn the pending request from ``from_id`` into a friendship."""
        self._ensure_self(user_id)
        if not self._request_ref(user_id, from_id).get().exists:
            raise NotFoundError(f"No pending friend request from user: {from_id}")

        run_in_transaction(
            self.db,
            self._accept_in_transaction,
            user_id,
            from_id,
            max_attempts=self.max_attempts,
        )
        logger.info("User %s accepted friend request from %s", user_id, from_id)

    def _accept_in_transaction(
        self, transaction: Transaction, user_id: str, from_id: str
    ) -> None:
        request_ref = self._request_ref(user_id, from_id)
        snapshot = request_ref.get(transaction=transaction)
        if not snapshot.exists:
            raise NotFoundError(f"No pending friend request from user: {from_id}")

        timestamp = server_timestamp()
        transaction.set(self._friend_ref(user_id, from_id), {"timestamp": timestamp})
        transaction.set(self._friend_ref(from_id, user_id), {"timestamp": timestamp})
        transaction.delete(request_ref)
        transaction.delete(self._sent_ref(from_id, user_id))

    def reject_friend_request(self, user_id: str, from_id: str) -> None:
        """Discard the pending request from ``from_id``."""
        self._ensure_self(user_id)
        request_ref = self._request_ref(user_id, from_id)
        if not request_ref.get().exists:
            raise NotFoundError(f"No pending friend request from user: {from_id}")

        batch = self.db.batch()
        batch.delete(request_ref)
        batch.delete(self._sent_ref(from_id, user_id))
        batch.commit()
        logger.info("User %s rejected friend request from %s", user_id, from_id)

    def cancel_friend_request(self, from_id: str, to_id: str) -> None:
        """Withdraw a request ``from_id`` sent to ``to_id``."""
        self._ensure_self(from_id)
        sent_ref = self._sent_ref(from_id, to_id)
        if not sent_ref.get().exists:
            raise NotFoundError(f"No sent friend request to user: {to_id}")

        batch = self.db.batch()
        batch.delete(sent_ref)
        batch.delete(self._request_ref(to_id, from_id))
        batch.commit()
        logger.info("User %s cancelled friend request to %s", from_id, to_id)

    def remove_friend(self, user_id: str, friend_id: str) -> None:
        """Delete the friendship between ``user_id`` and ``friend_id``."""
        self._ensure_self(user_id)
        friend_ref = self._friend_ref(user_id, friend_id)
        if not friend_ref.get().exists:
            raise ValidationError("Users are not friends")

        batch = self.db.batch()
        batch.delete(friend_ref)
        batch.delete(self._friend_ref(friend_id, user_id))
        batch.commit()
        logger.info("User %s removed friend %s", user_id, friend_id)

    # Reads

    def are_friends(self, user_a: str, user_b: str) -> bool:
        """Return True if both edges of the friendship exist."""
        return (
            self._friend_ref(user_a, user_b).get().exists
            and self._friend_ref(user_b, user_a).get().exists
        )

    def has_pending_request(self, from_id: str, to_id: str) -> bool:
        """Return True if ``from_id`` has a pending request to ``to_id``."""
        current_user_id = self.auth.current_user_id()
        if current_user_id not in (from_id, to_id):
            raise UnauthorizedError(FRIEND_DATA_MESSAGE)
        return bool(self._request_ref(to_id, from_id).get().exists)

    def get_friendship_status(self, user_id: str, other_id: str) -> FriendshipStatus:
        """Describe the relationship between the acting user and ``other_id``."""
        self._ensure_self(user_id)
        if self.are_friends(user_id, other_id):
            return FriendshipStatus.FRIENDS
        if self._request_ref(other_id, user_id).get().exists:
            return FriendshipStatus.REQUEST_SENT
        if self._request_ref(user_id, other_id).get().exists:
            return FriendshipStatus.REQUEST_RECEIVED
        return FriendshipStatus.NONE

    def get_friends(self, user_id: str) -> list[str]:
        """Return the ids of the user's friends."""
        self._ensure_self(user_id)
        return self._list_ids(user_id, FRIENDS_SUBCOLLECTION)

    def get_friends_public(self, user_id: str) -> list[str]:
        """Return the ids of any user's friends, for profile pages."""
        return self._list_ids(user_id, FRIENDS_SUBCOLLECTION)

    def get_pending_requests(self, user_id: str) -> list[str]:
        """Return the ids of users who sent ``user_id`` a request."""
        self._ensure_self(user_id)
        return self._list_ids(user_id, FRIEND_REQUESTS_SUBCOLLECTION)

    def get_sent_requests(self, user_id: str) -> list[str]:
        """Return the ids of users ``user_id`` sent a request to."""
        self._ensure_self(user_id)
        return self._list_ids(user_id, SENT_REQUESTS_SUBCOLLECTION)

    def get_friend_summary(self, user_id: str) -> FriendSummary:
        """Fetch everything the friends page shows in one call."""
        return {
            "friends": self.get_friends(user_id),
            "requests": self.get_pending_requests(user_id),
            "sent_requests": self.get_sent_requests(user_id),
        }

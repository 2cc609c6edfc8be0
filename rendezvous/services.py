"""Construction of the service objects shared by every request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .core.constants import DEFAULT_TRANSACTION_MAX_ATTEMPTS
from .event.services import EventParticipationService
from .friends.services import FriendGraphService
from .notification.services import NotificationService
from .poll.services import PollVotingService

if TYPE_CHECKING:
    from .auth.context import AuthContext


@dataclass
class Services:
    """The services of one application, wired to the same store."""

    db: Any
    auth: AuthContext
    notifications: NotificationService
    friends: FriendGraphService
    events: EventParticipationService
    polls: PollVotingService


def build_services(
    db: Any,
    auth: AuthContext,
    max_attempts: int = DEFAULT_TRANSACTION_MAX_ATTEMPTS,
) -> Services:
    """Create every service with explicit dependencies."""
    notifications = NotificationService(db, auth)
    return Services(
        db=db,
        auth=auth,
        notifications=notifications,
        friends=FriendGraphService(db, auth, notifications, max_attempts),
        events=EventParticipationService(db, auth),
        polls=PollVotingService(db, auth, max_attempts),
    )

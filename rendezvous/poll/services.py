"""Service layer for event polls and exactly-once voting."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Iterable

from firebase_admin import firestore

from rendezvous.core.batches import commit_deletes
from rendezvous.core.constants import (
    DEFAULT_TRANSACTION_MAX_ATTEMPTS,
    EVENTS_COLLECTION,
    PARTICIPANTS_SUBCOLLECTION,
    POLLS_SUBCOLLECTION,
    VOTES_SUBCOLLECTION,
)
from rendezvous.core.transactions import run_in_transaction, server_timestamp
from rendezvous.errors import (
    AppError,
    DuplicateResourceError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

from .models import Poll, PollVote, tally_vote

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from rendezvous.auth.context import AuthContext

logger = logging.getLogger(__name__)

OWNER_ONLY_MESSAGE = "Only the owner of the event can perform this action"


class PollVotingService:
    """Create polls on events and record votes on them.

    A vote and the tally it contributes to are written in one Firestore
    transaction, so concurrent voters never lose an increment and a user
    can vote at most once per poll.
    """

    def __init__(
        self,
        db: Client,
        auth: AuthContext,
        max_attempts: int = DEFAULT_TRANSACTION_MAX_ATTEMPTS,
    ) -> None:
        """Initialize the service with its store handle and identity source."""
        self.db = db
        self.auth = auth
        self.max_attempts = max_attempts

    # References

    def _event_ref(self, event_uid: str) -> DocumentReference:
        return self.db.collection(EVENTS_COLLECTION).document(event_uid)

    def _polls(self, event_uid: str) -> Any:
        return self._event_ref(event_uid).collection(POLLS_SUBCOLLECTION)

    def _poll_ref(self, event_uid: str, poll_uid: str) -> DocumentReference:
        return self._polls(event_uid).document(poll_uid)

    def _vote_ref(
        self, event_uid: str, poll_uid: str, user_id: str
    ) -> DocumentReference:
        return (
            self._poll_ref(event_uid, poll_uid)
            .collection(VOTES_SUBCOLLECTION)
            .document(user_id)
        )

    def _participant_ref(self, event_uid: str, user_id: str) -> DocumentReference:
        return (
            self._event_ref(event_uid)
            .collection(PARTICIPANTS_SUBCOLLECTION)
            .document(user_id)
        )

    # Helpers

    def _event_owner(self, event_uid: str) -> str | None:
        """Return the owner id of an event, or None if it does not exist."""
        snapshot = self._event_ref(event_uid).get()
        data = snapshot.to_dict() if snapshot.exists else None
        if not data or "uid" not in data:
            return None
        return data.get("ownerId")

    def _ensure_event_owner(self, event_uid: str) -> str:
        owner_id = self._event_owner(event_uid)
        if owner_id is None:
            raise NotFoundError(f"Event not found: {event_uid}")
        current_user_id = self.auth.current_user_id()
        if owner_id != current_user_id:
            raise UnauthorizedError(OWNER_ONLY_MESSAGE)
        return current_user_id

    def _parse_polls(self, snapshots: Iterable[Any]) -> list[Poll]:
        polls = []
        for doc in snapshots:
            if not doc.exists:
                continue
            data = doc.to_dict() or {}
            if "uid" not in data:
                continue
            try:
                polls.append(Poll.from_map(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unparseable poll %s: %s", doc.id, e)
        return polls

    # Lifecycle

    def new_uid(self, event_uid: str) -> str:
        """Return a fresh id for a poll on ``event_uid``."""
        return str(self._polls(event_uid).document().id)

    def create_poll(self, poll: Poll) -> None:
        """Store a new poll; only the event owner may do this."""
        owner_id = self._event_owner(poll.event_uid)
        if owner_id is None:
            raise ValidationError(f"Event {poll.event_uid} does not exist")
        if owner_id != self.auth.current_user_id():
            raise UnauthorizedError(OWNER_ONLY_MESSAGE)
        try:
            poll.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from e

        ref = self._poll_ref(poll.event_uid, poll.uid)
        if ref.get().exists:
            raise DuplicateResourceError(f"Poll {poll.uid} already exists")

        fresh = replace(
            poll,
            options=[replace(option, vote_count=0) for option in poll.options],
            created_at=poll.created_at or server_timestamp(),
        )
        ref.set(fresh.to_map())
        logger.info("Poll %s created on event %s", poll.uid, poll.event_uid)

    def close_poll(self, event_uid: str, poll_uid: str) -> None:
        """Stop accepting votes on a poll. Closed polls stay closed."""
        self._ensure_event_owner(event_uid)
        ref = self._poll_ref(event_uid, poll_uid)
        if not ref.get().exists:
            raise NotFoundError(f"Poll {poll_uid} not found")
        ref.update({"isActive": False})
        logger.info("Poll %s on event %s closed", poll_uid, event_uid)

    def delete_poll(self, event_uid: str, poll_uid: str) -> None:
        """Delete a poll and its votes."""
        self._ensure_event_owner(event_uid)
        ref = self._poll_ref(event_uid, poll_uid)
        if not ref.get().exists:
            raise NotFoundError(f"Poll {poll_uid} not found")

        refs = [
            vote.reference
            for vote in ref.collection(VOTES_SUBCOLLECTION).stream()
            if vote.exists
        ]
        refs.append(ref)
        commit_deletes(self.db, refs)
        logger.info("Poll %s on event %s deleted", poll_uid, event_uid)

    # Voting

    def submit_vote(self, event_uid: str, vote: PollVote) -> None:
        """Record ``vote`` and count it towards its option, exactly once."""
        if vote.user_id != self.auth.current_user_id():
            raise ValidationError("Can only submit votes for yourself")

        poll = self.get_poll(event_uid, vote.poll_uid)
        if poll is None:
            raise NotFoundError(f"Poll {vote.poll_uid} not found")
        if poll.event_uid != event_uid:
            raise InvalidStateError(
                f"Poll {vote.poll_uid} does not belong to event {event_uid}"
            )
        if not poll.is_active:
            raise InvalidStateError("Poll is no longer active")

        if not self._participant_ref(event_uid, vote.user_id).get().exists:
            raise UnauthorizedError("Only event participants can vote")

        if self._vote_ref(event_uid, vote.poll_uid, vote.user_id).get().exists:
            raise DuplicateResourceError("User has already voted on this poll")

        try:
            run_in_transaction(
                self.db,
                self._vote_in_transaction,
                event_uid,
                vote,
                max_attempts=self.max_attempts,
            )
        except AppError:
            raise
        except Exception as e:
            logger.error("Vote on poll %s failed: %s", vote.poll_uid, e)
            raise InvalidStateError(f"Failed to submit vote: {e}") from e
        logger.info("User %s voted on poll %s", vote.user_id, vote.poll_uid)

    def _vote_in_transaction(
        self, transaction: Transaction, event_uid: str, vote: PollVote
    ) -> None:
        poll_ref = self._poll_ref(event_uid, vote.poll_uid)
        vote_ref = self._vote_ref(event_uid, vote.poll_uid, vote.user_id)

        poll_snapshot = poll_ref.get(transaction=transaction)
        vote_snapshot = vote_ref.get(transaction=transaction)
        if not poll_snapshot.exists:
            raise NotFoundError(f"Poll {vote.poll_uid} not found")
        if vote_snapshot.exists:
            raise DuplicateResourceError("User has already voted on this poll")

        poll = Poll.from_map(poll_snapshot.to_dict() or {})
        if not poll.is_active:
            raise InvalidStateError("Poll is no longer active")

        options, matched = tally_vote(poll.options, vote.option_id)
        if not matched:
            # The vote is still recorded; no option total reflects it.
            logger.warning(
                "Vote by %s on poll %s names unknown option %s",
                vote.user_id,
                vote.poll_uid,
                vote.option_id,
            )

        data = vote.to_map()
        if data["votedAt"] is None:
            data["votedAt"] = server_timestamp()
        transaction.set(vote_ref, data)
        transaction.update(poll_ref, {"options": [o.to_map() for o in options]})

    # Reads

    def get_user_vote(
        self, event_uid: str, poll_uid: str, user_id: str
    ) -> PollVote | None:
        """Return the vote ``user_id`` cast on a poll, if any."""
        snapshot = self._vote_ref(event_uid, poll_uid, user_id).get()
        if not snapshot.exists:
            return None
        data = snapshot.to_dict() or {}
        data.setdefault("userId", user_id)
        data.setdefault("pollUid", poll_uid)
        return PollVote.from_map(data)

    def get_poll(self, event_uid: str, poll_uid: str) -> Poll | None:
        """Return a poll, or None if it does not exist."""
        snapshot = self._poll_ref(event_uid, poll_uid).get()
        polls = self._parse_polls([snapshot])
        return polls[0] if polls else None

    def get_active_polls(self, event_uid: str) -> list[Poll]:
        """Return the polls of an event that still accept votes."""
        query = self._polls(event_uid).where(
            filter=firestore.FieldFilter("isActive", "==", True)
        )
        return self._parse_polls(query.stream())

    def get_polls(self, event_uid: str) -> list[Poll]:
        """Return every poll of an event, open or closed."""
        return self._parse_polls(self._polls(event_uid).stream())

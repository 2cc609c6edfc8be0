"""Service layer for events, their participants and their invitations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable

from firebase_admin import firestore

from rendezvous.auth.context import ensure_current_user
from rendezvous.core.batches import commit_deletes
from rendezvous.core.constants import (
    EVENTS_COLLECTION,
    INVITATIONS_SUBCOLLECTION,
    JOINED_EVENTS_SUBCOLLECTION,
    PARTICIPANTS_SUBCOLLECTION,
    POLLS_SUBCOLLECTION,
    USER_FETCH_CHUNK_SIZE,
    USER_INVITATIONS_SUBCOLLECTION,
    USERS_COLLECTION,
    VOTES_SUBCOLLECTION,
)
from rendezvous.core.transactions import server_timestamp
from rendezvous.errors import (
    DuplicateResourceError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

from .models import (
    Event,
    EventParticipant,
    Invitation,
    InvitationStatus,
    event_from_map,
    is_public,
)
from .statistics import EventStatistics, build_statistics

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

    from rendezvous.auth.context import AuthContext

logger = logging.getLogger(__name__)

OWNER_ONLY_MESSAGE = "Only the owner of the event can perform this action"
OWNER_INVITE_MESSAGE = "Only the owner of the event can invite users"


class EventParticipationService:
    """Create events and manage who takes part in them.

    Every mutation of an event aggregate loads the event and checks the
    acting user against ``ownerId`` (or the participant) before writing.
    The check and the write are separate round trips.
    """

    def __init__(self, db: Client, auth: AuthContext) -> None:
        """Initialize the service with its store handle and identity source."""
        self.db = db
        self.auth = auth

    # References

    def _events(self) -> Any:
        return self.db.collection(EVENTS_COLLECTION)

    def _event_ref(self, event_uid: str) -> DocumentReference:
        return self._events().document(event_uid)

    def _participant_ref(self, event_uid: str, user_uid: str) -> DocumentReference:
        return (
            self._event_ref(event_uid)
            .collection(PARTICIPANTS_SUBCOLLECTION)
            .document(user_uid)
        )

    def _invitation_ref(self, event_uid: str, user_uid: str) -> DocumentReference:
        return (
            self._event_ref(event_uid)
            .collection(INVITATIONS_SUBCOLLECTION)
            .document(user_uid)
        )

    def _user_ref(self, user_id: str) -> DocumentReference:
        return self.db.collection(USERS_COLLECTION).document(user_id)

    def _user_invitation_ref(self, user_id: str, event_uid: str) -> DocumentReference:
        return (
            self._user_ref(user_id)
            .collection(USER_INVITATIONS_SUBCOLLECTION)
            .document(event_uid)
        )

    def _joined_ref(self, user_id: str, event_uid: str) -> DocumentReference:
        return (
            self._user_ref(user_id)
            .collection(JOINED_EVENTS_SUBCOLLECTION)
            .document(event_uid)
        )

    # Helpers

    def _load_event(self, event_uid: str) -> Event:
        snapshot = self._event_ref(event_uid).get()
        data = snapshot.to_dict() if snapshot.exists else None
        # Documents holding only sub-collections carry no event fields.
        if not data or "uid" not in data:
            raise NotFoundError(f"Event not found: {event_uid}")
        try:
            return event_from_map(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Could not parse event %s: %s", event_uid, e)
            raise NotFoundError(f"Event not found: {event_uid}") from e

    def _ensure_owner(self, event: Event, message: str = OWNER_ONLY_MESSAGE) -> str:
        current_user_id = self.auth.current_user_id()
        if event.owner_id != current_user_id:
            raise UnauthorizedError(message)
        return current_user_id

    def _validate(self, event: Event) -> None:
        try:
            event.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from e

    def _can_view(self, event: Event, user_id: str) -> bool:
        if is_public(event) or event.owner_id == user_id:
            return True
        if self._participant_ref(event.uid, user_id).get().exists:
            return True
        return bool(self._invitation_ref(event.uid, user_id).get().exists)

    def _ids(self, collection: Any) -> list[str]:
        return sorted(doc.id for doc in collection.stream() if doc.exists)

    def _participant_count(self, event: Event) -> int:
        """Count participants other than the owner."""
        participant_ids = self._ids(
            self._event_ref(event.uid).collection(PARTICIPANTS_SUBCOLLECTION)
        )
        return len([uid for uid in participant_ids if uid != event.owner_id])

    def _parse_events(self, snapshots: Iterable[Any]) -> list[Event]:
        events = []
        for doc in snapshots:
            if not doc.exists:
                continue
            data = doc.to_dict() or {}
            if "uid" not in data:
                continue
            try:
                events.append(event_from_map(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unparseable event %s: %s", doc.id, e)
        return events

    # Event lifecycle

    def new_uid(self) -> str:
        """Return a fresh id for an event that is about to be created."""
        return str(self._events().document().id)

    def add_event(self, event: Event) -> None:
        """Store a new event owned by the acting user."""
        self._ensure_owner(event)
        self._validate(event)
        ref = self._event_ref(event.uid)
        if ref.get().exists:
            raise DuplicateResourceError(f"Event {event.uid} already exists")
        ref.set(event.to_map())
        logger.info("Event %s created by %s", event.uid, event.owner_id)

    def edit_event(self, uid: str, new_event: Event) -> None:
        """Overwrite an existing event, dropping fields ``new_event`` lacks."""
        if uid != new_event.uid:
            raise ValidationError("Event uid cannot be changed")
        existing = self._load_event(uid)
        current_user_id = self._ensure_owner(existing)
        if new_event.owner_id != current_user_id:
            raise UnauthorizedError(OWNER_ONLY_MESSAGE)
        self._validate(new_event)
        self._event_ref(uid).set(new_event.to_map())
        logger.info("Event %s edited", uid)

    def delete_event(self, uid: str) -> None:
        """Delete an event together with everything stored under it."""
        event = self._load_event(uid)
        self._ensure_owner(event)

        event_ref = self._event_ref(uid)
        refs: list[DocumentReference] = []
        for participant_id in self._ids(
            event_ref.collection(PARTICIPANTS_SUBCOLLECTION)
        ):
            refs.append(self._participant_ref(uid, participant_id))
            refs.append(self._joined_ref(participant_id, uid))
        for invited_id in self._ids(event_ref.collection(INVITATIONS_SUBCOLLECTION)):
            refs.append(self._invitation_ref(uid, invited_id))
            refs.append(self._user_invitation_ref(invited_id, uid))
        polls = event_ref.collection(POLLS_SUBCOLLECTION)
        for poll_id in self._ids(polls):
            votes = polls.document(poll_id).collection(VOTES_SUBCOLLECTION)
            refs.extend(votes.document(vote_id) for vote_id in self._ids(votes))
            refs.append(polls.document(poll_id))
        refs.append(event_ref)

        commit_deletes(self.db, refs)
        logger.info("Event %s deleted", uid)

    # Participants

    def add_participant_to_event(
        self, event_uid: str, participant: EventParticipant
    ) -> None:
        """Add a participant record, failing if the user is already in."""
        self._load_event(event_uid)
        ref = self._participant_ref(event_uid, participant.uid)
        if ref.get().exists:
            raise DuplicateResourceError(
                f"Participant {participant.uid} is already in event {event_uid}"
            )
        data = participant.to_map()
        if data["joinedAt"] is None:
            data["joinedAt"] = server_timestamp()
        batch = self.db.batch()
        batch.set(ref, data)
        batch.set(
            self._joined_ref(participant.uid, event_uid),
            {"eventId": event_uid, "timestamp": data["joinedAt"]},
        )
        batch.commit()
        logger.info("User %s added to event %s", participant.uid, event_uid)

    def remove_participant_from_event(
        self, event_uid: str, participant_uid: str
    ) -> None:
        """Remove a participant; allowed for the participant and the owner."""
        event = self._load_event(event_uid)
        current_user_id = self.auth.current_user_id()
        if current_user_id not in (participant_uid, event.owner_id):
            raise UnauthorizedError(
                "Only the participant or the owner of the event can remove a participant"
            )
        ref = self._participant_ref(event_uid, participant_uid)
        if not ref.get().exists:
            raise NotFoundError(
                f"Participant {participant_uid} not found in event {event_uid}"
            )
        batch = self.db.batch()
        batch.delete(ref)
        batch.delete(self._joined_ref(participant_uid, event_uid))
        batch.commit()
        logger.info("User %s removed from event %s", participant_uid, event_uid)

    def join_event(self, event_uid: str) -> None:
        """Add the acting user to an event they may see."""
        current_user_id = self.auth.current_user_id()
        event = self._load_event(event_uid)
        invited = self._invitation_ref(event_uid, current_user_id).get().exists
        if (
            not is_public(event)
            and event.owner_id != current_user_id
            and not invited
        ):
            raise UnauthorizedError("Only invited users can join a private event")
        self._join(event, current_user_id)

    def _join(self, event: Event, user_id: str) -> None:
        if self._participant_ref(event.uid, user_id).get().exists:
            raise DuplicateResourceError(
                f"Participant {user_id} is already in event {event.uid}"
            )
        if (
            event.max_capacity is not None
            and user_id != event.owner_id
            and self._participant_count(event) >= event.max_capacity
        ):
            raise InvalidStateError("Event is full")

        timestamp = server_timestamp()
        batch = self.db.batch()
        batch.set(
            self._participant_ref(event.uid, user_id),
            EventParticipant(uid=user_id, joined_at=timestamp).to_map(),
        )
        batch.set(
            self._joined_ref(user_id, event.uid),
            {"eventId": event.uid, "timestamp": timestamp},
        )
        batch.delete(self._invitation_ref(event.uid, user_id))
        batch.delete(self._user_invitation_ref(user_id, event.uid))
        batch.commit()
        logger.info("User %s joined event %s", user_id, event.uid)

    def leave_event(self, event_uid: str) -> None:
        """Remove the acting user from an event."""
        current_user_id = self.auth.current_user_id()
        self._load_event(event_uid)
        ref = self._participant_ref(event_uid, current_user_id)
        if not ref.get().exists:
            raise NotFoundError(
                f"User {current_user_id} is not a participant of event {event_uid}"
            )
        batch = self.db.batch()
        batch.delete(ref)
        batch.delete(self._joined_ref(current_user_id, event_uid))
        batch.commit()
        logger.info("User %s left event %s", current_user_id, event_uid)

    # Invitations

    def _ensure_inviter(self, event: Event, current_user_id: str) -> None:
        ensure_current_user(
            self.auth, current_user_id, "Users can only invite as themselves"
        )
        if event.owner_id != current_user_id:
            raise UnauthorizedError(OWNER_INVITE_MESSAGE)

    def add_invitation_to_event(
        self, event_uid: str, invited_user: str, current_user_id: str
    ) -> None:
        """Invite a user; only the event owner may do this."""
        event = self._load_event(event_uid)
        self._ensure_inviter(event, current_user_id)
        if invited_user == current_user_id:
            raise ValidationError("Cannot invite yourself")
        if self._participant_ref(event_uid, invited_user).get().exists:
            raise DuplicateResourceError(
                f"Participant {invited_user} is already in event {event_uid}"
            )
        invitation_ref = self._invitation_ref(event_uid, invited_user)
        if invitation_ref.get().exists:
            raise DuplicateResourceError(
                f"User {invited_user} is already invited to event {event_uid}"
            )

        invitation = Invitation(
            event_id=event_uid,
            from_user=current_user_id,
            status=InvitationStatus.PENDING,
            timestamp=server_timestamp(),
        )
        batch = self.db.batch()
        batch.set(invitation_ref, invitation.to_map())
        batch.set(
            self._user_invitation_ref(invited_user, event_uid), invitation.to_map()
        )
        batch.commit()
        logger.info("User %s invited to event %s", invited_user, event_uid)

    def remove_invitation_from_event(
        self, event_uid: str, invited_user: str, current_user_id: str
    ) -> None:
        """Revoke an invitation; only the event owner may do this."""
        event = self._load_event(event_uid)
        self._ensure_inviter(event, current_user_id)
        invitation_ref = self._invitation_ref(event_uid, invited_user)
        if not invitation_ref.get().exists:
            raise NotFoundError(
                f"No invitation for user {invited_user} in event {event_uid}"
            )
        batch = self.db.batch()
        batch.delete(invitation_ref)
        batch.delete(self._user_invitation_ref(invited_user, event_uid))
        batch.commit()
        logger.info("Invitation of %s to event %s revoked", invited_user, event_uid)

    def accept_invitation(self, event_uid: str) -> None:
        """Join an event the acting user was invited to."""
        current_user_id = self.auth.current_user_id()
        event = self._load_event(event_uid)
        if not self._invitation_ref(event_uid, current_user_id).get().exists:
            raise NotFoundError(f"No pending invitation to event: {event_uid}")
        self._join(event, current_user_id)

    def decline_invitation(self, event_uid: str) -> None:
        """Turn down an invitation; both invitation views are deleted."""
        current_user_id = self.auth.current_user_id()
        invitation_ref = self._invitation_ref(event_uid, current_user_id)
        if not invitation_ref.get().exists:
            raise NotFoundError(f"No pending invitation to event: {event_uid}")
        batch = self.db.batch()
        batch.delete(invitation_ref)
        batch.delete(self._user_invitation_ref(current_user_id, event_uid))
        batch.commit()
        logger.info("User %s declined event %s", current_user_id, event_uid)

    def get_user_invitations(self, user_id: str) -> list[Invitation]:
        """Return the invitations addressed to ``user_id``."""
        ensure_current_user(
            self.auth, user_id, "Users can only read their own invitations"
        )
        invitations = []
        docs = self._user_ref(user_id).collection(USER_INVITATIONS_SUBCOLLECTION)
        for doc in docs.stream():
            if not doc.exists:
                continue
            try:
                invitations.append(Invitation.from_map(doc.to_dict() or {}))
            except (KeyError, ValueError) as e:
                logger.warning("Skipping unparseable invitation %s: %s", doc.id, e)
        return invitations

    def get_joined_events(self, user_id: str) -> list[str]:
        """Return the uids of the events ``user_id`` takes part in."""
        ensure_current_user(
            self.auth, user_id, "Users can only read their own events"
        )
        return self._ids(
            self._user_ref(user_id).collection(JOINED_EVENTS_SUBCOLLECTION)
        )

    # Reads

    def get_event(self, uid: str) -> Event:
        """Return an event the acting user is allowed to see."""
        event = self._load_event(uid)
        if is_public(event):
            return event
        if not self._can_view(event, self.auth.current_user_id()):
            raise UnauthorizedError("You do not have access to this event")
        return event

    def get_all_visible_events(self) -> list[Event]:
        """Return every event the acting user may see."""
        return self.get_all_visible_events_satisfying(lambda event: True)

    def get_all_visible_events_satisfying(
        self, predicate: Callable[[Event], bool]
    ) -> list[Event]:
        """Return the visible events for which ``predicate`` holds."""
        current_user_id = self.auth.current_user_id()
        return [
            event
            for event in self._parse_events(self._events().stream())
            if self._can_view(event, current_user_id) and predicate(event)
        ]

    def get_events_by_owner(self, owner_id: str) -> list[Event]:
        """Return the visible events owned by ``owner_id``."""
        current_user_id = self.auth.current_user_id()
        query = self._events().where(
            filter=firestore.FieldFilter("ownerId", "==", owner_id)
        )
        return [
            event
            for event in self._parse_events(query.stream())
            if self._can_view(event, current_user_id)
        ]

    def get_event_participants(self, uid: str) -> list[EventParticipant]:
        """Return the participants of a visible event."""
        self.get_event(uid)
        participants = []
        for doc in self._event_ref(uid).collection(PARTICIPANTS_SUBCOLLECTION).stream():
            if not doc.exists:
                continue
            data = doc.to_dict() or {}
            data.setdefault("uid", doc.id)
            participants.append(EventParticipant.from_map(data))
        return sorted(participants, key=lambda p: p.uid)

    def get_event_statistics(
        self, uid: str, follower_count: int = 0
    ) -> EventStatistics:
        """Aggregate attendance statistics; only the owner may read them."""
        event = self._load_event(uid)
        self._ensure_owner(event)
        if follower_count < 0:
            raise ValidationError("Follower count cannot be negative")

        joined_at = {
            participant.uid: participant.joined_at
            for participant in self.get_event_participants(uid)
        }
        profiles: dict[str, dict[str, Any]] = {}
        user_ids = list(joined_at)
        for i in range(0, len(user_ids), USER_FETCH_CHUNK_SIZE):
            chunk = user_ids[i : i + USER_FETCH_CHUNK_SIZE]
            refs = [self._user_ref(user_id) for user_id in chunk]
            for doc in self.db.get_all(refs):
                if doc.exists:
                    profiles[doc.id] = doc.to_dict() or {}

        return build_statistics(uid, joined_at, profiles, follower_count)

    def get_event_invitations(self, uid: str) -> list[str]:
        """Return the ids of users invited to a visible event."""
        self.get_event(uid)
        return self._ids(self._event_ref(uid).collection(INVITATIONS_SUBCOLLECTION))

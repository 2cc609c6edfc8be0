"""Data models for the poll blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from rendezvous.core.constants import MIN_POLL_OPTIONS


@dataclass
class PollOption:
    """One answer of a poll with its running tally."""

    option_id: str
    text: str
    vote_count: int = 0

    def to_map(self) -> dict[str, Any]:
        """Serialize to a Firestore map."""
        return {
            "optionId": self.option_id,
            "text": self.text,
            "voteCount": self.vote_count,
        }

    @classmethod
    def from_map(cls, data: dict[str, Any]) -> PollOption:
        """Build an option from a Firestore map."""
        return cls(
            option_id=str(data["optionId"]),
            text=data.get("text", ""),
            vote_count=int(data.get("voteCount", 0)),
        )


@dataclass
class Poll:
    """A question asked to the participants of an event."""

    uid: str
    event_uid: str
    question: str
    options: list[PollOption] = field(default_factory=list)
    created_at: Optional[Any] = None
    is_active: bool = True

    def validate(self) -> None:
        """Validate the poll for obvious errors."""
        if not self.uid:
            raise ValueError("Poll uid is required.")
        if not self.question or not self.question.strip():
            raise ValueError("Poll question cannot be empty.")
        if len(self.options) < MIN_POLL_OPTIONS:
            raise ValueError(f"A poll needs at least {MIN_POLL_OPTIONS} options.")
        option_ids = [option.option_id for option in self.options]
        if len(set(option_ids)) != len(option_ids):
            raise ValueError("Poll option ids must be unique.")
        if any(not option.text.strip() for option in self.options):
            raise ValueError("Poll options cannot be empty.")

    def total_votes(self) -> int:
        """Return the sum of all option tallies."""
        return sum(option.vote_count for option in self.options)

    def to_map(self) -> dict[str, Any]:
        """Serialize to a Firestore document."""
        return {
            "uid": self.uid,
            "eventUid": self.event_uid,
            "question": self.question,
            "options": [option.to_map() for option in self.options],
            "createdAt": self.created_at,
            "isActive": self.is_active,
        }

    @classmethod
    def from_map(cls, data: dict[str, Any]) -> Poll:
        """Build a poll from a Firestore document."""
        return cls(
            uid=data["uid"],
            event_uid=data["eventUid"],
            question=data.get("question", ""),
            options=[PollOption.from_map(o) for o in data.get("options") or []],
            created_at=data.get("createdAt"),
            is_active=bool(data.get("isActive", True)),
        )


def tally_vote(options: list[PollOption], option_id: str) -> tuple[list[PollOption], bool]:
    """Return a copy of ``options`` with ``option_id`` incremented by one.

    The second element tells whether any option matched. Matching is an
    exact comparison on the option id.
    """
    matched = False
    tallied = []
    for option in options:
        if option.option_id == option_id:
            tallied.append(replace(option, vote_count=option.vote_count + 1))
            matched = True
        else:
            tallied.append(replace(option))
    return tallied, matched


@dataclass
class PollVote:
    """The single vote a user cast on a poll."""

    user_id: str
    poll_uid: str
    option_id: str
    voted_at: Optional[Any] = None

    def to_map(self) -> dict[str, Any]:
        """Serialize to a Firestore document."""
        return {
            "userId": self.user_id,
            "pollUid": self.poll_uid,
            "optionId": self.option_id,
            "votedAt": self.voted_at,
        }

    @classmethod
    def from_map(cls, data: dict[str, Any]) -> PollVote:
        """Build a vote from a Firestore document."""
        return cls(
            user_id=data["userId"],
            poll_uid=data["pollUid"],
            option_id=str(data["optionId"]),
            voted_at=data.get("votedAt"),
        )

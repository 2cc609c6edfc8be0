"""Data models for the event blueprint."""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from rendezvous.core.constants import EVENT_TYPE_PRIVATE, EVENT_TYPE_PUBLIC


@dataclass
class Location:
    """A point on the map, optionally named."""

    latitude: float
    longitude: float
    name: Optional[str] = None

    def to_map(self) -> dict[str, Any]:
        """Serialize to a Firestore map."""
        data: dict[str, Any] = {
            "latitude": self.latitude,
            "longitude": self.longitude,
        }
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_map(cls, data: dict[str, Any]) -> Location:
        """Build a location from a Firestore map."""
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            name=data.get("name"),
        )


@dataclass
class PrivateEvent:
    """An event visible only to its owner, participants and invitees."""

    uid: str
    owner_id: str
    title: str
    description: str = ""
    start: Optional[datetime.datetime] = None
    end: Optional[datetime.datetime] = None
    image_url: Optional[str] = None
    location: Optional[Location] = None
    max_capacity: Optional[int] = None
    participation_fee: Optional[float] = None
    is_flash: bool = False

    event_type = EVENT_TYPE_PRIVATE

    def validate(self) -> None:
        """Validate the event for obvious errors."""
        if not self.uid:
            raise ValueError("Event uid is required.")
        if not self.title or not self.title.strip():
            raise ValueError("Event title is required.")
        if self.max_capacity is not None and self.max_capacity < 1:
            raise ValueError("Max capacity must be at least 1.")
        if self.participation_fee is not None and self.participation_fee < 0:
            raise ValueError("Participation fee cannot be negative.")
        if self.start and self.end and self.end < self.start:
            raise ValueError("Event cannot end before it starts.")

    def to_map(self) -> dict[str, Any]:
        """Serialize to a Firestore document, including the type discriminant."""
        data: dict[str, Any] = {
            "uid": self.uid,
            "type": self.event_type,
            "ownerId": self.owner_id,
            "title": self.title,
            "description": self.description,
            "start": self.start,
            "end": self.end,
            "imageUrl": self.image_url,
            "location": self.location.to_map() if self.location else None,
            "maxCapacity": self.max_capacity,
            "participationFee": self.participation_fee,
            "isFlash": self.is_flash,
        }
        return data

    @classmethod
    def _common_fields(cls, data: dict[str, Any]) -> dict[str, Any]:
        location = data.get("location")
        max_capacity = data.get("maxCapacity")
        fee = data.get("participationFee")
        return {
            "uid": data["uid"],
            "owner_id": data["ownerId"],
            "title": data.get("title", ""),
            "description": data.get("description", ""),
            "start": data.get("start"),
            "end": data.get("end"),
            "image_url": data.get("imageUrl"),
            "location": Location.from_map(location) if location else None,
            "max_capacity": int(max_capacity) if max_capacity is not None else None,
            "participation_fee": float(fee) if fee is not None else None,
            "is_flash": bool(data.get("isFlash", False)),
        }

    @classmethod
    def from_map(cls, data: dict[str, Any]) -> PrivateEvent:
        """Build a private event from a Firestore document."""
        return cls(**cls._common_fields(data))


@dataclass
class PublicEvent(PrivateEvent):
    """An event anyone can see and join."""

    subtitle: str = ""
    tags: list[str] = field(default_factory=list)
    website: Optional[str] = None

    event_type = EVENT_TYPE_PUBLIC

    def to_map(self) -> dict[str, Any]:
        """Serialize to a Firestore document, including the public fields."""
        data = super().to_map()
        data.update(
            {
                "subtitle": self.subtitle,
                "tags": list(self.tags),
                "website": self.website,
            }
        )
        return data

    @classmethod
    def from_map(cls, data: dict[str, Any]) -> PublicEvent:
        """Build a public event from a Firestore document."""
        return cls(
            **cls._common_fields(data),
            subtitle=data.get("subtitle", ""),
            tags=list(data.get("tags") or []),
            website=data.get("website"),
        )


Event = Union[PrivateEvent, PublicEvent]

_EVENT_TYPES: dict[str, type[PrivateEvent]] = {
    EVENT_TYPE_PRIVATE: PrivateEvent,
    EVENT_TYPE_PUBLIC: PublicEvent,
}


def event_from_map(data: dict[str, Any]) -> Event:
    """Dispatch on the ``type`` discriminant of an event document."""
    event_type = data.get("type")
    event_cls = _EVENT_TYPES.get(event_type)  # type: ignore[arg-type]
    if event_cls is None:
        raise ValueError(f"Unknown event type: {event_type}")
    return event_cls.from_map(data)


def is_public(event: Event) -> bool:
    """Return True for events everyone may see."""
    return isinstance(event, PublicEvent)


@dataclass
class EventParticipant:
    """Membership record of one user in one event."""

    uid: str
    joined_at: Optional[Any] = None

    def to_map(self) -> dict[str, Any]:
        """Serialize to a Firestore document."""
        return {"uid": self.uid, "joinedAt": self.joined_at}

    @classmethod
    def from_map(cls, data: dict[str, Any]) -> EventParticipant:
        """Build a participant from a Firestore document."""
        return cls(uid=data["uid"], joined_at=data.get("joinedAt"))


class InvitationStatus(str, enum.Enum):
    """Lifecycle of an invitation before it is consumed."""

    PENDING = "Pending"
    DECLINED = "Declined"


@dataclass
class Invitation:
    """A pending offer for a user to join an event."""

    event_id: str
    from_user: str
    status: InvitationStatus = InvitationStatus.PENDING
    timestamp: Optional[Any] = None

    def to_map(self) -> dict[str, Any]:
        """Serialize to a Firestore document."""
        return {
            "eventId": self.event_id,
            "from": self.from_user,
            "status": self.status.value,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_map(cls, data: dict[str, Any]) -> Invitation:
        """Build an invitation from a Firestore document."""
        return cls(
            event_id=data["eventId"],
            from_user=data["from"],
            status=InvitationStatus(data.get("status", InvitationStatus.PENDING.value)),
            timestamp=data.get("timestamp"),
        )

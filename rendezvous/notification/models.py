"""Data models for the notification blueprint."""

from __future__ import annotations

from typing import Any

from rendezvous.core.types import FirestoreDocument


class FriendRequestNotification(FirestoreDocument, total=False):
    """A notification document telling a user someone wants to be friends."""

    userId: str
    type: str
    fromUserId: str
    fromUserName: str
    isRead: bool


def display_name(profile: dict[str, Any] | None) -> str:
    """Return a user's full name, falling back to the username."""
    if not profile:
        return "Someone"
    parts = [profile.get("firstName") or "", profile.get("lastName") or ""]
    name = " ".join(part for part in parts if part).strip()
    return name or profile.get("username") or "Someone"

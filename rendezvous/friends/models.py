"""Data models for the friends blueprint."""

import enum


class FriendshipStatus(str, enum.Enum):
    """Relationship between the acting user and another user."""

    NONE = "none"
    REQUEST_SENT = "request_sent"
    REQUEST_RECEIVED = "request_received"
    FRIENDS = "friends"

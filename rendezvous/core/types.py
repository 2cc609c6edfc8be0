"""Shapes of the documents and JSON bodies passed around as plain dicts."""

from typing import Any, Dict, List, Optional, TypedDict  # noqa: UP035


class _FirestoreDocumentBase(TypedDict):
    id: str


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """A stored document together with the id it lives under."""

    timestamp: Any


class FriendSummary(TypedDict):
    """Everything the friends page lists, as user ids."""

    friends: List[str]  # noqa: UP006
    requests: List[str]  # noqa: UP006
    sent_requests: List[str]  # noqa: UP006


class APIResponse(TypedDict):
    """Envelope of a successful API call."""

    status: str
    message: str
    data: Optional[Dict[str, Any]]  # noqa: UP006


class ErrorResponse(TypedDict):
    """Envelope of a failed API call."""

    status: str
    message: str

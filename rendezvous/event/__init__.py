"""Event blueprint."""

from flask import Blueprint

bp = Blueprint("event", __name__, url_prefix="/events")

from . import routes  # noqa: E402, F401
from .models import (  # noqa: E402
    EventParticipant,
    Invitation,
    Location,
    PrivateEvent,
    PublicEvent,
)
from .services import EventParticipationService  # noqa: E402

__all__ = [
    "EventParticipant",
    "EventParticipationService",
    "Invitation",
    "Location",
    "PrivateEvent",
    "PublicEvent",
    "routes",
]

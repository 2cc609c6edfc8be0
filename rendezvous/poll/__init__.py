"""Poll blueprint."""

from flask import Blueprint

bp = Blueprint("poll", __name__, url_prefix="/events/<string:event_uid>/polls")

from . import routes  # noqa: E402, F401
from .models import Poll, PollOption, PollVote  # noqa: E402
from .services import PollVotingService  # noqa: E402

__all__ = ["Poll", "PollOption", "PollVote", "PollVotingService", "routes"]

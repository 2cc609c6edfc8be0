"""Routes for the poll blueprint."""

from __future__ import annotations

from typing import Any

from flask import request

from rendezvous.auth.decorators import login_required
from rendezvous.errors import NotFoundError
from rendezvous.utils import (
    api_response,
    current_user_id,
    get_services,
    json_formdata,
    validate_form,
)

from . import bp
from .forms import PollForm, VoteForm
from .models import Poll, PollVote


@bp.route("/", methods=["GET"])
@login_required
def list_polls(event_uid: str) -> Any:
    """List the open polls of an event, or all of them with ``?all=true``."""
    services = get_services()
    services.events.get_event(event_uid)
    if (request.args.get("all") or "").lower() in ["true", "1", "t"]:
        polls = services.polls.get_polls(event_uid)
    else:
        polls = services.polls.get_active_polls(event_uid)
    return api_response(data={"polls": [poll.to_map() for poll in polls]})


@bp.route("/", methods=["POST"])
@login_required
def create_poll(event_uid: str) -> Any:
    """Create a poll on an event owned by the logged in user."""
    form = PollForm(formdata=json_formdata())
    validate_form(form)
    polls = get_services().polls
    poll = Poll(
        uid=polls.new_uid(event_uid),
        event_uid=event_uid,
        question=form.question.data.strip(),
        options=form.options.data,
    )
    polls.create_poll(poll)
    return api_response("Poll created", {"uid": poll.uid}, 201)


@bp.route("/<string:poll_uid>", methods=["GET"])
@login_required
def view_poll(event_uid: str, poll_uid: str) -> Any:
    """Return one poll with its tallies."""
    services = get_services()
    services.events.get_event(event_uid)
    poll = services.polls.get_poll(event_uid, poll_uid)
    if poll is None:
        raise NotFoundError(f"Poll {poll_uid} not found")
    return api_response(data=poll.to_map())


@bp.route("/<string:poll_uid>/vote", methods=["POST"])
@login_required
def vote(event_uid: str, poll_uid: str) -> Any:
    """Cast the logged in user's vote."""
    form = VoteForm(formdata=json_formdata())
    validate_form(form)
    poll_vote = PollVote(
        user_id=current_user_id(), poll_uid=poll_uid, option_id=form.optionId.data
    )
    get_services().polls.submit_vote(event_uid, poll_vote)
    return api_response("Vote recorded", {"poll_uid": poll_uid}, 201)


@bp.route("/<string:poll_uid>/vote", methods=["GET"])
@login_required
def my_vote(event_uid: str, poll_uid: str) -> Any:
    """Return the logged in user's vote, if any."""
    poll_vote = get_services().polls.get_user_vote(
        event_uid, poll_uid, current_user_id()
    )
    return api_response(data={"vote": poll_vote.to_map() if poll_vote else None})


@bp.route("/<string:poll_uid>/close", methods=["POST"])
@login_required
def close_poll(event_uid: str, poll_uid: str) -> Any:
    """Stop accepting votes on a poll."""
    get_services().polls.close_poll(event_uid, poll_uid)
    return api_response("Poll closed", {"poll_uid": poll_uid})


@bp.route("/<string:poll_uid>", methods=["DELETE"])
@login_required
def delete_poll(event_uid: str, poll_uid: str) -> Any:
    """Delete a poll."""
    get_services().polls.delete_poll(event_uid, poll_uid)
    return api_response("Poll deleted", {"poll_uid": poll_uid})

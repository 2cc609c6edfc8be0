"""Routes for the event blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, request

from rendezvous.auth.decorators import login_required
from rendezvous.utils import (
    api_response,
    current_user_id,
    get_services,
    json_formdata,
    validate_form,
)

from . import bp
from .forms import EventForm, InviteForm
from .models import Event


def _event_filter(args: Any) -> Any:
    """Build the predicate for the optional ``tag`` and ``flash`` filters."""
    tag = args.get("tag")
    flash_only = (args.get("flash") or "").lower() in ["true", "1", "t"]

    def predicate(event: Event) -> bool:
        if flash_only and not event.is_flash:
            return False
        if tag and tag not in getattr(event, "tags", []):
            return False
        return True

    return predicate


@bp.route("/", methods=["GET"])
@login_required
def list_events() -> Any:
    """List the events the user may see, optionally filtered."""
    events = get_services().events
    owner_id = request.args.get("owner")
    if owner_id:
        visible = events.get_events_by_owner(owner_id)
    else:
        visible = events.get_all_visible_events_satisfying(_event_filter(request.args))
    return api_response(data={"events": [event.to_map() for event in visible]})


@bp.route("/", methods=["POST"])
@login_required
def create_event() -> Any:
    """Create an event owned by the logged in user."""
    form = EventForm(formdata=json_formdata())
    validate_form(form)
    events = get_services().events
    uid = form.uid.data or events.new_uid()
    events.add_event(form.to_event(uid, current_user_id()))
    current_app.logger.info(f"Event {uid} created")
    return api_response("Event created", {"uid": uid}, 201)


@bp.route("/invitations", methods=["GET"])
@login_required
def my_invitations() -> Any:
    """List the invitations addressed to the logged in user."""
    invitations = get_services().events.get_user_invitations(current_user_id())
    return api_response(
        data={"invitations": [invitation.to_map() for invitation in invitations]}
    )


@bp.route("/joined", methods=["GET"])
@login_required
def joined_events() -> Any:
    """List the uids of the events the logged in user takes part in."""
    event_uids = get_services().events.get_joined_events(current_user_id())
    return api_response(data={"events": event_uids})


@bp.route("/<string:event_uid>", methods=["GET"])
@login_required
def view_event(event_uid: str) -> Any:
    """Return one event."""
    event = get_services().events.get_event(event_uid)
    return api_response(data=event.to_map())


@bp.route("/<string:event_uid>", methods=["PUT"])
@login_required
def edit_event(event_uid: str) -> Any:
    """Replace the fields of an event."""
    form = EventForm(formdata=json_formdata())
    validate_form(form)
    uid = form.uid.data or event_uid
    get_services().events.edit_event(event_uid, form.to_event(uid, current_user_id()))
    return api_response("Event updated", {"uid": event_uid})


@bp.route("/<string:event_uid>", methods=["DELETE"])
@login_required
def delete_event(event_uid: str) -> Any:
    """Delete an event and everything stored under it."""
    get_services().events.delete_event(event_uid)
    return api_response("Event deleted", {"uid": event_uid})


@bp.route("/<string:event_uid>/participants", methods=["GET"])
@login_required
def list_participants(event_uid: str) -> Any:
    """List the participants of an event."""
    participants = get_services().events.get_event_participants(event_uid)
    return api_response(
        data={"participants": [participant.to_map() for participant in participants]}
    )


@bp.route("/<string:event_uid>/statistics", methods=["GET"])
@login_required
def event_statistics(event_uid: str) -> Any:
    """Show attendance statistics to the owner of an event."""
    follower_count = request.args.get("followers", 0, type=int)
    statistics = get_services().events.get_event_statistics(event_uid, follower_count)
    return api_response(data=statistics.to_map())


@bp.route("/<string:event_uid>/participants/<string:user_id>", methods=["DELETE"])
@login_required
def remove_participant(event_uid: str, user_id: str) -> Any:
    """Remove a participant from an event."""
    get_services().events.remove_participant_from_event(event_uid, user_id)
    return api_response("Participant removed", {"uid": event_uid, "user_id": user_id})


@bp.route("/<string:event_uid>/join", methods=["POST"])
@login_required
def join_event(event_uid: str) -> Any:
    """Join an event."""
    get_services().events.join_event(event_uid)
    return api_response("Joined event", {"uid": event_uid})


@bp.route("/<string:event_uid>/leave", methods=["POST"])
@login_required
def leave_event(event_uid: str) -> Any:
    """Leave an event."""
    get_services().events.leave_event(event_uid)
    return api_response("Left event", {"uid": event_uid})


@bp.route("/<string:event_uid>/invitations", methods=["GET"])
@login_required
def list_invitations(event_uid: str) -> Any:
    """List the users invited to an event."""
    invited = get_services().events.get_event_invitations(event_uid)
    return api_response(data={"uid": event_uid, "invited": invited})


@bp.route("/<string:event_uid>/invitations", methods=["POST"])
@login_required
def invite_user(event_uid: str) -> Any:
    """Invite a user to an event."""
    form = InviteForm(formdata=json_formdata())
    validate_form(form)
    get_services().events.add_invitation_to_event(
        event_uid, form.user_id.data, current_user_id()
    )
    return api_response(
        "Invitation sent", {"uid": event_uid, "user_id": form.user_id.data}, 201
    )


@bp.route("/<string:event_uid>/invitations/accept", methods=["POST"])
@login_required
def accept_invitation(event_uid: str) -> Any:
    """Accept an invitation and join the event."""
    get_services().events.accept_invitation(event_uid)
    return api_response("Invitation accepted", {"uid": event_uid})


@bp.route("/<string:event_uid>/invitations/decline", methods=["POST"])
@login_required
def decline_invitation(event_uid: str) -> Any:
    """Decline an invitation."""
    get_services().events.decline_invitation(event_uid)
    return api_response("Invitation declined", {"uid": event_uid})


@bp.route("/<string:event_uid>/invitations/<string:user_id>", methods=["DELETE"])
@login_required
def revoke_invitation(event_uid: str, user_id: str) -> Any:
    """Revoke an invitation."""
    get_services().events.remove_invitation_from_event(
        event_uid, user_id, current_user_id()
    )
    return api_response("Invitation revoked", {"uid": event_uid, "user_id": user_id})

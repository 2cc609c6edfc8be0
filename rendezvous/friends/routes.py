"""Routes for the friends blueprint."""

from __future__ import annotations

from typing import Any

from rendezvous.auth.decorators import login_required
from rendezvous.utils import api_response, current_user_id, get_services

from . import bp


@bp.route("/", methods=["GET"])
@login_required
def friends_page() -> Any:
    """List friends, incoming requests and sent requests."""
    summary = get_services().friends.get_friend_summary(current_user_id())
    return api_response(data=summary)


@bp.route("/users/<string:user_id>", methods=["GET"])
@login_required
def user_friends(user_id: str) -> Any:
    """List the friends shown on another user's profile."""
    friends = get_services().friends.get_friends_public(user_id)
    return api_response(data={"user_id": user_id, "friends": friends})


@bp.route("/status/<string:other_id>", methods=["GET"])
@login_required
def friendship_status(other_id: str) -> Any:
    """Describe the relationship with another user."""
    status = get_services().friends.get_friendship_status(current_user_id(), other_id)
    return api_response(data={"user_id": other_id, "status": status.value})


@bp.route("/requests/<string:to_id>", methods=["POST"])
@login_required
def send_request(to_id: str) -> Any:
    """Send a friend request."""
    get_services().friends.send_friend_request(current_user_id(), to_id)
    return api_response("Friend request sent", {"user_id": to_id}, 201)


@bp.route("/requests/<string:to_id>", methods=["DELETE"])
@login_required
def cancel_request(to_id: str) -> Any:
    """Withdraw a friend request that was sent earlier."""
    get_services().friends.cancel_friend_request(current_user_id(), to_id)
    return api_response("Friend request cancelled", {"user_id": to_id})


@bp.route("/requests/<string:from_id>/accept", methods=["POST"])
@login_required
def accept_request(from_id: str) -> Any:
    """Accept an incoming friend request."""
    get_services().friends.accept_friend_request(current_user_id(), from_id)
    return api_response("Friend request accepted", {"user_id": from_id})


@bp.route("/requests/<string:from_id>/reject", methods=["POST"])
@login_required
def reject_request(from_id: str) -> Any:
    """Reject an incoming friend request."""
    get_services().friends.reject_friend_request(current_user_id(), from_id)
    return api_response("Friend request rejected", {"user_id": from_id})


@bp.route("/<string:friend_id>", methods=["DELETE"])
@login_required
def remove_friend(friend_id: str) -> Any:
    """End a friendship."""
    get_services().friends.remove_friend(current_user_id(), friend_id)
    return api_response("Friend removed", {"user_id": friend_id})

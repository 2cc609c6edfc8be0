"""Tests for the JSON API routes and their error mapping."""

from __future__ import annotations

from tests.conftest import EVENT_START, AppTestCase


class EventRoutesTestCase(AppTestCase):
    def test_requires_login(self) -> None:
        response = self.client.get("/events/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json["status"], "error")
        self.assertEqual(
            response.json["message"], "User must be logged in for this action"
        )

    def test_create_and_view_event(self) -> None:
        self.login("owner")
        response = self.client.post(
            "/events/",
            json={
                "type": "public",
                "title": "Picnic",
                "start": "2026-11-07T18:00",
                "end": "2026-11-07T21:30",
                "location": {"latitude": 48.85, "longitude": 2.35},
                "maxCapacity": 10,
                "tags": ["outdoor", "food"],
                "isFlash": True,
                "website": None,
            },
        )
        self.assertEqual(response.status_code, 201)
        uid = response.json["data"]["uid"]

        response = self.client.get(f"/events/{uid}")
        self.assertEqual(response.status_code, 200)
        data = response.json["data"]
        self.assertEqual(data["type"], "public")
        self.assertEqual(data["ownerId"], "owner")
        self.assertEqual(data["start"], "2026-11-07T18:00:00")
        self.assertEqual(data["tags"], ["outdoor", "food"])
        self.assertEqual(data["maxCapacity"], 10)
        self.assertTrue(data["isFlash"])

    def test_create_event_without_title_fails(self) -> None:
        self.login("owner")
        response = self.client.post("/events/", json={"type": "private"})
        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.json["message"].startswith("title:"))

    def test_create_event_ending_before_start_fails(self) -> None:
        self.login("owner")
        response = self.client.post(
            "/events/",
            json={
                "title": "Backwards",
                "start": "2026-11-07T18:00",
                "end": "2026-11-07T17:00",
            },
        )
        self.assertEqual(response.status_code, 400)

    def test_body_must_be_an_object(self) -> None:
        self.login("owner")
        response = self.client.post("/events/", json=["Picnic"])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json["message"], "Request body must be a JSON object")

    def test_list_events_with_filters(self) -> None:
        self.create_event("pub", "owner", tags=["music"])
        self.create_event("flash", "owner", isFlash=True)
        self.create_event("priv", "owner", event_type="private")
        self.login("pat")

        response = self.client.get("/events/")
        uids = sorted(event["uid"] for event in response.json["data"]["events"])
        self.assertEqual(uids, ["flash", "pub"])

        response = self.client.get("/events/?tag=music")
        self.assertEqual([e["uid"] for e in response.json["data"]["events"]], ["pub"])

        response = self.client.get("/events/?flash=true")
        self.assertEqual([e["uid"] for e in response.json["data"]["events"]], ["flash"])

    def test_view_missing_event(self) -> None:
        self.login("pat")
        response = self.client.get("/events/missing")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json["message"], "Event not found: missing")

    def test_view_private_event_forbidden(self) -> None:
        self.create_event("priv", "owner", event_type="private")
        self.login("pat")
        response = self.client.get("/events/priv")
        self.assertEqual(response.status_code, 403)

    def test_delete_by_non_owner_forbidden(self) -> None:
        self.create_event("e1", "owner")
        self.login("pat")
        response = self.client.delete("/events/e1")
        self.assertEqual(response.status_code, 403)
        self.assertTrue(self.doc("events/e1").exists)

    def test_join_twice_conflicts(self) -> None:
        self.create_event("e1", "owner")
        self.login("pat")
        self.assertEqual(self.client.post("/events/e1/join").status_code, 200)
        response = self.client.post("/events/e1/join")
        self.assertEqual(response.status_code, 409)

        response = self.client.get("/events/joined")
        self.assertEqual(response.json["data"]["events"], ["e1"])

    def test_join_full_event(self) -> None:
        self.create_event("e1", "owner", maxCapacity=1)
        self.add_participant("e1", "quinn")
        self.login("pat")
        response = self.client.post("/events/e1/join")
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json["message"], "Event is full")

    def test_event_statistics_for_owner_only(self) -> None:
        self.create_event("e1", "owner")
        self.add_participant("e1", "pat")
        self.add_participant("e1", "quinn")

        self.login("owner")
        response = self.client.get("/events/e1/statistics?followers=4")
        self.assertEqual(response.status_code, 200)
        data = response.json["data"]
        self.assertEqual(data["totalAttendees"], 2)
        self.assertEqual(data["attendeesFollowersRate"], 50.0)
        self.assertEqual(data["joinRateOverTime"][0]["count"], 2)

        self.login("pat")
        response = self.client.get("/events/e1/statistics")
        self.assertEqual(response.status_code, 403)

    def test_invite_and_revoke(self) -> None:
        self.create_event("e1", "owner", event_type="private")
        self.login("owner")
        response = self.client.post("/events/e1/invitations", json={"user_id": "pat"})
        self.assertEqual(response.status_code, 201)

        response = self.client.get("/events/e1/invitations")
        self.assertEqual(response.json["data"]["invited"], ["pat"])

        response = self.client.delete("/events/e1/invitations/pat")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(self.doc("users/pat/invitations/e1").exists)

    def test_invite_requires_user(self) -> None:
        self.create_event("e1", "owner")
        self.login("owner")
        response = self.client.post("/events/e1/invitations", json={})
        self.assertEqual(response.status_code, 400)

    def test_method_not_allowed(self) -> None:
        self.login("pat")
        response = self.client.patch("/events/e1")
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json["message"], "Method Not Allowed")


class PollRoutesTestCase(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.create_event("e1", "owner")
        self.add_participant("e1", "pat")
        self.create_poll("e1", "poll1")

    def test_create_poll(self) -> None:
        self.login("owner")
        response = self.client.post(
            "/events/e1/polls/",
            json={"question": "Pizza or sushi?", "options": ["Pizza", "Sushi"]},
        )
        self.assertEqual(response.status_code, 201)

        poll = self.services.polls.get_poll("e1", response.json["data"]["uid"])
        self.assertEqual([o.option_id for o in poll.options], ["opt1", "opt2"])
        self.assertEqual([o.text for o in poll.options], ["Pizza", "Sushi"])

    def test_create_poll_with_one_option_fails(self) -> None:
        self.login("owner")
        response = self.client.post(
            "/events/e1/polls/", json={"question": "Pizza?", "options": ["Pizza"]}
        )
        self.assertEqual(response.status_code, 400)

    def test_create_poll_by_participant_forbidden(self) -> None:
        self.login("pat")
        response = self.client.post(
            "/events/e1/polls/", json={"question": "Pizza?", "options": ["Yes", "No"]}
        )
        self.assertEqual(response.status_code, 403)

    def test_vote(self) -> None:
        self.login("pat")
        response = self.client.post("/events/e1/polls/poll1/vote", json={"optionId": "opt2"})
        self.assertEqual(response.status_code, 201)

        response = self.client.get("/events/e1/polls/poll1")
        counts = {o["optionId"]: o["voteCount"] for o in response.json["data"]["options"]}
        self.assertEqual(counts, {"opt1": 0, "opt2": 1})

        response = self.client.post("/events/e1/polls/poll1/vote", json={"optionId": "opt1"})
        self.assertEqual(response.status_code, 409)

    def test_vote_by_non_participant_forbidden(self) -> None:
        self.login("riley")
        response = self.client.post("/events/e1/polls/poll1/vote", json={"optionId": "opt1"})
        self.assertEqual(response.status_code, 403)

    def test_close_poll_then_vote(self) -> None:
        self.login("owner")
        self.assertEqual(self.client.post("/events/e1/polls/poll1/close").status_code, 200)

        self.login("pat")
        response = self.client.post("/events/e1/polls/poll1/vote", json={"optionId": "opt1"})
        self.assertEqual(response.status_code, 422)

        response = self.client.get("/events/e1/polls/")
        self.assertEqual(response.json["data"]["polls"], [])
        response = self.client.get("/events/e1/polls/?all=true")
        self.assertEqual(len(response.json["data"]["polls"]), 1)

    def test_view_missing_poll(self) -> None:
        self.login("pat")
        response = self.client.get("/events/e1/polls/ghost")
        self.assertEqual(response.status_code, 404)


class FriendRoutesTestCase(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.create_user("alice", "Alice")
        self.create_user("bob", "Bob")

    def test_friend_request_flow(self) -> None:
        self.login("alice")
        response = self.client.post("/friends/requests/bob")
        self.assertEqual(response.status_code, 201)
        response = self.client.get("/friends/status/bob")
        self.assertEqual(response.json["data"]["status"], "request_sent")

        self.login("bob")
        response = self.client.get("/friends/")
        self.assertEqual(response.json["data"]["requests"], ["alice"])
        response = self.client.post("/friends/requests/alice/accept")
        self.assertEqual(response.status_code, 200)

        response = self.client.get("/friends/users/alice")
        self.assertEqual(response.json["data"]["friends"], ["bob"])

        response = self.client.delete("/friends/alice")
        self.assertEqual(response.status_code, 200)
        response = self.client.get("/friends/status/alice")
        self.assertEqual(response.json["data"]["status"], "none")

    def test_request_to_self_fails(self) -> None:
        self.login("alice")
        response = self.client.post("/friends/requests/alice")
        self.assertEqual(response.status_code, 400)

    def test_request_to_missing_user(self) -> None:
        self.login("alice")
        response = self.client.post("/friends/requests/nobody")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json["message"], "Recipient user not found: nobody")


class NotificationRoutesTestCase(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.db.collection("notifications").document("n1").set(
            {
                "userId": "bob",
                "type": "FRIEND_REQUEST",
                "fromUserId": "alice",
                "fromUserName": "Alice",
                "timestamp": EVENT_START,
                "isRead": False,
            }
        )

    def test_list_and_mark_read(self) -> None:
        self.login("bob")
        response = self.client.get("/notifications/")
        notifications = response.json["data"]["notifications"]
        self.assertEqual([n["id"] for n in notifications], ["n1"])
        self.assertEqual(notifications[0]["timestamp"], "2026-11-07T18:00:00")

        response = self.client.post("/notifications/n1/read")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(self.doc("notifications/n1").to_dict()["isRead"])

    def test_mark_someone_elses_notification(self) -> None:
        self.login("alice")
        response = self.client.post("/notifications/n1/read")
        self.assertEqual(response.status_code, 403)

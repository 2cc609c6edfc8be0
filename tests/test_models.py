"""Tests for the plain data models."""

import datetime
import unittest

from rendezvous.event.models import (
    Invitation,
    InvitationStatus,
    Location,
    PrivateEvent,
    PublicEvent,
    event_from_map,
    is_public,
)
from rendezvous.event.statistics import (
    AGE_18_22,
    AGE_30_PLUS,
    UNDER_18,
    UNKNOWN,
    age_group,
    build_statistics,
    calculate_age,
)
from rendezvous.notification.models import display_name
from rendezvous.poll.models import Poll, PollOption, tally_vote

START = datetime.datetime(2026, 11, 7, 18, 0)


class TestEventModels(unittest.TestCase):
    def test_event_from_map_dispatches_on_type(self):
        public = PublicEvent(
            uid="e1",
            owner_id="owner",
            title="Picnic",
            start=START,
            location=Location(48.85, 2.35, "Parc"),
            tags=["outdoor"],
        )
        private = PrivateEvent(uid="e2", owner_id="owner", title="Dinner")

        self.assertEqual(event_from_map(public.to_map()), public)
        self.assertEqual(event_from_map(private.to_map()), private)
        self.assertTrue(is_public(event_from_map(public.to_map())))
        self.assertFalse(is_public(event_from_map(private.to_map())))

    def test_private_map_has_no_public_fields(self):
        data = PrivateEvent(uid="e2", owner_id="owner", title="Dinner").to_map()
        self.assertEqual(data["type"], "private")
        self.assertNotIn("tags", data)
        self.assertNotIn("website", data)

    def test_event_from_map_rejects_unknown_type(self):
        data = PrivateEvent(uid="e2", owner_id="owner", title="Dinner").to_map()
        data["type"] = "festival"
        with self.assertRaisesRegex(ValueError, "Unknown event type: festival"):
            event_from_map(data)

        del data["type"]
        with self.assertRaises(ValueError):
            event_from_map(data)

    def test_validate(self):
        PrivateEvent(uid="e1", owner_id="o", title="Ok").validate()

        invalid = [
            PrivateEvent(uid="", owner_id="o", title="No uid"),
            PrivateEvent(uid="e1", owner_id="o", title="  "),
            PrivateEvent(uid="e1", owner_id="o", title="Tiny", max_capacity=0),
            PrivateEvent(uid="e1", owner_id="o", title="Paid", participation_fee=-1),
            PrivateEvent(
                uid="e1",
                owner_id="o",
                title="Backwards",
                start=START,
                end=START - datetime.timedelta(hours=1),
            ),
        ]
        for event in invalid:
            with self.subTest(title=event.title):
                with self.assertRaises(ValueError):
                    event.validate()

    def test_invitation_map(self):
        invitation = Invitation(event_id="e1", from_user="owner")
        data = invitation.to_map()
        self.assertEqual(data["status"], "Pending")
        self.assertEqual(data["from"], "owner")
        self.assertEqual(Invitation.from_map(data).status, InvitationStatus.PENDING)


class TestEventStatistics(unittest.TestCase):
    TODAY = datetime.date(2026, 6, 1)

    def test_calculate_age(self):
        self.assertEqual(calculate_age("15/05/2000", self.TODAY), 26)
        self.assertEqual(calculate_age("31/12/2000", self.TODAY), 25)
        for birthday in (None, "", "   ", "15-06-2000", "15/06", "ab/06/2000"):
            self.assertIsNone(calculate_age(birthday, self.TODAY))
        self.assertIsNone(calculate_age("01/01/2030", self.TODAY))

    def test_age_group_boundaries(self):
        self.assertEqual(age_group(None), UNKNOWN)
        self.assertEqual(age_group(17), UNDER_18)
        self.assertEqual(age_group(18), AGE_18_22)
        self.assertEqual(age_group(22), AGE_18_22)
        self.assertEqual(age_group(23), "23-25")
        self.assertEqual(age_group(30), "26-30")
        self.assertEqual(age_group(31), AGE_30_PLUS)

    def test_build_statistics(self):
        joined_at = {
            "a": START,
            "b": START,
            "c": START + datetime.timedelta(days=1),
            "d": START + datetime.timedelta(days=1),
        }
        profiles = {
            "a": {"birthday": "01/01/2006", "university": "EPFL"},
            "b": {"birthday": "01/01/2006", "university": "EPFL"},
            "c": {"birthday": "01/01/2002", "university": "UNIL"},
            "d": {},
        }
        stats = build_statistics("e1", joined_at, profiles, 200, self.TODAY)

        self.assertEqual(stats.total_attendees, 4)
        self.assertEqual(stats.attendees_followers_rate, 2.0)
        self.assertEqual(
            stats.age_distribution[0],
            {"label": AGE_18_22, "count": 2, "percentage": 50.0},
        )
        self.assertEqual(
            stats.campus_distribution,
            [
                {"label": "EPFL", "count": 2, "percentage": 50.0},
                {"label": "UNIL", "count": 1, "percentage": 25.0},
                {"label": UNKNOWN, "count": 1, "percentage": 25.0},
            ],
        )
        self.assertEqual(
            stats.join_rate_over_time,
            [
                {"date": "2026-11-07", "count": 2, "cumulative": 2},
                {"date": "2026-11-08", "count": 2, "cumulative": 4},
            ],
        )

    def test_build_statistics_without_participants_or_followers(self):
        stats = build_statistics("e1", {}, {}, 0, self.TODAY)
        self.assertEqual(stats.total_attendees, 0)
        self.assertEqual(stats.attendees_followers_rate, 0.0)
        self.assertEqual(stats.age_distribution, [])
        self.assertEqual(stats.join_rate_over_time, [])


class TestPollModels(unittest.TestCase):
    def setUp(self):
        self.options = [PollOption("a", "A", 2), PollOption("b", "B", 0)]

    def test_tally_vote_increments_matching_option(self):
        tallied, matched = tally_vote(self.options, "b")
        self.assertTrue(matched)
        self.assertEqual([o.vote_count for o in tallied], [2, 1])
        # The input list is left untouched.
        self.assertEqual([o.vote_count for o in self.options], [2, 0])

    def test_tally_vote_unknown_option(self):
        tallied, matched = tally_vote(self.options, "z")
        self.assertFalse(matched)
        self.assertEqual(tallied, self.options)

    def test_total_votes(self):
        poll = Poll(uid="p", event_uid="e", question="?", options=self.options)
        self.assertEqual(poll.total_votes(), 2)

    def test_validate(self):
        Poll(uid="p", event_uid="e", question="Which?", options=self.options).validate()
        with self.assertRaises(ValueError):
            Poll(uid="p", event_uid="e", question="", options=self.options).validate()
        with self.assertRaises(ValueError):
            Poll(
                uid="p",
                event_uid="e",
                question="Which?",
                options=[PollOption("a", "A"), PollOption("b", " ")],
            ).validate()


class TestDisplayName(unittest.TestCase):
    def test_display_name(self):
        self.assertEqual(
            display_name({"firstName": "Alice", "lastName": "Smith"}), "Alice Smith"
        )
        self.assertEqual(display_name({"firstName": "Carol"}), "Carol")
        self.assertEqual(display_name({"username": "bob"}), "bob")
        self.assertEqual(display_name({}), "Someone")
        self.assertEqual(display_name(None), "Someone")

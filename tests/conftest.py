"""Common utilities for tests."""

from __future__ import annotations

import datetime
import unittest
from typing import Any

from rendezvous import create_app
from rendezvous.auth.context import StaticAuthContext
from rendezvous.services import build_services
from rendezvous.utils import EXTENSION_KEY
from tests.mock_utils import MockFirestoreBuilder, patch_transactional

EVENT_START = datetime.datetime(2026, 11, 7, 18, 0)


class ServiceTestCase(unittest.TestCase):
    """Services wired to an in-memory Firestore and a fixed principal."""

    def setUp(self) -> None:
        self.db = MockFirestoreBuilder.build()
        self.auth = StaticAuthContext()
        self.services = build_services(self.db, self.auth)

        transactional = patch_transactional()
        self.mock_transactional = transactional.start()
        self.addCleanup(transactional.stop)

    def act_as(self, user_id: str | None) -> None:
        """Switch the acting user."""
        self.auth.user_id = user_id

    def create_user(self, uid: str, first_name: str = "", last_name: str = "") -> None:
        self.db.collection("users").document(uid).set(
            {
                "firstName": first_name,
                "lastName": last_name,
                "username": uid,
            }
        )

    def create_event(
        self, uid: str, owner_id: str, event_type: str = "public", **fields: Any
    ) -> None:
        data = {
            "uid": uid,
            "type": event_type,
            "ownerId": owner_id,
            "title": f"Event {uid}",
            "description": "",
            "start": EVENT_START,
            "isFlash": False,
            "tags": [],
        }
        data.update(fields)
        self.db.collection("events").document(uid).set(data)

    def add_participant(self, event_uid: str, user_id: str) -> None:
        (
            self.db.collection("events")
            .document(event_uid)
            .collection("participants")
            .document(user_id)
            .set({"uid": user_id, "joinedAt": EVENT_START})
        )

    def create_poll(
        self,
        event_uid: str,
        poll_uid: str,
        options: list[tuple[str, str, int]] | None = None,
        is_active: bool = True,
    ) -> None:
        if options is None:
            options = [("opt1", "Yes", 0), ("opt2", "No", 0)]
        (
            self.db.collection("events")
            .document(event_uid)
            .collection("polls")
            .document(poll_uid)
            .set(
                {
                    "uid": poll_uid,
                    "eventUid": event_uid,
                    "question": "Are you coming?",
                    "options": [
                        {"optionId": oid, "text": text, "voteCount": count}
                        for oid, text, count in options
                    ],
                    "createdAt": EVENT_START,
                    "isActive": is_active,
                }
            )
        )

    def doc(self, path: str) -> Any:
        """Return the snapshot at a slash separated document path."""
        parts = path.split("/")
        ref = self.db.collection(parts[0]).document(parts[1])
        for collection, document in zip(parts[2::2], parts[3::2]):
            ref = ref.collection(collection).document(document)
        return ref.get()


class AppTestCase(ServiceTestCase):
    """A Flask test client over the in-memory store."""

    def setUp(self) -> None:
        super().setUp()
        self.app = create_app(
            {
                "TESTING": True,
                "WTF_CSRF_ENABLED": False,
                "FIRESTORE_CLIENT": self.db,
            }
        )
        self.client = self.app.test_client()
        self.services = self.app.extensions[EXTENSION_KEY]

    def login(self, uid: str) -> None:
        """Store ``uid`` in the session, creating the profile if needed."""
        if not self.doc(f"users/{uid}").exists:
            self.create_user(uid, uid.capitalize())
        with self.client.session_transaction() as sess:
            sess["user_id"] = uid

"""Mock utilities for Firestore and Auth."""

from __future__ import annotations

import unittest.mock
from typing import Any, Callable, Optional

from mockfirestore import CollectionReference, MockFirestore, Query
from mockfirestore.document import DocumentReference


def _delete(ref: Any) -> None:
    # Deleting a missing document is a no-op in Firestore.
    try:
        ref.delete()
    except KeyError:
        pass


class MockWriteBatch:
    """Collects writes and applies them to the mock store on commit."""

    def __init__(self) -> None:
        self.writes: list[tuple[str, Any, Any]] = []
        self.commit = unittest.mock.MagicMock(side_effect=self._real_commit)

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append(("set_merge" if merge else "set", ref, data))

    def update(self, ref: Any, data: Any) -> None:
        self.writes.append(("update", ref, data))

    def delete(self, ref: Any) -> None:
        self.writes.append(("delete", ref, None))

    def _real_commit(self) -> None:
        for op, ref, data in self.writes:
            if op == "set":
                ref.set(data)
            elif op == "set_merge":
                ref.set(data, merge=True)
            elif op == "update":
                ref.update(data)
            else:
                _delete(ref)


class MockTransaction(MockWriteBatch):
    """A transaction double; reads go straight to the mock store."""

    def __init__(self, max_attempts: int = 5) -> None:
        super().__init__()
        self.max_attempts = max_attempts


def mock_transactional(func: Callable[..., Any]) -> Callable[..., Any]:
    """Stand-in for ``firestore.transactional`` that commits on success."""

    def wrapper(transaction: Any, *args: Any, **kwargs: Any) -> Any:
        result = func(transaction, *args, **kwargs)
        transaction.commit()
        return result

    return wrapper


class MockFirestoreBuilder:
    """Builder to modularize mockfirestore and firebase_admin patching."""

    @staticmethod
    def patch_db_read() -> None:
        """Apply monkeypatches to mockfirestore to support FieldFilter."""

        def collection_where(
            self: Any,
            field_path: Optional[str] = None,
            op_string: Optional[str] = None,
            value: Any = None,
            filter: Any = None,
        ) -> Any:
            if filter:
                return self._where(filter.field_path, filter.op_string, filter.value)
            return self._where(field_path, op_string, value)

        if not hasattr(CollectionReference, "_where"):
            CollectionReference._where = CollectionReference.where
            CollectionReference.where = collection_where

        def query_where(
            self: Any,
            field_path: Optional[str] = None,
            op_string: Optional[str] = None,
            value: Any = None,
            filter: Any = None,
        ) -> Any:
            if filter:
                return self._where(filter.field_path, filter.op_string, filter.value)
            return self._where(field_path, op_string, value)

        if not hasattr(Query, "_where"):
            Query._where = Query.where
            Query.where = query_where

        # Patch DocumentReference.get to handle transaction argument
        if not hasattr(DocumentReference, "_orig_get"):
            DocumentReference._orig_get = DocumentReference.get

            def doc_ref_get(self: Any, transaction: Any = None) -> Any:
                """Handle transaction argument in get."""
                return self._orig_get()

            DocumentReference.get = doc_ref_get

    @staticmethod
    def build() -> MockFirestore:
        """Return a mock store whose batches and transactions commit to it."""
        MockFirestoreBuilder.patch_db_read()
        db = MockFirestore()
        db.batch = MockWriteBatch
        db.transaction = lambda **kwargs: MockTransaction(**kwargs)
        return db


def patch_transactional() -> Any:
    """Patch ``firestore.transactional`` with :func:`mock_transactional`."""
    return unittest.mock.patch(
        "firebase_admin.firestore.transactional", side_effect=mock_transactional
    )

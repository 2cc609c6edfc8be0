"""Helpers around the Firestore transactional primitive."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, TypeVar

from firebase_admin import firestore

from .constants import DEFAULT_TRANSACTION_MAX_ATTEMPTS

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

T = TypeVar("T")


def run_in_transaction(
    db: Client,
    func: Callable[..., T],
    *args: Any,
    max_attempts: int = DEFAULT_TRANSACTION_MAX_ATTEMPTS,
) -> T:
    """Run ``func(transaction, *args)`` inside a Firestore transaction.

    All reads inside ``func`` must go through the transaction and happen
    before its first write. The client re-runs ``func`` when the commit is
    aborted by a concurrent writer, up to ``max_attempts`` times, so ``func``
    must not have side effects outside the transaction.
    """
    transaction: Transaction = db.transaction(max_attempts=max_attempts)
    wrapped = firestore.transactional(func)
    return wrapped(transaction, *args)


def server_timestamp() -> Any:
    """Return the sentinel Firestore replaces with the commit time."""
    return firestore.SERVER_TIMESTAMP

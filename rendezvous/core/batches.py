"""Helpers for writes that span more documents than one batch may hold."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from .constants import BATCH_WRITE_LIMIT

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

logger = logging.getLogger(__name__)


def commit_deletes(db: Client, refs: Iterable[DocumentReference]) -> int:
    """Delete every referenced document, committing at most
    ``BATCH_WRITE_LIMIT`` deletes per batch.

    Returns the number of batches committed.
    """
    batch = None
    pending = 0
    committed = 0
    for ref in refs:
        if batch is None:
            batch = db.batch()
        batch.delete(ref)
        pending += 1
        if pending == BATCH_WRITE_LIMIT:
            batch.commit()
            committed += 1
            batch = None
            pending = 0
    if batch is not None:
        batch.commit()
        committed += 1
    logger.debug("Committed %d delete batch(es)", committed)
    return committed

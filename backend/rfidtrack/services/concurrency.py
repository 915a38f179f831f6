# Overview: Transaction helpers for concurrent writers on the same identifiers.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..validation import ConflictError


logger = logging.getLogger(__name__)


def run_with_retry(func, session: Session, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            session.rollback()
            if attempt >= attempts - 1:
                raise
            logger.warning("Transient database error, retrying (attempt %d/%d)", attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))


def commit_with_retry(session: Session, *, attempts: int = 3, backoff_base: float = 0.1) -> None:
    """
    Commit the current session with retry handling.

    A commit-time IntegrityError means another writer claimed one of our
    identifiers first: roll back and surface it as ConflictError.
    """
    def _op():
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConflictError("Identifier already exists (concurrent write)") from exc

    run_with_retry(_op, session, attempts=attempts, backoff_base=backoff_base)


def retry_on_conflict(func, *, attempts: int, label: str):
    """
    Optimistic allocation loop: run func, and on ConflictError try again
    with a fresh read. func must recompute everything it allocates.

    The repository has already rolled back by the time ConflictError
    reaches us.
    """
    for attempt in range(attempts):
        try:
            return func()
        except ConflictError:
            if attempt >= attempts - 1:
                raise
            logger.info("%s allocation collided, retrying (attempt %d/%d)", label, attempt + 1, attempts)

# backend/calendar_booking/services/uow.py
"""
Unit of Work for booking and slot writes.

Usage:
    with UnitOfWork(db, locks, broadcaster) as uow:
        uow.lock(slot_key(timeslot_id))
        ...                      # reads + writes on uow.session
        uow.emit(timeslot_event(slot))
    # committed → locks released → events published

Any exception inside the block rolls back, releases the locks and
discards the collected events. Database errors surface as StorageFailure,
unique-index violations as Conflict.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import Conflict, StorageFailure
from .events import Event, EventBroadcaster
from .locks import RowLockRegistry

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(
        self,
        session: Session,
        locks: RowLockRegistry,
        broadcaster: Optional[EventBroadcaster] = None,
    ):
        self.session = session
        self.locks = locks
        self.broadcaster = broadcaster
        self._held: list[str] = []
        self._events: list[Event] = []

    def __enter__(self) -> "UnitOfWork":
        self._held = []
        self._events = []
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._commit()
            else:
                self._rollback()
                if isinstance(exc_val, SQLAlchemyError):
                    logger.exception("Database error inside transaction")
                    raise StorageFailure(str(exc_val)) from exc_val
        finally:
            self._release_locks()

        if exc_type is None:
            self._publish()
        return False

    def lock(self, key: str) -> None:
        """Acquire the named lock for the rest of the transaction."""
        if key in self._held:
            return
        self.locks.acquire(key)
        self._held.append(key)

    def emit(self, event: Event) -> None:
        """Queue an event for publishing after commit."""
        self._events.append(event)

    # ── internals ────────────────────────────────────────────────────────

    def _commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as e:
            self._rollback()
            logger.warning(f"Commit rejected by constraint: {e.orig}")
            raise Conflict("Conflicting update, please retry") from e
        except SQLAlchemyError as e:
            self._rollback()
            logger.exception("Commit failed")
            raise StorageFailure(str(e)) from e
        logger.debug(f"Committed, {len(self._events)} events pending")

    def _rollback(self) -> None:
        try:
            self.session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")
        if self._events:
            logger.info(f"Rolled back, discarding {len(self._events)} events")
        self._events = []

    def _release_locks(self) -> None:
        while self._held:
            self.locks.release(self._held.pop())

    def _publish(self) -> None:
        events, self._events = self._events, []
        if self.broadcaster is None or not events:
            return
        for event in events:
            try:
                self.broadcaster.publish(event)
            except Exception:
                logger.exception(f"Error publishing {event.event} after commit")

# backend/calendar_booking/services/locks.py
"""
Keyed mutex table.

One exclusive lock per named resource ("timeslot:<id>", "booking:<id>",
"timeslot-date:<YYYY-MM-DD>"). Only requests contending for the same key
wait on each other. Entries are reference counted and dropped once no
holder or waiter is left, so the table does not grow with history.

This is the in-process half of row locking: on PostgreSQL the unit of work
also issues SELECT ... FOR UPDATE, SQLite ignores it and relies on this table.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from ..errors import StorageFailure

logger = logging.getLogger(__name__)


def slot_key(timeslot_id: str) -> str:
    return f"timeslot:{timeslot_id}"


def booking_key(booking_id: str) -> str:
    return f"booking:{booking_id}"


def slot_date_key(slot_date: str) -> str:
    return f"timeslot-date:{slot_date}"


@dataclass
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class RowLockRegistry:
    """Process-wide table of named exclusive locks."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def acquire(self, key: str) -> None:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1

        timeout = -1 if self.timeout is None else self.timeout
        if not entry.lock.acquire(timeout=timeout):
            self._drop(key, entry)
            logger.warning(f"Lock wait timed out: {key}")
            raise StorageFailure(f"Timed out waiting for {key}")

    def release(self, key: str) -> None:
        with self._guard:
            entry = self._entries.get(key)
        if entry is None:
            raise RuntimeError(f"Lock {key} is not held")
        entry.lock.release()
        self._drop(key, entry)

    def _drop(self, key: str, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(key, None)

    def is_locked(self, key: str) -> bool:
        with self._guard:
            entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

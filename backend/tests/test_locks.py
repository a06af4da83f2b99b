import threading
import time

import pytest

from calendar_booking.errors import StorageFailure
from calendar_booking.services.locks import RowLockRegistry, booking_key, slot_date_key, slot_key


def test_key_helpers():
    assert slot_key("ts1") == "timeslot:ts1"
    assert booking_key("b1") == "booking:b1"
    assert slot_date_key("2023-10-15") == "timeslot-date:2023-10-15"


def test_same_key_blocks_until_release():
    locks = RowLockRegistry()
    locks.acquire("timeslot:ts1")

    acquired = threading.Event()

    def contender():
        locks.acquire("timeslot:ts1")
        acquired.set()
        locks.release("timeslot:ts1")

    t = threading.Thread(target=contender)
    t.start()
    assert not acquired.wait(0.2)

    locks.release("timeslot:ts1")
    assert acquired.wait(2)
    t.join(2)


def test_different_keys_do_not_contend():
    locks = RowLockRegistry()
    locks.acquire("timeslot:ts1")

    done = threading.Event()

    def other():
        locks.acquire("timeslot:ts2")
        locks.release("timeslot:ts2")
        done.set()

    t = threading.Thread(target=other)
    t.start()
    assert done.wait(2)
    t.join(2)
    locks.release("timeslot:ts1")


def test_entries_are_dropped_when_unused():
    locks = RowLockRegistry()
    locks.acquire("a")
    locks.acquire("b")
    assert len(locks) == 2
    assert locks.is_locked("a")
    locks.release("a")
    locks.release("b")
    assert len(locks) == 0
    assert not locks.is_locked("a")


def test_timeout_raises_storage_failure_and_cleans_up():
    locks = RowLockRegistry(timeout=0.05)
    locks.acquire("timeslot:ts1")

    errors = []

    def contender():
        try:
            locks.acquire("timeslot:ts1")
        except StorageFailure as e:
            errors.append(e)

    start = time.monotonic()
    t = threading.Thread(target=contender)
    t.start()
    t.join(2)
    assert time.monotonic() - start < 2
    assert len(errors) == 1

    locks.release("timeslot:ts1")
    assert len(locks) == 0


def test_release_of_unknown_key_is_an_error():
    with pytest.raises(RuntimeError):
        RowLockRegistry().release("nope")

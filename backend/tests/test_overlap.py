import pytest

from calendar_booking.errors import InvalidInput
from calendar_booking.services.overlap import (
    Candidate,
    find_overlap,
    intervals_overlap,
    overlaps,
    to_minutes,
    validate_date,
)

DAY = "2023-10-15"


def slot(start, end, day=DAY):
    return Candidate(day, start, end)


def test_adjacent_slots_do_not_overlap():
    assert not overlaps(slot("10:00", "10:30"), [slot("09:30", "10:00"), slot("10:30", "11:00")])


def test_partial_overlap_detected():
    assert overlaps(slot("09:45", "10:15"), [slot("09:30", "10:00")])


def test_containment_detected_both_ways():
    assert overlaps(slot("09:00", "12:00"), [slot("10:00", "10:30")])
    assert overlaps(slot("10:00", "10:30"), [slot("09:00", "12:00")])


def test_identical_interval_overlaps():
    assert overlaps(slot("09:30", "10:00"), [slot("09:30", "10:00")])


@pytest.mark.parametrize(
    "a, b",
    [
        (("09:00", "10:00"), ("09:30", "10:30")),
        (("09:00", "10:00"), ("10:00", "11:00")),
        (("09:00", "09:15"), ("12:00", "13:00")),
        (("08:00", "18:00"), ("12:00", "12:30")),
    ],
)
def test_overlap_is_symmetric(a, b):
    assert intervals_overlap(to_minutes(a[0]), to_minutes(a[1]), to_minutes(b[0]), to_minutes(b[1])) == \
        intervals_overlap(to_minutes(b[0]), to_minutes(b[1]), to_minutes(a[0]), to_minutes(a[1]))
    assert overlaps(slot(*a), [slot(*b)]) == overlaps(slot(*b), [slot(*a)])


def test_other_dates_are_ignored():
    assert not overlaps(slot("09:30", "10:00"), [slot("09:30", "10:00", day="2023-10-16")])


def test_find_overlap_returns_clashing_slot():
    ts2 = slot("09:30", "10:00")
    ts4 = slot("10:30", "11:00")
    assert find_overlap(slot("09:45", "10:15"), [ts4, ts2]) is ts2
    assert find_overlap(slot("10:00", "10:30"), [ts4, ts2]) is None


def test_empty_existing_never_overlaps():
    assert not overlaps(slot("00:00", "23:59"), [])


@pytest.mark.parametrize("value", ["9:30", "09:3", "0930", "24:00", "12:60", "", "ab:cd"])
def test_malformed_time_rejected(value):
    with pytest.raises(InvalidInput):
        to_minutes(value)


def test_end_must_be_after_start():
    with pytest.raises(InvalidInput):
        overlaps(slot("10:00", "10:00"), [])
    with pytest.raises(InvalidInput):
        overlaps(slot("11:00", "10:00"), [])


def test_validate_date():
    assert validate_date("2023-10-15") == "2023-10-15"
    for bad in ("2023-13-01", "15-10-2023", "2023/10/15", ""):
        with pytest.raises(InvalidInput):
            validate_date(bad)


@pytest.mark.parametrize("bad", ["2023-10-5", "2023-1-05", "23-10-05", " 2023-10-05", "2023-10-05\n"])
def test_validate_date_requires_zero_padding(bad):
    with pytest.raises(InvalidInput):
        validate_date(bad)

# backend/calendar_booking/services/overlap.py
"""
Interval overlap checks for time slots.

Slots are half-open intervals [start, end) on a calendar date.
Two slots on the same date overlap iff s1 < e2 and s2 < e1,
so back-to-back slots (end1 == start2) never conflict.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Protocol

from ..errors import InvalidInput

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")


class SlotLike(Protocol):
    slot_date: str
    start_time: str
    end_time: str


@dataclass(frozen=True)
class Candidate:
    """Prospective slot times, checked before anything is persisted."""
    slot_date: str
    start_time: str
    end_time: str


def validate_date(value: str) -> str:
    """Validate YYYY-MM-DD, zero-padded, so one calendar day has one spelling."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise InvalidInput(f"Date must be in YYYY-MM-DD format: {value!r}")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise InvalidInput(f"Date must be in YYYY-MM-DD format: {value!r}") from None
    return value


def to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    match = _TIME_RE.match(value or "")
    if not match:
        raise InvalidInput(f"Time must be in HH:MM format: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidInput(f"Time out of range: {value!r}")
    return hour * 60 + minute


def validate_interval(start_time: str, end_time: str) -> tuple[int, int]:
    start, end = to_minutes(start_time), to_minutes(end_time)
    if end <= start:
        raise InvalidInput("end_time must be later than start_time")
    return start, end


def intervals_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    return start1 < end2 and start2 < end1


def overlaps(candidate: SlotLike, existing: Iterable[SlotLike]) -> bool:
    return find_overlap(candidate, existing) is not None


def find_overlap(candidate: SlotLike, existing: Iterable[SlotLike]) -> Optional[SlotLike]:
    """
    Return the first existing slot that overlaps the candidate, or None.

    Slots on other dates are ignored. Booked and free slots count alike.
    """
    start, end = validate_interval(candidate.start_time, candidate.end_time)
    for slot in existing:
        if slot.slot_date != candidate.slot_date:
            continue
        other_start, other_end = to_minutes(slot.start_time), to_minutes(slot.end_time)
        if intervals_overlap(start, end, other_start, other_end):
            return slot
    return None

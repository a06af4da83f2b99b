# backend/calendar_booking/services/slot_store.py
"""
Slot Store — CRUD over time slots.

Reads run on the plain session. Writes and locked reads take the caller's
UnitOfWork: they acquire the named locks, stage changes and queue events,
the unit of work commits.

Deleted slots (deleted_at set) are invisible everywhere here.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ..errors import Conflict, InvalidInput, NotFound
from ..models import BOOKING_ACTIVE, Bookings as DBBooking, Timeslots as DBTimeslot
from .events import timeslot_deleted_event, timeslot_event
from .locks import slot_date_key, slot_key
from .overlap import Candidate, find_overlap, validate_date, validate_interval
from .uow import UnitOfWork

logger = logging.getLogger(__name__)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SlotStore:
    def __init__(self, session: Session):
        self.session = session

    def _live(self):
        return self.session.query(DBTimeslot).filter(DBTimeslot.deleted_at.is_(None))

    # ── Read ─────────────────────────────────────────────────────────────

    def get(self, timeslot_id: str) -> DBTimeslot:
        slot = self._live().filter(DBTimeslot.timeslot_id == timeslot_id).first()
        if not slot:
            raise NotFound("Timeslot not found")
        return slot

    def list_by_date(self, slot_date: str) -> list[DBTimeslot]:
        validate_date(slot_date)
        return (
            self._live()
            .filter(DBTimeslot.slot_date == slot_date)
            .order_by(DBTimeslot.start_time.asc())
            .all()
        )

    def aggregate_by_month(self, year: int, month: int) -> list[dict]:
        """
        Per-date slot counts for one month.

        Dates without slots are absent from the result, not zero-filled.
        """
        if not 1 <= month <= 12:
            raise InvalidInput("month must be between 1 and 12")
        if not 1 <= year <= 9999:
            raise InvalidInput("year must be between 1 and 9999")

        pattern = f"{year:04d}-{month:02d}-%"
        booked = func.sum(case((DBTimeslot.is_booked.is_(True), 1), else_=0))
        rows = (
            self.session.query(
                DBTimeslot.slot_date,
                func.count(DBTimeslot.timeslot_id).label("total_slots"),
                booked.label("booked_slots"),
            )
            .filter(DBTimeslot.deleted_at.is_(None))
            .filter(DBTimeslot.slot_date.like(pattern))
            .group_by(DBTimeslot.slot_date)
            .order_by(DBTimeslot.slot_date.asc())
            .all()
        )

        result = []
        for slot_date, total, booked_count in rows:
            total = int(total or 0)
            booked_count = int(booked_count or 0)
            result.append({
                "slot_date": slot_date,
                "total_slots": total,
                "booked_slots": booked_count,
                "available": total - booked_count > 0,
            })
        return result

    def has_active_booking(self, timeslot_id: str) -> bool:
        return (
            self.session.query(DBBooking.booking_id)
            .filter(
                DBBooking.timeslot_id == timeslot_id,
                DBBooking.booking_status == BOOKING_ACTIVE,
            )
            .first()
            is not None
        )

    # ── Locked read ──────────────────────────────────────────────────────

    def fetch_for_update(self, uow: UnitOfWork, timeslot_id: str) -> DBTimeslot:
        """
        Lock the slot for the rest of the transaction and return it.

        Concurrent callers on the same id wait here until the holder
        commits or rolls back.
        """
        uow.lock(slot_key(timeslot_id))
        slot = (
            self._live()
            .filter(DBTimeslot.timeslot_id == timeslot_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not slot:
            raise NotFound("Timeslot not found")
        return slot

    # ── Write ────────────────────────────────────────────────────────────

    def _check_overlap(self, candidate: Candidate, exclude_id: Optional[str] = None) -> None:
        existing = [
            s for s in self._live().filter(DBTimeslot.slot_date == candidate.slot_date).all()
            if s.timeslot_id != exclude_id
        ]
        clash = find_overlap(candidate, existing)
        if clash is not None:
            logger.info(
                f"Overlap on {candidate.slot_date}: "
                f"{candidate.start_time}-{candidate.end_time} vs "
                f"{clash.timeslot_id} {clash.start_time}-{clash.end_time}"
            )
            raise Conflict("Overlapping timeslot exists")

    def create(self, uow: UnitOfWork, slot_date: str, start_time: str, end_time: str) -> DBTimeslot:
        validate_date(slot_date)
        validate_interval(start_time, end_time)

        uow.lock(slot_date_key(slot_date))
        self._check_overlap(Candidate(slot_date, start_time, end_time))

        slot = DBTimeslot(
            timeslot_id=str(uuid.uuid4()),
            slot_date=slot_date,
            start_time=start_time,
            end_time=end_time,
            is_booked=False,
        )
        self.session.add(slot)
        uow.emit(timeslot_event(slot))
        return slot

    def update_times(
        self,
        uow: UnitOfWork,
        timeslot_id: str,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
    ) -> DBTimeslot:
        """Move a slot; a missing bound keeps its current value."""
        if not start_time and not end_time:
            raise InvalidInput("At least one field (start_time or end_time) is required to update")

        # slot_date never changes, so it is safe to read it before locking
        current = self.get(timeslot_id)
        uow.lock(slot_date_key(current.slot_date))
        slot = self.fetch_for_update(uow, timeslot_id)

        candidate = Candidate(
            slot.slot_date,
            start_time or slot.start_time,
            end_time or slot.end_time,
        )
        validate_interval(candidate.start_time, candidate.end_time)
        self._check_overlap(candidate, exclude_id=slot.timeslot_id)

        slot.start_time = candidate.start_time
        slot.end_time = candidate.end_time
        uow.emit(timeslot_event(slot))
        return slot

    def delete(self, uow: UnitOfWork, timeslot_id: str) -> None:
        current = self.get(timeslot_id)
        uow.lock(slot_date_key(current.slot_date))
        slot = self.fetch_for_update(uow, timeslot_id)

        if slot.is_booked or self.has_active_booking(slot.timeslot_id):
            raise Conflict("Cannot delete timeslot with active booking")

        slot.deleted_at = utcnow_iso()
        uow.emit(timeslot_deleted_event(slot.timeslot_id))

# backend/calendar_booking/services/queries.py
"""
Read side: calendar rollup, per-day slots, admin booking listing.

Plain reads at the store's default consistency, no locks taken.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ..errors import InvalidInput
from ..models import (
    BOOKING_ACTIVE,
    BOOKING_CANCELED,
    Bookings as DBBooking,
    Timeslots as DBTimeslot,
)
from .overlap import validate_date
from .slot_store import SlotStore


class QueryService:
    def __init__(self, session: Session):
        self.session = session
        self.slots = SlotStore(session)

    def calendar(self, year: int, month: int) -> list[dict]:
        return self.slots.aggregate_by_month(year, month)

    def day_slots(self, slot_date: str) -> list[DBTimeslot]:
        return self.slots.list_by_date(slot_date)

    def admin_bookings(
        self,
        slot_date: Optional[str] = None,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[dict]:
        """
        Bookings joined with their slot, oldest first.

        slot_date and status are exact matches done in SQL; search is a
        case-insensitive substring of full_name or email applied afterwards.
        """
        query = (
            self.session.query(DBBooking, DBTimeslot)
            .join(DBTimeslot, DBBooking.timeslot_id == DBTimeslot.timeslot_id)
        )
        if slot_date:
            validate_date(slot_date)
            query = query.filter(DBTimeslot.slot_date == slot_date)
        if status:
            if status not in (BOOKING_ACTIVE, BOOKING_CANCELED):
                raise InvalidInput(f"Unknown booking status: {status}")
            query = query.filter(DBBooking.booking_status == status)

        rows = query.order_by(DBBooking.created_at.asc(), DBBooking.booking_id.asc()).all()

        items = [
            {
                "booking_id": b.booking_id,
                "timeslot_id": b.timeslot_id,
                "full_name": b.full_name,
                "email": b.email,
                "phone": b.phone,
                "appointment_notes": b.appointment_notes,
                "booking_status": b.booking_status,
                "created_at": b.created_at,
                "slot_date": t.slot_date,
                "start_time": t.start_time,
                "end_time": t.end_time,
            }
            for b, t in rows
        ]

        if search:
            needle = search.strip().lower()
            items = [
                item for item in items
                if needle in item["full_name"].lower() or needle in item["email"].lower()
            ]
        return items

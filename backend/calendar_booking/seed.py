# backend/calendar_booking/seed.py
"""
Demo calendar: two days in October 2023, three bookings, three admins.

ts1, ts3 are booked (booking1, booking2 active); booking3 on ts7 is
canceled, so ts7 is free again.
"""

import logging

from sqlalchemy.orm import Session

from .auth import hash_password
from .models import AdminUsers as DBAdmin, Bookings as DBBooking, Timeslots as DBTimeslot

logger = logging.getLogger(__name__)

DEMO_ADMINS = [
    ("admin1", "admin1", "password1", "2023-10-01 10:00:00"),
    ("admin2", "admin2", "password2", "2023-10-02 11:00:00"),
    ("admin3", "admin3", "password3", "2023-10-03 12:00:00"),
]

DEMO_TIMESLOTS = [
    ("ts1", "2023-10-15", "09:00", "09:30", True),
    ("ts2", "2023-10-15", "09:30", "10:00", False),
    ("ts3", "2023-10-15", "10:00", "10:30", True),
    ("ts4", "2023-10-15", "10:30", "11:00", False),
    ("ts5", "2023-10-16", "11:00", "11:30", False),
    ("ts6", "2023-10-16", "11:30", "12:00", False),
    ("ts7", "2023-10-16", "12:00", "12:30", False),
]

DEMO_BOOKINGS = [
    ("booking1", "ts1", "Alice Johnson", "alice.johnson@gmail.com", "555-1234",
     "Consultation appointment", "active", "2023-10-15 08:55:00"),
    ("booking2", "ts3", "Bob Smith", "bob.smith@gmail.com", None,
     "Follow up consultation", "active", "2023-10-15 09:55:00"),
    ("booking3", "ts7", "Charlie Davis", "charlie.davis@example.net", "555-5678",
     "Initial appointment request", "canceled", "2023-10-16 11:55:00"),
]


def seed_demo_data(db: Session) -> None:
    """Insert the demo rows. Skips silently when ts1 already exists."""
    if db.get(DBTimeslot, "ts1") is not None:
        logger.info("Demo data already present, skipping")
        return

    for admin_id, username, password, created_at in DEMO_ADMINS:
        db.add(DBAdmin(
            admin_id=admin_id,
            username=username,
            password_hash=hash_password(password),
            created_at=created_at,
        ))

    for timeslot_id, slot_date, start, end, is_booked in DEMO_TIMESLOTS:
        db.add(DBTimeslot(
            timeslot_id=timeslot_id,
            slot_date=slot_date,
            start_time=start,
            end_time=end,
            is_booked=is_booked,
        ))
    db.flush()

    for booking_id, timeslot_id, name, email, phone, notes, status, created_at in DEMO_BOOKINGS:
        db.add(DBBooking(
            booking_id=booking_id,
            timeslot_id=timeslot_id,
            full_name=name,
            email=email,
            phone=phone,
            appointment_notes=notes,
            booking_status=status,
            created_at=created_at,
        ))

    db.commit()
    logger.info(
        f"Seeded {len(DEMO_TIMESLOTS)} timeslots, {len(DEMO_BOOKINGS)} bookings, "
        f"{len(DEMO_ADMINS)} admins"
    )

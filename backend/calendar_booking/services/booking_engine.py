# backend/calendar_booking/services/booking_engine.py
"""
Booking transaction engine.

The only writer of booking_status and of timeslots.is_booked. Every
operation is one UnitOfWork: lock → validate → write → commit → release
locks → publish events. Nothing is published on rollback.

Invariant kept at every commit:
    slot.is_booked  ⇔  an 'active' booking references the slot

Lock order (no cycles):
    timeslot-date:<date> → timeslot:<id>
    booking:<id>         → timeslot:<id>
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import Conflict, InvalidInput, NotFound
from ..models import (
    BOOKING_ACTIVE,
    BOOKING_CANCELED,
    Bookings as DBBooking,
    Timeslots as DBTimeslot,
)
from .events import EventBroadcaster, booking_event, timeslot_event
from .locks import RowLockRegistry, booking_key, slot_key
from .slot_store import SlotStore, utcnow_iso
from .uow import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingConfirmation:
    booking_id: str
    booking_details: dict = field(default_factory=dict)


def _required(name: str, value: Optional[str]) -> str:
    if value is None or not str(value).strip():
        raise InvalidInput(f"Missing required field: {name}")
    return str(value).strip()


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class BookingEngine:
    def __init__(
        self,
        session: Session,
        locks: RowLockRegistry,
        broadcaster: Optional[EventBroadcaster] = None,
    ):
        self.session = session
        self.locks = locks
        self.broadcaster = broadcaster
        self.slots = SlotStore(session)

    def _uow(self) -> UnitOfWork:
        return UnitOfWork(self.session, self.locks, self.broadcaster)

    # ──────────────────────────────────────────────────────────────────────
    # Bookings
    # ──────────────────────────────────────────────────────────────────────

    def create_booking(
        self,
        timeslot_id: str,
        full_name: str,
        email: str,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> BookingConfirmation:
        """
        Reserve a free slot.

        Raises:
            InvalidInput: timeslot_id / full_name / email empty
            NotFound: slot unknown or deleted
            Conflict: slot already booked
        """
        timeslot_id = _required("timeslot_id", timeslot_id)
        full_name = _required("full_name", full_name)
        email = _required("email", email)

        with self._uow() as uow:
            slot = self.slots.fetch_for_update(uow, timeslot_id)
            if slot.is_booked:
                logger.info(f"Booking rejected, timeslot {timeslot_id} already booked")
                raise Conflict("Timeslot already booked")

            slot.is_booked = True

            booking = DBBooking(
                booking_id=str(uuid.uuid4()),
                timeslot_id=slot.timeslot_id,
                full_name=full_name,
                email=email,
                phone=_optional(phone),
                appointment_notes=_optional(notes),
                booking_status=BOOKING_ACTIVE,
                created_at=utcnow_iso(),
            )
            self.session.add(booking)

            uow.emit(timeslot_event(slot))
            uow.emit(booking_event(booking))

        logger.info(f"Booking {booking.booking_id} created for timeslot {slot.timeslot_id}")

        return BookingConfirmation(
            booking_id=booking.booking_id,
            booking_details={
                "timeslot_id": slot.timeslot_id,
                "full_name": full_name,
                "email": email,
                "slot_date": slot.slot_date,
                "start_time": slot.start_time,
                "end_time": slot.end_time,
            },
        )

    def cancel_booking(self, booking_id: str) -> DBBooking:
        """
        Cancel an active booking and free its slot.

        Not idempotent: a second call raises Conflict and changes nothing.
        """
        booking_id = _required("booking_id", booking_id)

        with self._uow() as uow:
            uow.lock(booking_key(booking_id))
            booking = (
                self.session.query(DBBooking)
                .filter(DBBooking.booking_id == booking_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
            if not booking:
                raise NotFound("Booking not found")
            if booking.booking_status == BOOKING_CANCELED:
                raise Conflict("Booking is already canceled")

            slot = self._lock_slot_row(uow, booking.timeslot_id)

            booking.booking_status = BOOKING_CANCELED
            slot.is_booked = False

            uow.emit(booking_event(booking))
            uow.emit(timeslot_event(slot))

        logger.info(f"Booking {booking_id} canceled, timeslot {booking.timeslot_id} freed")
        return booking

    def _lock_slot_row(self, uow: UnitOfWork, timeslot_id: str) -> DBTimeslot:
        # An active booking's slot is never soft-deleted, so no deleted_at filter
        uow.lock(slot_key(timeslot_id))
        slot = (
            self.session.query(DBTimeslot)
            .filter(DBTimeslot.timeslot_id == timeslot_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not slot:
            raise NotFound("Timeslot not found")
        return slot

    # ──────────────────────────────────────────────────────────────────────
    # Slot administration
    # ──────────────────────────────────────────────────────────────────────

    def create_slot(self, slot_date: str, start_time: str, end_time: str) -> DBTimeslot:
        slot_date = _required("slot_date", slot_date)
        start_time = _required("start_time", start_time)
        end_time = _required("end_time", end_time)

        with self._uow() as uow:
            slot = self.slots.create(uow, slot_date, start_time, end_time)

        logger.info(f"Timeslot {slot.timeslot_id} created: {slot_date} {start_time}-{end_time}")
        return slot

    def update_slot(
        self,
        timeslot_id: str,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
    ) -> DBTimeslot:
        with self._uow() as uow:
            slot = self.slots.update_times(
                uow, timeslot_id, _optional(start_time), _optional(end_time)
            )

        logger.info(f"Timeslot {timeslot_id} moved to {slot.start_time}-{slot.end_time}")
        return slot

    def delete_slot(self, timeslot_id: str) -> None:
        with self._uow() as uow:
            self.slots.delete(uow, timeslot_id)

        logger.info(f"Timeslot {timeslot_id} deleted")

# backend/calendar_booking/schemas/bookings.py

from typing import Optional
from pydantic import BaseModel


class BookingCreate(BaseModel):
    timeslot_id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    appointment_notes: Optional[str] = None


class BookingDetails(BaseModel):
    timeslot_id: str
    full_name: str
    email: str
    slot_date: str
    start_time: str
    end_time: str


class BookingCreated(BaseModel):
    booking_id: str
    message: str = "Booking confirmed"
    booking_details: BookingDetails


class AdminBookingRead(BaseModel):
    """Booking joined with its slot."""
    booking_id: str
    timeslot_id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    appointment_notes: Optional[str] = None
    booking_status: str
    created_at: str

    slot_date: str
    start_time: str
    end_time: str

    model_config = {"from_attributes": True}

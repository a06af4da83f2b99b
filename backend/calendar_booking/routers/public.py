# backend/calendar_booking/routers/public.py
"""
Public API endpoints.

GET  /api/calendar  - monthly availability rollup
GET  /api/timeslots - all slots of one date
POST /api/bookings  - reserve a slot
"""

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_engine, get_queries
from ..schemas.bookings import BookingCreate, BookingCreated, BookingDetails
from ..schemas.timeslots import CalendarDay, TimeslotRead
from ..services import BookingEngine, QueryService

router = APIRouter(prefix="/api", tags=["public"])


@router.get("/calendar", response_model=list[CalendarDay])
def get_calendar(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=1, le=9999),
    queries: QueryService = Depends(get_queries),
):
    """Dates of the month that have slots; dates without slots are omitted."""
    return queries.calendar(year, month)


@router.get("/timeslots", response_model=list[TimeslotRead])
def get_timeslots(
    slot_date: str = Query(..., description="Date in YYYY-MM-DD format"),
    queries: QueryService = Depends(get_queries),
):
    return queries.day_slots(slot_date)


@router.post("/bookings", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    engine: BookingEngine = Depends(get_engine),
):
    confirmation = engine.create_booking(
        timeslot_id=data.timeslot_id,
        full_name=data.full_name,
        email=data.email,
        phone=data.phone,
        notes=data.appointment_notes,
    )
    return BookingCreated(
        booking_id=confirmation.booking_id,
        booking_details=BookingDetails(**confirmation.booking_details),
    )

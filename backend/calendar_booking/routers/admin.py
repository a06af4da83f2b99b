# backend/calendar_booking/routers/admin.py
"""
Admin API — slot management and booking oversight.

Everything except /login requires a bearer token from /login.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from ..auth import AdminIdentity, authenticate_admin, create_access_token, get_current_admin
from ..dependencies import get_db, get_engine, get_queries
from ..schemas.admin import AdminLogin, AdminToken, MessageResponse
from ..schemas.bookings import AdminBookingRead
from ..schemas.timeslots import TimeslotCreate, TimeslotCreated, TimeslotUpdate
from ..services import BookingEngine, QueryService

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/login", response_model=AdminToken)
def login(
    data: AdminLogin,
    request: Request,
    db: Session = Depends(get_db),
):
    if not data.username or not data.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing username or password",
        )

    admin = authenticate_admin(db, data.username, data.password)
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    token = create_access_token(admin, request.app.state.settings)
    return AdminToken(admin_id=admin.admin_id, token=token)


# ──────────────────────────────────────────────────────────────────────────────
# Timeslots
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/timeslots", response_model=TimeslotCreated, status_code=status.HTTP_201_CREATED)
def create_timeslot(
    data: TimeslotCreate,
    engine: BookingEngine = Depends(get_engine),
    admin: AdminIdentity = Depends(get_current_admin),
):
    slot = engine.create_slot(data.slot_date, data.start_time, data.end_time)
    return TimeslotCreated(timeslot_id=slot.timeslot_id)


@router.put("/timeslots/{timeslot_id}", response_model=MessageResponse)
def update_timeslot(
    timeslot_id: str,
    data: TimeslotUpdate,
    engine: BookingEngine = Depends(get_engine),
    admin: AdminIdentity = Depends(get_current_admin),
):
    engine.update_slot(timeslot_id, data.start_time, data.end_time)
    return MessageResponse(message="Timeslot updated successfully")


@router.delete("/timeslots/{timeslot_id}", response_model=MessageResponse)
def delete_timeslot(
    timeslot_id: str,
    engine: BookingEngine = Depends(get_engine),
    admin: AdminIdentity = Depends(get_current_admin),
):
    engine.delete_slot(timeslot_id)
    return MessageResponse(message="Timeslot deleted successfully")


# ──────────────────────────────────────────────────────────────────────────────
# Bookings
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/bookings", response_model=list[AdminBookingRead])
def list_bookings(
    slot_date: Optional[str] = None,
    search: Optional[str] = Query(None, description="Substring of name or email"),
    booking_status: Optional[str] = Query(None, alias="status"),
    queries: QueryService = Depends(get_queries),
    admin: AdminIdentity = Depends(get_current_admin),
):
    """Ordered by created_at ASC (oldest first)."""
    return queries.admin_bookings(slot_date=slot_date, search=search, status=booking_status)


@router.put("/bookings/{booking_id}/cancel", response_model=MessageResponse)
def cancel_booking(
    booking_id: str,
    engine: BookingEngine = Depends(get_engine),
    admin: AdminIdentity = Depends(get_current_admin),
):
    engine.cancel_booking(booking_id)
    return MessageResponse(message="Booking canceled and timeslot updated successfully")

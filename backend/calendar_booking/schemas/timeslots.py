# backend/calendar_booking/schemas/timeslots.py

from typing import Optional
from pydantic import BaseModel, Field


class CalendarDay(BaseModel):
    """Rollup of one date in the monthly calendar."""
    slot_date: str
    total_slots: int
    booked_slots: int
    available: bool

    model_config = {"from_attributes": True}


class TimeslotRead(BaseModel):
    timeslot_id: str
    slot_date: str
    start_time: str
    end_time: str
    is_booked: bool

    model_config = {"from_attributes": True}


class TimeslotCreate(BaseModel):
    slot_date: str = Field(description="Date in YYYY-MM-DD format")
    start_time: str = Field(description="Time in HH:MM format")
    end_time: str = Field(description="Time in HH:MM format, exclusive")


class TimeslotUpdate(BaseModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class TimeslotCreated(BaseModel):
    timeslot_id: str
    message: str = "Timeslot added successfully"

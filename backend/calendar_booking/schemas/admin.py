# backend/calendar_booking/schemas/admin.py

from pydantic import BaseModel


class AdminLogin(BaseModel):
    username: str
    password: str


class AdminToken(BaseModel):
    admin_id: str
    token: str
    message: str = "Login successful"


class MessageResponse(BaseModel):
    message: str

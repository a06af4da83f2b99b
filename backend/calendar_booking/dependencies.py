# backend/calendar_booking/dependencies.py
"""
FastAPI dependencies.

Process-scoped objects (session factory, lock table, broadcaster) live on
app.state and are created in the lifespan; request-scoped services are
built on top of them here.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .services import BookingEngine, EventBroadcaster, QueryService, RowLockRegistry


def get_db(request: Request):
    db: Session = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_locks(request: Request) -> RowLockRegistry:
    return request.app.state.locks


def get_broadcaster(request: Request) -> EventBroadcaster:
    return request.app.state.broadcaster


def get_engine(
    db: Session = Depends(get_db),
    locks: RowLockRegistry = Depends(get_locks),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
) -> BookingEngine:
    return BookingEngine(db, locks, broadcaster)


def get_queries(db: Session = Depends(get_db)) -> QueryService:
    return QueryService(db)

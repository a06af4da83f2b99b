"""
Booking core services.

overlap        — half-open interval checks
slot_store     — slot CRUD, locked slot fetch
booking_engine — atomic book / cancel, admin slot writes
queries        — calendar, day slots, admin listing
events         — post-commit fan-out to real-time subscribers
"""

from .booking_engine import BookingConfirmation, BookingEngine
from .events import Event, EventBroadcaster, Subscription
from .locks import RowLockRegistry
from .overlap import Candidate, overlaps
from .queries import QueryService
from .slot_store import SlotStore
from .uow import UnitOfWork

__all__ = [
    "BookingConfirmation",
    "BookingEngine",
    "Candidate",
    "Event",
    "EventBroadcaster",
    "QueryService",
    "RowLockRegistry",
    "SlotStore",
    "Subscription",
    "UnitOfWork",
    "overlaps",
]

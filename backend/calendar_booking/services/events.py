"""
backend/calendar_booking/services/events.py

Real-time fan-out of committed state changes.

Two event types go to every connected subscriber:
- timeslot_update — slot snapshot, or {timeslot_id, deleted: true}
- booking_update  — {booking_id, timeslot_id, booking_status}

Single process: publish() hands the event straight to the local
subscriber queues. With Redis configured, publish() goes to the
`events:calendar` pub/sub channel and redis_relay_loop() feeds it back
into the local queues of every worker, so all processes see all events.

Delivery is best-effort. Offline subscribers miss events; nothing is
persisted or replayed.
"""

import asyncio
import json
import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

import redis.asyncio as aioredis
from redis import Redis

logger = logging.getLogger(__name__)

TIMESLOT_UPDATE = "timeslot_update"
BOOKING_UPDATE = "booking_update"

EVENTS_CHANNEL = "events:calendar"
RELAY_RETRY_SECONDS = 2


@dataclass(frozen=True)
class Event:
    event: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.event, "data": self.data}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, raw: str) -> "Event":
        payload = json.loads(raw)
        return cls(event=payload["event"], data=payload.get("data") or {})


def timeslot_event(slot) -> Event:
    return Event(TIMESLOT_UPDATE, {
        "timeslot_id": slot.timeslot_id,
        "slot_date": slot.slot_date,
        "start_time": slot.start_time,
        "end_time": slot.end_time,
        "is_booked": bool(slot.is_booked),
    })


def timeslot_deleted_event(timeslot_id: str) -> Event:
    return Event(TIMESLOT_UPDATE, {"timeslot_id": timeslot_id, "deleted": True})


def booking_event(booking) -> Event:
    return Event(BOOKING_UPDATE, {
        "booking_id": booking.booking_id,
        "timeslot_id": booking.timeslot_id,
        "booking_status": booking.booking_status,
    })


class Subscription:
    """
    Handle returned by EventBroadcaster.subscribe().

    Owns an asyncio queue on the subscriber's event loop; deliver() may be
    called from any thread.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = 100):
        self.id = uuid.uuid4().hex
        self._loop = loop
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def deliver(self, event: Event) -> None:
        try:
            self._loop.call_soon_threadsafe(self._put, event)
        except RuntimeError:
            # loop already closed — subscriber is gone
            self.dropped += 1
            logger.warning(f"Subscriber {self.id} loop closed, dropped {event.event}")

    def _put(self, event: Event) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(f"Subscriber {self.id} queue full, dropped {event.event}")

    async def get(self) -> Event:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()


class EventBroadcaster:
    """Process-wide publish/subscribe hub for real-time clients."""

    def __init__(self, redis: Optional[Redis] = None, queue_size: int = 100):
        self.redis = redis
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._subscribers: dict[str, Subscription] = {}

    # ── Subscribers ──────────────────────────────────────────────────────

    def subscribe(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> Subscription:
        sub = Subscription(loop or asyncio.get_running_loop(), self.queue_size)
        with self._lock:
            self._subscribers[sub.id] = sub
        logger.info(f"Subscriber connected: {sub.id} (total {self.subscriber_count})")
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            removed = self._subscribers.pop(sub.id, None)
        if removed is not None:
            logger.info(f"Subscriber disconnected: {sub.id} (total {self.subscriber_count})")

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    # ── Publish ──────────────────────────────────────────────────────────

    def publish(self, event: Event) -> None:
        """
        Publish one event. Never raises: a failed publish is logged and
        the event is lost, the caller's transaction is already committed.
        """
        if self.redis is None:
            self.deliver_local(event)
            return

        try:
            self.redis.publish(EVENTS_CHANNEL, event.to_json())
            logger.info(f"Event emitted: {event.event} → {EVENTS_CHANNEL}")
        except Exception as e:
            logger.error(f"Failed to emit event {event.event}: {e}")

    def deliver_local(self, event: Event) -> None:
        with self._lock:
            subscribers = list(self._subscribers.values())
        for sub in subscribers:
            sub.deliver(event)
        logger.debug(f"Event {event.event} delivered to {len(subscribers)} subscribers")

    def close(self) -> None:
        with self._lock:
            self._subscribers.clear()


async def _close_pubsub(pubsub) -> None:
    if pubsub is None:
        return
    try:
        await pubsub.aclose()
    except Exception as e:
        logger.warning(f"Failed to close pubsub: {e!r}")


async def redis_relay_loop(redis_url: str, broadcaster: EventBroadcaster) -> None:
    """
    Forward events from the Redis channel to local subscribers.

    Started as an asyncio task in the app lifespan when REDIS_URL is set.
    Runs until cancelled: a failed subscribe or read drops the pubsub
    connection and subscribes again after RELAY_RETRY_SECONDS.
    """
    r = aioredis.from_url(redis_url, decode_responses=True)
    pubsub = None
    logger.info("redis_relay_loop started")

    try:
        while True:
            try:
                if pubsub is None:
                    pubsub = r.pubsub()
                    await pubsub.subscribe(EVENTS_CHANNEL)
                    logger.info(f"redis_relay_loop subscribed to {EVENTS_CHANNEL}")

                message = await pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=5.0
                )
                if message is None:
                    continue

                try:
                    event = Event.from_json(message["data"])
                except (json.JSONDecodeError, KeyError, TypeError):
                    logger.error(f"Invalid event on {EVENTS_CHANNEL}: {str(message['data'])[:200]}")
                    continue

                broadcaster.deliver_local(event)

            except asyncio.CancelledError:
                logger.info("redis_relay_loop cancelled")
                raise
            except Exception:
                logger.exception(f"redis_relay_loop error, retrying in {RELAY_RETRY_SECONDS}s")
                await _close_pubsub(pubsub)
                pubsub = None
                await asyncio.sleep(RELAY_RETRY_SECONDS)
    finally:
        await _close_pubsub(pubsub)
        await r.aclose()

"""
backend/washbook/services/events.py

Event emitter: pushes booking events to a Redis queue for notification
consumers (e-mail, messenger bots). Delivery is not our concern here.

Queue: events:p2p
Types: booking_created, booking_status_changed, booking_cancelled
"""

import json
import time
import logging

from redis import Redis

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict, redis: Redis | None = None) -> None:
    """
    Emit a p2p event (instant delivery).

    Fire-and-forget: a Redis failure is logged, never raised.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        (redis or redis_client).rpush(P2P_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")


def booking_payload(booking) -> dict:
    return {
        "booking_id": booking.id,
        "tenant_id": booking.tenant_id,
        "customer_id": booking.customer_id,
        "slot_id": booking.time_slot_id,
        "date": booking.booking_date.isoformat(),
        "start_time": booking.start_time.strftime("%H:%M"),
        "status": booking.status,
    }

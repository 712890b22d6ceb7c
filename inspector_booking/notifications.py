# inspector_booking/notifications.py
"""
Booking lifecycle events for downstream collaborators (email, SMS, calendar sync).

Sinks are told after the booking is committed and its transaction closed.
A failing sink is logged and skipped: it can never undo or block a booking.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import List

from inspector_booking.models import Booking

logger = logging.getLogger(__name__)

BOOKING_CREATED = "booking.created"
BOOKING_STATUS_CHANGED = "booking.status_changed"


class NotificationSink(ABC):
    @abstractmethod
    def send(self, event_type: str, payload: dict) -> None:
        ...


class LoggingSink(NotificationSink):
    def send(self, event_type: str, payload: dict) -> None:
        logger.info(f"Event emitted: {event_type} booking={payload.get('booking_id')}")


_sinks: List[NotificationSink] = [LoggingSink()]


def register_sink(sink: NotificationSink) -> None:
    _sinks.append(sink)


def unregister_sink(sink: NotificationSink) -> None:
    if sink in _sinks:
        _sinks.remove(sink)


def booking_payload(booking: Booking, **extra) -> dict:
    return {
        "booking_id": booking.id,
        "inspector_id": booking.inspector_id,
        "status": booking.status,
        "booking_date": booking.booking_date.isoformat(),
        "booking_time": booking.booking_time.strftime("%H:%M"),
        "duration_minutes": booking.duration_minutes,
        **extra,
    }


def emit_booking_event(event_type: str, payload: dict) -> None:
    event = {**payload, "ts": int(time.time())}
    for sink in list(_sinks):
        try:
            sink.send(event_type, event)
        except Exception:
            logger.exception(f"Notification sink {type(sink).__name__} failed for {event_type}")

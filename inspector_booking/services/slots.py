# inspector_booking/services/slots.py
"""
Bookable slot calculation.

Weekly windows are expanded into concrete dates on every call; nothing is
cached, so a configuration change is visible on the next query.

Per date:
  1. active windows for the weekday
  2. whole-day blackout exclusion
  3. non-cancelled bookings, widened by the buffer on both sides
  4. windows minus bookings -> free pieces, too-short pieces dropped
  5. free pieces sliced into fixed-duration slots
  6. earliest slots kept, at most max_daily_bookings per date

The same rules back `check_slot_available`, which the allocator runs again
at commit time.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlmodel import Session, select

from inspector_booking.core import (
    Interval,
    blackout_covers,
    booking_interval,
    day_of_week,
    slice_slots,
    subtract,
    window_interval,
)
from inspector_booking.errors import SlotUnavailable, ValidationError
from inspector_booking.models import AvailabilityWindow, BlackoutDate, Booking, InspectorSettings
from inspector_booking.schemas import MAX_BOOKING_MINUTES, MIN_BOOKING_MINUTES, BookingStatus, Slot
from inspector_booking.services.calendar import (
    get_availability,
    get_inspector_settings,
    list_blackouts,
)


def load_active_bookings(session: Session, inspector_id: int, first_day: date, last_day: date) -> List[Booking]:
    return list(
        session.exec(
            select(Booking)
            .where(Booking.inspector_id == inspector_id)
            .where(Booking.status != BookingStatus.cancelled.value)
            .where(Booking.booking_date >= first_day)
            .where(Booking.booking_date <= last_day)
            .order_by(Booking.booking_date, Booking.booking_time)
        ).all()
    )


def occupied_intervals(bookings: List[Booking], buffer_minutes: int) -> List[Interval]:
    return [
        booking_interval(b.booking_date, b.booking_time, b.duration_minutes).expand(buffer_minutes)
        for b in bookings
    ]


def is_blacked_out(blackouts: List[BlackoutDate], on_date: date) -> bool:
    return any(blackout_covers(b.start_date, b.end_date, b.recurring, on_date) for b in blackouts)


def booking_horizon(settings: InspectorSettings, now: datetime) -> datetime:
    return now + timedelta(days=settings.advance_booking_days)


def _day_slots(
    on_date: date,
    windows: List[AvailabilityWindow],
    blackouts: List[BlackoutDate],
    bookings: List[Booking],
    settings: InspectorSettings,
    duration_minutes: int,
    now: datetime,
) -> List[Slot]:
    # 1) Windows for this weekday
    day_windows = [w for w in windows if w.day_of_week == day_of_week(on_date)]
    if not day_windows:
        return []

    # 2) Full-day blackout
    if is_blacked_out(blackouts, on_date):
        return []

    # 3) Occupied time, buffer included
    occupied = occupied_intervals(bookings, settings.buffer_time_minutes)

    # 4) + 5) Free pieces sliced into slots
    horizon = booking_horizon(settings, now)
    candidates: List[Interval] = []
    for w in day_windows:
        for free in subtract(window_interval(on_date, w.start_time, w.end_time), occupied):
            if free.minutes < duration_minutes:
                continue
            for slot in slice_slots(free, duration_minutes):
                if now <= slot.start <= horizon:
                    candidates.append(slot)
    candidates.sort()

    # 6) Daily cap on offered slots, earliest first
    return [
        Slot(date=on_date, start=s.start.time(), end=s.end.time())
        for s in candidates[:settings.max_daily_bookings]
    ]


def compute_available_slots(
    session: Session,
    inspector_id: int,
    range_start: date,
    range_end: date,
    slot_duration_minutes: int,
    now: Optional[datetime] = None,
) -> List[Slot]:
    """
    Open slots for an inspector between two dates (inclusive).

    Returns:
        Slots in chronological order. Empty list = nothing bookable.
    """
    now = now or datetime.now()

    if range_end < range_start:
        raise ValidationError("end_date cannot be before start_date")
    if not (MIN_BOOKING_MINUTES <= slot_duration_minutes <= MAX_BOOKING_MINUTES):
        raise ValidationError(
            f"duration must be between {MIN_BOOKING_MINUTES} and {MAX_BOOKING_MINUTES} minutes"
        )

    settings = get_inspector_settings(session, inspector_id)

    # Clamp to [today, advance booking horizon]
    advance = timedelta(days=settings.advance_booking_days)
    first_day = max(range_start, now.date())
    last_day = min(range_end, range_start + advance, booking_horizon(settings, now).date())
    if first_day > last_day:
        return []

    windows = get_availability(session, inspector_id, active_only=True)
    blackouts = list_blackouts(session, inspector_id)
    # neighbouring days too: a buffer can reach across midnight
    bookings = load_active_bookings(
        session, inspector_id, first_day - timedelta(days=1), last_day + timedelta(days=1)
    )

    slots: List[Slot] = []
    on_date = first_day
    while on_date <= last_day:
        slots.extend(
            _day_slots(on_date, windows, blackouts, bookings, settings, slot_duration_minutes, now)
        )
        on_date += timedelta(days=1)
    return slots


def check_slot_available(
    requested: Interval,
    windows: List[AvailabilityWindow],
    blackouts: List[BlackoutDate],
    bookings: List[Booking],
    settings: InspectorSettings,
) -> None:
    """Raise SlotUnavailable unless `requested` could be booked right now."""
    on_date = requested.start.date()

    inside_window = any(
        window_interval(on_date, w.start_time, w.end_time).contains(requested)
        for w in windows
        if w.active and w.day_of_week == day_of_week(on_date)
    )
    if not inside_window:
        raise SlotUnavailable("Requested time is outside the inspector's availability")

    if is_blacked_out(blackouts, on_date):
        raise SlotUnavailable("Inspector is unavailable on that date")

    for busy in occupied_intervals(bookings, settings.buffer_time_minutes):
        if requested.overlaps(busy):
            raise SlotUnavailable("Requested time overlaps an existing booking")


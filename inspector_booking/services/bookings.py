# inspector_booking/services/bookings.py
"""
Booking allocation and the booking status state machine.

`create_booking` re-checks the requested slot against the live booking set
while holding the inspector's lock, so of two concurrent requests for
overlapping time only one is committed. The loser gets SlotUnavailable and
must query slots again; nothing here retries or picks another slot.
"""

import logging
import secrets
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlmodel import Session, select

from inspector_booking.config import get_settings as get_app_settings
from inspector_booking.core import booking_interval, can_transition
from inspector_booking.db import begin_write
from inspector_booking.errors import (
    InvalidTransition,
    NotFound,
    OutsideAdvanceWindow,
    SchedulingError,
    ValidationError,
    WidgetDisabled,
)
from inspector_booking.models import Booking, InspectorSettings
from inspector_booking.notifications import (
    BOOKING_CREATED,
    BOOKING_STATUS_CHANGED,
    booking_payload,
    emit_booking_event,
)
from inspector_booking.schemas import BookingChannel, BookingStatus, ClientInfo, SlotRequest
from inspector_booking.services.calendar import get_availability, get_inspector_settings, list_blackouts
from inspector_booking.services.slots import booking_horizon, check_slot_available, load_active_bookings

logger = logging.getLogger(__name__)


def generate_public_token() -> str:
    return secrets.token_urlsafe(get_app_settings().public_token_bytes)


def _lock_inspector(session: Session, inspector_id: int) -> InspectorSettings:
    # Row lock on the settings row serializes commits per inspector on
    # PostgreSQL; on SQLite begin_write() already holds the write lock.
    return session.exec(
        select(InspectorSettings)
        .where(InspectorSettings.inspector_id == inspector_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).one()


def create_booking(
    session: Session,
    inspector_id: int,
    slot: SlotRequest,
    client: ClientInfo,
    channel: BookingChannel = BookingChannel.staff,
    initial_status: Optional[BookingStatus] = None,
    now: Optional[datetime] = None,
) -> Booking:
    now = now or datetime.now()
    channel = BookingChannel(channel)

    try:
        # settings row must exist before it can be locked
        get_inspector_settings(session, inspector_id)
        begin_write(session)
        settings = _lock_inspector(session, inspector_id)

        # 1) Channel rules
        if channel == BookingChannel.public:
            if not settings.embed_widget_enabled:
                raise WidgetDisabled("Public booking not available for this inspector")
            status = BookingStatus.pending
        else:
            status = BookingStatus(initial_status or BookingStatus.confirmed)
            if status not in (BookingStatus.pending, BookingStatus.confirmed):
                raise ValidationError("New bookings must be pending or confirmed")

        # 2) Advance booking window
        requested = booking_interval(slot.booking_date, slot.booking_time, slot.duration_minutes)
        if not (now <= requested.start <= booking_horizon(settings, now)):
            raise OutsideAdvanceWindow(
                f"Bookings must start between now and {settings.advance_booking_days} days ahead"
            )

        # 3) Live state, same rules as the slot listing
        windows = get_availability(session, inspector_id, active_only=True)
        blackouts = list_blackouts(session, inspector_id)
        bookings = load_active_bookings(
            session,
            inspector_id,
            slot.booking_date - timedelta(days=1),
            slot.booking_date + timedelta(days=1),
        )
        check_slot_available(requested, windows, blackouts, bookings, settings)

        # 4) Insert inside the same transaction
        booking = Booking(
            inspector_id=inspector_id,
            client_name=client.client_name,
            client_email=client.client_email,
            client_phone=client.client_phone,
            property_address=client.property_address,
            booking_date=slot.booking_date,
            booking_time=slot.booking_time,
            duration_minutes=slot.duration_minutes,
            status=status.value,
            public_token=generate_public_token() if channel == BookingChannel.public else None,
            notes=client.notes,
            created_at=now,
            updated_at=now,
        )
        session.add(booking)
        session.commit()
    except SchedulingError as exc:
        session.rollback()
        logger.warning(
            f"Booking rejected for inspector {inspector_id} at "
            f"{slot.booking_date} {slot.booking_time}: {exc.name}: {exc.detail}"
        )
        raise

    session.refresh(booking)
    event = booking_payload(booking, channel=channel.value)
    logger.info(
        f"Booking {booking.id} created for inspector {inspector_id} "
        f"({channel.value}, {booking.status}) at {booking.booking_date} {booking.booking_time}"
    )
    # sinks run outside any transaction
    session.commit()
    emit_booking_event(BOOKING_CREATED, event)
    return booking


def get_booking(session: Session, inspector_id: int, booking_id: int) -> Booking:
    booking = session.get(Booking, booking_id)
    if booking is None or booking.inspector_id != inspector_id:
        raise NotFound("Booking not found")
    return booking


def list_bookings(
    session: Session,
    inspector_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[BookingStatus] = None,
) -> List[Booking]:
    stmt = select(Booking).where(Booking.inspector_id == inspector_id)

    if start_date is not None:
        stmt = stmt.where(Booking.booking_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(Booking.booking_date <= end_date)
    if status is not None:
        stmt = stmt.where(Booking.status == BookingStatus(status).value)

    stmt = stmt.order_by(Booking.booking_date, Booking.booking_time)
    return list(session.exec(stmt).all())


def update_booking_status(
    session: Session,
    booking_id: int,
    new_status: BookingStatus,
    inspector_id: Optional[int] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Booking:
    """Move a booking along the status table; staff callers only."""
    new_status = BookingStatus(new_status)

    try:
        begin_write(session)
        booking = session.exec(
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()
        if booking is None or (inspector_id is not None and booking.inspector_id != inspector_id):
            raise NotFound("Booking not found")

        previous = booking.status
        if not can_transition(previous, new_status):
            raise InvalidTransition(f"Cannot change booking status from {previous} to {new_status.value}")

        booking.status = new_status.value
        if notes is not None:
            booking.notes = notes
        booking.updated_at = now or datetime.now()
        session.add(booking)
        session.commit()
    except SchedulingError:
        session.rollback()
        raise

    session.refresh(booking)
    event = booking_payload(booking, previous_status=previous)
    logger.info(f"Booking {booking.id} status {previous} -> {booking.status}")
    session.commit()
    emit_booking_event(BOOKING_STATUS_CHANGED, event)
    return booking


def regenerate_public_token(session: Session, inspector_id: int, booking_id: int) -> Booking:
    try:
        begin_write(session)
        booking = get_booking(session, inspector_id, booking_id)
        if booking.public_token is None:
            raise ValidationError("Booking was not created through the public widget")

        booking.public_token = generate_public_token()
        booking.updated_at = datetime.now()
        session.add(booking)
        session.commit()
    except SchedulingError:
        session.rollback()
        raise

    session.refresh(booking)
    logger.info(f"Public token regenerated for booking {booking.id}")
    return booking

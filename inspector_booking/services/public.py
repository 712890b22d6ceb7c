# inspector_booking/services/public.py
"""
Anonymous booking widget.

Every entry point except token lookup is gated by the inspector's
`embed_widget_enabled` flag. Bookings made here always start as pending and
carry a public token that can read the booking's status but never change it.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlmodel import Session, select

from inspector_booking.errors import Forbidden, NotFound, WidgetDisabled
from inspector_booking.models import Booking, InspectorSettings
from inspector_booking.schemas import (
    AvailabilityWindowIn,
    BlackoutRange,
    BookingChannel,
    BookingStatus,
    PublicAvailabilityResponse,
    PublicBookingCreate,
    PublicSettingsSummary,
    Slot,
)
from inspector_booking.services.bookings import create_booking
from inspector_booking.services.calendar import get_availability, get_inspector_settings, list_blackouts
from inspector_booking.services.slots import compute_available_slots


def require_widget_enabled(session: Session, inspector_id: int) -> InspectorSettings:
    settings = get_inspector_settings(session, inspector_id)
    if not settings.embed_widget_enabled:
        raise WidgetDisabled("Public booking not available for this inspector")
    return settings


def public_summary(session: Session, inspector_id: int) -> PublicAvailabilityResponse:
    settings = require_widget_enabled(session, inspector_id)

    windows = get_availability(session, inspector_id, active_only=True)
    blackouts = list_blackouts(session, inspector_id)

    # reasons stay private
    return PublicAvailabilityResponse(
        inspector_id=inspector_id,
        availability=[AvailabilityWindowIn.model_validate(w) for w in windows],
        blackout_dates=[BlackoutRange.model_validate(b) for b in blackouts],
        settings=PublicSettingsSummary.model_validate(settings),
    )


def public_slots(
    session: Session,
    inspector_id: int,
    start_date: date,
    end_date: date,
    duration_minutes: int,
    now: Optional[datetime] = None,
) -> List[Slot]:
    require_widget_enabled(session, inspector_id)
    return compute_available_slots(session, inspector_id, start_date, end_date, duration_minutes, now=now)


def public_create_booking(
    session: Session,
    inspector_id: int,
    request: PublicBookingCreate,
    now: Optional[datetime] = None,
) -> Booking:
    return create_booking(
        session,
        inspector_id,
        slot=request,
        client=request,
        channel=BookingChannel.public,
        now=now,
    )


def lookup_by_token(session: Session, token: str) -> Booking:
    booking = session.exec(select(Booking).where(Booking.public_token == token)).first()
    if booking is None:
        raise NotFound("Booking not found")
    return booking


def update_status_by_token(session: Session, token: str, new_status: BookingStatus) -> Booking:
    # token holders may look, not touch
    lookup_by_token(session, token)
    raise Forbidden("Public tokens are read-only; contact the inspector to change this booking")

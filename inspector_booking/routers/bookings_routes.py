# inspector_booking/routers/bookings_routes.py

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from inspector_booking.auth import get_current_user
from inspector_booking.db import get_session
from inspector_booking.deps import get_now, require_inspector_access
from inspector_booking.schemas import (
    BookingChannel,
    BookingCreate,
    BookingPublic,
    BookingStatus,
    BookingStatusUpdate,
)
from inspector_booking.services import bookings
from inspector_booking.services.calendar import require_inspector

router = APIRouter(
    prefix="/inspectors/{inspector_id}/bookings",
    tags=["bookings"],
)


@router.get("", response_model=List[BookingPublic])
def list_bookings(
    inspector_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[BookingStatus] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_inspector_access(current_user, inspector_id)
    require_inspector(session, inspector_id)
    return bookings.list_bookings(session, inspector_id, start_date, end_date, status)


@router.post("", response_model=BookingPublic, status_code=201)
def create_booking(
    inspector_id: int,
    booking: BookingCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    require_inspector_access(current_user, inspector_id)
    return bookings.create_booking(
        session,
        inspector_id,
        slot=booking,
        client=booking,
        channel=BookingChannel.staff,
        initial_status=booking.status,
        now=now,
    )


@router.get("/{booking_id}", response_model=BookingPublic)
def get_booking(
    inspector_id: int,
    booking_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_inspector_access(current_user, inspector_id)
    return bookings.get_booking(session, inspector_id, booking_id)


@router.patch("/{booking_id}/status", response_model=BookingPublic)
def update_booking_status(
    inspector_id: int,
    booking_id: int,
    update: BookingStatusUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    require_inspector_access(current_user, inspector_id)
    return bookings.update_booking_status(
        session,
        booking_id,
        update.status,
        inspector_id=inspector_id,
        notes=update.notes,
        now=now,
    )


@router.post("/{booking_id}/public-token", response_model=BookingPublic)
def regenerate_public_token(
    inspector_id: int,
    booking_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_inspector_access(current_user, inspector_id)
    return bookings.regenerate_public_token(session, inspector_id, booking_id)

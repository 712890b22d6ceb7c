# inspector_booking/routers/public_routes.py
# No authentication: gated per inspector by embed_widget_enabled

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from inspector_booking.config import get_settings as get_app_settings
from inspector_booking.db import get_session
from inspector_booking.deps import get_now
from inspector_booking.schemas import (
    BookingStatusUpdate,
    PublicAvailabilityResponse,
    PublicBookingCreate,
    PublicBookingReceipt,
    PublicBookingView,
    SlotsResponse,
)
from inspector_booking.services import public

router = APIRouter(
    prefix="/public",
    tags=["public"],
)


@router.get("/inspectors/{inspector_id}/availability", response_model=PublicAvailabilityResponse)
def public_availability(
    inspector_id: int,
    session: Session = Depends(get_session),
):
    return public.public_summary(session, inspector_id)


@router.get("/inspectors/{inspector_id}/slots", response_model=SlotsResponse)
def public_slots(
    inspector_id: int,
    start_date: date,
    end_date: date,
    duration: Optional[int] = None,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    duration = duration or get_app_settings().default_slot_duration_minutes
    slots = public.public_slots(session, inspector_id, start_date, end_date, duration, now=now)
    return {
        "inspector_id": inspector_id,
        "start_date": start_date,
        "end_date": end_date,
        "duration_minutes": duration,
        "slots": slots,
    }


@router.post("/inspectors/{inspector_id}/bookings", response_model=PublicBookingReceipt, status_code=201)
def public_create_booking(
    inspector_id: int,
    booking: PublicBookingCreate,
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    created = public.public_create_booking(session, inspector_id, booking, now=now)
    return {
        "message": "Booking request submitted successfully",
        "public_token": created.public_token,
        "booking": PublicBookingView.model_validate(created),
    }


@router.get("/bookings/{token}", response_model=PublicBookingView)
def public_booking_status(
    token: str,
    session: Session = Depends(get_session),
):
    return public.lookup_by_token(session, token)


@router.patch("/bookings/{token}/status", response_model=PublicBookingView)
def public_update_status(
    token: str,
    update: BookingStatusUpdate,
    session: Session = Depends(get_session),
):
    return public.update_status_by_token(session, token, update.status)

# inspector_booking/routers/inspectors_routes.py

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from inspector_booking.auth import get_current_user
from inspector_booking.config import get_settings as get_app_settings
from inspector_booking.db import get_session
from inspector_booking.deps import get_now, require_inspector_access
from inspector_booking.schemas import (
    AvailabilityWindowIn,
    AvailabilityWindowPublic,
    BlackoutCreate,
    BlackoutPublic,
    SettingsPublic,
    SettingsUpdate,
    SlotsResponse,
)
from inspector_booking.services import calendar
from inspector_booking.services.slots import compute_available_slots

router = APIRouter(
    prefix="/inspectors",
    tags=["inspectors"],
)


@router.get("/{inspector_id}/availability", response_model=List[AvailabilityWindowPublic])
def get_availability(
    inspector_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_inspector_access(current_user, inspector_id)
    return calendar.get_availability(session, inspector_id)


@router.put("/{inspector_id}/availability", response_model=List[AvailabilityWindowPublic])
def replace_availability(
    inspector_id: int,
    windows: List[AvailabilityWindowIn],
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_inspector_access(current_user, inspector_id)
    return calendar.replace_availability(session, inspector_id, windows)


@router.get("/{inspector_id}/slots", response_model=SlotsResponse)
def available_slots(
    inspector_id: int,
    start_date: date,
    end_date: date,
    duration: Optional[int] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    require_inspector_access(current_user, inspector_id)
    duration = duration or get_app_settings().default_slot_duration_minutes

    slots = compute_available_slots(session, inspector_id, start_date, end_date, duration, now=now)
    return {
        "inspector_id": inspector_id,
        "start_date": start_date,
        "end_date": end_date,
        "duration_minutes": duration,
        "slots": slots,
    }


@router.get("/{inspector_id}/blackout-dates", response_model=List[BlackoutPublic])
def list_blackout_dates(
    inspector_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_inspector_access(current_user, inspector_id)
    return calendar.list_blackouts(session, inspector_id)


@router.post("/{inspector_id}/blackout-dates", response_model=BlackoutPublic, status_code=201)
def upsert_blackout_date(
    inspector_id: int,
    blackout: BlackoutCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_inspector_access(current_user, inspector_id)
    return calendar.upsert_blackout(
        session,
        inspector_id,
        blackout.start_date,
        blackout.end_date,
        reason=blackout.reason,
        recurring=blackout.recurring,
    )


@router.delete("/{inspector_id}/blackout-dates/{blackout_id}", status_code=204)
def delete_blackout_date(
    inspector_id: int,
    blackout_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_inspector_access(current_user, inspector_id)
    calendar.delete_blackout(session, inspector_id, blackout_id)


@router.get("/{inspector_id}/settings", response_model=SettingsPublic)
def get_settings(
    inspector_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_inspector_access(current_user, inspector_id)
    return calendar.get_inspector_settings(session, inspector_id)


@router.patch("/{inspector_id}/settings", response_model=SettingsPublic)
def update_settings(
    inspector_id: int,
    patch: SettingsUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    require_inspector_access(current_user, inspector_id)
    return calendar.update_inspector_settings(session, inspector_id, patch, now=now)

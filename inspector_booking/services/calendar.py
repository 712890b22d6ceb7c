# inspector_booking/services/calendar.py
"""
Inspector configuration: weekly availability windows, blackout dates and
per-inspector booking settings.
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from inspector_booking.config import get_settings as get_app_settings
from inspector_booking.core import overlaps
from inspector_booking.db import begin_write
from inspector_booking.errors import NotFound, ValidationError
from inspector_booking.models import AvailabilityWindow, BlackoutDate, InspectorSettings, User
from inspector_booking.schemas import AvailabilityWindowIn, SettingsUpdate, UserRole

logger = logging.getLogger(__name__)


def require_inspector(session: Session, inspector_id: int) -> User:
    user = session.get(User, inspector_id)
    if user is None or user.role != UserRole.inspector.value:
        raise NotFound("Inspector not found")
    return user


# ----- availability -----

def validate_windows(windows: Iterable[AvailabilityWindowIn]) -> None:
    active_by_day = {}
    for w in windows:
        if not (0 <= w.day_of_week <= 6):
            raise ValidationError("day_of_week must be an integer between 0 and 6")
        if w.start_time >= w.end_time:
            raise ValidationError(f"Window on day {w.day_of_week} must start before it ends")
        if w.active:
            active_by_day.setdefault(w.day_of_week, []).append(w)

    for day, day_windows in active_by_day.items():
        day_windows.sort(key=lambda w: w.start_time)
        for prev, nxt in zip(day_windows, day_windows[1:]):
            if overlaps(prev.start_time, prev.end_time, nxt.start_time, nxt.end_time):
                raise ValidationError(f"Active windows on day {day} overlap")


def replace_availability(
    session: Session,
    inspector_id: int,
    windows: List[AvailabilityWindowIn],
) -> List[AvailabilityWindow]:
    """Swap the inspector's whole weekly window set in one transaction."""
    require_inspector(session, inspector_id)
    validate_windows(windows)
    begin_write(session)

    existing = session.exec(
        select(AvailabilityWindow).where(AvailabilityWindow.inspector_id == inspector_id)
    ).all()
    for row in existing:
        session.delete(row)

    new_rows = [
        AvailabilityWindow(
            inspector_id=inspector_id,
            day_of_week=w.day_of_week,
            start_time=w.start_time,
            end_time=w.end_time,
            active=w.active,
        )
        for w in windows
    ]
    session.add_all(new_rows)
    session.commit()
    for row in new_rows:
        session.refresh(row)

    logger.info(f"Replaced availability for inspector {inspector_id}: {len(existing)} -> {len(new_rows)} windows")
    return new_rows


def get_availability(session: Session, inspector_id: int, active_only: bool = False) -> List[AvailabilityWindow]:
    require_inspector(session, inspector_id)

    stmt = select(AvailabilityWindow).where(AvailabilityWindow.inspector_id == inspector_id)
    if active_only:
        stmt = stmt.where(AvailabilityWindow.active == True)  # noqa: E712
    stmt = stmt.order_by(AvailabilityWindow.day_of_week, AvailabilityWindow.start_time)
    return list(session.exec(stmt).all())


# ----- blackout dates -----

def upsert_blackout(
    session: Session,
    inspector_id: int,
    start_date: date,
    end_date: date,
    reason: Optional[str] = None,
    recurring: bool = False,
) -> BlackoutDate:
    require_inspector(session, inspector_id)
    if start_date > end_date:
        raise ValidationError("start_date cannot be after end_date")
    begin_write(session)

    def _existing():
        return session.exec(
            select(BlackoutDate)
            .where(BlackoutDate.inspector_id == inspector_id)
            .where(BlackoutDate.start_date == start_date)
            .where(BlackoutDate.end_date == end_date)
        ).first()

    blackout = _existing()
    if blackout is None:
        blackout = BlackoutDate(
            inspector_id=inspector_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            recurring=recurring,
        )
        session.add(blackout)
    else:
        blackout.reason = reason
        blackout.recurring = recurring

    try:
        session.commit()
    except IntegrityError:
        # the same range was inserted concurrently; update that row instead
        session.rollback()
        blackout = _existing()
        blackout.reason = reason
        blackout.recurring = recurring
        session.commit()

    session.refresh(blackout)
    logger.info(f"Blackout {blackout.id} {start_date}..{end_date} saved for inspector {inspector_id}")
    return blackout


def list_blackouts(session: Session, inspector_id: int) -> List[BlackoutDate]:
    require_inspector(session, inspector_id)
    return list(
        session.exec(
            select(BlackoutDate)
            .where(BlackoutDate.inspector_id == inspector_id)
            .order_by(BlackoutDate.start_date)
        ).all()
    )


def delete_blackout(session: Session, inspector_id: int, blackout_id: int) -> None:
    begin_write(session)
    blackout = session.get(BlackoutDate, blackout_id)
    if blackout is None or blackout.inspector_id != inspector_id:
        session.rollback()
        raise NotFound("Blackout date not found")

    session.delete(blackout)
    session.commit()
    logger.info(f"Blackout {blackout_id} removed for inspector {inspector_id}")


# ----- settings -----

def get_inspector_settings(session: Session, inspector_id: int) -> InspectorSettings:
    """Return the settings row, creating it with defaults on first use."""
    require_inspector(session, inspector_id)

    settings = session.get(InspectorSettings, inspector_id)
    if settings is not None:
        return settings

    begin_write(session)
    # another request may have created it in the meantime
    settings = session.get(InspectorSettings, inspector_id)
    if settings is None:
        defaults = get_app_settings()
        settings = InspectorSettings(
            inspector_id=inspector_id,
            max_daily_bookings=defaults.default_max_daily_bookings,
            buffer_time_minutes=defaults.default_buffer_time_minutes,
            advance_booking_days=defaults.default_advance_booking_days,
            embed_widget_enabled=defaults.default_embed_widget_enabled,
        )
        session.add(settings)
        logger.info(f"Created default settings for inspector {inspector_id}")

    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        return session.get(InspectorSettings, inspector_id)

    session.refresh(settings)
    return settings


def update_inspector_settings(
    session: Session,
    inspector_id: int,
    patch: SettingsUpdate,
    now: Optional[datetime] = None,
) -> InspectorSettings:
    changes = patch.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field != "public_booking_url":
            raise ValidationError(f"{field} cannot be null")

    settings = get_inspector_settings(session, inspector_id)
    begin_write(session)

    for field, value in changes.items():
        setattr(settings, field, value)
    settings.updated_at = now or datetime.now()

    session.add(settings)
    session.commit()
    session.refresh(settings)
    return settings

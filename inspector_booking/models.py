# inspector_booking/models.py

from typing import Optional
from datetime import datetime, date as Date, time

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str  # inspector, admin or manager


class AvailabilityWindow(SQLModel, table=True):
    __tablename__ = "inspector_availability"

    id: Optional[int] = Field(default=None, primary_key=True)
    inspector_id: int = Field(index=True)
    day_of_week: int  # 0 = Sunday, 1 = Monday, ...
    start_time: time
    end_time: time
    active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)


class BlackoutDate(SQLModel, table=True):
    __tablename__ = "inspector_blackout_dates"
    __table_args__ = (
        UniqueConstraint("inspector_id", "start_date", "end_date", name="uq_blackout_range"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    inspector_id: int = Field(index=True)
    start_date: Date
    end_date: Date
    reason: Optional[str] = None
    recurring: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class InspectorSettings(SQLModel, table=True):
    __tablename__ = "inspector_settings"

    inspector_id: int = Field(primary_key=True)
    max_daily_bookings: int = 4
    buffer_time_minutes: int = 30
    advance_booking_days: int = 30
    embed_widget_enabled: bool = True
    email_notifications: bool = True
    sms_notifications: bool = False
    public_booking_url: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class Booking(SQLModel, table=True):
    __tablename__ = "inspector_bookings"

    id: Optional[int] = Field(default=None, primary_key=True)
    inspector_id: int = Field(index=True)

    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    property_address: str

    booking_date: Date = Field(index=True)
    booking_time: time
    duration_minutes: int = 120
    status: str = Field(default="confirmed", index=True)
    public_token: Optional[str] = Field(default=None, unique=True, index=True)
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

# inspector_booking/schemas.py

from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime, date, time
from typing import List, Optional

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bookable inspection length, shared by slot listing and booking
MIN_BOOKING_MINUTES = 60
MAX_BOOKING_MINUTES = 480


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    inspector = "inspector"
    admin = "admin"
    manager = "manager"


class BookingStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


class BookingChannel(str, Enum):
    staff = "staff"
    public = "public"


class UserPublic(BaseModel):
    id: int
    email: str
    role: UserRole


class UserCreate(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=72)
    role: UserRole


# ----- availability -----

class AvailabilityWindowIn(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=Sun, 1=Mon....
    start_time: time
    end_time: time
    active: bool = True

    model_config = {"from_attributes": True}


class AvailabilityWindowPublic(AvailabilityWindowIn):
    id: int
    inspector_id: int


# ----- blackout dates -----

class BlackoutCreate(BaseModel):
    start_date: date
    end_date: date
    reason: Optional[str] = None
    recurring: bool = False


class BlackoutPublic(BlackoutCreate):
    id: int
    inspector_id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class BlackoutRange(BaseModel):
    start_date: date
    end_date: date
    recurring: bool

    model_config = {"from_attributes": True}


# ----- settings -----

class SettingsPublic(BaseModel):
    inspector_id: int
    max_daily_bookings: int
    buffer_time_minutes: int
    advance_booking_days: int
    embed_widget_enabled: bool
    email_notifications: bool
    sms_notifications: bool
    public_booking_url: Optional[str] = None
    updated_at: datetime

    model_config = {"from_attributes": True}


class SettingsUpdate(BaseModel):
    max_daily_bookings: Optional[int] = Field(default=None, ge=1, le=20)
    buffer_time_minutes: Optional[int] = Field(default=None, ge=0, le=120)
    advance_booking_days: Optional[int] = Field(default=None, ge=1, le=365)
    embed_widget_enabled: Optional[bool] = None
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    public_booking_url: Optional[str] = Field(default=None, max_length=100)


class PublicSettingsSummary(BaseModel):
    max_daily_bookings: int
    buffer_time_minutes: int
    advance_booking_days: int

    model_config = {"from_attributes": True}


# ----- slots -----

class Slot(BaseModel):
    date: date
    start: time
    end: time


class SlotsResponse(BaseModel):
    inspector_id: int
    start_date: date
    end_date: date
    duration_minutes: int
    slots: List[Slot]


# ----- bookings -----

class SlotRequest(BaseModel):
    booking_date: date
    booking_time: time
    duration_minutes: int = Field(default=120, ge=MIN_BOOKING_MINUTES, le=MAX_BOOKING_MINUTES)


class ClientInfo(BaseModel):
    client_name: str = Field(min_length=1)
    client_email: str = Field(pattern=EMAIL_PATTERN)
    client_phone: Optional[str] = None
    property_address: str = Field(min_length=1)
    notes: Optional[str] = None


class PublicBookingCreate(SlotRequest, ClientInfo):
    pass


class BookingCreate(SlotRequest, ClientInfo):
    # staff may file a booking as pending instead of confirmed
    status: Optional[BookingStatus] = None


class BookingPublic(BaseModel):
    id: int
    inspector_id: int
    client_name: str
    client_email: str
    client_phone: Optional[str] = None
    property_address: str
    booking_date: date
    booking_time: time
    duration_minutes: int
    status: BookingStatus
    public_token: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    notes: Optional[str] = None


class PublicBookingView(BaseModel):
    id: int
    inspector_id: int
    property_address: str
    booking_date: date
    booking_time: time
    duration_minutes: int
    status: BookingStatus

    model_config = {"from_attributes": True}


class PublicBookingReceipt(BaseModel):
    message: str
    public_token: str
    booking: PublicBookingView


class PublicAvailabilityResponse(BaseModel):
    inspector_id: int
    availability: List[AvailabilityWindowIn]
    blackout_dates: List[BlackoutRange]
    settings: PublicSettingsSummary

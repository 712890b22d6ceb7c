# inspector_booking/config.py

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Application settings from environment variables"""

    database_url: str = Field(default="sqlite:///./inspector_booking.db")
    sql_echo: bool = Field(default=False)
    sqlite_busy_timeout_seconds: float = Field(default=30.0)

    # JWT
    secret_key: str = Field(default="change-me-later")
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=30)

    log_level: str = Field(default="INFO")

    # Defaults for a freshly created inspector settings row
    default_max_daily_bookings: int = Field(default=4)
    default_buffer_time_minutes: int = Field(default=30)
    default_advance_booking_days: int = Field(default=30)
    default_embed_widget_enabled: bool = Field(default=True)

    default_slot_duration_minutes: int = Field(default=120)
    public_token_bytes: int = Field(default=16)

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_prefix="INSPECTOR_BOOKING_",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()

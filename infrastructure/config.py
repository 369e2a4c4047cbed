"""Application settings, read from RESORT_* environment variables or .env"""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_prefix="RESORT_", env_file=".env", extra="ignore")

    APP_NAME: str = "Resort Booking API"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Pricing
    CURRENCY: str = "PHP"
    DOWNPAYMENT_PERCENT: int = 20
    EXTENSION_HOURLY_DIVISOR: int = 22
    EXTENSION_ROUNDING_STEP: int = 1000  # minor units, rounds fees up to the next ₱10
    ENTRANCE_FEE_PER_GUEST: int = 5000  # minor units per guest per day

    # JWT
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30


@lru_cache
def get_settings() -> Settings:
    return Settings()

import os
from typing import Annotated, List

import pytz
from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

# Load environment variables from the correct .env file
env_file = ".env.production" if os.getenv("APP_ENV") == "production" else ".env"
load_dotenv(env_file)  # Load the .env file

SUPPORTED_DATABASE_SCHEMES = ("postgresql+asyncpg://", "sqlite+aiosqlite://")


class Settings(BaseSettings):
    APP_ENV: str = "development"
    DEBUG: bool = False
    DATABASE_URL: str
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = ["*"]
    LOG_LEVEL: str = "info"

    # LLM settings
    LLM_ENDPOINT_URL: str = ""
    LLM_TIMEOUT_SECONDS: float = 120.0

    # Scheduling
    CLINIC_TIMEZONE: str = "Asia/Manila"
    BOOKING_HORIZON_DAYS: int = 30

    # Audit
    AUDIT_LOG_DEFAULT_LIMIT: int = 100

    @field_validator("DATABASE_URL")
    def check_database_url(cls, value):
        if not value.startswith(SUPPORTED_DATABASE_SCHEMES):
            raise ValueError(
                f"DATABASE_URL must start with one of {', '.join(SUPPORTED_DATABASE_SCHEMES)}"
            )
        return value

    @field_validator("JWT_SECRET")
    def check_jwt_secret(cls, value):
        if len(value) < 16:
            raise ValueError("JWT_SECRET must be at least 16 characters long")
        return value

    @field_validator("CLINIC_TIMEZONE")
    def check_timezone(cls, value):
        if value not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {value}")
        return value

    # Support comma-separated ALLOWED_ORIGINS strings
    @field_validator("ALLOWED_ORIGINS", mode="before")
    def split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


settings = Settings()

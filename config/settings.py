# config/settings.py
import os
import sys
from datetime import timedelta
from dotenv import load_dotenv
from pydantic import ValidationError, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from core import expiry
from util.enums import Environment, RateLimitBackend
from util.errors import ExpiryError


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(frozen=True, extra="ignore")

    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    HOST: str = Field(default="0.0.0.0", validation_alias="HOST")
    PORT: int = Field(default=8080, validation_alias="PORT")
    BASE_URL: str = Field(default="http://localhost:8080", validation_alias="BASE_URL")

    # Database
    DATABASE_URL: str = Field(..., validation_alias="DATABASE_URL")
    DB_POOL_SIZE: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(default=20, validation_alias="DB_MAX_OVERFLOW")
    DB_POOL_RECYCLE_SECONDS: int = Field(
        default=300, validation_alias="DB_POOL_RECYCLE_SECONDS"
    )
    STORE_TIMEOUT_SECONDS: float = Field(
        default=5.0, validation_alias="STORE_TIMEOUT_SECONDS"
    )

    # Snippets
    MAX_CONTENT_SIZE: int = Field(default=1 << 20, validation_alias="MAX_CONTENT_SIZE")
    DEFAULT_EXPIRY: timedelta = Field(
        default=timedelta(days=3), validation_alias="DEFAULT_EXPIRY"
    )
    MIN_EXPIRY: timedelta = Field(
        default=timedelta(minutes=10), validation_alias="MIN_EXPIRY"
    )
    MAX_EXPIRY: timedelta = Field(
        default=timedelta(days=30), validation_alias="MAX_EXPIRY"
    )
    ID_ALLOCATION_ATTEMPTS: int = Field(
        default=3, validation_alias="ID_ALLOCATION_ATTEMPTS"
    )

    # Eviction
    SWEEP_INTERVAL_SECONDS: float = Field(
        default=300.0, validation_alias="SWEEP_INTERVAL_SECONDS"
    )
    SWEEP_TIMEOUT_SECONDS: float = Field(
        default=30.0, validation_alias="SWEEP_TIMEOUT_SECONDS"
    )

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(default="*", validation_alias="ALLOWED_ORIGIN")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")
    WRITE_RATE_LIMIT: int = Field(default=30, validation_alias="WRITE_RATE_LIMIT")
    READ_RATE_LIMIT: int = Field(default=300, validation_alias="READ_RATE_LIMIT")
    RATE_LIMIT_WINDOW_SECONDS: int = Field(
        default=60, validation_alias="RATE_LIMIT_WINDOW_SECONDS"
    )
    RATE_LIMIT_BACKEND: RateLimitBackend = Field(
        default=RateLimitBackend.MEMORY, validation_alias="RATE_LIMIT_BACKEND"
    )
    REDIS_URL: str | None = Field(default=None, validation_alias="REDIS_URL")

    # Logging knobs
    LOGGER_NAME: str = "tafcha"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    @field_validator("DEFAULT_EXPIRY", "MIN_EXPIRY", "MAX_EXPIRY", mode="before")
    @classmethod
    def _parse_duration(cls, v: object) -> object:
        # Same compact grammar the API accepts: 10m, 12h, 3d, 1w
        if isinstance(v, str):
            try:
                return expiry.parse(v)
            except ExpiryError as e:
                raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def _check_bounds(self) -> "Settings":
        if not 1 <= self.PORT <= 65535:
            raise ValueError("PORT must be between 1 and 65535")
        if self.MAX_CONTENT_SIZE < 1:
            raise ValueError("MAX_CONTENT_SIZE must be positive")
        if self.MIN_EXPIRY > self.MAX_EXPIRY:
            raise ValueError("MIN_EXPIRY cannot be greater than MAX_EXPIRY")
        if not self.MIN_EXPIRY <= self.DEFAULT_EXPIRY <= self.MAX_EXPIRY:
            raise ValueError("DEFAULT_EXPIRY must be between MIN_EXPIRY and MAX_EXPIRY")
        if self.ID_ALLOCATION_ATTEMPTS < 1:
            raise ValueError("ID_ALLOCATION_ATTEMPTS must be at least 1")
        if self.SWEEP_INTERVAL_SECONDS <= 0:
            raise ValueError("SWEEP_INTERVAL_SECONDS must be positive")
        if self.WRITE_RATE_LIMIT < 1 or self.READ_RATE_LIMIT < 1:
            raise ValueError("rate limits must be positive")
        if self.RATE_LIMIT_WINDOW_SECONDS < 1:
            raise ValueError("RATE_LIMIT_WINDOW_SECONDS must be positive")
        if self.RATE_LIMIT_BACKEND == RateLimitBackend.REDIS and not self.REDIS_URL:
            raise ValueError("REDIS_URL is required when RATE_LIMIT_BACKEND=redis")
        return self


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)

from datetime import timedelta
from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from typing import List
import logging
import re


_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}
_LOG_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def parse_duration(value: str) -> timedelta:
    """Parse `3600`, `30m`, `24h` or `7d` into a timedelta."""
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


class Settings(BaseSettings):
    # Project Info
    PROJECT_NAME: str = "Content Gateway API"
    SERVICE_NAME: str = "API Gateway"
    API_V1_STR: str = "/api/v1"

    # Directus backend
    DIRECTUS_URL: str = "http://localhost:8055"
    DIRECTUS_TOKEN: str = ""
    DIRECTUS_EMAIL: str = ""
    DIRECTUS_PASSWORD: str = ""
    DIRECTUS_TIMEOUT_SECONDS: float = 10.0

    # Security
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN: str = "24h"

    # CORS
    CORS_ORIGIN: str = "http://localhost:3000"

    # Server
    PORT: int = 3001

    # Rate limiting
    RATE_LIMIT: str = "100/15minutes"
    RATE_LIMIT_ENABLED: bool = True

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Logging: empty means DEBUG when DEBUG is on, else INFO
    LOG_LEVEL: str = ""
    LOG_FORMAT: str = ""

    # Monitoring (Optional - Add to .env for production)
    SENTRY_DSN: str = ""

    @field_validator("ENVIRONMENT")
    @classmethod
    def normalize_environment(cls, value: str) -> str:
        return value.lower().strip()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value and value not in _LOG_LEVELS:
            raise ValueError(f"Unknown LOG_LEVEL: {value!r}")
        return value

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("", "json", "console"):
            raise ValueError("LOG_FORMAT must be json or console")
        return value

    @field_validator("DIRECTUS_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("JWT_EXPIRES_IN")
    @classmethod
    def validate_expiry(cls, value: str) -> str:
        parse_duration(value)
        return value.strip()

    @model_validator(mode="after")
    def validate_production_settings(self):
        if self.ENVIRONMENT == "production":
            normalized_secret = (self.JWT_SECRET or "").strip()
            if len(normalized_secret) < 32 or "your-secret-key-here" in normalized_secret.lower():
                raise ValueError("JWT_SECRET must be at least 32 chars and not use placeholders in production")
            if not self.DIRECTUS_TOKEN and not (self.DIRECTUS_EMAIL and self.DIRECTUS_PASSWORD):
                raise ValueError("DIRECTUS_TOKEN or DIRECTUS_EMAIL/DIRECTUS_PASSWORD must be set in production")
        return self

    @property
    def jwt_expires_delta(self) -> timedelta:
        return parse_duration(self.JWT_EXPIRES_IN)

    @property
    def log_level(self) -> int:
        if self.LOG_LEVEL:
            return _LOG_LEVELS[self.LOG_LEVEL]
        return logging.DEBUG if self.DEBUG else logging.INFO

    @property
    def log_as_json(self) -> bool:
        if self.LOG_FORMAT:
            return self.LOG_FORMAT == "json"
        return not self.DEBUG

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGIN.split(",") if origin.strip()]

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()

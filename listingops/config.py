from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str

    # Database Connection Pool Settings (PostgreSQL only)
    DB_POOL_SIZE: int = 10  # Base number of connections in pool
    DB_MAX_OVERFLOW: int = 20  # Extra connections allowed beyond pool_size
    DB_POOL_TIMEOUT: int = 30  # Seconds to wait for connection from pool
    DB_POOL_RECYCLE: int = 1800  # Recycle connections after 30 minutes

    # JWT Settings
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 720

    # App Settings
    APP_NAME: str = "Listing Ops Backend"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - accepts JSON string, comma-separated, or list
    CORS_ORIGINS: list[str] = ["*"]

    # Reporting
    REPORTING_UTC_OFFSET: str = "+05:30"  # Day buckets and date filters (IST)
    DEFAULT_PAGE_LIMIT: int = 50

    # Compatibility work is only offered for this task category
    COMPATIBILITY_CATEGORY_NAME: str = "Ebay Motors"

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('REPORTING_UTC_OFFSET')
    @classmethod
    def validate_utc_offset(cls, v: str) -> str:
        hours, _, minutes = v[1:].partition(":")
        if v[:1] not in ("+", "-") or not hours.isdigit() or not minutes.isdigit():
            raise ValueError("REPORTING_UTC_OFFSET must look like +05:30")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        return self.CORS_ORIGINS

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()

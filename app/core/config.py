from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration, read from environment variables or a local .env file"""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_title: str = "Split Ledger Service"
    app_version: str = "1.0.0"

    # Falls back to SQLite for local development
    database_url: str = "sqlite:///./app/db/split_ledger.db"

    log_level: str = "INFO"

    # How far a requested settlement may drift from the outstanding balance
    settlement_tolerance: Decimal = Decimal("0.01")


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance"""
    return Settings()

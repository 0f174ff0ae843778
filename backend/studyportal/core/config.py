from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )
    # In-memory SQLite keeps everything process-local.
    database_url: str = Field(default="sqlite://")
    log_level: str = Field(default="INFO")

    frontend_url: str = Field(default="http://localhost:3000")
    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5000",
            "http://127.0.0.1:5000",
        ]
    )

    tick_interval_seconds: int = Field(default=1, ge=1)
    reminder_lead_minutes: int = Field(default=5, ge=0)
    schedule_ticker_enabled: bool = Field(default=True)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()

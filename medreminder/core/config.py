from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Local SQLite by default; set DATABASE_URL for Postgres in production
    database_url: str = "sqlite+aiosqlite:///./medreminder.db"
    database_echo: bool = False

    # "Today" for the calendar and ledger is taken in this zone
    timezone: str = "America/Toronto"
    log_level: str = "INFO"

    cors_origins: List[str] = ["*"]

    snooze_minutes: int = 10
    low_stock_alert_delay_seconds: int = 10
    low_stock_reminder_hour: int = 9
    # Monday = 0, matches date.weekday()
    inventory_check_weekday: int = 0
    inventory_check_hour: int = 9

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()

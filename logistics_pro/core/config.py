from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Logistics Pro API"
    api_prefix: str = "/api"

    database_url: str = "sqlite+aiosqlite:///./logistics.db"
    db_echo: bool = False
    db_connect_attempts: int = 10
    db_connect_delay_seconds: float = 3.0
    auto_create_tables: bool = True

    log_level: str = "INFO"
    log_file: Optional[str] = None

    active_driver_window_minutes: int = 10
    strict_status_transitions: bool = False  # enforce TRANSITIONS on status writes

    # Seeded on startup when both are set
    super_admin_phone: Optional[str] = None
    super_admin_password: Optional[str] = None
    super_admin_name: str = "Super Admin"

    cors_origins: List[str] = ["*"]


@lru_cache
def get_settings() -> Settings:
    return Settings()

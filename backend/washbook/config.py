# backend/washbook/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/washbook.db"
    redis_url: str = "redis://localhost:6379/0"

    environment: str = "development"
    log_level: str = "INFO"

    # Tenants without an explicit timezone use this one
    default_timezone: str = "UTC"

    cancellation_window_hours: int = 2
    availability_cache_ttl_seconds: int = 30
    create_tables_on_startup: bool = True

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative SQLite path -> absolute, anchored at the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite:///{absolute_path}"
        return url

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()

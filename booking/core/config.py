from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./booking.db"
    # Create tables on startup; prefer Alembic in production
    auto_create_tables: bool = True

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Provider defaults
    default_timezone: str = "UTC"
    default_appointment_duration: int = 30
    min_appointment_duration: int = 15

    # Slot locking. TTL must exceed the slowest guarded write.
    lock_ttl_seconds: float = 10.0
    lock_reaper_interval_seconds: float = 60.0

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()

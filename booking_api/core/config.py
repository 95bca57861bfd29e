from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    # Hosted Postgres (Neon etc.) requires SSL; asyncpg takes it via connect_args
    database_ssl: bool = False

    # JWT
    secret_key: str
    access_token_expire_minutes: int = 15
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:5173"

    # Booking rules (local to business_timezone)
    business_timezone: str = "Europe/Oslo"
    session_minutes: int = 15
    buffer_minutes: int = 5
    day_start: str = "08:00"
    day_end: str = "15:00"  # last session end, not last start
    max_sessions_per_booking: int = 30

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()

# Fichier: vocab_srs/core/config.py
import sys
from typing import List, Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./vocab_srs_local.db"
    ENVIRONMENT: str = "development"

    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Performance instrumentation
    SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS: int = 300
    DATABASE_CONNECTION_MAX_RETRIES: int = 1
    DATABASE_CONNECTION_RETRY_BACKOFF_SECONDS: float = 1.0

    # --- Persistence gateway ---
    PERSISTENCE_MAX_RETRIES: int = 3
    PERSISTENCE_RETRY_BACKOFF_SECONDS: float = 0.2

    # --- Scheduling ---
    DEFAULT_EASINESS_FACTOR: float = 2.5
    # None keeps easiness unbounded above.
    EASINESS_CEILING: Optional[float] = None
    REVIEW_HISTORY_CAPACITY: int = 10

    # --- Session ---
    PERFORMANCE_TREND_SIZE: int = 10
    STREAK_BONUS_THRESHOLD: int = 5
    STREAK_BONUS_XP: int = 25

    # --- Daily goals ---
    DEFAULT_WORDS_TARGET: int = 20
    DEFAULT_TIME_TARGET_SECONDS: int = 15 * 60
    STREAK_RESET_ON_MISSED_DAY: bool = True
    # Calendar days are computed in this zone.
    DAY_BOUNDARY_TIMEZONE: str = "UTC"

    # --- Rewards ---
    STREAK_MILESTONES: List[int] = [3, 7, 14, 30, 50, 100, 365]
    EXPERIENCE_MILESTONES: List[int] = [100, 500, 1000, 2500, 5000]

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        """Map legacy ``postgres://`` URLs onto the psycopg2 driver.

        Managed Postgres providers still hand out ``postgres://`` URLs, an
        alias SQLAlchemy dropped in 1.4. SQLite and explicit drivers are left
        untouched.
        """

        if not isinstance(value, str):
            return value

        if value.startswith("postgres://"):
            return "postgresql+psycopg2://" + value[len("postgres://") :]
        if value.startswith("postgresql://"):
            return "postgresql+psycopg2://" + value[len("postgresql://") :]
        return value

    @field_validator("STREAK_MILESTONES", "EXPERIENCE_MILESTONES")
    @classmethod
    def _sorted_positive_ladder(cls, value: List[int]) -> List[int]:
        if any(step <= 0 for step in value):
            raise ValueError("milestones must be positive")
        return sorted(set(value))

    @field_validator("EASINESS_CEILING")
    @classmethod
    def _ceiling_above_floor(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value < 1.3:
            raise ValueError("EASINESS_CEILING must be >= 1.3")
        return value


def _log_settings_validation_error(exc: ValidationError) -> None:
    """Pretty-print missing or invalid environment variables.

    The exception bubbles up during module import, which makes it hard to see
    which variable is responsible. The structured error payload is printed so
    it shows up in server logs before the exception is re-raised.
    """

    print("Configuration error while loading environment variables:", file=sys.stderr)

    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Unknown validation error")
        type_name = error.get("type")
        hint = f"{message} (type={type_name})" if type_name else message
        print(f"  - {location}: {hint}", file=sys.stderr)


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - exercised at runtime
    _log_settings_validation_error(exc)
    raise

from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "PlanForge"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True

    # Database
    database_url: str = "sqlite+aiosqlite:///./planforge.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_migrate_on_startup: bool = False  # Run alembic upgrade head in the lifespan
    database_create_all: bool = False  # Create tables on startup instead of running migrations

    # Graceful shutdown
    shutdown_grace_period: int = 30  # Seconds to let background pipeline runs finish

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Generator (generator.* options)
    generator_url: str = "http://localhost:8080"
    generator_api_key: str | None = None  # Sent as a bearer token when set
    generator_timeout_ms: int = 60000
    generator_max_attempts: int = 3
    generator_backoff_base_ms: int = 500
    generator_backoff_factor: float = 2.0
    generator_backoff_jitter: float = 0.2

    # Pipeline (pipeline.* options)
    pipeline_deadline_ms: int | None = None  # No whole-pipeline deadline when unset

    # Aggregation (aggregation.* options)
    aggregation_timezone: str = "UTC"

    @field_validator("generator_timeout_ms", "generator_backoff_base_ms")
    @classmethod
    def validate_positive_ms(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Durations must be positive milliseconds")
        return v

    @field_validator("generator_max_attempts")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("GENERATOR_MAX_ATTEMPTS must be at least 1")
        return v

    @field_validator("generator_backoff_jitter")
    @classmethod
    def validate_jitter(cls, v: float) -> float:
        if not 0 <= v < 1:
            raise ValueError("GENERATOR_BACKOFF_JITTER must be in [0, 1)")
        return v

    @field_validator("pipeline_deadline_ms")
    @classmethod
    def validate_deadline(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            raise ValueError("PIPELINE_DEADLINE_MS must be positive when set")
        return v

    @field_validator("aggregation_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject zone names the IANA database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown IANA timezone '{v}'") from e
        return v

    @property
    def generator_timeout_seconds(self) -> float:
        return self.generator_timeout_ms / 1000

    @property
    def pipeline_deadline_seconds(self) -> float | None:
        if self.pipeline_deadline_ms is None:
            return None
        return self.pipeline_deadline_ms / 1000


@lru_cache
def get_settings() -> Settings:
    return Settings()

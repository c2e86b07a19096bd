"""
NetMap configuration.

Everything is read from the environment (or a local .env file) once per
process through pydantic-settings. SECRET_KEY has no default on purpose:
the service refuses to start without one.
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

COST_MODEL_NAMES = ("utilization", "composite")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service
    app_name: str = "NetMap"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Tokens are issued by the platform identity service; we only verify them
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    api_prefix: str = "/api/v1"
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Inventory database (sqlite+aiosqlite locally, postgresql+asyncpg in deployments)
    database_url: str = "sqlite+aiosqlite:///./netmap.db"
    db_ssl_mode: str = "disable"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Tracing (OpenTelemetry, console exporter)
    tracing_enabled: bool = False

    # Path computation
    path_default_max_hops: int = 10
    path_max_hops_limit: int = 64
    path_default_allowed_statuses: list[str] = ["active"]
    # utilization | composite
    path_cost_model: str = "utilization"

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("path_cost_model")
    @classmethod
    def _known_cost_model(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in COST_MODEL_NAMES:
            raise ValueError(f"path_cost_model must be one of {', '.join(COST_MODEL_NAMES)}")
        return value

    @model_validator(mode="after")
    def _hop_limits(self) -> "Settings":
        if self.path_max_hops_limit < 1:
            raise ValueError("path_max_hops_limit must be at least 1")
        if not 0 <= self.path_default_max_hops <= self.path_max_hops_limit:
            raise ValueError("path_default_max_hops must be between 0 and path_max_hops_limit")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()

"""
Shared configuration management for the Products Service.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias="APP_ENV")
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")

    # External services
    database_url: str = Field(validation_alias="DATABASE_URL")
    redis_url: Optional[str] = Field(default=None, validation_alias="REDIS_URL")

    # Connection pools
    db_pool_min_size: int = Field(default=2, validation_alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(default=10, validation_alias="DB_POOL_MAX_SIZE")
    db_command_timeout: float = Field(default=30.0, validation_alias="DB_COMMAND_TIMEOUT")

    # Observability
    enable_tracing: bool = Field(default=False, validation_alias="ENABLE_TRACING")
    otel_exporter: Optional[str] = Field(default=None, validation_alias="OTEL_EXPORTER")
    enable_console_tracing: bool = Field(default=False, validation_alias="ENABLE_CONSOLE_TRACING")

    @field_validator("redis_url", mode="before")
    @classmethod
    def _blank_redis_url(cls, value):
        # An empty REDIS_URL disables the cache just like an unset one.
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int = Field(default=8080, validation_alias="PORT")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")

    def __init__(self, service_name: str, **kwargs):
        super().__init__(service_name=service_name, **kwargs)

    @property
    def cache_enabled(self) -> bool:
        return self.redis_url is not None


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service.

    Raises ``pydantic.ValidationError`` when a required setting such as
    ``DATABASE_URL`` is missing.
    """
    return ServiceConfig(service_name=service_name, **overrides)

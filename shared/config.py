"""
Shared configuration management for the Records Service.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="RECORDS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Remote user directory
    user_api_url: str = Field(default="https://jsonplaceholder.typicode.com")
    user_api_timeout: float = Field(default=10.0, gt=0)
    user_api_retry_attempts: int = Field(default=3, ge=1)
    circuit_failure_threshold: int = Field(default=5, ge=1)
    circuit_recovery_timeout: float = Field(default=30.0, ge=0)

    # Patient store
    database_url: str = Field(default="sqlite:///./records.db")

    # Change events
    kafka_enabled: bool = Field(default=False)
    kafka_bootstrap: str = Field(default="localhost:9092")
    user_events_topic: str = Field(default="user-topic")
    event_workers: int = Field(default=1, ge=1)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)

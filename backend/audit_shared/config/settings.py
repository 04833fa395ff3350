"""
Centralized Configuration System for the audit event service

Type-safe configuration using Pydantic Settings. Every group binds its own
environment variable prefix and can be overridden through a local `.env` file.

Features:
- Type-safe configuration with validation
- Environment variable binding with defaults
- Hierarchical configuration structure
- Test-friendly configuration isolation (reload_settings)
"""

import os
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> Optional[str]:
    return ".env" if not os.getenv("DOCKER_CONTAINER") else None


class Environment(str, Enum):
    """Application environment types"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class MongoSettings(BaseSettings):
    """MongoDB connection and query budget settings"""

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        env_file=_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    uri: str = Field(
        default="mongodb://127.0.0.1:27017/",
        description="MongoDB connection URI"
    )
    database: str = Field(
        default="audit-service",
        description="MongoDB database name"
    )
    collection: str = Field(
        default="audit",
        description="Collection holding audit records"
    )
    max_time_ms: int = Field(
        default=1000,
        ge=1,
        description="Maximum server-side execution time for every store call"
    )
    retry_writes: bool = Field(
        default=True,
        description="Enable driver-level retryable writes"
    )
    read_preference: str = Field(
        default="secondaryPreferred",
        description="Read preference used for paginated reads"
    )


class DataSettings(BaseSettings):
    """Data retention settings"""

    model_config = SettingsConfigDict(
        env_prefix="DATA_",
        env_file=_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    global_ttl: Optional[int] = Field(
        default=None,
        description="Expiry of audit records in seconds (unset or <= 0 disables expiry)"
    )

    @field_validator("global_ttl", mode="before")
    @classmethod
    def empty_ttl_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def ttl_seconds(self) -> Optional[int]:
        """Positive TTL, or None when retention is disabled"""
        if self.global_ttl is None or self.global_ttl <= 0:
            return None
        return self.global_ttl


class SocSettings(BaseSettings):
    """Security operations forwarding settings"""

    model_config = SettingsConfigDict(
        env_prefix="SOC_",
        env_file=_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    enabled: bool = Field(
        default=False,
        description="Forward security views to the SOC audit stream"
    )


class KafkaSettings(BaseSettings):
    """Kafka consumer settings for the audit event worker"""

    model_config = SettingsConfigDict(
        env_prefix="KAFKA_",
        env_file=_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    bootstrap_servers: str = Field(
        default="localhost:9092",
        description="Kafka bootstrap servers"
    )
    topic: str = Field(
        default="audit-events",
        description="Topic carrying audit event envelopes"
    )
    group_id: str = Field(
        default="audit-event-worker",
        description="Consumer group id"
    )
    poll_timeout_seconds: float = Field(
        default=1.0,
        description="Consumer poll timeout in seconds"
    )
    retry_backoff_seconds: float = Field(
        default=5.0,
        description="Pause before re-reading a message whose storage failed"
    )


class ApiSettings(BaseSettings):
    """HTTP API settings"""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    host: str = Field(
        default="0.0.0.0",
        description="API bind host"
    )
    port: int = Field(
        default=3001,
        description="API bind port"
    )
    default_page_size: int = Field(
        default=20,
        ge=1,
        description="Page size used when the caller does not pass one"
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        description="Largest page size a caller may request"
    )


class ApplicationSettings(BaseSettings):
    """Main application settings - aggregates all other settings"""

    model_config = SettingsConfigDict(
        env_file=_env_file(),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    service_name: str = Field(
        default="audit-service",
        description="Service name used in logs and health responses"
    )
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Nested settings
    mongo: MongoSettings = Field(default_factory=MongoSettings)
    data: DataSettings = Field(default_factory=DataSettings)
    soc: SocSettings = Field(default_factory=SocSettings)
    kafka: KafkaSettings = Field(default_factory=KafkaSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)


settings = ApplicationSettings()


def get_settings() -> ApplicationSettings:
    """
    Get the global settings instance

    Can be used with FastAPI's Depends() for dependency injection.
    """
    return settings


def reload_settings() -> ApplicationSettings:
    """
    Reload settings from environment (useful for testing)

    Returns:
        ApplicationSettings: New settings instance with reloaded values
    """
    global settings
    settings = ApplicationSettings()
    return settings

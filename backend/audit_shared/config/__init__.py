"""
Unified Configuration Access Point

    from audit_shared.config import get_settings

    settings = get_settings()
    max_time_ms = settings.mongo.max_time_ms
"""

from .settings import (
    ApiSettings,
    ApplicationSettings,
    DataSettings,
    Environment,
    KafkaSettings,
    MongoSettings,
    SocSettings,
    get_settings,
    reload_settings,
)

__all__ = [
    "ApiSettings",
    "ApplicationSettings",
    "DataSettings",
    "Environment",
    "KafkaSettings",
    "MongoSettings",
    "SocSettings",
    "get_settings",
    "reload_settings",
]

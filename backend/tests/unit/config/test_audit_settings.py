from __future__ import annotations

import pytest

from audit_shared.config.settings import ApplicationSettings, DataSettings, reload_settings


def test_defaults_match_service_contract(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("MONGO_DATABASE", "MONGO_COLLECTION", "MONGO_MAX_TIME_MS", "DATA_GLOBAL_TTL", "SOC_ENABLED"):
        monkeypatch.delenv(name, raising=False)

    settings = ApplicationSettings()

    assert settings.mongo.database == "audit-service"
    assert settings.mongo.collection == "audit"
    assert settings.mongo.max_time_ms == 1000
    assert settings.mongo.read_preference == "secondaryPreferred"
    assert settings.data.ttl_seconds is None
    assert settings.soc.enabled is False
    assert settings.api.default_page_size == 20
    assert settings.api.max_page_size == 100


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://mongo:27017/")
    monkeypatch.setenv("MONGO_MAX_TIME_MS", "250")
    monkeypatch.setenv("DATA_GLOBAL_TTL", "86400")
    monkeypatch.setenv("SOC_ENABLED", "true")
    monkeypatch.setenv("KAFKA_TOPIC", "audit-events-v2")

    settings = reload_settings()

    assert settings.mongo.uri == "mongodb://mongo:27017/"
    assert settings.mongo.max_time_ms == 250
    assert settings.data.ttl_seconds == 86400
    assert settings.soc.enabled is True
    assert settings.kafka.topic == "audit-events-v2"

    monkeypatch.undo()
    reload_settings()


@pytest.mark.parametrize("raw", ["", "0", "-5"])
def test_non_positive_or_empty_ttl_disables_retention(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("DATA_GLOBAL_TTL", raw)

    assert DataSettings().ttl_seconds is None

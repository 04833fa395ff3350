from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

import pytest

from audit_shared.exceptions import (
    EventValidationError,
    MalformedEnvelopeError,
    OperationTimeoutError,
    StorageError,
)
from audit_shared.observability.metrics import EVENTS_PROCESSED
from audit_shared.services.audit_event_store import generate_audit_id
from audit_shared.services.event_processor import EventProcessor
from audit_shared.services.security_forwarder import SecurityEventForwarder


class _FakeStore:
    def __init__(self, error: Exception | None = None) -> None:
        self.saved: List[Dict[str, Any]] = []
        self._error = error

    async def save_audit_event(self, audit_view: Dict[str, Any]) -> str:
        if self._error is not None:
            raise self._error
        self.saved.append(audit_view)
        return generate_audit_id(audit_view)


class _FakeForwarder:
    def __init__(self, error: Exception | None = None) -> None:
        self.forwarded: List[Dict[str, Any]] = []
        self._error = error

    def forward(self, security_view: Dict[str, Any]) -> bool:
        if self._error is not None:
            raise self._error
        self.forwarded.append(security_view)
        return True


def _envelope(payload: Any) -> Dict[str, str]:
    return {"Body": json.dumps({"Message": json.dumps(payload)})}


def _outcome_count(outcome: str) -> float:
    return EVENTS_PROCESSED.labels(outcome=outcome)._value.get()


@pytest.mark.asyncio
async def test_process_event_persists_audit_and_forwards_security(raw_event) -> None:
    store, forwarder = _FakeStore(), _FakeForwarder()
    processed_before = _outcome_count("processed")

    result = await EventProcessor(store, forwarder).process_event(_envelope(raw_event))

    assert len(store.saved) == 1
    assert len(forwarder.forwarded) == 1
    assert result.audit_id == generate_audit_id(store.saved[0])
    assert result.forwarded is True
    assert _outcome_count("processed") == processed_before + 1


@pytest.mark.asyncio
async def test_process_event_security_only_is_not_persisted(raw_event) -> None:
    del raw_event["audit"]
    store, forwarder = _FakeStore(), _FakeForwarder()

    result = await EventProcessor(store, forwarder).process_event(_envelope(raw_event))

    assert store.saved == []
    assert len(forwarder.forwarded) == 1
    assert forwarder.forwarded[0]["pmcode"] == "0706"
    assert result.audit_id is None


@pytest.mark.asyncio
async def test_process_event_audit_only_is_not_forwarded(raw_event) -> None:
    raw_event["security"] = None
    store, forwarder = _FakeStore(), _FakeForwarder()

    result = await EventProcessor(store, forwarder).process_event(_envelope(raw_event))

    assert len(store.saved) == 1
    assert forwarder.forwarded == []
    assert result.forwarded is False


@pytest.mark.asyncio
async def test_process_event_stops_on_malformed_envelope() -> None:
    store, forwarder = _FakeStore(), _FakeForwarder()
    malformed_before = _outcome_count("malformed")

    with pytest.raises(MalformedEnvelopeError):
        await EventProcessor(store, forwarder).process_event({"Body": "not json"})

    assert store.saved == []
    assert forwarder.forwarded == []
    assert _outcome_count("malformed") == malformed_before + 1


@pytest.mark.asyncio
async def test_process_event_stops_on_invalid_event(raw_event) -> None:
    del raw_event["sessionId"]
    store, forwarder = _FakeStore(), _FakeForwarder()

    with pytest.raises(EventValidationError):
        await EventProcessor(store, forwarder).process_event(_envelope(raw_event))

    assert store.saved == []
    assert forwarder.forwarded == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, expected",
    [
        (OperationTimeoutError("save_audit_event", 1000), OperationTimeoutError),
        (StorageError("save_audit_event", "connection reset"), StorageError),
    ],
)
async def test_process_event_does_not_forward_when_store_fails(raw_event, error, expected) -> None:
    forwarder = _FakeForwarder()

    with pytest.raises(expected):
        await EventProcessor(_FakeStore(error), forwarder).process_event(_envelope(raw_event))

    assert forwarder.forwarded == []


@pytest.mark.asyncio
async def test_process_event_survives_forwarder_failure(raw_event, caplog) -> None:
    store = _FakeStore()
    caplog.set_level(logging.ERROR)

    result = await EventProcessor(store, _FakeForwarder(RuntimeError("sink down"))).process_event(
        _envelope(raw_event)
    )

    assert len(store.saved) == 1
    assert result.forwarded is False
    assert "Failed to forward security event" in caplog.text


@pytest.mark.asyncio
async def test_process_event_with_soc_disabled_emits_nothing(raw_event) -> None:
    sink = logging.getLogger("audit.soc.test-disabled")
    records: List[logging.LogRecord] = []
    handler = logging.Handler()
    handler.emit = records.append
    sink.addHandler(handler)
    try:
        forwarder = SecurityEventForwarder(enabled=False, logger=sink)
        result = await EventProcessor(_FakeStore(), forwarder).process_event(_envelope(raw_event))
    finally:
        sink.removeHandler(handler)

    assert records == []
    assert result.forwarded is False


@pytest.mark.asyncio
async def test_process_event_rejects_unstorable_details_before_store(raw_event) -> None:
    raw_event["audit"]["details"] = {"n": 2 ** 64}
    store, forwarder = _FakeStore(), _FakeForwarder()

    with pytest.raises(EventValidationError):
        await EventProcessor(store, forwarder).process_event(_envelope(raw_event))

    assert store.saved == []
    assert forwarder.forwarded == []

from __future__ import annotations

import copy
import os
from typing import Any, Dict, List, Optional

import pytest
from pymongo.errors import DuplicateKeyError, OperationFailure


def pytest_configure() -> None:
    """
    Test defaults for the `backend/tests` suite.

    Settings must not pick up a developer's local `.env`, and the SOC stream
    stays off unless a test enables it explicitly.
    """
    os.environ.setdefault("DOCKER_CONTAINER", "true")
    os.environ.setdefault("SOC_ENABLED", "false")
    os.environ.setdefault("ENVIRONMENT", "test")


class _FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]) -> None:
        self._documents = documents

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        if length is None:
            return list(self._documents)
        return list(self._documents[:length])


class _FakeCollection:
    def __init__(self, database: "_FakeDatabase", name: str) -> None:
        self.database = database
        self.name = name
        self.documents: List[Dict[str, Any]] = []
        self.indexes: Dict[str, Dict[str, Any]] = {}
        self.read_preference = None
        self.update_calls = 0
        self.index_calls: List[tuple] = []
        self._failures: List[Exception] = []

    def fail_next(self, exc: Exception) -> None:
        self._failures.append(exc)

    def _maybe_fail(self) -> None:
        if self._failures:
            raise self._failures.pop(0)

    def _materialize(self) -> None:
        self.database.existing.add(self.name)
        self.indexes.setdefault("_id_", {"key": [("_id", 1)]})

    def with_options(self, read_preference=None, **_kwargs) -> "_FakeCollection":
        self.read_preference = read_preference
        return self

    async def update_one(self, filter: Dict[str, Any], update: Dict[str, Any], upsert: bool = False):
        self._maybe_fail()
        self.update_calls += 1
        if any(doc["_id"] == filter["_id"] for doc in self.documents):
            return None
        if upsert:
            self._materialize()
            self.documents.append(copy.deepcopy(update["$setOnInsert"]))
        return None

    def find(self, filter: Dict[str, Any], sort=None, skip: int = 0, limit: int = 0) -> _FakeCursor:
        self._maybe_fail()
        documents = [copy.deepcopy(doc) for doc in self.documents]
        for field, direction in reversed(sort or []):
            documents.sort(key=lambda doc: doc[field], reverse=direction < 0)
        documents = documents[skip:]
        if limit:
            documents = documents[:limit]
        return _FakeCursor(documents)

    async def create_index(self, keys, name: str, **options) -> str:
        self._maybe_fail()
        self.index_calls.append(("create", name))
        definition = {"key": [(field, direction) for field, direction in keys], **options}
        current = self.indexes.get(name)
        if current is not None and current != definition:
            raise OperationFailure("Index already exists with different options", code=85)
        self._materialize()
        self.indexes[name] = definition
        return name

    async def drop_index(self, name: str) -> None:
        self._maybe_fail()
        self.index_calls.append(("drop", name))
        if name not in self.indexes:
            raise OperationFailure(f"index not found with name [{name}]", code=27)
        del self.indexes[name]

    async def index_information(self) -> Dict[str, Dict[str, Any]]:
        self._maybe_fail()
        return copy.deepcopy(self.indexes)


class _FakeDatabase:
    def __init__(self) -> None:
        self.collections: Dict[str, _FakeCollection] = {}
        self.existing: set[str] = set()

    def __getitem__(self, name: str) -> _FakeCollection:
        if name not in self.collections:
            self.collections[name] = _FakeCollection(self, name)
        return self.collections[name]

    async def list_collection_names(self) -> List[str]:
        return sorted(self.existing)


class _FakeAdmin:
    def __init__(self) -> None:
        self.reachable = True

    async def command(self, name: str) -> Dict[str, Any]:
        if not self.reachable:
            from pymongo.errors import AutoReconnect

            raise AutoReconnect("connection refused")
        return {"ok": 1.0}


class FakeMongoClient:
    """In-memory stand-in for pymongo's AsyncMongoClient (subset used by the store)."""

    def __init__(self) -> None:
        self.databases: Dict[str, _FakeDatabase] = {}
        self.admin = _FakeAdmin()
        self.closed = False

    def __getitem__(self, name: str) -> _FakeDatabase:
        if name not in self.databases:
            self.databases[name] = _FakeDatabase()
        return self.databases[name]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_mongo_client() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture
def duplicate_key_error() -> DuplicateKeyError:
    return DuplicateKeyError("E11000 duplicate key error collection: audit-service.audit", code=11000)


@pytest.fixture
def raw_event() -> Dict[str, Any]:
    return {
        "user": "IDM/8b2c9a34-1234-4c3d-9e8f-0a1b2c3d4e5f",
        "sessionId": "3be44b80-71bf-4c1f-b1a4-1b6e3a2e0e0c",
        "correlationId": "79a5a1b0-0c3e-4f2b-8a53-2f1b4b0c9d11",
        "datetime": "2025-12-01T12:51:41.381Z",
        "environment": "PROD",
        "version": "1.1",
        "application": "FCP001",
        "component": "web",
        "ip": "192.168.1.100",
        "security": {
            "pmcode": "0706",
            "priority": 0,
            "details": {
                "transactionCode": "2306",
                "message": "User successfully signed in",
                "additionalInfo": "Mobile: 07000000000",
            },
        },
        "audit": {
            "eventType": "ActionRequest",
            "action": "Created",
            "entity": "Application",
            "entityId": "1234567890",
            "status": "Success",
            "details": {"caseType": "grant"},
        },
    }

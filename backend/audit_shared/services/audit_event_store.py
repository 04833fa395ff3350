"""
Audit event store (MongoDB).

Contract:
- Records are keyed by a deterministic `_id` derived from the audit view, so
  a redelivered event always maps to the same document.
- Writes are insert-if-absent (`$setOnInsert` upsert): the first write wins and
  later writes with the same `_id` are silently discarded.
- Every store call runs under `max_time_ms`; exceeding it raises
  OperationTimeoutError, any other driver failure raises StorageError.
"""

from __future__ import annotations

import base64
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional

import pymongo
from bson.errors import BSONError
from pymongo import ASCENDING, DESCENDING, AsyncMongoClient, ReadPreference
from pymongo.errors import DuplicateKeyError, PyMongoError, ServerSelectionTimeoutError

from audit_shared.config.settings import ApplicationSettings, MongoSettings
from audit_shared.exceptions import OperationTimeoutError, StorageError
from audit_shared.models import AuditView
from audit_shared.observability.metrics import STORE_OPERATION_SECONDS
from audit_shared.utils.app_logger import get_logger

logger = get_logger(__name__)

TTL_INDEX_NAME = "events_ttl"
RECEIVED_INDEX_NAME = "events_by_received"

# Composite identity: application|sessionId|datetime|ip
AUDIT_ID_FIELDS = ("application", "sessionId", "datetime", "ip")
AUDIT_ID_DELIMITER = "|"

_READ_PREFERENCES = {
    "primary": ReadPreference.PRIMARY,
    "primaryPreferred": ReadPreference.PRIMARY_PREFERRED,
    "secondary": ReadPreference.SECONDARY,
    "secondaryPreferred": ReadPreference.SECONDARY_PREFERRED,
    "nearest": ReadPreference.NEAREST,
}


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2025-12-01T12:51:41.381Z"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _id_component(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return format_timestamp(value)
    return str(value)


def generate_audit_id(audit_view: Mapping[str, Any]) -> str:
    raw_id = AUDIT_ID_DELIMITER.join(_id_component(audit_view.get(field)) for field in AUDIT_ID_FIELDS)
    return base64.b64encode(raw_id.encode("utf-8")).decode("ascii")


class AuditEventStore:
    """
    MongoDB-backed store for audit records.

    Lifecycle is explicit: construct, `connect()` (indexes + retention), use,
    `close()`. A client can be injected; the store only closes clients it
    created itself.
    """

    def __init__(
        self,
        settings: MongoSettings,
        *,
        ttl_seconds: Optional[int] = None,
        max_page_size: Optional[int] = None,
        client: Optional[Any] = None,
    ):
        self._settings = settings
        self._ttl_seconds = ttl_seconds
        self._max_page_size = max_page_size
        self._max_time_ms = settings.max_time_ms
        self._read_preference = _READ_PREFERENCES.get(
            settings.read_preference, ReadPreference.SECONDARY_PREFERRED
        )
        self._client = client
        self._owns_client = client is None
        self._db = None
        self._collection = None

    async def connect(self) -> None:
        if self._collection is not None:
            return
        if self._client is None:
            self._client = AsyncMongoClient(
                self._settings.uri,
                retryWrites=self._settings.retry_writes,
                tz_aware=True,
            )
        self._db = self._client[self._settings.database]
        self._collection = self._db[self._settings.collection]
        logger.info("Audit event store connected to %s", self._settings.database)

        await self.ensure_indexes()
        await self.reconcile_retention(self._ttl_seconds)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            logger.info("Closing Mongo client")
            await self._client.close()
            self._client = None
        self._db = None
        self._collection = None

    async def health_check(self) -> bool:
        if self._client is None:
            return False
        try:
            with self._guard("ping"):
                await self._client.admin.command("ping")
            return True
        except (OperationTimeoutError, StorageError):
            logger.warning("Audit event store ping failed", exc_info=True)
            return False

    def _require_collection(self):
        if self._collection is None:
            raise RuntimeError("AuditEventStore not connected")
        return self._collection

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            with STORE_OPERATION_SECONDS.labels(operation=operation).time(), pymongo.timeout(self._max_time_ms / 1000):
                yield
        except ServerSelectionTimeoutError as e:
            # No reachable server is a connectivity failure, not a slow query.
            raise StorageError(operation, str(e)) from e
        except PyMongoError as e:
            if e.timeout:
                raise OperationTimeoutError(operation, self._max_time_ms, str(e)) from e
            raise StorageError(operation, str(e)) from e
        except (BSONError, OverflowError) as e:
            # Document could not be encoded for the wire.
            raise StorageError(operation, str(e)) from e

    async def ensure_indexes(self) -> None:
        collection = self._require_collection()
        with self._guard("ensure_indexes"):
            await collection.create_index([("received", DESCENDING)], name=RECEIVED_INDEX_NAME)

    async def reconcile_retention(self, ttl_seconds: Optional[int]) -> None:
        """
        Make the expiry index on `received` match the configured TTL.

        Positive TTL: create the index, or drop and recreate it when its expiry
        differs. No TTL: drop the index if present. Repeated calls with the
        same configuration are no-ops.
        """
        collection = self._require_collection()
        with self._guard("reconcile_retention"):
            existing = await self._db.list_collection_names()
            indexes = await collection.index_information() if self._settings.collection in existing else {}
            current = indexes.get(TTL_INDEX_NAME)

            if ttl_seconds is not None and ttl_seconds > 0:
                if current is not None and current.get("expireAfterSeconds") == ttl_seconds:
                    return
                if current is not None:
                    logger.info("Replacing %s index (expireAfterSeconds=%s)", TTL_INDEX_NAME, ttl_seconds)
                    await collection.drop_index(TTL_INDEX_NAME)
                await collection.create_index(
                    [("received", ASCENDING)],
                    name=TTL_INDEX_NAME,
                    expireAfterSeconds=ttl_seconds,
                )
                logger.info("Audit records expire after %s seconds", ttl_seconds)
            elif current is not None:
                await collection.drop_index(TTL_INDEX_NAME)
                logger.info("Dropped %s index; audit records no longer expire", TTL_INDEX_NAME)

    async def save_audit_event(self, audit_view: AuditView) -> str:
        """
        Insert the audit record unless one with the same identity exists.

        Returns:
            The record's `_id`
        """
        collection = self._require_collection()
        audit_id = generate_audit_id(audit_view)
        record: Dict[str, Any] = {"_id": audit_id, **audit_view, "received": datetime.now(timezone.utc)}

        with self._guard("save_audit_event"):
            try:
                await collection.update_one(
                    {"_id": audit_id},
                    {"$setOnInsert": record},
                    upsert=True,
                )
            except DuplicateKeyError:
                # Lost an upsert race for the same _id; the winner's record stands.
                logger.debug("Audit record %s already stored", audit_id)

        return audit_id

    async def list_audit_events(self, page: int, page_size: int) -> List[Dict[str, Any]]:
        """Newest-first page of audit records; empty beyond the last page."""
        if page < 1:
            raise ValueError("page must be >= 1")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        if self._max_page_size is not None and page_size > self._max_page_size:
            raise ValueError(f"page_size must be <= {self._max_page_size}")

        collection = self._require_collection().with_options(read_preference=self._read_preference)
        with self._guard("list_audit_events"):
            cursor = collection.find(
                {},
                sort=[("received", DESCENDING)],
                skip=(page - 1) * page_size,
                limit=page_size,
            )
            return await cursor.to_list(length=None)


def create_audit_event_store(settings: ApplicationSettings) -> AuditEventStore:
    return AuditEventStore(
        settings.mongo,
        ttl_seconds=settings.data.ttl_seconds,
        max_page_size=settings.api.max_page_size,
    )

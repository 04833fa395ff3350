"""
Audit event worker.

Consumes audit event envelopes from Kafka and runs each one through the event
pipeline. Exposes /health + /metrics.

Offset policy (at-least-once):
- processed, malformed or invalid -> commit (a malformed/invalid event would
  fail identically on redelivery, so it is dropped)
- store timeout / storage failure -> no commit; seek back so the same message
  is redelivered after a backoff
- any other failure -> logged and skipped; the consumer loop keeps running
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional

from confluent_kafka import Consumer, KafkaError, TopicPartition
from fastapi import FastAPI

from audit_shared.config.settings import ApplicationSettings, get_settings
from audit_shared.exceptions import (
    EventValidationError,
    MalformedEnvelopeError,
    OperationTimeoutError,
    StorageError,
)
from audit_shared.observability.metrics import record_outcome
from audit_shared.services.audit_event_store import AuditEventStore, create_audit_event_store
from audit_shared.services.event_processor import EventProcessor
from audit_shared.services.security_forwarder import SecurityEventForwarder
from audit_shared.services.service_factory import ServiceInfo, create_fastapi_service
from audit_shared.utils.app_logger import configure_logging

logger = logging.getLogger(__name__)


class AuditEventWorker:
    def __init__(
        self,
        settings: Optional[ApplicationSettings] = None,
        *,
        processor: Optional[EventProcessor] = None,
        consumer_factory: Callable[[Dict[str, Any]], Any] = Consumer,
    ) -> None:
        self.settings = settings or get_settings()
        self.processor = processor
        self._consumer_factory = consumer_factory
        self.store: Optional[AuditEventStore] = None
        self.consumer: Optional[Any] = None
        self.running = False

    def _consumer_config(self) -> Dict[str, Any]:
        kafka = self.settings.kafka
        return {
            "bootstrap.servers": kafka.bootstrap_servers,
            "group.id": kafka.group_id,
            "auto.offset.reset": "earliest",
            "enable.auto.commit": False,
            "max.poll.interval.ms": 300000,
            "session.timeout.ms": 45000,
        }

    async def initialize(self) -> None:
        if self.processor is None:
            self.store = create_audit_event_store(self.settings)
            await self.store.connect()
            self.processor = EventProcessor(
                self.store,
                SecurityEventForwarder(enabled=self.settings.soc.enabled),
            )
        self.consumer = self._consumer_factory(self._consumer_config())
        self.consumer.subscribe([self.settings.kafka.topic])
        logger.info("Subscribed to topic: %s", self.settings.kafka.topic)

    async def close(self) -> None:
        if self.consumer is not None:
            self.consumer.close()
            self.consumer = None
        if self.store is not None:
            await self.store.close()
            self.store = None

    def _commit(self, msg: Any) -> None:
        self.consumer.commit(message=msg, asynchronous=False)

    async def handle_message(self, msg: Any) -> bool:
        """
        Process one Kafka message.

        Returns:
            True when the offset was committed, False when the message was left
            for redelivery.
        """
        position = f"{msg.topic()}[{msg.partition()}]@{msg.offset()}"
        try:
            await self.processor.process_event(msg.value())
        except (MalformedEnvelopeError, EventValidationError) as e:
            logger.error("Dropping event at %s: %s", position, e)
            self._commit(msg)
            return True
        except (OperationTimeoutError, StorageError) as e:
            logger.warning("Event at %s not stored, awaiting redelivery: %s", position, e)
            self.consumer.seek(TopicPartition(msg.topic(), msg.partition(), msg.offset()))
            return False

        self._commit(msg)
        return True

    async def run(self, stop_event: asyncio.Event) -> None:
        if self.consumer is None or self.processor is None:
            raise RuntimeError("AuditEventWorker not initialized")

        kafka = self.settings.kafka
        self.running = True
        logger.info("Consumer started. Group: %s", kafka.group_id)
        try:
            while not stop_event.is_set():
                msg = await asyncio.to_thread(self.consumer.poll, kafka.poll_timeout_seconds)
                if msg is None:
                    continue

                if msg.error():
                    if msg.error().code() == KafkaError._PARTITION_EOF:
                        logger.debug("Reached end of partition %s", msg.partition())
                    else:
                        logger.error("Consumer error: %s", msg.error())
                    continue

                try:
                    committed = await self.handle_message(msg)
                except Exception:
                    # The offset stays uncommitted; the next commit on the partition moves past it.
                    record_outcome("error")
                    logger.exception(
                        "Unexpected failure on %s[%s]@%s; skipping",
                        msg.topic(),
                        msg.partition(),
                        msg.offset(),
                    )
                    continue
                if not committed:
                    try:
                        await asyncio.wait_for(stop_event.wait(), timeout=kafka.retry_backoff_seconds)
                    except asyncio.TimeoutError:
                        pass
        finally:
            self.running = False


SERVICE_INFO = ServiceInfo(
    name="audit-event-worker",
    title="Audit Event Worker",
    description="Validates, stores and forwards audit events from Kafka.",
    port=8013,
    host="0.0.0.0",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_settings().log_level)
    worker = AuditEventWorker()
    await worker.initialize()
    stop_event = asyncio.Event()
    task = asyncio.create_task(worker.run(stop_event))
    app.state.audit_worker = worker
    app.state.audit_store = worker.store
    app.state.audit_worker_stop = stop_event
    app.state.audit_worker_task = task
    try:
        yield
    finally:
        stop_event.set()
        try:
            await task
        except Exception:
            logger.warning("Audit event worker shutdown failed", exc_info=True)
        await worker.close()


app = create_fastapi_service(
    service_info=SERVICE_INFO,
    custom_lifespan=lifespan,
    include_health_check=True,
    include_logging_middleware=True,
)


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "audit_event_worker.main:app",
        host=SERVICE_INFO.host,
        port=SERVICE_INFO.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

"""
Shared building blocks of the audit event service

Configuration, domain models, the event pipeline and the MongoDB-backed
audit event store used by both the API and the queue worker.
"""

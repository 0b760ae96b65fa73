"""Persistence adapters."""

from auditmarket.infrastructure.adapters.persistence.postgres_record_store import (
    SCHEMA_STATEMENTS,
    PostgresAuditRecordStore,
)

__all__ = ["SCHEMA_STATEMENTS", "PostgresAuditRecordStore"]

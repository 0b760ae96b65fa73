"""PostgreSQL audit record store (SQLAlchemy async + asyncpg).

Conditional updates lock the row, re-validate the patch against the
domain invariants, and apply it with

    UPDATE audit_requests SET ... WHERE id = :id AND status = :expected RETURNING *

so the persisted status is the only concurrency guard. Connection and
driver failures surface as ExternalServiceError(service="record_store").

Usage:
    from auditmarket.bootstrap.database import get_session_factory

    store = PostgresAuditRecordStore(get_session_factory())
    await store.ensure_schema()
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from auditmarket.domain.errors import (
    AuditRequestNotFoundError,
    ConflictError,
    ExternalServiceError,
    InvalidStateTransitionError,
)
from auditmarket.domain.models.audit_request import (
    PATCHABLE_FIELDS,
    AuditRequest,
    AuditStatus,
    PendingSubmission,
)
from auditmarket.domain.models.estimation import (
    Complexity,
    EstimationReport,
    EstimationSource,
)
from auditmarket.domain.models.finding import (
    Finding,
    FindingStatus,
    Severity,
    VulnerabilityCategory,
)

logger = get_logger()

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS audit_requests (
        id UUID PRIMARY KEY,
        project_name TEXT NOT NULL,
        project_description TEXT NOT NULL,
        source_url TEXT NOT NULL,
        repository_hash CHAR(64) NOT NULL,
        submitter_address TEXT NOT NULL,
        estimation JSONB NOT NULL,
        proposed_price NUMERIC(18, 2) NOT NULL,
        reviewer_count SMALLINT NOT NULL CHECK (reviewer_count BETWEEN 1 AND 3),
        tags TEXT[] NOT NULL DEFAULT '{}',
        status TEXT NOT NULL,
        negotiated_price NUMERIC(18, 2),
        reviewer_address TEXT,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL,
        start_date TIMESTAMPTZ,
        estimated_completion_date TIMESTAMPTZ,
        results_submitted_at TIMESTAMPTZ,
        completed_at TIMESTAMPTZ,
        request_record_id BIGINT,
        request_evidence_cid TEXT,
        request_contract_address TEXT,
        request_transaction_id TEXT,
        result_evidence_cid TEXT,
        result_record_id BIGINT,
        result_contract_address TEXT,
        result_transaction_id TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_audit_requests_status ON audit_requests (status)",
    """
    CREATE INDEX IF NOT EXISTS ix_audit_requests_reviewer
        ON audit_requests (lower(reviewer_address))
    """,
    """
    CREATE TABLE IF NOT EXISTS audit_findings (
        id UUID PRIMARY KEY,
        request_id UUID NOT NULL REFERENCES audit_requests (id),
        severity TEXT NOT NULL,
        category TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        file_name TEXT,
        line_number INTEGER CHECK (line_number >= 1),
        status TEXT NOT NULL,
        recommendation TEXT,
        created_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS pending_submissions (
        checkpoint_id UUID PRIMARY KEY,
        evidence_cid TEXT NOT NULL UNIQUE,
        contract_address TEXT,
        attempts INTEGER NOT NULL,
        created_at TIMESTAMPTZ NOT NULL,
        request JSONB NOT NULL
    )
    """,
)

_REQUEST_COLUMNS = (
    "id",
    "project_name",
    "project_description",
    "source_url",
    "repository_hash",
    "submitter_address",
    "estimation",
    "proposed_price",
    "reviewer_count",
    "tags",
    "status",
    "negotiated_price",
    "reviewer_address",
    "created_at",
    "updated_at",
    "start_date",
    "estimated_completion_date",
    "results_submitted_at",
    "completed_at",
    "request_record_id",
    "request_evidence_cid",
    "request_contract_address",
    "request_transaction_id",
    "result_evidence_cid",
    "result_record_id",
    "result_contract_address",
    "result_transaction_id",
)

_DATETIME_COLUMNS = frozenset(
    {
        "created_at",
        "updated_at",
        "start_date",
        "estimated_completion_date",
        "results_submitted_at",
        "completed_at",
    }
)


def _estimation_from_json(value: Any) -> EstimationReport:
    data = json.loads(value) if isinstance(value, str) else value
    return EstimationReport(
        complexity=Complexity(data["complexity"]),
        duration_days=int(data["duration_days"]),
        price=Decimal(data["price"]),
        minimum_price=Decimal(data["minimum_price"]),
        reasoning=data.get("reasoning", ""),
        risk_factors=tuple(data.get("risk_factors", ())),
        recommendations=tuple(data.get("recommendations", ())),
        audit_scope=data.get("audit_scope", ""),
        estimated_effort=data.get("estimated_effort", ""),
        source=EstimationSource(data.get("source", EstimationSource.FALLBACK.value)),
    )


def _request_params(request: AuditRequest) -> dict[str, Any]:
    """Bind parameters for an audit_requests row."""
    params = {column: getattr(request, column) for column in _REQUEST_COLUMNS}
    params["estimation"] = json.dumps(request.estimation.to_dict())
    params["status"] = request.status.value
    params["tags"] = sorted(request.tags)
    return params


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _optional_decimal(value: Any) -> Decimal | None:
    return None if value is None else Decimal(str(value))


def _request_from_mapping(row: Mapping[str, Any]) -> AuditRequest:
    """Rebuild an AuditRequest from a row or its JSON form."""
    values = {column: row[column] for column in _REQUEST_COLUMNS}
    for column in _DATETIME_COLUMNS:
        values[column] = _parse_datetime(values[column])
    values["id"] = values["id"] if isinstance(values["id"], UUID) else UUID(str(values["id"]))
    values["estimation"] = _estimation_from_json(values["estimation"])
    values["proposed_price"] = Decimal(str(values["proposed_price"]))
    values["negotiated_price"] = _optional_decimal(values["negotiated_price"])
    values["status"] = AuditStatus(values["status"])
    values["tags"] = frozenset(values["tags"] or ())
    values["repository_hash"] = values["repository_hash"].strip()
    return AuditRequest(**values)


def _request_to_json(request: AuditRequest) -> str:
    def encode(value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, (Decimal, UUID)):
            return str(value)
        return value

    return json.dumps({k: encode(v) for k, v in _request_params(request).items()})


def _finding_from_mapping(row: Mapping[str, Any]) -> Finding:
    return Finding(
        id=row["id"],
        request_id=row["request_id"],
        severity=Severity(row["severity"]),
        category=VulnerabilityCategory(row["category"]),
        title=row["title"],
        description=row["description"],
        file_name=row["file_name"],
        line_number=row["line_number"],
        status=FindingStatus(row["status"]),
        recommendation=row["recommendation"],
        created_at=row["created_at"],
    )


def _pending_from_mapping(row: Mapping[str, Any]) -> PendingSubmission:
    payload = row["request"]
    data = json.loads(payload) if isinstance(payload, str) else payload
    return PendingSubmission(
        request=_request_from_mapping(data),
        evidence_cid=row["evidence_cid"],
        contract_address=row["contract_address"],
        created_at=row["created_at"],
        attempts=row["attempts"],
    )


class PostgresAuditRecordStore:
    """PostgreSQL implementation of AuditRecordStoreProtocol."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize with a session factory.

        Args:
            session_factory: SQLAlchemy async session factory.
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, step: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except IntegrityError:
            raise
        except (SQLAlchemyError, OSError) as exc:
            logger.error("record_store_failed", step=step, error=str(exc))
            raise ExternalServiceError(
                step=step,
                service="record_store",
                reason=type(exc).__name__ + ": " + str(exc).splitlines()[0],
            ) from exc

    async def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        async with self._transaction("ensure_schema") as session:
            for statement in SCHEMA_STATEMENTS:
                await session.execute(text(statement))

    async def create(self, request: AuditRequest) -> AuditRequest:
        columns = ", ".join(_REQUEST_COLUMNS)
        values = ", ".join(
            "CAST(:estimation AS JSONB)" if c == "estimation" else f":{c}"
            for c in _REQUEST_COLUMNS
        )
        try:
            async with self._transaction("create") as session:
                await session.execute(
                    text(f"INSERT INTO audit_requests ({columns}) VALUES ({values})"),
                    _request_params(request),
                )
        except IntegrityError:
            raise ValueError(f"Audit request {request.id} already exists") from None
        return request

    async def get(self, request_id: UUID) -> AuditRequest | None:
        async with self._transaction("get") as session:
            result = await session.execute(
                text("SELECT * FROM audit_requests WHERE id = :id"),
                {"id": request_id},
            )
            row = result.mappings().fetchone()
        return _request_from_mapping(row) if row else None

    async def conditional_update(
        self,
        request_id: UUID,
        expected_status: AuditStatus,
        patch: dict[str, Any],
    ) -> AuditRequest:
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be patched: {sorted(unknown)}")

        async with self._transaction("conditional_update") as session:
            result = await session.execute(
                text("SELECT * FROM audit_requests WHERE id = :id FOR UPDATE"),
                {"id": request_id},
            )
            row = result.mappings().fetchone()
            if row is None:
                raise AuditRequestNotFoundError(request_id)
            current = _request_from_mapping(row)
            if current.status != expected_status:
                raise ConflictError(
                    request_id=request_id,
                    expected_status=expected_status,
                    actual_status=current.status,
                    operation="conditional_update",
                )
            new_status = patch.get("status")
            if new_status is not None and new_status not in current.status.valid_transitions():
                raise InvalidStateTransitionError(
                    request_id=request_id,
                    from_status=current.status,
                    to_status=new_status,
                    allowed_transitions=list(current.status.valid_transitions()),
                )

            # Domain invariants are checked before anything is written
            updated = current.apply_patch(patch)
            params = _request_params(updated)
            assignments = ", ".join(f"{c} = :{c}" for c in sorted(patch) + ["updated_at"])
            result = await session.execute(
                text(
                    f"UPDATE audit_requests SET {assignments} "
                    "WHERE id = :id AND status = :expected_status RETURNING *"
                ),
                {
                    **{c: params[c] for c in list(patch) + ["updated_at"]},
                    "id": request_id,
                    "expected_status": expected_status.value,
                },
            )
            row = result.mappings().fetchone()
            if row is None:
                raise ConflictError(
                    request_id=request_id,
                    expected_status=expected_status,
                    operation="conditional_update",
                )
        return _request_from_mapping(row)

    async def list_requests(
        self,
        status: AuditStatus | None = None,
        reviewer_address: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[AuditRequest], int]:
        filters = """
            WHERE (CAST(:status AS TEXT) IS NULL OR status = :status)
              AND (CAST(:reviewer AS TEXT) IS NULL OR lower(reviewer_address) = lower(:reviewer))
        """
        params = {
            "status": status.value if status else None,
            "reviewer": reviewer_address,
        }
        async with self._transaction("list_requests") as session:
            total = (
                await session.execute(text(f"SELECT COUNT(*) FROM audit_requests {filters}"), params)
            ).scalar() or 0
            result = await session.execute(
                text(
                    f"SELECT * FROM audit_requests {filters} "
                    "ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset"
                ),
                {**params, "limit": limit, "offset": offset},
            )
            rows = result.mappings().fetchall()
        return [_request_from_mapping(r) for r in rows], int(total)

    async def add_findings(self, request_id: UUID, findings: list[Finding]) -> None:
        if not findings:
            return
        try:
            async with self._transaction("add_findings") as session:
                exists = await session.execute(
                    text("SELECT 1 FROM audit_requests WHERE id = :id"),
                    {"id": request_id},
                )
                if exists.fetchone() is None:
                    raise AuditRequestNotFoundError(request_id)
                await session.execute(
                    text("""
                        INSERT INTO audit_findings (
                            id, request_id, severity, category, title, description,
                            file_name, line_number, status, recommendation, created_at
                        ) VALUES (
                            :id, :request_id, :severity, :category, :title, :description,
                            :file_name, :line_number, :status, :recommendation, :created_at
                        )
                    """),
                    [
                        {
                            "id": f.id,
                            "request_id": request_id,
                            "severity": f.severity.value,
                            "category": f.category.value,
                            "title": f.title,
                            "description": f.description,
                            "file_name": f.file_name,
                            "line_number": f.line_number,
                            "status": f.status.value,
                            "recommendation": f.recommendation,
                            "created_at": f.created_at,
                        }
                        for f in findings
                    ],
                )
        except IntegrityError:
            raise ValueError("A finding with the same id already exists") from None

    async def list_findings(self, request_id: UUID) -> list[Finding]:
        async with self._transaction("list_findings") as session:
            result = await session.execute(
                text("""
                    SELECT * FROM audit_findings
                    WHERE request_id = :request_id
                    ORDER BY created_at, id
                """),
                {"request_id": request_id},
            )
            rows = result.mappings().fetchall()
        return [_finding_from_mapping(r) for r in rows]

    async def save_pending_submission(self, pending: PendingSubmission) -> None:
        try:
            await self._insert_pending_submission(pending)
        except IntegrityError:
            # A concurrent identical submission holds the evidence_cid
            logger.warning(
                "checkpoint_conflict",
                checkpoint_id=str(pending.checkpoint_id),
                evidence_cid=pending.evidence_cid,
            )
            raise ConflictError(
                request_id=pending.request.id,
                expected_status=AuditStatus.AVAILABLE,
                operation="checkpoint_submission",
                message=f"Evidence {pending.evidence_cid} is already checkpointed",
            ) from None

    async def _insert_pending_submission(self, pending: PendingSubmission) -> None:
        async with self._transaction("save_pending_submission") as session:
            await session.execute(
                text("""
                    INSERT INTO pending_submissions (
                        checkpoint_id, evidence_cid, contract_address, attempts, created_at, request
                    ) VALUES (
                        :checkpoint_id, :evidence_cid, :contract_address, :attempts,
                        :created_at, CAST(:request AS JSONB)
                    )
                    ON CONFLICT (checkpoint_id) DO UPDATE SET
                        contract_address = EXCLUDED.contract_address,
                        attempts = EXCLUDED.attempts
                """),
                {
                    "checkpoint_id": pending.checkpoint_id,
                    "evidence_cid": pending.evidence_cid,
                    "contract_address": pending.contract_address,
                    "attempts": pending.attempts,
                    "created_at": pending.created_at,
                    "request": _request_to_json(pending.request),
                },
            )

    async def get_pending_submission(self, checkpoint_id: UUID) -> PendingSubmission | None:
        async with self._transaction("get_pending_submission") as session:
            result = await session.execute(
                text("SELECT * FROM pending_submissions WHERE checkpoint_id = :id"),
                {"id": checkpoint_id},
            )
            row = result.mappings().fetchone()
        return _pending_from_mapping(row) if row else None

    async def find_pending_submission(self, evidence_cid: str) -> PendingSubmission | None:
        async with self._transaction("find_pending_submission") as session:
            result = await session.execute(
                text("SELECT * FROM pending_submissions WHERE evidence_cid = :cid"),
                {"cid": evidence_cid},
            )
            row = result.mappings().fetchone()
        return _pending_from_mapping(row) if row else None

    async def delete_pending_submission(self, checkpoint_id: UUID) -> None:
        async with self._transaction("delete_pending_submission") as session:
            await session.execute(
                text("DELETE FROM pending_submissions WHERE checkpoint_id = :id"),
                {"id": checkpoint_id},
            )

"""Governance tests: audit immutability, fields completeness, best-effort writes."""

from datetime import timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.context import correlation_id_ctx
from app.governance.audit_logger import AuditLogger
from app.governance.audit_models import AuditRecord


@pytest.fixture
def audit_repository():
    repo = AsyncMock()
    repo.save = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def mock_audit_logger(audit_repository):
    return AuditLogger(repository=audit_repository)


async def test_audit_immutability(mock_audit_logger, audit_repository):
    """Audit record must not allow mutation; stored via repository in the caller's session."""
    session = MagicMock()
    await mock_audit_logger.log_action(
        session,
        action="REQUEST_APPROVED",
        actor_id="admin-1",
        target_id="beta",
        details={"request_id": "req-1"},
    )
    assert audit_repository.save.await_count == 1
    saved_session, record = audit_repository.save.call_args[0]
    assert saved_session is session
    assert isinstance(record, AuditRecord)
    assert record.action == "REQUEST_APPROVED"
    assert record.actor_id == "admin-1"
    assert record.target_id == "beta"
    assert record.details == {"request_id": "req-1"}
    with pytest.raises(AttributeError):
        record.action = "other"  # type: ignore[misc]


async def test_audit_fields_completeness(mock_audit_logger, audit_repository):
    """Must include who, what, which entity, when (UTC), correlation_id."""
    token = correlation_id_ctx.set("corr-id")
    try:
        await mock_audit_logger.log_action(
            MagicMock(), action="what", actor_id="who", target_id="id-1"
        )
    finally:
        correlation_id_ctx.reset(token)
    record = audit_repository.save.call_args[0][1]
    assert record.correlation_id == "corr-id"
    assert record.timestamp_utc.tzinfo == timezone.utc
    d = record.to_dict()
    for key in ("action", "actor_id", "target_id", "details", "correlation_id", "timestamp_utc"):
        assert key in d


async def test_log_action_propagates_write_failure(mock_audit_logger, audit_repository):
    audit_repository.save.side_effect = RuntimeError("disk full")
    with pytest.raises(RuntimeError):
        await mock_audit_logger.log_action(MagicMock(), action="a", actor_id="u", target_id="t")


async def test_best_effort_without_session_factory_is_skipped(mock_audit_logger, audit_repository):
    result = await mock_audit_logger.log_best_effort(action="a", actor_id="u", target_id="t")
    assert result is None
    audit_repository.save.assert_not_awaited()


async def test_best_effort_persists_in_own_transaction(audit_logger, audit_records):
    record = await audit_logger.log_best_effort(
        action="REQUEST_NOT_FOUND", actor_id="admin-1", target_id="missing", details={"decision": "APPROVED"}
    )
    assert record is not None
    rows = await audit_records("REQUEST_NOT_FOUND")
    assert len(rows) == 1
    assert rows[0].target_id == "missing"
    assert rows[0].details == {"decision": "APPROVED"}


async def test_best_effort_swallows_write_failure(session_factory, audit_records):
    repo = AsyncMock()
    repo.save = AsyncMock(side_effect=RuntimeError("audit store down"))
    logger = AuditLogger(repo, session_factory=session_factory)

    result = await logger.log_best_effort(action="REQUEST_DUPLICATE", actor_id="u", target_id="t")

    assert result is None
    assert await audit_records() == []

"""Immutable audit logging for request lifecycle traceability. No FastAPI."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.context import correlation_id_ctx
from app.governance.audit_models import AuditRecord
from app.governance.audit_repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Writes immutable audit records via repository.
    Every record carries action, actor, affected entity, details and a UTC timestamp.

    log_action() writes inside the caller's transaction, so a decision and its record
    commit or roll back together. log_best_effort() opens its own transaction and
    never raises; it is for lifecycle events (not found, denied, duplicate) whose loss
    must not turn into a user-facing failure.
    """

    def __init__(
        self,
        repository: AuditRepository,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ) -> None:
        self._repository = repository
        self._session_factory = session_factory

    def _record(
        self,
        action: str,
        actor_id: Optional[str],
        target_id: Optional[str],
        details: Optional[dict[str, Any]],
    ) -> AuditRecord:
        return AuditRecord(
            action=action,
            actor_id=actor_id,
            target_id=target_id,
            details=details,
            correlation_id=correlation_id_ctx.get(),
            timestamp_utc=datetime.now(timezone.utc),
        )

    async def log_action(
        self,
        session: AsyncSession,
        *,
        action: str,
        actor_id: Optional[str],
        target_id: Optional[str],
        details: Optional[dict[str, Any]] = None,
    ) -> AuditRecord:
        """Append within session's transaction. Failures propagate to the caller."""
        record = self._record(action, actor_id, target_id, details)
        await self._repository.save(session, record)
        logger.info("audit_recorded", extra={"audit": record.to_dict()})
        return record

    async def log_best_effort(
        self,
        *,
        action: str,
        actor_id: Optional[str],
        target_id: Optional[str],
        details: Optional[dict[str, Any]] = None,
    ) -> Optional[AuditRecord]:
        """Append in a separate transaction. Logs and swallows write failures."""
        if self._session_factory is None:
            logger.warning("audit_skipped_no_session_factory", extra={"action": action})
            return None
        record = self._record(action, actor_id, target_id, details)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await self._repository.save(session, record)
        except Exception as e:
            logger.error(
                "audit_write_failed",
                extra={"audit": record.to_dict(), "error": str(e)},
            )
            return None
        logger.info("audit_recorded", extra={"audit": record.to_dict()})
        return record

"""DB-backed audit repository (audit_logs table). Insert only."""

from sqlalchemy.ext.asyncio import AsyncSession

from app.governance.audit_models import AuditRecord
from app.infrastructure.database.models import AuditLog


class DbAuditRepository:
    """Implements AuditRepository. Adds a row to the caller's transaction; never updates or deletes."""

    async def save(self, session: AsyncSession, record: AuditRecord) -> None:
        session.add(
            AuditLog(
                action=record.action,
                actor_id=record.actor_id,
                target_id=record.target_id,
                details=record.details,
                correlation_id=record.correlation_id,
                created_at=record.timestamp_utc,
            )
        )
        await session.flush()

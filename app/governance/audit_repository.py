"""Audit repository protocol. Governance layer depends on this; infrastructure implements it."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from app.governance.audit_models import AuditRecord


class AuditRepository(Protocol):
    """Protocol for persisting immutable audit records."""

    async def save(self, session: AsyncSession, record: AuditRecord) -> None:
        """Append record within the caller's transaction. Must not allow mutation."""
        ...

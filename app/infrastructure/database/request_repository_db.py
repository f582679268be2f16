"""DB-backed change-request repository (change_requests table)."""

from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models.request import ChangeRequest, RequestStatus, RequestType
from app.governance.exceptions import DuplicateRequestError, NotFoundError
from app.infrastructure.database.models import (
    Changelog,
    ChangelogEntry,
    ChangeRequestRecord,
    Project,
)
from app.security.access_policy import ProjectFlags


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo; stored values are always UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_domain(orm: ChangeRequestRecord) -> ChangeRequest:
    return ChangeRequest(
        id=orm.id,
        type=RequestType(orm.type),
        status=RequestStatus(orm.status),
        proposer_id=orm.proposer_id,
        project_id=orm.project_id,
        created_at=_aware(orm.created_at),
        target_id=orm.target_id,
        entry_id=orm.entry_id,
        reviewer_id=orm.reviewer_id,
        reviewed_at=_aware(orm.reviewed_at),
    )


class DbRequestRepository:
    """Implements RequestRepository over SQLAlchemy. Never commits; the caller owns the transaction."""

    async def add(self, session: AsyncSession, request: ChangeRequest) -> None:
        existing = await self.find_pending(session, request.dedupe_key)
        if existing is not None:
            raise DuplicateRequestError(
                f"A pending {request.type.value} request already exists: {existing.id}",
                existing=existing,
            )
        orm = ChangeRequestRecord(
            id=request.id,
            type=request.type.value,
            status=request.status.value,
            proposer_id=request.proposer_id,
            project_id=request.project_id,
            target_id=request.target_id,
            entry_id=request.entry_id,
            dedupe_key=request.dedupe_key,
            created_at=request.created_at,
        )
        session.add(orm)
        try:
            await session.flush()
        except IntegrityError as e:
            reason = str(e.orig).lower()
            if "foreign key" in reason:
                # Project or entry deleted after the caller checked for it.
                raise NotFoundError(
                    f"Project or changelog entry no longer exists for request {request.id}"
                ) from e
            # Lost a race with a concurrent identical proposal; the partial unique index fired.
            if "dedupe" not in reason:
                raise
            raise DuplicateRequestError(
                f"A pending {request.type.value} request already exists for this target"
            ) from e

    async def get(self, session: AsyncSession, request_id: str) -> Optional[ChangeRequest]:
        orm = await session.get(ChangeRequestRecord, request_id, populate_existing=True)
        return to_domain(orm) if orm is not None else None

    async def find_pending(self, session: AsyncSession, dedupe_key: str) -> Optional[ChangeRequest]:
        stmt = select(ChangeRequestRecord).where(
            ChangeRequestRecord.dedupe_key == dedupe_key,
            ChangeRequestRecord.status == RequestStatus.PENDING.value,
        )
        result = await session.execute(stmt)
        orm = result.scalar_one_or_none()
        return to_domain(orm) if orm is not None else None

    async def transition(
        self,
        session: AsyncSession,
        request_id: str,
        status: RequestStatus,
        reviewer_id: str,
        reviewed_at: datetime,
    ) -> bool:
        # Conditional update: the status guard and the write are one statement.
        stmt = (
            update(ChangeRequestRecord)
            .where(
                ChangeRequestRecord.id == request_id,
                ChangeRequestRecord.status == RequestStatus.PENDING.value,
            )
            .values(status=status.value, reviewer_id=reviewer_id, reviewed_at=reviewed_at)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def list_pending(
        self,
        session: AsyncSession,
        *,
        project_id: Optional[str] = None,
        proposer_id: Optional[str] = None,
    ) -> Sequence[ChangeRequest]:
        stmt = select(ChangeRequestRecord).where(
            ChangeRequestRecord.status == RequestStatus.PENDING.value
        )
        if project_id:
            stmt = stmt.where(ChangeRequestRecord.project_id == project_id)
        if proposer_id:
            stmt = stmt.where(ChangeRequestRecord.proposer_id == proposer_id)
        stmt = stmt.order_by(ChangeRequestRecord.created_at.desc())
        result = await session.execute(stmt)
        return [to_domain(orm) for orm in result.scalars().all()]


class DbProjectRepository:
    async def get_flags(self, session: AsyncSession, project_id: str) -> Optional[ProjectFlags]:
        stmt = select(Project.require_approval, Project.allow_auto_publish).where(
            Project.id == project_id
        )
        row = (await session.execute(stmt)).one_or_none()
        if row is None:
            return None
        return ProjectFlags(require_approval=row.require_approval, allow_auto_publish=row.allow_auto_publish)

    async def has_entry(self, session: AsyncSession, project_id: str, entry_id: str) -> bool:
        stmt = (
            select(ChangelogEntry.id)
            .join(Changelog, ChangelogEntry.changelog_id == Changelog.id)
            .where(ChangelogEntry.id == entry_id, Changelog.project_id == project_id)
        )
        return await session.scalar(stmt) is not None

"""DELETE_TAG: drop a tag from a project's default list and, if it is a real tag, everywhere else."""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models.request import ChangeRequest, TagTarget
from app.governance.exceptions import EntityNotFoundError
from app.infrastructure.database.models import ChangelogTag, Project, changelog_entry_tags
from app.workflows.processors.base import expect_payload

logger = logging.getLogger(__name__)


class DeleteTagProcessor:
    """
    The tag id may only live in project.default_tags (a "soft" tag) or may also
    be a changelog_tags row. The soft-list removal always happens; the row, if
    present, is disconnected from its entries and deleted. No row is not an error.
    """

    async def apply(self, session: AsyncSession, request: ChangeRequest) -> None:
        payload = expect_payload(request, TagTarget)

        default_tags = await session.scalar(
            select(Project.default_tags).where(Project.id == payload.project_id)
        )
        if default_tags is None:
            raise EntityNotFoundError(f"Project not found: {payload.project_id}")

        remaining = [tag for tag in default_tags if tag != payload.tag_id]
        await session.execute(
            update(Project)
            .where(Project.id == payload.project_id)
            .values(default_tags=remaining)
            .execution_options(synchronize_session=False)
        )

        tag_id = await session.scalar(select(ChangelogTag.id).where(ChangelogTag.id == payload.tag_id))
        disconnected = 0
        if tag_id is not None:
            disconnected = await self._disconnect_and_delete(session, tag_id)

        logger.info(
            "tag_deleted",
            extra={
                "project_id": payload.project_id,
                "tag_id": payload.tag_id,
                "request_id": request.id,
                "removed_from_defaults": len(remaining) != len(default_tags),
                "tag_row_deleted": tag_id is not None,
                "entries_disconnected": disconnected,
            },
        )

    async def _disconnect_and_delete(self, session: AsyncSession, tag_id: str) -> int:
        result = await session.execute(
            delete(changelog_entry_tags).where(changelog_entry_tags.c.tag_id == tag_id)
        )
        await session.execute(
            delete(ChangelogTag)
            .where(ChangelogTag.id == tag_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

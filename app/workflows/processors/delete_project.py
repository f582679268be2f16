"""DELETE_PROJECT: remove a project and everything that hangs off it."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models.request import ChangeRequest, ProjectTarget
from app.governance.exceptions import EntityNotFoundError
from app.infrastructure.database.models import (
    Changelog,
    ChangelogEntry,
    ChangeRequestRecord,
    Project,
)
from app.workflows.processors.base import expect_payload

logger = logging.getLogger(__name__)


class DeleteProjectProcessor:
    """
    Deletes children before parents: change requests for the project, the
    changelog's entries, the changelog, then the project row. A foreign-key
    error at any step aborts the enclosing transaction.
    """

    async def apply(self, session: AsyncSession, request: ChangeRequest) -> None:
        payload = expect_payload(request, ProjectTarget)
        project_id = payload.project_id

        exists = await session.scalar(select(Project.id).where(Project.id == project_id))
        if exists is None:
            raise EntityNotFoundError(f"Project not found: {project_id}")

        requests_deleted = await session.execute(
            delete(ChangeRequestRecord)
            .where(ChangeRequestRecord.project_id == project_id)
            .execution_options(synchronize_session=False)
        )

        changelog_id = await session.scalar(
            select(Changelog.id).where(Changelog.project_id == project_id)
        )
        entries_deleted = 0
        if changelog_id is not None:
            result = await session.execute(
                delete(ChangelogEntry)
                .where(ChangelogEntry.changelog_id == changelog_id)
                .execution_options(synchronize_session=False)
            )
            entries_deleted = result.rowcount
            await session.execute(
                delete(Changelog)
                .where(Changelog.id == changelog_id)
                .execution_options(synchronize_session=False)
            )

        await session.execute(
            delete(Project)
            .where(Project.id == project_id)
            .execution_options(synchronize_session=False)
        )
        logger.info(
            "project_deleted",
            extra={
                "project_id": project_id,
                "request_id": request.id,
                "requests_deleted": requests_deleted.rowcount,
                "entries_deleted": entries_deleted,
            },
        )

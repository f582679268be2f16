"""ALLOW_SCHEDULE: grant a project's staff the right to publish and schedule without review."""

import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models.request import ChangeRequest, ProjectTarget
from app.governance.exceptions import EntityNotFoundError
from app.infrastructure.database.models import Project
from app.workflows.processors.base import expect_payload

logger = logging.getLogger(__name__)


class AllowScheduleProcessor:
    async def apply(self, session: AsyncSession, request: ChangeRequest) -> None:
        payload = expect_payload(request, ProjectTarget)
        result = await session.execute(
            update(Project)
            .where(Project.id == payload.project_id)
            .values(allow_auto_publish=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise EntityNotFoundError(f"Project not found: {payload.project_id}")
        logger.info(
            "project_auto_publish_granted",
            extra={"project_id": payload.project_id, "request_id": request.id},
        )

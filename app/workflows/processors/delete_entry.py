"""DELETE_ENTRY: remove one changelog entry. Tag links go with it (ON DELETE CASCADE)."""

import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models.request import ChangeRequest, EntryTarget
from app.infrastructure.database.models import ChangelogEntry
from app.workflows.processors.base import expect_payload, require_entry

logger = logging.getLogger(__name__)


class DeleteEntryProcessor:
    async def apply(self, session: AsyncSession, request: ChangeRequest) -> None:
        payload = expect_payload(request, EntryTarget)
        entry = await require_entry(session, payload)
        await session.execute(
            delete(ChangelogEntry)
            .where(ChangelogEntry.id == entry.id)
            .execution_options(synchronize_session=False)
        )
        session.expunge(entry)
        logger.info(
            "entry_deleted",
            extra={"entry_id": payload.entry_id, "project_id": payload.project_id, "request_id": request.id},
        )

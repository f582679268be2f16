"""ALLOW_PUBLISH: publish a changelog entry now."""

import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models.request import ChangeRequest, EntryTarget
from app.infrastructure.database.models import ChangelogEntry
from app.workflows.processors.base import expect_payload, require_entry

logger = logging.getLogger(__name__)


class AllowPublishProcessor:
    """Sets published_at on the entry. Re-publishing keeps the original timestamp."""

    async def apply(self, session: AsyncSession, request: ChangeRequest) -> None:
        payload = expect_payload(request, EntryTarget)
        entry = await require_entry(session, payload)
        if entry.published_at is not None:
            logger.info(
                "entry_already_published",
                extra={"entry_id": entry.id, "request_id": request.id},
            )
            return
        await session.execute(
            update(ChangelogEntry)
            .where(ChangelogEntry.id == entry.id)
            .values(published_at=datetime.now(timezone.utc), scheduled_at=None)
            .execution_options(synchronize_session=False)
        )
        logger.info("entry_published", extra={"entry_id": entry.id, "request_id": request.id})

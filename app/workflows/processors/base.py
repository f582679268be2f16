"""Mutation processor interface. The orchestrator depends on this protocol only."""

from typing import Protocol, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.exceptions import DomainValidationError
from app.domain.models.request import ChangeRequest, EntryTarget, RequestPayload
from app.governance.exceptions import EntityNotFoundError
from app.infrastructure.database.models import Changelog, ChangelogEntry

P = TypeVar("P", bound=RequestPayload)


class MutationProcessor(Protocol):
    """
    Applies one request type's mutation to domain state.

    Called exactly once per approval, inside the transaction that records the
    decision. Must not commit, and must not touch the change_requests row it is
    applying. Raise EntityNotFoundError when the entity to mutate is gone.
    """

    async def apply(self, session: AsyncSession, request: ChangeRequest) -> None:
        ...


def expect_payload(request: ChangeRequest, payload_type: Type[P]) -> P:
    """Typed payload for request, or DomainValidationError if it is the wrong variant."""
    payload = request.payload()
    if not isinstance(payload, payload_type):
        raise DomainValidationError(
            f"{request.type.value} request {request.id} does not carry a {payload_type.__name__}"
        )
    return payload


async def require_entry(session: AsyncSession, payload: EntryTarget) -> ChangelogEntry:
    """The entry named by payload, provided it belongs to payload's project."""
    stmt = (
        select(ChangelogEntry)
        .join(Changelog, ChangelogEntry.changelog_id == Changelog.id)
        .where(
            ChangelogEntry.id == payload.entry_id,
            Changelog.project_id == payload.project_id,
        )
    )
    entry = (await session.execute(stmt)).scalar_one_or_none()
    if entry is None:
        raise EntityNotFoundError(
            f"Changelog entry not found in project {payload.project_id}: {payload.entry_id}"
        )
    return entry

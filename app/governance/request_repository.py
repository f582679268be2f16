"""Change-request and project repository protocols. Governance layer depends on this; infrastructure implements it."""

from datetime import datetime
from typing import Optional, Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models.request import ChangeRequest, RequestStatus
from app.security.access_policy import ProjectFlags


class RequestRepository(Protocol):
    """Persistence for change requests. Every call runs in the caller's session/transaction."""

    async def add(self, session: AsyncSession, request: ChangeRequest) -> None:
        """Insert a PENDING request. Raises DuplicateRequestError if an identical one is PENDING."""
        ...

    async def get(self, session: AsyncSession, request_id: str) -> Optional[ChangeRequest]:
        ...

    async def find_pending(self, session: AsyncSession, dedupe_key: str) -> Optional[ChangeRequest]:
        ...

    async def transition(
        self,
        session: AsyncSession,
        request_id: str,
        status: RequestStatus,
        reviewer_id: str,
        reviewed_at: datetime,
    ) -> bool:
        """Atomically move a PENDING request to status. False if it was no longer PENDING."""
        ...

    async def list_pending(
        self,
        session: AsyncSession,
        *,
        project_id: Optional[str] = None,
        proposer_id: Optional[str] = None,
    ) -> Sequence[ChangeRequest]:
        ...


class ProjectRepository(Protocol):
    async def get_flags(self, session: AsyncSession, project_id: str) -> Optional[ProjectFlags]:
        """Approval flags for project, or None if the project does not exist."""
        ...

    async def has_entry(self, session: AsyncSession, project_id: str, entry_id: str) -> bool:
        """True if entry_id is a changelog entry of project_id."""
        ...

"""Domain model for change requests. Pure business semantics; no ORM or infrastructure."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional, Union

from app.domain.exceptions import DomainValidationError, InvalidStatusTransitionError


class RequestType(str, Enum):
    """Kinds of mutation a staff member can propose."""

    DELETE_PROJECT = "DELETE_PROJECT"
    DELETE_TAG = "DELETE_TAG"
    DELETE_ENTRY = "DELETE_ENTRY"
    ALLOW_PUBLISH = "ALLOW_PUBLISH"
    ALLOW_SCHEDULE = "ALLOW_SCHEDULE"


DESTRUCTIVE_TYPES: FrozenSet[RequestType] = frozenset(
    {RequestType.DELETE_PROJECT, RequestType.DELETE_TAG, RequestType.DELETE_ENTRY}
)
PUBLISHING_TYPES: FrozenSet[RequestType] = frozenset(
    {RequestType.ALLOW_PUBLISH, RequestType.ALLOW_SCHEDULE}
)


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# PENDING is the only state with outgoing transitions.
_STATUS_TRANSITIONS: Dict[RequestStatus, FrozenSet[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED}),
    RequestStatus.APPROVED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
}


def validate_transition(current: RequestStatus, new: RequestStatus) -> None:
    """Raise InvalidStatusTransitionError unless current -> new is allowed."""
    if new not in _STATUS_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransitionError(
            f"Invalid status transition from {current.value} to {new.value}"
        )


# ---------------------------------------------------------------------------
# Typed payloads: what each processor reads from a request
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProjectTarget:
    project_id: str


@dataclass(frozen=True)
class TagTarget:
    project_id: str
    tag_id: str


@dataclass(frozen=True)
class EntryTarget:
    project_id: str
    entry_id: str


RequestPayload = Union[ProjectTarget, TagTarget, EntryTarget]


@dataclass(frozen=True)
class ChangeRequest:
    """
    A proposed mutation awaiting or having received a decision.
    reviewer_id and reviewed_at are set together, exactly once, by decide().
    """

    id: str
    type: RequestType
    status: RequestStatus
    proposer_id: str
    project_id: str
    created_at: datetime
    target_id: Optional[str] = None
    entry_id: Optional[str] = None
    reviewer_id: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def decided(
        self, status: RequestStatus, reviewer_id: str, reviewed_at: datetime
    ) -> "ChangeRequest":
        """Return a copy in the terminal state. Does not persist anything."""
        validate_transition(self.status, status)
        return replace(self, status=status, reviewer_id=reviewer_id, reviewed_at=reviewed_at)

    def payload(self) -> RequestPayload:
        """Typed view of the request's target fields for its type."""
        return build_payload(self.type, self.project_id, self.target_id, self.entry_id)

    @property
    def dedupe_key(self) -> str:
        return dedupe_key(self.type, self.project_id, self.target_id, self.entry_id)


def build_payload(
    request_type: RequestType,
    project_id: Optional[str],
    target_id: Optional[str] = None,
    entry_id: Optional[str] = None,
) -> RequestPayload:
    """Map loose request fields to the payload variant the type expects."""
    if not project_id:
        raise DomainValidationError("project_id is required")
    if request_type is RequestType.DELETE_TAG:
        if not target_id:
            raise DomainValidationError("target_id (tag) is required for DELETE_TAG")
        return TagTarget(project_id=project_id, tag_id=target_id)
    if request_type in (RequestType.DELETE_ENTRY, RequestType.ALLOW_PUBLISH):
        if not entry_id:
            raise DomainValidationError(f"entry_id is required for {request_type.value}")
        return EntryTarget(project_id=project_id, entry_id=entry_id)
    return ProjectTarget(project_id=project_id)


def dedupe_key(
    request_type: RequestType,
    project_id: str,
    target_id: Optional[str],
    entry_id: Optional[str],
) -> str:
    """Identity of a proposal; at most one PENDING request per key."""
    return ":".join([request_type.value, project_id, target_id or "-", entry_id or "-"])

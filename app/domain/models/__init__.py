"""Domain models. Pure business entities."""

from app.domain.models.request import (
    DESTRUCTIVE_TYPES,
    PUBLISHING_TYPES,
    ChangeRequest,
    EntryTarget,
    ProjectTarget,
    RequestPayload,
    RequestStatus,
    RequestType,
    TagTarget,
    build_payload,
)

__all__ = [
    "DESTRUCTIVE_TYPES",
    "PUBLISHING_TYPES",
    "ChangeRequest",
    "EntryTarget",
    "ProjectTarget",
    "RequestPayload",
    "RequestStatus",
    "RequestType",
    "TagTarget",
    "build_payload",
]

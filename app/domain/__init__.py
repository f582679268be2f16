"""Domain layer: models, schemas, validators, exceptions. Pure business logic only."""

from app.domain.exceptions import (
    DomainError,
    DomainValidationError,
    InvalidStatusTransitionError,
)
from app.domain.models import (
    ChangeRequest,
    EntryTarget,
    ProjectTarget,
    RequestStatus,
    RequestType,
    TagTarget,
)
from app.domain.validators import parse_decision, parse_request_type, validate_create_fields

__all__ = [
    "ChangeRequest",
    "DomainError",
    "DomainValidationError",
    "EntryTarget",
    "InvalidStatusTransitionError",
    "ProjectTarget",
    "RequestStatus",
    "RequestType",
    "TagTarget",
    "parse_decision",
    "parse_request_type",
    "validate_create_fields",
]

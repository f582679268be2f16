"""Validators for change-request input. Pure functions, no infrastructure or DB access."""

from typing import Optional, Union

from app.domain.exceptions import DomainValidationError
from app.domain.models.request import RequestStatus, RequestType, build_payload


def validate_identifier(value: Optional[str], field: str) -> str:
    """Non-empty, stripped identifier. Raises DomainValidationError otherwise."""
    if not value or not value.strip():
        raise DomainValidationError(f"{field} must not be empty")
    return value.strip()


def parse_request_type(value: Union[str, RequestType]) -> RequestType:
    try:
        return RequestType(value)
    except ValueError:
        raise DomainValidationError(f"Unknown request type: {value}") from None


def parse_decision(value: Union[str, RequestStatus]) -> RequestStatus:
    """Only APPROVED and REJECTED are decisions; PENDING or anything else is malformed."""
    try:
        decision = RequestStatus(value)
    except ValueError:
        raise DomainValidationError(f"Unknown decision value: {value}") from None
    if decision == RequestStatus.PENDING:
        raise DomainValidationError("decision must be APPROVED or REJECTED")
    return decision


def validate_create_fields(
    request_type: RequestType,
    project_id: Optional[str],
    target_id: Optional[str],
    entry_id: Optional[str],
) -> None:
    """Ensure the fields the type's processor will need are present."""
    validate_identifier(project_id, "project_id")
    build_payload(request_type, project_id, target_id, entry_id)

"""Domain validators. Pure validation functions."""

from app.domain.validators.request_validator import (
    parse_decision,
    parse_request_type,
    validate_create_fields,
    validate_identifier,
)

__all__ = [
    "parse_decision",
    "parse_request_type",
    "validate_create_fields",
    "validate_identifier",
]

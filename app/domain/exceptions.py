"""Domain-specific exceptions. Pure domain layer; no infrastructure."""


class DomainError(Exception):
    """Base for all domain-layer errors."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DomainValidationError(DomainError):
    """Raised when input is malformed (missing project id, unknown decision value)."""

    code = "VALIDATION_ERROR"


class InvalidStatusTransitionError(DomainError):
    """Raised when a request status transition is not allowed."""

    code = "INVALID_TRANSITION"

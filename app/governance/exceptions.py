"""Governance-layer exceptions for the approval workflow. Typed, no HTTP."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.domain.models.request import ChangeRequest


class GovernanceError(Exception):
    """Base for all approval-workflow errors."""

    code = "GOVERNANCE_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(GovernanceError):
    """Raised when a request (or the project it targets) does not exist."""

    code = "NOT_FOUND"


class AlreadyProcessedError(GovernanceError):
    """
    Raised when a decision targets a request that has left PENDING.
    Informational: carries the request's current state for the caller to show.
    """

    code = "ALREADY_PROCESSED"

    def __init__(self, message: str, current: Optional["ChangeRequest"] = None) -> None:
        super().__init__(message)
        self.current = current


class DuplicateRequestError(GovernanceError):
    """Raised when an identical proposal is already PENDING."""

    code = "DUPLICATE_REQUEST"

    def __init__(self, message: str, existing: Optional["ChangeRequest"] = None) -> None:
        super().__init__(message)
        self.existing = existing


class UnknownProcessorError(GovernanceError):
    """Raised when a request type has no registered processor. Fatal for the approval."""

    code = "UNKNOWN_PROCESSOR"


class ProcessorExecutionError(GovernanceError):
    """Raised when the approved mutation itself fails. Fatal; the approval rolls back."""

    code = "PROCESSOR_FAILED"


class EntityNotFoundError(ProcessorExecutionError):
    """Raised by a processor when the entity it must mutate is gone."""

    code = "ENTITY_NOT_FOUND"
